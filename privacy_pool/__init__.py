from .bank import Bank, InsufficientBalance, TransferFailed
from .chain import BlockHeader, Chain, ChainConfig
from .claim import MalformedPublicInputs, WithdrawalClaim
from .common import (
    ZERO_ADDRESS,
    ZERO_HASH,
    Hash,
    InclusionBranches,
    PoolError,
    compute_commitment,
    compute_inclusion_root,
)
from .deposit import Deposit, DepositProcessor, InvalidDepositAmount
from .ledger import AlreadySpent, CommitmentLedger, NullifierSet, PoolState
from .pool import Pool, PoolConfig
from .verifier import (
    AcceptAllVerifier,
    MockProofVerifier,
    MockWithdrawalProof,
    ProofVerifier,
    RejectAllVerifier,
)
from .withdrawal import (
    InvalidRelayerFee,
    PoolIdentityMismatch,
    ProofInvalid,
    StaleOrInvalidBlockReference,
    Withdrawal,
    WithdrawalProcessor,
)

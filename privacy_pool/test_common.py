from eth_typing import Address, Hash32
from eth_utils import keccak

from .chain import Chain, ChainConfig
from .claim import WithdrawalClaim
from .common import ZERO_ADDRESS, ZERO_HASH, InclusionBranches, compute_commitment
from .pool import Pool, PoolConfig
from .verifier import MockProofVerifier, MockWithdrawalProof, ProofVerifier

VERIFICATION_KEY = Hash32(keccak(b"pool-program"))
DENOMINATION = 10**18


def mk_address(n: int) -> Address:
    return Address(int.to_bytes(n, length=20, byteorder="big"))


def mk_secret(n: int) -> Hash32:
    return Hash32(keccak(b"secret" + int.to_bytes(n, length=8, byteorder="big")))


def mk_chain(history_window: int = 256) -> Chain:
    return Chain(ChainConfig.ethereum().replace(history_window=history_window))


def mk_pool(
    chain: Chain,
    address: Address = mk_address(0x9001),
    verifier: ProofVerifier | None = None,
    denomination: int = DENOMINATION,
) -> Pool:
    if verifier is None:
        verifier = MockProofVerifier(VERIFICATION_KEY, chain)
    config = PoolConfig(
        verifier=verifier,
        verification_key=VERIFICATION_KEY,
        denomination=denomination,
    )
    return Pool(address, config, chain)


def mk_deposit(pool: Pool, secret: bytes, sender: Address = mk_address(0xD0)) -> int:
    """
    Funds `sender` with one denomination and deposits the commitment of `secret`.
    """
    commitment, _ = compute_commitment(secret)
    pool.chain.bank.mint(sender, pool.config.denomination)
    return pool.deposit(commitment, pool.config.denomination, sender)


def mk_claim(
    pool: Pool,
    secret: bytes,
    block_number: int | None = None,
    recipient: Address = mk_address(0xAA),
    relayer: Address = ZERO_ADDRESS,
    relayer_fee: int = 0,
    exclusion_set_root: Hash32 = ZERO_HASH,
    pool_address: Address | None = None,
) -> WithdrawalClaim:
    if block_number is None:
        block_number = pool.chain.tip().number
    _, nullifier = compute_commitment(secret)
    return WithdrawalClaim(
        nullifier=nullifier,
        block_number=block_number,
        block_hash=pool.chain.header(block_number).id(),
        exclusion_set_root=exclusion_set_root,
        relayer_fee=relayer_fee,
        recipient=recipient,
        relayer=relayer,
        pool_address=pool.address if pool_address is None else pool_address,
    )


def mk_withdrawal(
    pool: Pool,
    secret: bytes,
    index: int,
    inclusion_branches: InclusionBranches | None = None,
    **claim_kwargs,
) -> tuple[bytes, bytes]:
    """
    Returns (public_inputs, proof) for withdrawing the deposit of `secret`
    at ledger position `index`, against the chain tip unless a block is given.
    """
    claim = mk_claim(pool, secret, **claim_kwargs)
    proof = MockWithdrawalProof.prove(secret, index, claim, inclusion_branches)
    return claim.encode(), proof.encode()

"""
This module defines the ProofVerifier interface.

The withdrawal statement is proven by an external zk program; the pool only
sees it through `verify(verification_key, public_inputs, proof)`, a trusted,
deterministic and side-effect free predicate.

The statement a withdrawal proof attests to, given a secret and the public
inputs (a WithdrawalClaim):
1. (commitment, nullifier) = compute_commitment(secret) and the nullifier is
   the claim's nullifier.
2. The block at `block_number` has hash `block_hash`.
3. As of that block, the pool at `pool_address` holds `commitment` in its
   ledger at some index.
4. The exclusion set root is computed from the commitment and the supplied
   branches, or is zero when no branches are supplied.

MockProofVerifier checks exactly this statement by re-executing it against
the chain archive. The "proof" it accepts carries the secret in the clear, it
is only meant for testing the pool.
"""

import logging
from dataclasses import dataclass

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_typing import Hash32
from eth_utils import keccak

from .claim import MalformedPublicInputs, WithdrawalClaim
from .common import (
    ZERO_HASH,
    InclusionBranches,
    as_hash32,
    compute_commitment,
    compute_inclusion_root,
)

logger = logging.getLogger(__name__)


class ProofVerifier:
    def verify(self, verification_key: Hash32, public_inputs: bytes, proof: bytes) -> bool:
        raise NotImplementedError()


class AcceptAllVerifier(ProofVerifier):
    def verify(self, verification_key, public_inputs, proof) -> bool:
        return True


class RejectAllVerifier(ProofVerifier):
    def verify(self, verification_key, public_inputs, proof) -> bool:
        return False


MOCK_PROOF_ABI_TYPES = ["bytes32", "uint256", "bytes32", "bool", "uint32", "bytes32[]"]


@dataclass
class MockWithdrawalProof:
    secret: Hash32
    array_index: int
    # binds the proof to the exact public inputs it was produced for
    public_inputs_digest: Hash32
    inclusion_branches: InclusionBranches | None = None

    def __post_init__(self):
        self.secret = as_hash32(self.secret)
        self.public_inputs_digest = as_hash32(self.public_inputs_digest)
        assert self.array_index >= 0

    @staticmethod
    def prove(
        secret: bytes,
        array_index: int,
        claim: WithdrawalClaim,
        inclusion_branches: InclusionBranches | None = None,
    ) -> "MockWithdrawalProof":
        return MockWithdrawalProof(
            secret=secret,
            array_index=array_index,
            public_inputs_digest=keccak(claim.encode()),
            inclusion_branches=inclusion_branches,
        )

    def encode(self) -> bytes:
        branches = self.inclusion_branches
        return encode(
            MOCK_PROOF_ABI_TYPES,
            [
                self.secret,
                self.array_index,
                self.public_inputs_digest,
                branches is not None,
                branches.index if branches else 0,
                branches.proof if branches else [],
            ],
        )

    @staticmethod
    def decode(data: bytes) -> "MockWithdrawalProof":
        (
            secret,
            array_index,
            digest,
            has_branches,
            index,
            proof,
        ) = decode(MOCK_PROOF_ABI_TYPES, data)
        return MockWithdrawalProof(
            secret=secret,
            array_index=array_index,
            public_inputs_digest=digest,
            inclusion_branches=(
                InclusionBranches(index=index, proof=list(proof)) if has_branches else None
            ),
        )


class MockProofVerifier(ProofVerifier):
    def __init__(self, verification_key: Hash32, chain):
        self.verification_key = as_hash32(verification_key)
        self.chain = chain

    def verify(self, verification_key, public_inputs, proof) -> bool:
        if verification_key != self.verification_key:
            return _reject("unknown verification key")
        if not isinstance(proof, (bytes, bytearray)):
            return _reject(f"proof is {type(proof).__name__}, not bytes")

        try:
            claim = WithdrawalClaim.decode(public_inputs)
            mock = MockWithdrawalProof.decode(proof)
        except (MalformedPublicInputs, DecodingError) as e:
            return _reject(f"undecodable input: {e}")

        if mock.public_inputs_digest != keccak(public_inputs):
            return _reject("proof was produced for different public inputs")

        commitment, nullifier = compute_commitment(mock.secret)
        if nullifier != claim.nullifier:
            return _reject("nullifier does not match the secret")

        header = self.chain.header(claim.block_number)
        if header is None or header.id() != claim.block_hash:
            return _reject("block hash does not match the block header")

        commitments = self.chain.commitments_at(claim.block_number, claim.pool_address)
        if commitments is None:
            return _reject("pool did not exist at the referenced block")
        if mock.array_index >= len(commitments):
            return _reject("array index out of range")
        if commitments[mock.array_index] != commitment:
            return _reject("commitment not found at array index")

        if mock.inclusion_branches is None:
            exclusion_set_root = ZERO_HASH
        else:
            exclusion_set_root = compute_inclusion_root(commitment, mock.inclusion_branches)
        if exclusion_set_root != claim.exclusion_set_root:
            return _reject("exclusion set root mismatch")

        return True


def _reject(reason: str) -> bool:
    logger.debug("proof rejected: %s", reason)
    return False

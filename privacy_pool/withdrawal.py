"""
Withdrawal validation and settlement.

A withdrawal is processed as a two phase operation:

1. validate: every check runs before anything is mutated
   (proof, decoding, nullifier freshness, block reference, pool identity, fee)
2. settle: the nullifier is marked spent, *then* value leaves the pool.
   Marking first means a receiver calling back into the pool finds the
   nullifier already spent. If any transfer fails the nullifier is unmarked
   and the error propagates, so the claim can be submitted again later.
"""

import logging
from dataclasses import dataclass

from eth_typing import Address, Hash32

from .claim import WithdrawalClaim
from .common import PoolError
from .ledger import AlreadySpent, PoolState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Withdrawal:
    nullifier: Hash32
    block_number: int
    block_hash: Hash32
    exclusion_set_root: Hash32
    recipient: Address
    relayer: Address
    relayer_fee: int


class WithdrawalProcessor:
    def __init__(self, config, chain):
        self.config = config
        self.chain = chain

    def validate(
        self, state: PoolState, pool_address: Address, public_inputs: bytes, proof: bytes
    ) -> WithdrawalClaim:
        if not self.config.verifier.verify(
            self.config.verification_key, public_inputs, proof
        ):
            raise ProofInvalid

        claim = WithdrawalClaim.decode(public_inputs)

        if claim.nullifier in state.nullifiers:
            raise AlreadySpent

        # ground truth from the chain, never the hash reported by the claim
        if self.chain.block_hash(claim.block_number) != claim.block_hash:
            raise StaleOrInvalidBlockReference(claim.block_number)

        if claim.pool_address != pool_address:
            raise PoolIdentityMismatch

        if claim.relayer_fee > self.config.denomination:
            raise InvalidRelayerFee(claim.relayer_fee)

        return claim

    def process(
        self, state: PoolState, pool_address: Address, public_inputs: bytes, proof: bytes
    ) -> WithdrawalClaim:
        claim = self.validate(state, pool_address, public_inputs, proof)

        snapshot = state.snapshot()
        try:
            # the transaction reverts balances and events if a transfer fails
            with self.chain.transaction():
                state.nullifiers.add(claim.nullifier)
                self.chain.emit(
                    Withdrawal(
                        nullifier=claim.nullifier,
                        block_number=claim.block_number,
                        block_hash=claim.block_hash,
                        exclusion_set_root=claim.exclusion_set_root,
                        recipient=claim.recipient,
                        relayer=claim.relayer,
                        relayer_fee=claim.relayer_fee,
                    )
                )

                bank = self.chain.bank
                bank.transfer(
                    pool_address,
                    claim.recipient,
                    self.config.denomination - claim.relayer_fee,
                )
                if claim.relayer_fee > 0:
                    bank.transfer(pool_address, claim.relayer, claim.relayer_fee)
        except PoolError:
            state.restore(snapshot)
            raise

        logger.debug("nullifier 0x%s spent", claim.nullifier.hex())
        return claim


class ProofInvalid(PoolError):
    def __str__(self):
        return "Invalid proof"


class StaleOrInvalidBlockReference(PoolError):
    def __str__(self):
        return "Block hash does not match the chain, or the block is no longer retrievable"


class PoolIdentityMismatch(PoolError):
    def __str__(self):
        return "Claim was produced for a different pool"


class InvalidRelayerFee(PoolError):
    def __str__(self):
        return "Relayer fee exceeds the denomination"

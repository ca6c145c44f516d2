"""
A deployed pool instance and its immutable configuration.
"""

import logging
from dataclasses import dataclass, replace

from eth_typing import Address, Hash32

from .common import UINT256_MAX, Hash, PoolError, as_address, as_hash32
from .deposit import DepositProcessor
from .ledger import PoolSnapshot, PoolState
from .verifier import ProofVerifier
from .withdrawal import WithdrawalProcessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolConfig:
    verifier: ProofVerifier
    # identifies the withdrawal program the verifier checks proofs against
    verification_key: Hash32
    # the only deposit (and withdrawal) amount this pool accepts
    denomination: int

    def __post_init__(self):
        assert callable(getattr(self.verifier, "verify", None)), f"{self.verifier}"
        assert as_hash32(self.verification_key) == self.verification_key
        assert 0 < self.denomination <= UINT256_MAX, f"denomination={self.denomination}"

    def replace(self, **kwarg) -> "PoolConfig":
        return replace(self, **kwarg)


class Pool:
    """
    A pool instance deployed on a chain at `address`.

    The pool owns its configuration (immutable) and its state (commitment
    ledger and nullifier set). Both entry points run as a single chain
    transaction: they either fully commit or leave no trace.
    """

    def __init__(self, address, config: PoolConfig, chain, state: PoolState | None = None):
        self.address: Address = as_address(address)
        self.config = config
        self.chain = chain
        self.state = state if state is not None else PoolState()
        self.deposits = DepositProcessor(config, chain)
        self.withdrawals = WithdrawalProcessor(config, chain)
        chain.deploy(self)

    def deposit(self, commitment, value: int, sender) -> int:
        try:
            with self.chain.transaction():
                index = self.deposits.process(
                    self.state, self.address, commitment, value, sender
                )
        except PoolError as e:
            logger.warning("rejected deposit into 0x%s: %s", self.address.hex(), e)
            raise

        logger.info("deposit #%d into 0x%s", index, self.address.hex())
        return index

    def withdraw(self, public_inputs: bytes, proof: bytes):
        try:
            with self.chain.transaction():
                claim = self.withdrawals.process(
                    self.state, self.address, public_inputs, proof
                )
        except PoolError as e:
            logger.warning("rejected withdrawal from 0x%s: %s", self.address.hex(), e)
            raise

        logger.info(
            "withdrawal from 0x%s to 0x%s (relayer fee %d)",
            self.address.hex(),
            claim.recipient.hex(),
            claim.relayer_fee,
        )

    def check_withdrawal(self, public_inputs: bytes, proof: bytes):
        """
        Runs every withdrawal check without settling anything. Raises the
        error `withdraw` would raise, if any.
        """
        with self.chain.lock:
            return self.withdrawals.validate(self.state, self.address, public_inputs, proof)

    def balance(self) -> int:
        return self.chain.bank.balance_of(self.address)

    def snapshot(self) -> PoolSnapshot:
        return self.state.snapshot()

    def restore(self, snapshot: PoolSnapshot):
        self.state.restore(snapshot)

    def root_at(self, length: int) -> Hash:
        """
        Accumulator digest of the first `length` ledger entries, committed to
        by the chain when it seals a block.
        """
        return self.state.commitments.root(length)

"""
Deposits: one fixed denomination in, one commitment appended to the ledger.
"""

from dataclasses import dataclass

from eth_typing import Address, Hash32

from .common import PoolError, as_address, as_hash32
from .ledger import PoolState


@dataclass(frozen=True)
class Deposit:
    """
    Emitted for every accepted deposit; provers use it to locate their
    commitment in the ledger.
    """

    pool: Address
    commitment: Hash32
    index: int


class DepositProcessor:
    def __init__(self, config, chain):
        self.config = config
        self.chain = chain

    def process(
        self, state: PoolState, pool_address: Address, commitment, value: int, sender
    ) -> int:
        """
        Takes custody of exactly one denomination from `sender` and appends
        `commitment` to the ledger. Returns the index of the new entry.

        Commitments are not required to be unique.
        """
        commitment = as_hash32(commitment)
        if value != self.config.denomination:
            raise InvalidDepositAmount(value, self.config.denomination)

        self.chain.bank.transfer(as_address(sender), pool_address, value)
        index = state.commitments.append(commitment)
        self.chain.emit(Deposit(pool=pool_address, commitment=commitment, index=index))
        return index


class InvalidDepositAmount(PoolError):
    def __str__(self):
        if len(self.args) == 2:
            return f"Invalid deposit amount {self.args[0]}, expected {self.args[1]}"
        return "Invalid deposit amount"

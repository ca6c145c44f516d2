"""
Balances and value transfer.

A transfer into an account that registered a receive hook hands control to that
hook after the value is credited. The hook is arbitrary collaborator code: it
may refuse the transfer, raise, or call back into a pool (reentrancy). Callers
must therefore finish all of their own bookkeeping before transferring.
"""

import logging
from typing import Callable

from eth_typing import Address

from .common import PoolError, as_address

logger = logging.getLogger(__name__)

# hook(sender, amount) -> accepted
ReceiveHook = Callable[[Address, int], bool]


class Bank:
    def __init__(self):
        self.balances: dict[Address, int] = {}
        self.hooks: dict[Address, ReceiveHook] = {}

    def balance_of(self, address) -> int:
        return self.balances.get(as_address(address), 0)

    def mint(self, address, amount: int):
        assert amount >= 0
        address = as_address(address)
        self.balances[address] = self.balance_of(address) + amount

    def register(self, address, hook: ReceiveHook):
        self.hooks[as_address(address)] = hook

    def transfer(self, source, destination, amount: int):
        assert amount >= 0, f"negative transfer {amount}"
        source, destination = as_address(source), as_address(destination)
        if self.balance_of(source) < amount:
            raise InsufficientBalance(source, amount)

        snapshot = self.snapshot()
        self.balances[source] = self.balance_of(source) - amount
        self.balances[destination] = self.balance_of(destination) + amount

        hook = self.hooks.get(destination)
        if hook is None:
            return

        try:
            accepted = hook(source, amount)
        except Exception as e:
            logger.debug("receive hook of 0x%s raised: %r", destination.hex(), e)
            self.restore(snapshot)
            raise TransferFailed(destination) from e
        if not accepted:
            logger.debug("receive hook of 0x%s refused %d", destination.hex(), amount)
            self.restore(snapshot)
            raise TransferFailed(destination)

    def snapshot(self) -> dict[Address, int]:
        return dict(self.balances)

    def restore(self, snapshot: dict[Address, int]):
        self.balances = dict(snapshot)


class InsufficientBalance(PoolError):
    def __str__(self):
        return "Insufficient balance"


class TransferFailed(PoolError):
    def __str__(self):
        return "Value transfer rejected by the receiver"

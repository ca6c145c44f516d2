"""
The execution environment pools are deployed on.

The chain seals blocks whose hash commits to the ledger of every deployed pool.
Withdrawal claims reference a sealed block: the pool checks the claimed hash
against `block_hash`, which, like the EVM BLOCKHASH opcode, only answers for a
bounded window of recent blocks. Provers on the other hand work from the full
archive (`header`, `commitments_at`).
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace

from eth_typing import Address, Hash32

from .bank import Bank
from .common import ZERO_HASH, Hash, as_address

logger = logging.getLogger(__name__)


@dataclass
class ChainConfig:
    # Number of most recent blocks whose hash can be queried by a pool.
    history_window: int

    def __post_init__(self):
        assert self.history_window > 0, f"history_window={self.history_window}"

    @staticmethod
    def ethereum() -> "ChainConfig":
        return ChainConfig(history_window=256)

    def replace(self, **kwarg) -> "ChainConfig":
        return replace(self, **kwarg)


@dataclass(frozen=True)
class BlockHeader:
    number: int
    parent: Hash32
    state_root: Hash

    def id(self) -> Hash:
        return Hash(
            b"BLOCK_ID",
            int.to_bytes(self.number, length=8, byteorder="big"),
            self.parent,
            self.state_root,
        )


class Chain:
    def __init__(self, config: ChainConfig | None = None):
        self.config = config or ChainConfig.ethereum()
        self.bank = Bank()
        self.contracts = {}
        self.events = []
        self.blocks: list[BlockHeader] = []
        # ledger length of every deployed pool, per sealed block
        self.archive: list[dict[Address, int]] = []
        # serializes operations; re-entrant so that receive hooks may call back in
        self.lock = threading.RLock()
        self.seal_block()

    @property
    def pending_block_number(self) -> int:
        return len(self.blocks)

    def tip(self) -> BlockHeader:
        return self.blocks[-1]

    def deploy(self, contract):
        address = as_address(contract.address)
        with self.lock:
            assert address not in self.contracts, f"0x{address.hex()} already deployed"
            self.contracts[address] = contract

    def seal_block(self) -> BlockHeader:
        with self.lock:
            number = self.pending_block_number
            parent = self.blocks[-1].id() if self.blocks else ZERO_HASH
            lengths = {
                address: len(self.contracts[address].state.commitments)
                for address in sorted(self.contracts)
            }
            state_root = Hash(
                b"STATE_ROOT",
                *(
                    address + self.contracts[address].root_at(length)
                    for address, length in lengths.items()
                ),
            )
            header = BlockHeader(number=number, parent=parent, state_root=state_root)
            self.blocks.append(header)
            self.archive.append(lengths)
            logger.debug("sealed block %d 0x%s", number, header.id().hex())
            return header

    def header(self, number: int) -> BlockHeader | None:
        if 0 <= number < len(self.blocks):
            return self.blocks[number]
        return None

    def block_hash(self, number: int) -> Hash | None:
        """
        The hash of a sealed block as observed from inside an operation executing
        in the pending block. Blocks older than `history_window` are evicted
        and can no longer be retrieved.
        """
        pending = self.pending_block_number
        if max(0, pending - self.config.history_window) <= number < pending:
            return self.blocks[number].id()
        return None

    def commitments_at(self, number: int, address) -> list[Hash32] | None:
        """
        The ledger of the pool at `address` as it stood when block `number` was sealed.
        """
        address = as_address(address)
        if self.header(number) is None or address not in self.archive[number]:
            return None
        length = self.archive[number][address]
        return list(self.contracts[address].state.commitments[:length])

    def emit(self, event):
        self.events.append(event)

    @contextmanager
    def transaction(self):
        """
        Runs the body as one atomic operation: if it raises, the bank, every
        deployed pool, the event log and any block sealed meanwhile are
        restored before the exception propagates.
        """
        with self.lock:
            balances = self.bank.snapshot()
            states = {a: c.snapshot() for a, c in self.contracts.items()}
            events = len(self.events)
            blocks = len(self.blocks)
            try:
                yield self
            except Exception:
                self.bank.restore(balances)
                for address, snapshot in states.items():
                    self.contracts[address].restore(snapshot)
                del self.events[events:]
                del self.blocks[blocks:]
                del self.archive[blocks:]
                raise

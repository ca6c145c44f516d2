"""
This module maintains the state of a pool.

Namely we are interested in:
- the ordered ledger of deposit commitments
- the set of nullifiers of already withdrawn deposits
"""

from dataclasses import dataclass, field
from typing import Iterator

from eth_typing import Hash32

from .common import Hash, PoolError, as_hash32

_ACC_DST = b"POOL_COMMITMENTS"


class CommitmentLedger:
    """
    Append-only sequence of commitments.

    Alongside the entries we keep a running accumulator so that the digest of
    any prefix of the ledger can be retrieved in O(1) when a block is sealed:

        acc_0 = H(DST)
        acc_i = H(DST, acc_{i-1}, c_i)
    """

    def __init__(self, entries=()):
        self._entries: list[Hash32] = []
        self._roots: list[Hash] = [Hash(_ACC_DST)]
        for commitment in entries:
            self.append(commitment)

    def append(self, commitment: Hash32) -> int:
        commitment = as_hash32(commitment)
        self._entries.append(commitment)
        self._roots.append(Hash(_ACC_DST, self._roots[-1], commitment))
        return len(self._entries) - 1

    def root(self, length: int | None = None) -> Hash:
        if length is None:
            length = len(self)
        assert 0 <= length <= len(self), f"{length} > {len(self)}"
        return self._roots[length]

    def truncate(self, length: int):
        """
        Only used to roll back an aborted operation, the ledger never shrinks
        across committed operations.
        """
        assert 0 <= length <= len(self)
        del self._entries[length:]
        del self._roots[length + 1 :]

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    def __iter__(self) -> Iterator[Hash32]:
        return iter(self._entries)

    def __eq__(self, other):
        if isinstance(other, CommitmentLedger):
            return self._entries == other._entries
        return self._entries == list(other)


class NullifierSet:
    def __init__(self, nullifiers=()):
        self._nullifiers: set[Hash32] = {as_hash32(nf) for nf in nullifiers}

    def add(self, nullifier: Hash32):
        nullifier = as_hash32(nullifier)
        if nullifier in self._nullifiers:
            raise AlreadySpent
        self._nullifiers.add(nullifier)

    def restore(self, nullifiers):
        """
        Only used to roll back an aborted operation, see PoolState.restore.
        """
        self._nullifiers = set(nullifiers)

    def __contains__(self, nullifier) -> bool:
        return nullifier in self._nullifiers

    def __len__(self) -> int:
        return len(self._nullifiers)

    def __iter__(self) -> Iterator[Hash32]:
        return iter(self._nullifiers)

    def __eq__(self, other):
        if isinstance(other, NullifierSet):
            return self._nullifiers == other._nullifiers
        return self._nullifiers == set(other)


@dataclass(frozen=True)
class PoolSnapshot:
    ledger_length: int
    nullifiers: frozenset[Hash32]


@dataclass
class PoolState:
    commitments: CommitmentLedger = field(default_factory=CommitmentLedger)
    nullifiers: NullifierSet = field(default_factory=NullifierSet)

    def snapshot(self) -> PoolSnapshot:
        return PoolSnapshot(
            ledger_length=len(self.commitments),
            nullifiers=frozenset(self.nullifiers),
        )

    def restore(self, snapshot: PoolSnapshot):
        self.commitments.truncate(snapshot.ledger_length)
        self.nullifiers.restore(snapshot.nullifiers)

    def copy(self) -> "PoolState":
        return PoolState(
            commitments=CommitmentLedger(self.commitments),
            nullifiers=NullifierSet(self.nullifiers),
        )


class AlreadySpent(PoolError):
    def __str__(self):
        return "Nullifier already spent"

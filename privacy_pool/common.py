from dataclasses import dataclass, field

from eth_typing import Address, Hash32
from eth_utils import decode_hex, keccak, to_canonical_address

UINT64_MAX = 2**64 - 1
UINT256_MAX = 2**256 - 1

ZERO_HASH = Hash32(bytes(32))
ZERO_ADDRESS = Address(bytes(20))


class Hash(bytes):
    """
    Domain separated keccak256 digest, used for block ids and state roots.
    """

    def __new__(cls, dst, *data):
        assert isinstance(dst, bytes)
        return super().__new__(cls, keccak(b"".join([dst, *data])))


class PoolError(Exception):
    """
    Base class of every rejection raised by the pool. A PoolError always
    aborts the whole operation that raised it.
    """


def as_hash32(value) -> Hash32:
    if isinstance(value, str):
        value = decode_hex(value)
    if not isinstance(value, (bytes, bytearray)):
        raise ValueError(f"expected bytes or hex string, got {type(value)}")
    if len(value) != 32:
        raise ValueError(f"expected 32 bytes, got {len(value)}")
    return Hash32(bytes(value))


def as_address(value) -> Address:
    return Address(to_canonical_address(value))


def encode_uint256(value: int) -> bytes:
    return int.to_bytes(value, length=32, byteorder="big")


def compute_commitment(secret: bytes) -> tuple[Hash32, Hash32]:
    """
    Returns the (commitment, nullifier) pair bound to a depositor secret.

    The commitment is keccak256(secret). The nullifier is keccak256 of the
    secret read as a big-endian uint256, plus one (wrapping).
    """
    secret = as_hash32(secret)
    u = int.from_bytes(secret, byteorder="big")
    commitment = Hash32(keccak(secret))
    nullifier = Hash32(keccak(encode_uint256((u + 1) % 2**256)))
    return commitment, nullifier


@dataclass
class InclusionBranches:
    # position of the leaf, bit i tells whether the running root is the right child at depth i
    index: int
    proof: list[Hash32] = field(default_factory=list)

    def __post_init__(self):
        assert 0 <= self.index < 2**32, f"index {self.index} out of range"
        self.proof = [as_hash32(h) for h in self.proof]


def compute_inclusion_root(commitment: bytes, branches: InclusionBranches) -> Hash32:
    root = as_hash32(commitment)
    for i, sibling in enumerate(branches.proof):
        if branches.index & (1 << i) == 0:
            root = keccak(root + sibling)
        else:
            root = keccak(sibling + root)
    return Hash32(root)

"""
The public inputs of a withdrawal proof.

A WithdrawalClaim is the only channel through which a proof talks to the pool.
The proof attests that *some* deposited secret is consistent with these values,
it does not attest that the values are sane: the pool re-validates every field.

The wire layout is the Solidity ABI encoding of the static tuple

    (bytes32 nullifier,
     bytes32 blockHash,
     bytes32 exclusionSetRoot,
     uint256 relayerFee,
     address recipient,
     address relayer,
     address contractAddress,
     uint64  blockNumber)

i.e. exactly eight 32 byte words.
"""

from dataclasses import dataclass

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_typing import Address, Hash32

from .common import (
    UINT64_MAX,
    UINT256_MAX,
    ZERO_HASH,
    PoolError,
    as_address,
    as_hash32,
)

CLAIM_ABI_TYPES = [
    "bytes32",
    "bytes32",
    "bytes32",
    "uint256",
    "address",
    "address",
    "address",
    "uint64",
]

CLAIM_SIZE = 32 * len(CLAIM_ABI_TYPES)


@dataclass
class WithdrawalClaim:
    nullifier: Hash32
    block_hash: Hash32
    relayer_fee: int
    recipient: Address
    relayer: Address
    # identity of the pool instance the proof was built against
    pool_address: Address
    block_number: int
    exclusion_set_root: Hash32 = ZERO_HASH

    def __post_init__(self):
        self.nullifier = as_hash32(self.nullifier)
        self.block_hash = as_hash32(self.block_hash)
        self.exclusion_set_root = as_hash32(self.exclusion_set_root)
        self.recipient = as_address(self.recipient)
        self.relayer = as_address(self.relayer)
        self.pool_address = as_address(self.pool_address)
        assert 0 <= self.relayer_fee <= UINT256_MAX, f"relayer_fee={self.relayer_fee}"
        assert 0 <= self.block_number <= UINT64_MAX, f"block_number={self.block_number}"

    def encode(self) -> bytes:
        return encode(
            CLAIM_ABI_TYPES,
            [
                self.nullifier,
                self.block_hash,
                self.exclusion_set_root,
                self.relayer_fee,
                self.recipient,
                self.relayer,
                self.pool_address,
                self.block_number,
            ],
        )

    @staticmethod
    def decode(data: bytes) -> "WithdrawalClaim":
        if not isinstance(data, (bytes, bytearray)):
            raise MalformedPublicInputs(f"expected bytes, got {type(data).__name__}")
        if len(data) != CLAIM_SIZE:
            raise MalformedPublicInputs(f"expected {CLAIM_SIZE} bytes, got {len(data)}")
        try:
            (
                nullifier,
                block_hash,
                exclusion_set_root,
                relayer_fee,
                recipient,
                relayer,
                pool_address,
                block_number,
            ) = decode(CLAIM_ABI_TYPES, bytes(data))
        except DecodingError as e:
            raise MalformedPublicInputs(str(e)) from e

        return WithdrawalClaim(
            nullifier=nullifier,
            block_hash=block_hash,
            exclusion_set_root=exclusion_set_root,
            relayer_fee=relayer_fee,
            recipient=recipient,
            relayer=relayer,
            pool_address=pool_address,
            block_number=block_number,
        )


class MalformedPublicInputs(PoolError):
    def __str__(self):
        if self.args:
            return f"Malformed public inputs: {self.args[0]}"
        return "Malformed public inputs"

"""Ergo address codec.

An address is ``prefix || content || checksum`` encoded with Base58, where the
prefix byte combines the network (high nibble) and the address type (low
nibble) and the checksum is the first four bytes of Blake2b-256 over
``prefix || content``.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import IntEnum

from .errors import InvalidAddress
from .model import NetworkType

B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
CHECKSUM_LENGTH = 4
P2PK_TREE_PREFIX = bytes.fromhex("0008cd")


class AddressType(IntEnum):
    P2PK = 1
    P2SH = 2
    P2S = 3


def blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def b58encode(data: bytes) -> str:
    n = int.from_bytes(data, "big")
    result = ""
    while n > 0:
        n, r = divmod(n, 58)
        result = B58_ALPHABET[r] + result
    for byte in data:
        if byte != 0:
            break
        result = "1" + result
    return result


def b58decode(text: str) -> bytes:
    n = 0
    for char in text:
        index = B58_ALPHABET.find(char)
        if index < 0:
            raise ValueError(f"invalid Base58 character {char!r}")
        n = n * 58 + index
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n else b""
    leading_zeros = len(text) - len(text.lstrip("1"))
    return b"\x00" * leading_zeros + body


@dataclass(frozen=True)
class Address:
    network: NetworkType
    address_type: AddressType
    content: bytes

    @classmethod
    def from_public_key(cls, network: NetworkType, public_key: bytes) -> "Address":
        if len(public_key) != 33:
            raise ValueError("P2PK addresses require a 33-byte compressed public key")
        return cls(network, AddressType.P2PK, public_key)

    @classmethod
    def from_ergo_tree(cls, network: NetworkType, ergo_tree: bytes) -> "Address":
        if ergo_tree.startswith(P2PK_TREE_PREFIX) and len(ergo_tree) == 36:
            return cls.from_public_key(network, ergo_tree[3:])
        return cls(network, AddressType.P2S, ergo_tree)

    @classmethod
    def from_base58(cls, text: str, network: NetworkType | None = None) -> "Address":
        """Decode ``text``, optionally requiring it to belong to ``network``."""

        try:
            raw = b58decode(text.strip())
        except ValueError as exc:
            raise InvalidAddress(f"'{text}' is not a Base58 string") from exc
        if len(raw) <= 1 + CHECKSUM_LENGTH:
            raise InvalidAddress(f"'{text}' is too short to be an address")

        body, checksum = raw[:-CHECKSUM_LENGTH], raw[-CHECKSUM_LENGTH:]
        if blake2b256(body)[:CHECKSUM_LENGTH] != checksum:
            raise InvalidAddress(f"'{text}' has an invalid checksum")

        prefix = body[0]
        try:
            decoded_network = NetworkType.from_prefix(prefix & 0xF0)
            address_type = AddressType(prefix & 0x0F)
        except ValueError as exc:
            raise InvalidAddress(f"'{text}' has an unknown prefix byte 0x{prefix:02x}") from exc

        if network is not None and decoded_network is not network:
            raise InvalidAddress(
                f"address '{text}' belongs to {decoded_network}, expected {network}"
            )
        return cls(decoded_network, address_type, body[1:])

    @property
    def prefix_byte(self) -> int:
        return self.network.address_prefix + int(self.address_type)

    @property
    def public_key(self) -> bytes:
        if self.address_type is not AddressType.P2PK:
            raise ValueError(f"{self.address_type.name} address has no public key")
        return self.content

    @property
    def ergo_tree(self) -> str:
        """Hex encoded ErgoTree guarding boxes paid to this address."""

        if self.address_type is AddressType.P2PK:
            return (P2PK_TREE_PREFIX + self.content).hex()
        if self.address_type is AddressType.P2S:
            return self.content.hex()
        raise ValueError("P2SH addresses are not supported as box guards")

    def to_base58(self) -> str:
        body = bytes([self.prefix_byte]) + self.content
        return b58encode(body + blake2b256(body)[:CHECKSUM_LENGTH])

    def __str__(self) -> str:
        return self.to_base58()

"""Key derivation helpers for Ergo wallets.

Seeds follow BIP-39 (PBKDF2-HMAC-SHA512 over the mnemonic), extended keys
follow BIP-32 on secp256k1, and EIP-3 addresses use the
``m/44'/429'/0'/0/index`` path. Public keys are computed with
``cryptography``'s secp256k1 implementation.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import unicodedata
from dataclasses import dataclass
from typing import Any, Sequence

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .address import Address
from .model import NetworkType, SecretString

logger = logging.getLogger(__name__)

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
HARDENED = 0x80000000
SECRET_KEY_LENGTH = 32
ERGO_COIN_TYPE = 429
EIP3_PARENT_PATH = (44 | HARDENED, ERGO_COIN_TYPE | HARDENED, 0 | HARDENED, 0)


def mnemonic_to_seed(mnemonic: SecretString, mnemonic_pass: SecretString) -> bytes:
    """Return the 64-byte BIP-39 seed for the mnemonic/password pair."""

    phrase = unicodedata.normalize("NFKD", mnemonic.reveal()).encode("utf-8")
    salt = unicodedata.normalize("NFKD", "mnemonic" + mnemonic_pass.reveal()).encode("utf-8")
    return hashlib.pbkdf2_hmac("sha512", phrase, salt, 2048, dklen=64)


def public_key_for(secret: int) -> bytes:
    private_key = ec.derive_private_key(secret, ec.SECP256K1())
    return private_key.public_key().public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
    )


@dataclass(frozen=True)
class ExtendedSecretKey:
    key_bytes: bytes
    chain_code: bytes
    path: tuple[int, ...] = ()

    @classmethod
    def from_seed(cls, seed: bytes) -> "ExtendedSecretKey":
        digest = hmac.new(b"Bitcoin seed", seed, hashlib.sha512).digest()
        key = int.from_bytes(digest[:32], "big")
        if key == 0 or key >= SECP256K1_ORDER:
            raise ValueError("seed produced an invalid master key")
        return cls(digest[:32], digest[32:])

    @property
    def secret(self) -> int:
        return int.from_bytes(self.key_bytes, "big")

    def public_key(self) -> bytes:
        return public_key_for(self.secret)

    def child(self, index: int) -> "ExtendedSecretKey":
        if index & HARDENED:
            data = b"\x00" + self.key_bytes + index.to_bytes(4, "big")
        else:
            data = self.public_key() + index.to_bytes(4, "big")
        digest = hmac.new(self.chain_code, data, hashlib.sha512).digest()
        child = (int.from_bytes(digest[:32], "big") + self.secret) % SECP256K1_ORDER
        if child == 0:
            raise ValueError(f"derivation produced an invalid key at index {index}")
        return ExtendedSecretKey(child.to_bytes(32, "big"), digest[32:], self.path + (index,))

    def derive(self, path: Sequence[int]) -> "ExtendedSecretKey":
        key = self
        for index in path:
            key = key.child(index)
        return key

    def address(self, network: NetworkType) -> Address:
        return Address.from_public_key(network, self.public_key())


def format_path(path: Sequence[int]) -> str:
    parts = ["m"]
    for index in path:
        if index & HARDENED:
            parts.append(f"{index & ~HARDENED}'")
        else:
            parts.append(str(index))
    return "/".join(parts)


def master_key_from_mnemonic(
    mnemonic: SecretString, mnemonic_pass: SecretString
) -> ExtendedSecretKey:
    return ExtendedSecretKey.from_seed(mnemonic_to_seed(mnemonic, mnemonic_pass))


def address_from_mnemonic(
    network: NetworkType, mnemonic: SecretString, mnemonic_pass: SecretString
) -> Address:
    """Pre-EIP-3 address: the master key itself guards the funds."""

    return master_key_from_mnemonic(mnemonic, mnemonic_pass).address(network)


def eip3_address(
    index: int, network: NetworkType, mnemonic: SecretString, mnemonic_pass: SecretString
) -> Address:
    master = master_key_from_mnemonic(mnemonic, mnemonic_pass)
    return master.derive(EIP3_PARENT_PATH + (index,)).address(network)


class Prover:
    """Holds the secret used to sign transactions for one address."""

    def __init__(self, secret_key: ExtendedSecretKey, network: NetworkType) -> None:
        self._secret_key = secret_key
        self.network = network

    @classmethod
    def from_seed(cls, seed: bytes, network: NetworkType) -> "Prover":
        return cls(ExtendedSecretKey.from_seed(seed), network)

    @property
    def address(self) -> Address:
        return self._secret_key.address(self.network)

    def sign(self, session: Any, unsigned_tx: dict[str, Any]) -> dict[str, Any]:
        """Ask the ledger session to sign ``unsigned_tx`` with this prover's secret."""

        logger.debug("Signing transaction with %d inputs", len(unsigned_tx.get("inputs", [])))
        return session.sign_transaction(unsigned_tx, [self._secret_key.key_bytes.hex()])

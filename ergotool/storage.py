"""Encrypted secret storage files.

A storage file keeps the wallet seed encrypted with AES-GCM under a key
derived from the storage password with PBKDF2-HMAC-SHA256. The JSON layout is
compatible with the appkit ``JsonSecretStorage`` format::

    {"cipherText": hex, "salt": hex, "iv": hex, "authTag": hex,
     "cipherParams": {"prf": "HmacSHA256", "c": 128000, "dkLen": 256}}
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import DomainError
from .keys import Prover, mnemonic_to_seed
from .model import NetworkType, SecretString

logger = logging.getLogger(__name__)

_SALT_SIZE = 32
_IV_SIZE = 12
_TAG_SIZE = 16
_DEFAULT_ITERATIONS = 128000
_DEFAULT_KEY_BITS = 256


class StorageError(DomainError):
    """Raised when a storage file cannot be created, read, or unlocked."""


@dataclass
class CipherParams:
    prf: str = "HmacSHA256"
    iterations: int = _DEFAULT_ITERATIONS
    key_bits: int = _DEFAULT_KEY_BITS

    def to_json(self) -> dict[str, Any]:
        return {"prf": self.prf, "c": self.iterations, "dkLen": self.key_bits}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "CipherParams":
        prf = data.get("prf", "HmacSHA256")
        if prf != "HmacSHA256":
            raise StorageError(f"Unsupported key derivation function {prf}")
        return cls(prf=prf, iterations=int(data.get("c", _DEFAULT_ITERATIONS)),
                   key_bits=int(data.get("dkLen", _DEFAULT_KEY_BITS)))


@dataclass
class EncryptedSecret:
    cipher_text: bytes
    salt: bytes
    iv: bytes
    auth_tag: bytes
    params: CipherParams

    def to_json(self) -> dict[str, Any]:
        return {
            "cipherText": self.cipher_text.hex(),
            "salt": self.salt.hex(),
            "iv": self.iv.hex(),
            "authTag": self.auth_tag.hex(),
            "cipherParams": self.params.to_json(),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "EncryptedSecret":
        try:
            return cls(
                cipher_text=bytes.fromhex(data["cipherText"]),
                salt=bytes.fromhex(data["salt"]),
                iv=bytes.fromhex(data["iv"]),
                auth_tag=bytes.fromhex(data["authTag"]),
                params=CipherParams.from_json(data.get("cipherParams", {})),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Malformed storage content: {exc}") from exc


def _derive_key(password: SecretString, salt: bytes, params: CipherParams) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=params.key_bits // 8,
        salt=salt,
        iterations=params.iterations,
    )
    return kdf.derive(password.reveal().encode("utf-8"))


def encrypt_secret(
    secret: bytes, password: SecretString, params: CipherParams | None = None
) -> EncryptedSecret:
    params = params or CipherParams()
    salt = os.urandom(_SALT_SIZE)
    iv = os.urandom(_IV_SIZE)
    sealed = AESGCM(_derive_key(password, salt, params)).encrypt(iv, secret, None)
    return EncryptedSecret(
        cipher_text=sealed[:-_TAG_SIZE],
        salt=salt,
        iv=iv,
        auth_tag=sealed[-_TAG_SIZE:],
        params=params,
    )


def decrypt_secret(encrypted: EncryptedSecret, password: SecretString) -> bytes:
    key = _derive_key(password, encrypted.salt, encrypted.params)
    try:
        return AESGCM(key).decrypt(encrypted.iv, encrypted.cipher_text + encrypted.auth_tag, None)
    except InvalidTag as exc:
        raise StorageError("Cannot unlock storage: invalid password or corrupted file") from exc


class SecretStorage:
    """Encrypted seed stored in a JSON file."""

    def __init__(self, path: Path, encrypted: EncryptedSecret) -> None:
        self.path = path
        self.encrypted = encrypted

    @classmethod
    def create_from_mnemonic(
        cls,
        path: Path,
        mnemonic: SecretString,
        mnemonic_pass: SecretString,
        storage_pass: SecretString,
    ) -> "SecretStorage":
        seed = mnemonic_to_seed(mnemonic, mnemonic_pass)
        return cls(path, encrypt_secret(seed, storage_pass))

    @classmethod
    def load(cls, path: Path) -> "SecretStorage":
        try:
            data = json.loads(Path(path).read_text())
        except OSError as exc:
            raise StorageError(f"Cannot read storage file {path}: {exc.strerror or exc}") from exc
        except json.JSONDecodeError as exc:
            raise StorageError(f"Storage file {path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {path} must contain a JSON object")
        return cls(Path(path), EncryptedSecret.from_json(data))

    def save(self) -> None:
        if self.path.exists():
            raise StorageError(f"Storage file {self.path} already exists")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.encrypted.to_json(), indent=2))
        except OSError as exc:
            raise StorageError(f"Cannot write storage file {self.path}: {exc.strerror or exc}") from exc
        logger.info("Wrote secret storage %s", self.path)

    def unlock(self, password: SecretString) -> bytes:
        """Return the decrypted seed."""

        return decrypt_secret(self.encrypted, password)


def load_prover(storage_file: Path, password: SecretString, network: NetworkType) -> Prover:
    """Unlock ``storage_file`` and build a prover for its master key."""

    seed = SecretStorage.load(storage_file).unlock(password)
    return Prover.from_seed(seed, network)

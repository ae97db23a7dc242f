"""Commands managing encrypted secret storage files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..command import CommandDescriptor, ExecutionContext, LocalCommand
from ..errors import DomainError, ParseError
from ..keys import ExtendedSecretKey
from ..model import SecretString
from ..parameters import (
    FILE,
    SECRET,
    STRING,
    InteractiveInput,
    ParameterDescriptor,
    ParameterType,
)
from ..storage import SecretStorage, StorageError

SECRET_PROPERTIES = frozenset({"masterKey", "secretKey"})


class StoragePropertyType(ParameterType):
    name = "storage-property"
    choices = ("address", "publicKey", "masterKey", "secretKey")

    def parse(self, raw: str) -> str:
        if raw not in self.choices:
            raise ParseError(f"'{raw}' is not one of {'|'.join(self.choices)}")
        return raw

    def describe(self) -> str:
        return "|".join(self.choices)


@dataclass
class CreateStorageCmd(LocalCommand):
    """Encrypt the seed of a mnemonic pair into a new storage file."""

    storage_file: Path
    mnemonic: SecretString
    mnemonic_pass: SecretString
    storage_pass: SecretString
    name: str = "createStorage"

    def run(self, ctx: ExecutionContext) -> None:
        if self.mnemonic.is_empty():
            raise DomainError("Mnemonic must not be empty")
        if self.storage_file.exists():
            raise StorageError(f"Storage file {self.storage_file} already exists")

        storage = SecretStorage.create_from_mnemonic(
            self.storage_file, self.mnemonic, self.mnemonic_pass, self.storage_pass
        )
        if ctx.dry_run:
            ctx.console.println(f"Dry run: storage file {self.storage_file} was not written")
            return
        storage.save()
        ctx.console.println(f"Storage File: {self.storage_file}")


@dataclass
class ExtractStorageCmd(LocalCommand):
    """Unlock a storage file and print one property of its master key."""

    storage_file: Path
    prop: str
    storage_pass: SecretString
    name: str = "extractStorage"

    def run(self, ctx: ExecutionContext) -> None:
        if self.prop in SECRET_PROPERTIES and not ctx.print_secrets:
            raise DomainError(f"Printing {self.prop} requires the --print-secrets option")

        seed = SecretStorage.load(self.storage_file).unlock(self.storage_pass)
        master = ExtendedSecretKey.from_seed(seed)
        if self.prop == "address":
            ctx.console.println(str(master.address(ctx.config.node.network_type)))
        elif self.prop == "publicKey":
            ctx.console.println(master.public_key().hex())
        elif self.prop == "secretKey":
            ctx.console.println(master.key_bytes.hex())
        elif self.prop == "masterKey":
            ctx.console.println((master.key_bytes + master.chain_code).hex())
        else:  # pragma: no cover - guarded by StoragePropertyType
            raise DomainError(f"Unknown storage property {self.prop}")


def _create_storage(ctx: ExecutionContext, values: Mapping[str, Any]) -> CreateStorageCmd:
    return CreateStorageCmd(
        storage_file=Path(values["storageDir"]) / values["storageFileName"],
        mnemonic=values["mnemonic"],
        mnemonic_pass=values["mnemonicPass"],
        storage_pass=values["storagePass"],
    )


def _extract_storage(ctx: ExecutionContext, values: Mapping[str, Any]) -> ExtractStorageCmd:
    return ExtractStorageCmd(values["storageFile"], values["prop"], values["storagePass"])


CREATE_STORAGE = CommandDescriptor(
    name="createStorage",
    usage_syntax="[<storageDir>] [<storageFileName>]",
    description="create an encrypted storage file for the given mnemonic "
    "(default location: ./storage/secret.json)",
    parameters=[
        ParameterDescriptor(
            "storageDir", FILE, "directory to create the storage file in",
            default=Path("storage"),
        ),
        ParameterDescriptor(
            "storageFileName", STRING, "name of the storage file", default="secret.json"
        ),
        ParameterDescriptor(
            "mnemonic", SECRET, "secret phrase to store",
            display_name="Mnemonic", interactive=InteractiveInput.MASKED,
        ),
        ParameterDescriptor(
            "mnemonicPass", SECRET, "password which is used to additionally protect the mnemonic",
            display_name="Mnemonic password", interactive=InteractiveInput.MASKED,
        ),
        ParameterDescriptor(
            "storagePass", SECRET, "password used to encrypt the storage file",
            display_name="Storage password",
            interactive=InteractiveInput.MASKED_WITH_CONFIRMATION,
        ),
    ],
    factory=_create_storage,
)

EXTRACT_STORAGE = CommandDescriptor(
    name="extractStorage",
    usage_syntax="<storageFile> address|publicKey|masterKey|secretKey",
    description="unlock <storageFile> and print the requested property "
    "(masterKey and secretKey also need --print-secrets)",
    parameters=[
        ParameterDescriptor("storageFile", FILE, "storage with the secret key"),
        ParameterDescriptor("prop", StoragePropertyType(), "property to extract"),
        ParameterDescriptor(
            "storagePass", SECRET, "password to unlock the storage",
            display_name="Storage password", interactive=InteractiveInput.MASKED,
        ),
    ],
    factory=_extract_storage,
)

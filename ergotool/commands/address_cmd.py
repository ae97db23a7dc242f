"""The ``address`` command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..command import CommandDescriptor, ExecutionContext, LocalCommand
from ..keys import EIP3_PARENT_PATH, format_path, master_key_from_mnemonic
from ..model import NetworkType, SecretString
from ..parameters import NETWORK, SECRET, InteractiveInput, ParameterDescriptor

EIP3_INDEXES = (0, 1, 2)


@dataclass
class AddressCmd(LocalCommand):
    """Compute the addresses controlled by a mnemonic and password pair.

    1) the (mnemonic, password) pair yields the master secret key;
    2) the master public key gives the pre-EIP-3 pay-to-public-key address;
    3) keys derived along ``m/44'/429'/0'/0/index`` give the EIP-3 addresses.

    Raw key material is printed only when ``--print-secrets`` is given.
    """

    network: NetworkType
    mnemonic: SecretString
    mnemonic_pass: SecretString
    name: str = "address"

    def run(self, ctx: ExecutionContext) -> None:
        console = ctx.console
        master = master_key_from_mnemonic(self.mnemonic, self.mnemonic_pass)
        parent = master.derive(EIP3_PARENT_PATH)

        if ctx.print_secrets:
            console.println(f"Secret root: {master.key_bytes.hex()}")
            console.println(f"Secret {format_path(parent.path)}: {parent.key_bytes.hex()}")

        console.println(f"Pre-EIP-3: {master.address(self.network)}")
        for index in EIP3_INDEXES:
            console.println(f"Post-EIP-3 /{index}: {parent.child(index).address(self.network)}")


def _create(ctx: ExecutionContext, values: Mapping[str, Any]) -> AddressCmd:
    return AddressCmd(values["network"], values["mnemonic"], values["mnemonicPass"])


DESCRIPTOR = CommandDescriptor(
    name="address",
    usage_syntax="testnet|mainnet",
    description="return address for a given mnemonic and password pair",
    parameters=[
        ParameterDescriptor(
            "network", NETWORK,
            "network for which the address should be generated",
        ),
        ParameterDescriptor(
            "mnemonic", SECRET,
            "secret phrase used to generate the (private, public) key pair whose "
            "public key gives the address",
            display_name="Mnemonic",
            interactive=InteractiveInput.MASKED,
        ),
        ParameterDescriptor(
            "mnemonicPass", SECRET,
            "password which is used to additionally protect the mnemonic",
            display_name="Mnemonic password",
            interactive=InteractiveInput.MASKED,
        ),
    ],
    factory=_create,
)

"""The ``checkAddress`` command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..address import Address
from ..command import CommandDescriptor, ExecutionContext, LocalCommand
from ..errors import DomainError
from ..keys import address_from_mnemonic
from ..model import NetworkType, SecretString
from ..parameters import ADDRESS, NETWORK, SECRET, InteractiveInput, ParameterDescriptor


@dataclass
class CheckAddressCmd(LocalCommand):
    """Check that ``address`` belongs to ``network`` and to the mnemonic pair.

    Prints ``Ok`` when the address computed from the mnemonic and password
    equals the given one and ``Error`` otherwise.
    """

    network: NetworkType
    address: Address
    mnemonic: SecretString
    mnemonic_pass: SecretString
    name: str = "checkAddress"

    def run(self, ctx: ExecutionContext) -> None:
        if self.address.network is not self.network:
            raise DomainError(
                f"Network type of the address {self.address.network} doesn't match "
                f"expected {self.network}"
            )
        computed = address_from_mnemonic(self.network, self.mnemonic, self.mnemonic_pass)
        ctx.console.println("Ok" if computed == self.address else "Error")


def _create(ctx: ExecutionContext, values: Mapping[str, Any]) -> CheckAddressCmd:
    return CheckAddressCmd(
        network=values["network"],
        address=values["address"],
        mnemonic=values["mnemonic"],
        mnemonic_pass=values["mnemonicPass"],
    )


DESCRIPTOR = CommandDescriptor(
    name="checkAddress",
    usage_syntax="testnet|mainnet <address>",
    description="check the given mnemonic and password pair correspond to the given address",
    parameters=[
        ParameterDescriptor("network", NETWORK, "network the address should belong to"),
        ParameterDescriptor("address", ADDRESS, "address to check"),
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

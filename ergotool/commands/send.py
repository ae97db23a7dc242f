"""The ``send`` command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..address import Address
from ..command import CommandDescriptor, ExecutionContext, NetworkCommand, logged_step
from ..errors import DomainError
from ..model import SecretString
from ..parameters import ADDRESS, FILE, INTEGER, SECRET, InteractiveInput, ParameterDescriptor
from ..tx_builder import MIN_FEE, OutputBox, TransactionBuilder, select_top
from .common import create_prover, iter_unspent_boxes, sign_and_broadcast


@dataclass
class SendCmd(NetworkCommand):
    """Pay ``amount`` nanoERG to ``recipient`` from the storage's address.

    Steps: unlock the storage, load the sender's unspent boxes, select enough
    to cover the amount and fee, build and sign the transaction, print it,
    and send it unless ``--dry-run`` is given.
    """

    storage_file: Path
    storage_pass: SecretString
    recipient: Address
    amount: int
    name: str = "send"

    def run_with_session(self, session, ctx: ExecutionContext) -> None:
        if self.amount <= 0:
            raise DomainError(f"amount must be positive, got {self.amount}")
        prover = create_prover(ctx, self.storage_file, self.storage_pass)
        sender = prover.address
        with logged_step(f"Loading unspent boxes at address {sender}", ctx.console):
            boxes = select_top(iter_unspent_boxes(session, sender.to_base58()), self.amount + MIN_FEE)

        builder = TransactionBuilder(session.get_height())
        unsigned = builder.build(
            boxes, [OutputBox(self.amount, self.recipient.ergo_tree)], sender.ergo_tree
        )
        sign_and_broadcast(session, ctx, prover, unsigned)


def _create(ctx: ExecutionContext, values: Mapping[str, Any]) -> SendCmd:
    return SendCmd(
        storage_file=values["storageFile"],
        storage_pass=values["storagePass"],
        recipient=values["recipientAddr"],
        amount=values["amount"],
    )


DESCRIPTOR = CommandDescriptor(
    name="send",
    usage_syntax="<storageFile> <recipientAddr> <amount>",
    description="send <amount> of nanoERG to <recipientAddr>, signing with the key in "
    "<storageFile> (requests storage password)",
    parameters=[
        ParameterDescriptor("storageFile", FILE, "storage with secret key of the sender"),
        ParameterDescriptor("recipientAddr", ADDRESS, "address of the recipient"),
        ParameterDescriptor("amount", INTEGER, "amount of nanoERG to send"),
        ParameterDescriptor(
            "storagePass", SECRET, "password to access sender secret key in the storage",
            display_name="Storage password", interactive=InteractiveInput.MASKED,
        ),
    ],
    factory=_create,
)

"""The ``listAddressBoxes`` command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..address import Address
from ..command import CommandDescriptor, ExecutionContext, NetworkCommand
from ..errors import DomainError
from ..parameters import ADDRESS, INTEGER, ParameterDescriptor


@dataclass
class ListAddressBoxesCmd(NetworkCommand):
    address: Address
    limit: int
    name: str = "listAddressBoxes"

    def run_with_session(self, session, ctx: ExecutionContext) -> None:
        if self.limit <= 0:
            raise DomainError(f"limit must be positive, got {self.limit}")
        console = ctx.console
        boxes = session.get_unspent_boxes(self.address.to_base58(), self.limit)
        if not boxes:
            console.println(f"No unspent boxes found for {self.address}")
            return
        console.println(f"Found {len(boxes)} unspent boxes (limit={self.limit})")
        for box in boxes:
            tokens = ", ".join(f"{t.token_id}:{t.amount}" for t in box.tokens) or "-"
            console.println(f"{box.box_id} | {box.value:>15} nanoERG | tokens: {tokens}")


def _create(ctx: ExecutionContext, values: Mapping[str, Any]) -> ListAddressBoxesCmd:
    return ListAddressBoxesCmd(values["address"], values["limit"])


DESCRIPTOR = CommandDescriptor(
    name="listAddressBoxes",
    usage_syntax="<address> [<limit>]",
    description="list unspent boxes guarded by <address> (at most <limit>, default 10)",
    parameters=[
        ParameterDescriptor("address", ADDRESS, "address to list the boxes of"),
        ParameterDescriptor("limit", INTEGER, "maximum number of boxes to list", default=10),
    ],
    factory=_create,
)

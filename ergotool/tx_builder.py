"""Unsigned transaction assembly for Ergo.

Transactions are produced in the JSON shape accepted by the node's
``/wallet/transaction/sign`` endpoint. Input selection is deliberately simple:
boxes are taken in the order the node returns them until the requested value
and token amounts are covered.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .errors import DomainError
from .model import ErgoToken, InputBox

logger = logging.getLogger(__name__)

NANOERGS_PER_ERG = 1_000_000_000
MIN_FEE = 1_000_000
FEE_ERGO_TREE = (
    "1005040004000e36100204a00b08cd0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b"
    "16f81798ea02d192a39a8cc7a701730073011001020402d19683030193a38cc7b2a57300000193c2b2a57301"
    "007473027303830108cdeeac93b1a57304"
)


class InsufficientFunds(DomainError):
    """Raised when the available boxes cannot cover a spend."""


@dataclass
class OutputBox:
    value: int
    ergo_tree: str
    tokens: List[ErgoToken] = field(default_factory=list)
    registers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self, creation_height: int) -> Dict[str, Any]:
        return {
            "value": self.value,
            "ergoTree": self.ergo_tree,
            "assets": [token.to_dict() for token in self.tokens],
            "additionalRegisters": dict(self.registers),
            "creationHeight": creation_height,
        }


def select_top(
    boxes: Iterable[InputBox], amount: int, token: ErgoToken | None = None
) -> List[InputBox]:
    """Take boxes in order until ``amount`` nanoERG and ``token`` are covered."""

    selected: List[InputBox] = []
    total = 0
    token_total = 0
    for box in boxes:
        selected.append(box)
        total += box.value
        if token is not None:
            token_total += box.token_amount(token.token_id)
        # checked per box so a lazy source is never read past the last box needed
        if total >= amount and (token is None or token_total >= token.amount):
            break

    if total < amount:
        logger.debug("Insufficient funds: needed=%d, available=%d nanoERG", amount, total)
        raise InsufficientFunds(
            f"Insufficient funds: needed {amount} nanoERG, found {total} in unspent boxes"
        )
    if token is not None and token_total < token.amount:
        raise InsufficientFunds(
            f"Insufficient tokens: needed {token.amount} of {token.token_id}, found {token_total}"
        )
    logger.debug("Selected %d boxes totaling %d nanoERG", len(selected), total)
    return selected


def _sum_tokens(tokens: Iterable[ErgoToken]) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for token in tokens:
        totals[token.token_id] += token.amount
    return totals


class TransactionBuilder:
    """Build unsigned transactions with an explicit fee and change box."""

    def __init__(self, creation_height: int) -> None:
        self.creation_height = creation_height

    def build(
        self,
        inputs: List[InputBox],
        outputs: List[OutputBox],
        change_ergo_tree: str,
        fee: int = MIN_FEE,
    ) -> Dict[str, Any]:
        total_in = sum(box.value for box in inputs)
        total_out = sum(box.value for box in outputs)
        change_value = total_in - total_out - fee
        if change_value < 0:
            raise InsufficientFunds(
                f"Insufficient funds: inputs hold {total_in} nanoERG, "
                f"outputs and fee need {total_out + fee}"
            )

        available = _sum_tokens(token for box in inputs for token in box.tokens)
        for token_id, amount in _sum_tokens(t for box in outputs for t in box.tokens).items():
            if available.get(token_id, 0) < amount:
                raise InsufficientFunds(f"Inputs do not hold {amount} of token {token_id}")
            available[token_id] -= amount
        change_tokens = [ErgoToken(tid, amount) for tid, amount in available.items() if amount > 0]

        all_outputs = list(outputs)
        if change_value > 0:
            all_outputs.append(OutputBox(change_value, change_ergo_tree, change_tokens))
        elif change_tokens:
            raise InsufficientFunds("No nanoERG left to carry the change tokens")
        all_outputs.append(OutputBox(fee, FEE_ERGO_TREE))

        logger.info("Building transaction with %d inputs and %d outputs", len(inputs), len(all_outputs))
        return {
            "inputs": [{"boxId": box.box_id, "extension": {}} for box in inputs],
            "dataInputs": [],
            "outputs": [box.to_dict(self.creation_height) for box in all_outputs],
        }

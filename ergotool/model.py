"""Domain values shared by the ergotool commands and ledger helpers."""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class NetworkType(Enum):
    """Ergo network together with its address prefix byte."""

    MAINNET = "mainnet"
    TESTNET = "testnet"

    @property
    def address_prefix(self) -> int:
        return 0x00 if self is NetworkType.MAINNET else 0x10

    @classmethod
    def from_prefix(cls, prefix: int) -> "NetworkType":
        for network in cls:
            if network.address_prefix == prefix:
                return network
        raise ValueError(f"unknown network prefix 0x{prefix:02x}")

    def __str__(self) -> str:
        return self.value


class SecretString:
    """Opaque holder for passwords and mnemonics.

    The wrapped value is only reachable through :meth:`reveal`; ``repr`` and
    ``str`` are masked so a secret cannot leak through logging or string
    formatting by accident.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    def reveal(self) -> str:
        return self._value

    def is_empty(self) -> bool:
        return not self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretString):
            return NotImplemented
        return hmac.compare_digest(self._value.encode("utf-8"), other._value.encode("utf-8"))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "SecretString(****)"

    __str__ = __repr__


@dataclass(frozen=True)
class ErgoToken:
    token_id: str
    amount: int

    def to_dict(self) -> dict[str, Any]:
        return {"tokenId": self.token_id, "amount": self.amount}


@dataclass
class InputBox:
    """Unspent box as returned by the node API."""

    box_id: str
    value: int
    ergo_tree: str
    tokens: List[ErgoToken] = field(default_factory=list)
    creation_height: int = 0

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "InputBox":
        return cls(
            box_id=data["boxId"],
            value=int(data["value"]),
            ergo_tree=data.get("ergoTree", ""),
            tokens=[
                ErgoToken(asset["tokenId"], int(asset["amount"]))
                for asset in data.get("assets", [])
            ],
            creation_height=int(data.get("creationHeight", 0)),
        )

    def token_amount(self, token_id: str) -> int:
        return sum(token.amount for token in self.tokens if token.token_id == token_id)

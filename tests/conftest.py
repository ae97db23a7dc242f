from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Any, Iterable

import pytest

from ergotool.command import ExecutionContext
from ergotool.commands import build_registry
from ergotool.config import ToolConfig
from ergotool.model import InputBox, SecretString

MNEMONIC = "slow silly start wash bundle suffer bulb ancient height spin express remind today effort helmet"
TOKEN_ID = "ab" * 32


class ScriptedConsole:
    """Console fed from queued answers; records everything it shows."""

    def __init__(self, lines: Iterable[str] = (), passwords: Iterable[str] = ()) -> None:
        self.lines = deque(lines)
        self.passwords = deque(passwords)
        self.out: list[str] = []
        self.errors: list[str] = []
        self.prompts: list[str] = []

    @property
    def transcript(self) -> str:
        return "".join(self.out)

    def print(self, text: str) -> None:
        self.out.append(text)

    def println(self, text: str = "") -> None:
        self.out.append(text + "\n")

    def error(self, text: str) -> None:
        self.errors.append(text)

    def read_line(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.out.append(prompt)
        if not self.lines:
            raise EOFError
        return self.lines.popleft()

    def read_password(self, prompt: str) -> SecretString:
        self.prompts.append(prompt)
        self.out.append(prompt)
        if not self.passwords:
            raise EOFError
        return SecretString(self.passwords.popleft())


class FakeSession:
    """Ledger session double recording every call."""

    def __init__(self, boxes: list[InputBox] | None = None, height: int = 500_000) -> None:
        self.boxes = boxes or []
        self.height = height
        self.calls: list[tuple[str, Any]] = []
        self.sent: list[dict[str, Any]] = []

    def get_height(self) -> int:
        self.calls.append(("get_height", None))
        return self.height

    def get_unspent_boxes(self, address: str, limit: int = 50, offset: int = 0) -> list[InputBox]:
        self.calls.append(("get_unspent_boxes", (address, limit, offset)))
        return self.boxes[offset:offset + limit]

    def compile_contract(self, source: str) -> str:
        self.calls.append(("compile_contract", source))
        return "100204a00b08cd"

    def sign_transaction(self, unsigned_tx: dict[str, Any], secrets: list[str]) -> dict[str, Any]:
        self.calls.append(("sign_transaction", unsigned_tx))
        return {"id": "signed-tx-1", **unsigned_tx}

    def send_transaction(self, signed_tx: dict[str, Any]) -> str:
        self.calls.append(("send_transaction", signed_tx))
        self.sent.append(signed_tx)
        return signed_tx["id"]


class FakeSessionFactory:
    def __init__(self, session: FakeSession) -> None:
        self.session = session
        self.opened = 0
        self.closed = 0

    def execute(self, config, body):
        self.opened += 1
        try:
            return body(self.session)
        finally:
            self.closed += 1


def fixed_config_loader(config: ToolConfig | None = None):
    def load(*, config_path=None, env=None):
        return config or ToolConfig()

    return load


@pytest.fixture
def console() -> ScriptedConsole:
    return ScriptedConsole()


@pytest.fixture
def context(console: ScriptedConsole) -> ExecutionContext:
    return ExecutionContext(config=ToolConfig(), console=console, registry=build_registry())


@pytest.fixture
def storage_file(tmp_path: Path) -> Path:
    from ergotool.storage import SecretStorage

    path = tmp_path / "secret.json"
    SecretStorage.create_from_mnemonic(
        path, SecretString(MNEMONIC), SecretString(""), SecretString("storage-pass")
    ).save()
    return path


@pytest.fixture
def funded_boxes() -> list[InputBox]:
    return [
        InputBox.from_json(
            {
                "boxId": "01" * 32,
                "value": 5_000_000_000,
                "ergoTree": "0008cd" + "02" * 33,
                "assets": [{"tokenId": TOKEN_ID, "amount": 100}],
                "creationHeight": 499_000,
            }
        ),
        InputBox.from_json(
            {"boxId": "02" * 32, "value": 1_000_000_000, "ergoTree": "0008cd" + "02" * 33}
        ),
    ]

"""Console used by commands and interactive parameter input.

Commands never touch ``sys.stdout`` or ``input()`` directly; everything goes
through a :class:`Console`, so tests can substitute a scripted one.
"""

from __future__ import annotations

import getpass
import sys
from typing import Protocol, TextIO

from .model import SecretString


class Console(Protocol):
    def print(self, text: str) -> None:
        """Write ``text`` without a trailing newline."""

    def println(self, text: str = "") -> None:
        """Write ``text`` followed by a newline."""

    def error(self, text: str) -> None:
        """Write a diagnostic line."""

    def read_line(self, prompt: str) -> str:
        """Show ``prompt`` and read one line; raises ``EOFError`` on closed input."""

    def read_password(self, prompt: str) -> SecretString:
        """Read a line without echo; raises ``EOFError`` on closed input."""


class StdConsole:
    """Console bound to the process standard streams."""

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._stderr = stderr or sys.stderr

    def print(self, text: str) -> None:
        self._stdout.write(text)
        self._stdout.flush()

    def println(self, text: str = "") -> None:
        self.print(text + "\n")

    def error(self, text: str) -> None:
        self._stderr.write(text + "\n")
        self._stderr.flush()

    def read_line(self, prompt: str) -> str:
        self.print(prompt)
        line = self._stdin.readline()
        if not line:
            raise EOFError("input stream closed")
        return line.rstrip("\r\n")

    def read_password(self, prompt: str) -> SecretString:
        if not self._stdin.isatty():
            # getpass would fall back to echoing; read the piped line silently instead
            self.print(prompt)
            line = self._stdin.readline()
            if not line:
                raise EOFError("input stream closed")
            self.println()
            return SecretString(line.rstrip("\r\n"))
        return SecretString(getpass.getpass(prompt, stream=self._stdout))

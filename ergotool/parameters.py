"""Typed command parameters and their resolution.

Each command declares an ordered list of :class:`ParameterDescriptor` objects.
At invocation time :func:`resolve_parameters` walks that list left to right
and produces one typed value per descriptor from, in order of preference, the
next positional token, the declared default, or the declared interactive
input.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

from .address import Address
from .errors import (
    InteractiveInputError,
    InvalidAddress,
    InvalidNumber,
    MissingParameter,
    ParameterError,
    ParseError,
    UnknownNetwork,
)
from .model import NetworkType, SecretString

if TYPE_CHECKING:  # pragma: no cover
    from .command import ExecutionContext

logger = logging.getLogger(__name__)


class ParameterType:
    """How a semantic kind of parameter is parsed and shown in help text."""

    name = "string"
    secret = False

    def parse(self, raw: str) -> Any:
        return raw

    def describe(self) -> str:
        return "<string>"

    def render(self, value: Any) -> str:
        return str(value)

    def redact(self, raw: str) -> str:
        return f"'{raw}'"

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class IntegerType(ParameterType):
    name = "integer"
    _pattern = re.compile(r"[+-]?[0-9]+")

    def parse(self, raw: str) -> int:
        if not self._pattern.fullmatch(raw):
            raise InvalidNumber(f"'{raw}' is not a decimal integer")
        return int(raw)

    def describe(self) -> str:
        return "<integer>"


class FileType(ParameterType):
    """Any non-empty path; existence is checked by whoever opens it."""

    name = "file"

    def parse(self, raw: str) -> Path:
        if not raw:
            raise ParseError("file path must not be empty")
        return Path(raw)

    def describe(self) -> str:
        return "<file>"


class NetworkTypeType(ParameterType):
    name = "network"

    def parse(self, raw: str) -> NetworkType:
        try:
            return NetworkType(raw.strip().lower())
        except ValueError as exc:
            choices = "|".join(network.value for network in NetworkType)
            raise UnknownNetwork(f"unknown network '{raw}', expected {choices}") from exc

    def describe(self) -> str:
        return "|".join(network.value for network in NetworkType)

    def render(self, value: NetworkType) -> str:
        return value.value


class ErgoAddressType(ParameterType):
    name = "address"

    def __init__(self, network: NetworkType | None = None) -> None:
        self.network = network

    def parse(self, raw: str) -> Address:
        if not raw:
            raise InvalidAddress("address must not be empty")
        return Address.from_base58(raw, network=self.network)

    def describe(self) -> str:
        return f"<{self.network} address>" if self.network else "<address>"

    def render(self, value: Address) -> str:
        return value.to_base58()


class SecretStringType(ParameterType):
    """Secret text; the raw value never appears in diagnostics."""

    name = "secret"
    secret = True

    def parse(self, raw: str) -> SecretString:
        return SecretString(raw)

    def describe(self) -> str:
        return "<secret>"

    def render(self, value: SecretString) -> str:
        return "****"

    def redact(self, raw: str) -> str:
        return "(hidden)"


class TokenIdType(ParameterType):
    name = "token-id"
    _pattern = re.compile(r"[0-9a-fA-F]{64}")

    def parse(self, raw: str) -> str:
        if not self._pattern.fullmatch(raw):
            raise ParseError(f"'{raw}' is not a 32-byte hex token id")
        return raw.lower()

    def describe(self) -> str:
        return "<tokenId>"


STRING = ParameterType()
INTEGER = IntegerType()
FILE = FileType()
NETWORK = NetworkTypeType()
ADDRESS = ErgoAddressType()
SECRET = SecretStringType()
TOKEN_ID = TokenIdType()

PARAMETER_TYPES: Mapping[str, ParameterType] = MappingProxyType(
    {ptype.name: ptype for ptype in (STRING, INTEGER, FILE, NETWORK, ADDRESS, SECRET, TOKEN_ID)}
)


class InteractiveInput(Enum):
    """How to ask the user for a parameter that was not given on the command line."""

    DEFAULT = "default"
    MASKED = "masked"
    MASKED_WITH_CONFIRMATION = "masked-with-confirmation"

    def read(self, parameter: "ParameterDescriptor", ctx: "ExecutionContext") -> Any:
        console = ctx.console
        prompt = f"{parameter.display_name}> "
        try:
            if self is InteractiveInput.DEFAULT:
                raw: str | SecretString = console.read_line(prompt)
            elif self is InteractiveInput.MASKED:
                raw = console.read_password(prompt)
            elif self is InteractiveInput.MASKED_WITH_CONFIRMATION:
                raw = console.read_password(prompt)
                repeated = console.read_password(f"Repeat {parameter.display_name}> ")
                if raw != repeated:
                    raise InteractiveInputError(
                        f"values entered for '{parameter.name}' do not match", parameter.name
                    )
            else:  # pragma: no cover - closed set
                raise AssertionError(f"unhandled interactive input {self}")
        except EOFError as exc:
            raise InteractiveInputError(
                f"input closed while reading '{parameter.name}'", parameter.name
            ) from exc

        if isinstance(raw, SecretString):
            if parameter.type.secret:
                return raw
            raw = raw.reveal()
        try:
            return parameter.parse(raw)
        except ParameterError as exc:
            raise InteractiveInputError(str(exc), parameter.name) from exc


_NO_DEFAULT: Any = object()


@dataclass(frozen=True)
class ParameterDescriptor:
    """One named, typed slot in a command's signature."""

    name: str
    type: ParameterType
    doc: str
    display_name: str | None = None
    default: Any = _NO_DEFAULT
    interactive: InteractiveInput | None = None

    def __post_init__(self) -> None:
        if self.display_name is None:
            object.__setattr__(self, "display_name", self.name)

    @property
    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT

    @property
    def is_required(self) -> bool:
        """True when only a positional token can satisfy this parameter."""

        return not self.has_default and self.interactive is None

    def parse(self, raw: str) -> Any:
        try:
            return self.type.parse(raw)
        except ParseError as exc:
            raise ParameterError(
                f"invalid value {self.type.redact(raw)} for parameter '{self.name}': {exc}",
                self.name,
            ) from exc

    def usage(self) -> str:
        line = f"{self.name} {self.type.describe()}"
        if self.has_default:
            rendered = self.type.render(self.default) if self.default != "" else '""'
            line += f" (default: {rendered})"
        elif self.interactive is not None:
            line += " (asked interactively when omitted)"
        return line


def resolve_parameters(
    parameters: Sequence[ParameterDescriptor], tokens: Iterable[str], ctx: "ExecutionContext"
) -> list[Any]:
    """Resolve one value per descriptor, appending each to ``ctx.resolved_parameters``."""

    remaining = deque(tokens)
    for parameter in parameters:
        if remaining:
            value = parameter.parse(remaining.popleft())
        elif parameter.has_default:
            value = parameter.default
        elif parameter.interactive is not None:
            value = parameter.interactive.read(parameter, ctx)
        else:
            raise MissingParameter(f"missing value for parameter '{parameter.name}'", parameter.name)
        logger.debug("Resolved parameter %s", parameter.name)
        ctx.resolved_parameters.append(value)

    if remaining:
        raise ParameterError(f"{len(remaining)} unexpected extra argument(s) after the last parameter")
    return ctx.resolved_parameters

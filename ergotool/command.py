"""Command descriptors, runnable commands, and the execution context."""

from __future__ import annotations

import abc
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping, Sequence

from .config import ToolConfig
from .console import Console
from .errors import DeclarationError, UnknownCommand
from .parameters import ParameterDescriptor

if TYPE_CHECKING:  # pragma: no cover
    from .node_client import LedgerSession

logger = logging.getLogger(__name__)


@dataclass
class ExecutionContext:
    """Per-invocation state handed to parameter input and commands.

    ``dry_run`` is advisory: commands that mutate external state check it
    themselves before the mutating step.
    """

    config: ToolConfig
    console: Console
    registry: "CommandRegistry"
    dry_run: bool = False
    print_secrets: bool = False
    resolved_parameters: list[Any] = field(default_factory=list)


class Command(abc.ABC):
    """Runnable unit built by a :class:`CommandDescriptor` for one invocation."""

    name: str


class LocalCommand(Command):
    """Command that needs nothing beyond the execution context."""

    @abc.abstractmethod
    def run(self, ctx: ExecutionContext) -> None:
        raise NotImplementedError


class NetworkCommand(Command):
    """Command that runs against a live ledger session."""

    @abc.abstractmethod
    def run_with_session(self, session: "LedgerSession", ctx: ExecutionContext) -> None:
        raise NotImplementedError


CommandFactory = Callable[[ExecutionContext, Mapping[str, Any]], Command]


@dataclass(frozen=True)
class CommandDescriptor:
    """Declaration of a command: name, usage, parameters, and a factory.

    Inconsistent declarations raise :class:`DeclarationError` as soon as the
    descriptor is created, so a broken command fails at startup rather than
    when a user happens to run it.
    """

    name: str
    usage_syntax: str
    description: str
    parameters: Sequence[ParameterDescriptor]
    factory: CommandFactory

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
        if not self.name or any(char.isspace() for char in self.name):
            raise DeclarationError(f"invalid command name {self.name!r}")

        seen: set[str] = set()
        optional_before: str | None = None
        for parameter in self.parameters:
            if parameter.name in seen:
                raise DeclarationError(f"{self.name}: duplicate parameter '{parameter.name}'")
            seen.add(parameter.name)
            if parameter.type.secret and parameter.has_default:
                raise DeclarationError(
                    f"{self.name}: secret parameter '{parameter.name}' must not have a default"
                )
            if parameter.is_required and optional_before is not None:
                raise DeclarationError(
                    f"{self.name}: required parameter '{parameter.name}' follows optional "
                    f"parameter '{optional_before}' and could never be resolved on its own"
                )
            if not parameter.is_required and optional_before is None:
                optional_before = parameter.name

    @property
    def required_count(self) -> int:
        return sum(1 for parameter in self.parameters if parameter.is_required)

    def usage(self) -> str:
        return f"ergotool {self.name} {self.usage_syntax}".rstrip()

    def help_text(self) -> str:
        lines = [f"Usage: {self.usage()}", "", self.description]
        if self.parameters:
            lines.extend(["", "Parameters:"])
            for parameter in self.parameters:
                lines.append(f"  {parameter.usage()}")
                lines.append(f"      {parameter.doc}")
        return "\n".join(lines)

    def create_command(self, ctx: ExecutionContext) -> Command:
        """Build the command from ``ctx.resolved_parameters``."""

        if len(ctx.resolved_parameters) != len(self.parameters):
            raise DeclarationError(
                f"{self.name}: expected {len(self.parameters)} resolved values, "
                f"got {len(ctx.resolved_parameters)}"
            )
        values = {
            parameter.name: value
            for parameter, value in zip(self.parameters, ctx.resolved_parameters)
        }
        return self.factory(ctx, values)


class CommandRegistry:
    """Read-only mapping from command name to descriptor."""

    def __init__(self, descriptors: Sequence[CommandDescriptor]) -> None:
        by_name: dict[str, CommandDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in by_name:
                raise DeclarationError(f"command '{descriptor.name}' is registered twice")
            by_name[descriptor.name] = descriptor
        self._descriptors: Mapping[str, CommandDescriptor] = MappingProxyType(by_name)

    def lookup(self, name: str) -> CommandDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownCommand(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[CommandDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def names(self) -> list[str]:
        return sorted(self._descriptors)


@contextmanager
def logged_step(message: str, console: Console) -> Iterator[None]:
    """Print ``message: `` before a step and ``Ok`` once it succeeds."""

    console.print(f"{message}: ")
    logger.debug("Step started: %s", message)
    yield
    console.println("Ok")

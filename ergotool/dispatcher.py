"""Command dispatch: option parsing, parameter resolution, and exit codes."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from .command import (
    CommandRegistry,
    ExecutionContext,
    LocalCommand,
    NetworkCommand,
)
from .config import ToolConfig, coerce_bool, load_tool_config
from .console import Console
from .errors import (
    EXIT_DOMAIN_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_OK,
    ParameterError,
    ToolError,
)
from .parameters import resolve_parameters

logger = logging.getLogger(__name__)

HELP_COMMAND = "help"

ConfigLoader = Callable[..., ToolConfig]


class UsageError(ParameterError):
    """Raised when global options cannot be parsed."""


class _OptionParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


@dataclass
class GlobalOptions:
    command: str | None
    tokens: list[str] = field(default_factory=list)
    config_path: str | None = None
    dry_run: bool = False
    print_secrets: bool = False
    verbose: bool = False
    show_help: bool = False


OPTION_TERMINATOR = "--"
_FLAG_OPTIONS = frozenset({"--dry-run", "--print-secrets", "-v", "--verbose", "-h", "--help"})
_VALUE_OPTIONS = frozenset({"--conf"})


def build_parser() -> argparse.ArgumentParser:
    parser = _OptionParser(prog="ergotool", add_help=False, allow_abbrev=False)
    parser.add_argument("--conf", dest="config_path", help="Path to the YAML configuration file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do everything except the steps that change external state",
    )
    parser.add_argument(
        "--print-secrets",
        action="store_true",
        help="Allow commands to print secret key material (debugging only)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-h", "--help", dest="show_help", action="store_true")
    return parser


def split_global_options(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Separate the global flags from positional tokens.

    Only exact spellings of the global flags are taken; any other token,
    dash-prefixed or not, stays positional and is never shown to argparse.
    Everything after ``--`` is positional.
    """

    options: list[str] = []
    positionals: list[str] = []
    remaining = list(argv)
    while remaining:
        token = remaining.pop(0)
        if token == OPTION_TERMINATOR:
            positionals.extend(remaining)
            break
        name = token.split("=", 1)[0]
        if token in _FLAG_OPTIONS:
            options.append(token)
        elif name in _VALUE_OPTIONS:
            if token == name:
                if not remaining or remaining[0] == OPTION_TERMINATOR:
                    raise UsageError(f"option {name} expects a value")
                token = f"{name}={remaining.pop(0)}"
            options.append(token)
        else:
            positionals.append(token)
    return options, positionals


def parse_global_options(
    argv: Sequence[str], env: Mapping[str, str] | None = None
) -> GlobalOptions:
    """Split ``argv`` into global options, the command name, and its tokens."""

    env_map = os.environ if env is None else env
    options, positionals = split_global_options(argv)
    args = build_parser().parse_args(options)
    return GlobalOptions(
        command=positionals[0] if positionals else None,
        tokens=positionals[1:],
        config_path=args.config_path,
        dry_run=args.dry_run or bool(coerce_bool(env_map.get("ERGOTOOL_DRY_RUN"))),
        print_secrets=args.print_secrets,
        verbose=args.verbose,
        show_help=args.show_help,
    )


class Dispatcher:
    """Runs exactly one command and maps its outcome to an exit code."""

    def __init__(
        self,
        registry: CommandRegistry,
        console: Console,
        sessions: Any,
        config_loader: ConfigLoader = load_tool_config,
    ) -> None:
        self.registry = registry
        self.console = console
        self.sessions = sessions
        self.config_loader = config_loader

    def run(self, argv: Sequence[str], env: Mapping[str, str] | None = None) -> int:
        env_map = os.environ if env is None else env
        try:
            self._dispatch(argv, env_map)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            self.console.error("error: interrupted")
            return EXIT_INTERRUPTED
        except ToolError as exc:
            logger.debug("Command failed", exc_info=True)
            self.console.error(f"error: {exc}")
            return exc.exit_code
        except Exception as exc:  # noqa: BLE001 - last line of defence before the process boundary
            logger.debug("Unexpected failure", exc_info=True)
            self.console.error(f"error: {type(exc).__name__}: {exc}")
            return EXIT_DOMAIN_FAILURE
        return EXIT_OK

    def _dispatch(self, argv: Sequence[str], env: Mapping[str, str]) -> None:
        options = parse_global_options(argv, env)
        if options.show_help or options.command is None:
            name = HELP_COMMAND
            tokens = [options.command] if options.command else []
        else:
            name = options.command
            tokens = options.tokens

        descriptor = self.registry.lookup(name)
        config = self.config_loader(config_path=options.config_path, env=env)
        ctx = ExecutionContext(
            config=config,
            console=self.console,
            registry=self.registry,
            dry_run=options.dry_run,
            print_secrets=options.print_secrets,
        )

        try:
            resolve_parameters(descriptor.parameters, tokens, ctx)
        except ParameterError as exc:
            raise type(exc)(
                f"{exc}; usage: {descriptor.usage()}", exc.parameter
            ) from exc
        command = descriptor.create_command(ctx)
        logger.debug("Running %s (dry_run=%s)", descriptor.name, ctx.dry_run)

        if isinstance(command, NetworkCommand):
            self.sessions.execute(ctx.config, lambda session: command.run_with_session(session, ctx))
        elif isinstance(command, LocalCommand):
            command.run(ctx)
        else:  # pragma: no cover - closed set of command variants
            raise TypeError(f"{descriptor.name} produced an unsupported command {command!r}")

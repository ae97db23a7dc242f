"""Error taxonomy shared by the ergotool framework and commands.

Every error carries the process exit code it maps to, so the dispatcher can
translate failures uniformly without knowing which command raised them.
"""

from __future__ import annotations

EXIT_OK = 0
EXIT_DOMAIN_FAILURE = 1
EXIT_PARAMETER_FAILURE = 2
EXIT_UNKNOWN_COMMAND = 3
EXIT_CONFIG_FAILURE = 4
EXIT_INTERRUPTED = 130


class ToolError(RuntimeError):
    """Base class for errors reported by the command-line tool."""

    exit_code = EXIT_DOMAIN_FAILURE


class ParseError(ToolError, ValueError):
    """Raised by a parameter type when a raw token is malformed."""

    exit_code = EXIT_PARAMETER_FAILURE


class InvalidNumber(ParseError):
    """Raised when an integer parameter receives a non-numeric token."""


class UnknownNetwork(ParseError):
    """Raised when a network identifier is not one of the known networks."""


class InvalidAddress(ParseError):
    """Raised when an address cannot be decoded or belongs to another network."""


class ParameterError(ToolError):
    """Raised when a command parameter cannot be resolved."""

    exit_code = EXIT_PARAMETER_FAILURE

    def __init__(self, message: str, parameter: str | None = None) -> None:
        super().__init__(message)
        self.parameter = parameter


class MissingParameter(ParameterError):
    """Raised when no token, default, or interactive input is available."""


class InteractiveInputError(ParameterError):
    """Raised when an interactive prompt fails or a confirmation mismatches."""


class UnknownCommand(ToolError):
    """Raised when the requested command name is not registered."""

    exit_code = EXIT_UNKNOWN_COMMAND

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown command '{name}'; run 'ergotool help' to list commands")
        self.name = name


class DomainError(ToolError):
    """Raised when a command body fails while doing ledger work."""

    exit_code = EXIT_DOMAIN_FAILURE


class ConfigurationError(ToolError):
    """Raised when configuration is invalid."""

    exit_code = EXIT_CONFIG_FAILURE


class DeclarationError(ToolError):
    """Raised when a command or parameter declaration is inconsistent."""

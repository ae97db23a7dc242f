"""Ergo command-line tool: address derivation, storage, and order transactions."""

from .address import Address
from .command import (
    CommandDescriptor,
    CommandRegistry,
    ExecutionContext,
    LocalCommand,
    NetworkCommand,
)
from .dispatcher import Dispatcher
from .model import ErgoToken, NetworkType, SecretString
from .parameters import InteractiveInput, ParameterDescriptor, ParameterType

__all__ = [
    "Address",
    "CommandDescriptor",
    "CommandRegistry",
    "Dispatcher",
    "ErgoToken",
    "ExecutionContext",
    "InteractiveInput",
    "LocalCommand",
    "NetworkCommand",
    "NetworkType",
    "ParameterDescriptor",
    "ParameterType",
    "SecretString",
]

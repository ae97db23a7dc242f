"""Registry of the commands shipped with ergotool."""

from __future__ import annotations

from ..command import CommandRegistry
from . import address_cmd, check_address, dex, help_cmd, list_boxes, send, storage_cmds


def build_registry() -> CommandRegistry:
    """Register every command once; the result is read-only."""

    return CommandRegistry(
        [
            help_cmd.DESCRIPTOR,
            address_cmd.DESCRIPTOR,
            check_address.DESCRIPTOR,
            storage_cmds.CREATE_STORAGE,
            storage_cmds.EXTRACT_STORAGE,
            list_boxes.DESCRIPTOR,
            send.DESCRIPTOR,
            dex.SELL_ORDER,
        ]
    )


__all__ = ["build_registry"]

"""The ``help`` command."""

from __future__ import annotations

from dataclasses import dataclass

from ..command import CommandDescriptor, ExecutionContext, LocalCommand
from ..parameters import STRING, ParameterDescriptor


@dataclass
class HelpCmd(LocalCommand):
    """Print the list of commands, or the usage of one command."""

    command_name: str
    name: str = "help"

    def run(self, ctx: ExecutionContext) -> None:
        console = ctx.console
        if self.command_name:
            console.println(ctx.registry.lookup(self.command_name).help_text())
            return

        console.println("Usage: ergotool <command> [<args>...] [--dry-run] [--conf FILE]")
        console.println()
        console.println("Commands:")
        width = max(len(name) for name in ctx.registry.names())
        for descriptor in sorted(ctx.registry, key=lambda d: d.name):
            console.println(f"  {descriptor.name:<{width}}  {descriptor.description}")
        console.println()
        console.println("Run 'ergotool help <command>' for the parameters of a command.")


DESCRIPTOR = CommandDescriptor(
    name="help",
    usage_syntax="[<commandName>]",
    description="list available commands or show the usage of <commandName>",
    parameters=[
        ParameterDescriptor(
            "commandName", STRING, "name of the command to describe", default=""
        ),
    ],
    factory=lambda ctx, values: HelpCmd(values["commandName"]),
)

"""Command line entry point for ergotool."""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping, Sequence

from .commands import build_registry
from .console import StdConsole
from .dispatcher import Dispatcher
from .node_client import NodeSessionFactory

logger = logging.getLogger(__name__)


def _should_debug(argv: Sequence[str], env: Mapping[str, str]) -> bool:
    flags = list(argv[: argv.index("--")]) if "--" in argv else list(argv)
    if "-v" in flags or "--verbose" in flags:
        return True
    return env.get("ERGOTOOL_DEBUG", "0").strip() not in {"", "0"}


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    configure_logging(_should_debug(args, os.environ))
    dispatcher = Dispatcher(build_registry(), StdConsole(), NodeSessionFactory())
    sys.exit(dispatcher.run(args))


if __name__ == "__main__":
    main(sys.argv[1:])

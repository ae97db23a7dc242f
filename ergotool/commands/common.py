"""Steps shared by the commands that build and broadcast transactions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator

from ..command import ExecutionContext, logged_step
from ..keys import Prover
from ..model import InputBox, SecretString
from ..storage import load_prover


def create_prover(ctx: ExecutionContext, storage_file: Path, password: SecretString) -> Prover:
    with logged_step("Creating prover", ctx.console):
        return load_prover(storage_file, password, ctx.config.node.network_type)


UNSPENT_PAGE_SIZE = 50


def iter_unspent_boxes(
    session: Any, address: str, page_size: int = UNSPENT_PAGE_SIZE
) -> Iterator[InputBox]:
    """Yield every unspent box of ``address``, fetching pages on demand."""

    offset = 0
    while True:
        page = session.get_unspent_boxes(address, page_size, offset)
        yield from page
        if len(page) < page_size:
            return
        offset += len(page)


def sign_and_broadcast(
    session: Any, ctx: ExecutionContext, prover: Prover, unsigned_tx: Dict[str, Any]
) -> str | None:
    """Sign and print the transaction, then send it unless this is a dry run."""

    console = ctx.console
    with logged_step("Signing the transaction", console):
        signed = prover.sign(session, unsigned_tx)
    console.println(f"Tx: {json.dumps(signed, indent=2)}")

    if ctx.dry_run:
        return None
    with logged_step("Sending the transaction", console):
        tx_id = session.send_transaction(signed)
    console.println(f"Server returned tx id: {tx_id}")
    return tx_id

"""Atomic-exchange (DEX) order commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..address import Address
from ..command import CommandDescriptor, ExecutionContext, NetworkCommand, logged_step
from ..contracts import seller_contract_tree
from ..errors import DomainError
from ..model import ErgoToken, SecretString
from ..parameters import (
    ADDRESS,
    FILE,
    INTEGER,
    SECRET,
    TOKEN_ID,
    InteractiveInput,
    ParameterDescriptor,
)
from ..tx_builder import MIN_FEE, OutputBox, TransactionBuilder, select_top
from .common import create_prover, iter_unspent_boxes, sign_and_broadcast


@dataclass
class CreateSellOrderCmd(NetworkCommand):
    """Create and send a transaction with a seller's order.

    Steps:
      1) unlock the storage and build the prover for the sender's address;
      2) compile the seller contract for ``token_price`` and ``seller``;
      3) page through unspent boxes of the sender until enough are selected
         to cover the DEX fee, the transaction fee and the offered token;
      4) create an order box holding ``dex_fee`` nanoERG and the token,
         guarded by that contract;
      5) sign the transaction and print it as JSON;
      6) send it to the network unless ``--dry-run`` is given.

    ``dex_fee`` is claimable by whoever matches this order with a buyer's.
    """

    storage_file: Path
    storage_pass: SecretString
    seller: Address
    token_price: int
    token: ErgoToken
    dex_fee: int
    name: str = "dex:SellOrder"

    def run_with_session(self, session, ctx: ExecutionContext) -> None:
        for label, value in (
            ("tokenPrice", self.token_price),
            ("tokenAmount", self.token.amount),
            ("dexFee", self.dex_fee),
        ):
            if value <= 0:
                raise DomainError(f"{label} must be positive, got {value}")

        console = ctx.console
        prover = create_prover(ctx, self.storage_file, self.storage_pass)
        seller_tree = seller_contract_tree(session, self.token_price, self.seller)
        sender = prover.address
        with logged_step(f"Loading unspent boxes at address {sender}", console):
            boxes = select_top(
                iter_unspent_boxes(session, sender.to_base58()), MIN_FEE + self.dex_fee, self.token
            )
        console.println(f"contract ergo tree: {seller_tree}")

        order_box = OutputBox(self.dex_fee, seller_tree, [self.token])
        unsigned = TransactionBuilder(session.get_height()).build(
            boxes, [order_box], sender.ergo_tree
        )
        sign_and_broadcast(session, ctx, prover, unsigned)


def _create(ctx: ExecutionContext, values: Mapping[str, Any]) -> CreateSellOrderCmd:
    return CreateSellOrderCmd(
        storage_file=values["storageFile"],
        storage_pass=values["storagePass"],
        seller=values["sellerAddr"],
        token_price=values["tokenPrice"],
        token=ErgoToken(values["tokenId"], values["tokenAmount"]),
        dex_fee=values["dexFee"],
    )


SELL_ORDER = CommandDescriptor(
    name="dex:SellOrder",
    usage_syntax="<storageFile> <sellerAddr> <tokenPrice> <tokenId> <tokenAmount> <dexFee>",
    description="put a token seller order with given <tokenId> and <tokenAmount> for sale at "
    "given <tokenPrice> price with <dexFee> as a reward for anyone who matches this order with "
    "buyer, with <sellerAddr> to be used for withdrawal, with the given <storageFile> to sign "
    "transaction (requests storage password)",
    parameters=[
        ParameterDescriptor("storageFile", FILE, "storage with secret key of the sender"),
        ParameterDescriptor("sellerAddr", ADDRESS, "address of the seller"),
        ParameterDescriptor("tokenPrice", INTEGER, "amount of nanoERG asked for tokens"),
        ParameterDescriptor("tokenId", TOKEN_ID, "token id offered for sale"),
        ParameterDescriptor("tokenAmount", INTEGER, "token amount offered for sale"),
        ParameterDescriptor(
            "dexFee", INTEGER, "reward for anyone who matches this order with buyer's order"
        ),
        ParameterDescriptor(
            "storagePass", SECRET, "password to access sender secret key in the storage",
            display_name="Storage password", interactive=InteractiveInput.MASKED,
        ),
    ],
    factory=_create,
)

"""Atomic-exchange order contracts."""

from __future__ import annotations

from string import Template

from .address import Address

# Spendable by the seller at any time; otherwise only by a transaction paying
# at least ``tokenPrice`` nanoERG back to the seller in a box that references
# this order box id in R4.
SELLER_CONTRACT = Template(
    """{
  val sellerPk = PK("$seller")
  val tokenPrice = ${token_price}L
  sellerPk || {
    val returnBoxes = OUTPUTS.filter { (b: Box) =>
      b.R4[Coll[Byte]].isDefined && b.R4[Coll[Byte]].get == SELF.id &&
        b.propositionBytes == sellerPk.propBytes
    }
    returnBoxes.size == 1 && returnBoxes(0).value >= tokenPrice
  }
}"""
)


def seller_contract_source(token_price: int, seller: Address) -> str:
    if token_price <= 0:
        raise ValueError("token price must be positive")
    return SELLER_CONTRACT.substitute(seller=seller.to_base58(), token_price=token_price)


def seller_contract_tree(session, token_price: int, seller: Address) -> str:
    """Compile the seller order for ``seller`` through the ledger session."""

    return session.compile_contract(seller_contract_source(token_price, seller))

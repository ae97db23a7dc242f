from __future__ import annotations

import pytest

from conftest import MNEMONIC
from ergotool.address import Address, AddressType, b58decode, b58encode
from ergotool.errors import InvalidAddress
from ergotool.keys import (
    EIP3_PARENT_PATH,
    HARDENED,
    ExtendedSecretKey,
    address_from_mnemonic,
    eip3_address,
    format_path,
    master_key_from_mnemonic,
    mnemonic_to_seed,
)
from ergotool.model import NetworkType, SecretString


def test_base58_keeps_leading_zero_bytes() -> None:
    data = b"\x00\x00\x01\xff"
    assert b58encode(data).startswith("11")
    assert b58decode(b58encode(data)) == data


def test_seed_depends_on_mnemonic_password() -> None:
    seed = mnemonic_to_seed(SecretString(MNEMONIC), SecretString(""))
    assert len(seed) == 64
    assert seed != mnemonic_to_seed(SecretString(MNEMONIC), SecretString("pw"))


def test_mainnet_p2pk_addresses_start_with_9() -> None:
    address = address_from_mnemonic(NetworkType.MAINNET, SecretString(MNEMONIC), SecretString(""))
    assert address.address_type is AddressType.P2PK
    assert address.to_base58().startswith("9")
    assert Address.from_base58(address.to_base58()) == address


def test_testnet_address_network_is_checked() -> None:
    address = address_from_mnemonic(NetworkType.TESTNET, SecretString(MNEMONIC), SecretString(""))
    assert Address.from_base58(str(address), network=NetworkType.TESTNET) == address
    with pytest.raises(InvalidAddress, match="expected mainnet"):
        Address.from_base58(str(address), network=NetworkType.MAINNET)


def test_corrupted_checksum_is_rejected() -> None:
    text = str(address_from_mnemonic(NetworkType.MAINNET, SecretString(MNEMONIC), SecretString("")))
    replacement = "2" if text[-1] != "2" else "3"
    with pytest.raises(InvalidAddress):
        Address.from_base58(text[:-1] + replacement)


def test_p2pk_ergo_tree_wraps_public_key() -> None:
    master = master_key_from_mnemonic(SecretString(MNEMONIC), SecretString(""))
    address = master.address(NetworkType.MAINNET)
    assert address.ergo_tree == "0008cd" + master.public_key().hex()
    assert Address.from_ergo_tree(NetworkType.MAINNET, bytes.fromhex(address.ergo_tree)) == address


def test_eip3_addresses_differ_from_master_address() -> None:
    secret = SecretString(MNEMONIC)
    empty = SecretString("")
    master_address = address_from_mnemonic(NetworkType.MAINNET, secret, empty)
    derived = {eip3_address(i, NetworkType.MAINNET, secret, empty) for i in range(3)}
    assert len(derived) == 3
    assert master_address not in derived


def test_derivation_is_deterministic_and_tracks_path() -> None:
    master = ExtendedSecretKey.from_seed(b"\x01" * 64)
    child = master.derive(EIP3_PARENT_PATH + (7,))
    assert child == ExtendedSecretKey.from_seed(b"\x01" * 64).derive(EIP3_PARENT_PATH + (7,))
    assert format_path(child.path) == "m/44'/429'/0'/0/7"
    assert master.child(0) != master.child(0 | HARDENED)

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import MNEMONIC, TOKEN_ID, FakeSession, FakeSessionFactory, ScriptedConsole, fixed_config_loader
from ergotool.commands import build_registry
from ergotool.config import ToolConfig
from ergotool.dispatcher import Dispatcher, parse_global_options
from ergotool.errors import (
    EXIT_CONFIG_FAILURE,
    EXIT_DOMAIN_FAILURE,
    EXIT_OK,
    EXIT_PARAMETER_FAILURE,
    EXIT_UNKNOWN_COMMAND,
    ConfigurationError,
)
from ergotool.keys import address_from_mnemonic
from ergotool.model import NetworkType, SecretString


class ExplodingRegistry:
    """Registry double that fails the test if any descriptor is touched."""

    def __init__(self, real) -> None:
        self.real = real

    def lookup(self, name):
        descriptor = self.real.lookup(name)
        pytest.fail(f"unexpected lookup success for {name}")
        return descriptor


def _dispatcher(console, session=None, registry=None, loader=None) -> tuple[Dispatcher, FakeSessionFactory]:
    sessions = FakeSessionFactory(session or FakeSession())
    dispatcher = Dispatcher(
        registry or build_registry(), console, sessions, config_loader=loader or fixed_config_loader()
    )
    return dispatcher, sessions


def _seller_address() -> str:
    return address_from_mnemonic(NetworkType.MAINNET, SecretString("seller words"), SecretString("")).to_base58()


def test_parse_global_options_allows_interleaved_flags() -> None:
    options = parse_global_options(["address", "--dry-run", "mainnet", "--conf", "x.yaml"], env={})

    assert options.command == "address"
    assert options.tokens == ["mainnet"]
    assert options.dry_run is True
    assert options.config_path == "x.yaml"


def test_parse_global_options_reads_dry_run_from_environment() -> None:
    options = parse_global_options(["help"], env={"ERGOTOOL_DRY_RUN": "yes"})
    assert options.dry_run is True


def test_negative_numbers_stay_positional() -> None:
    options = parse_global_options(["listAddressBoxes", "addr", "-5"], env={})
    assert options.tokens == ["addr", "-5"]


def test_unknown_command_reports_once_without_resolution(console) -> None:
    loader_calls = []

    def loader(**kwargs):
        loader_calls.append(kwargs)
        return ToolConfig()

    dispatcher, sessions = _dispatcher(console, loader=loader, registry=ExplodingRegistry(build_registry()))

    code = dispatcher.run(["bogusCmd"], env={})

    assert code == EXIT_UNKNOWN_COMMAND
    assert len(console.errors) == 1
    assert "bogusCmd" in console.errors[0]
    assert console.prompts == []
    assert loader_calls == []
    assert sessions.opened == 0


def test_end_to_end_address_with_masked_input() -> None:
    console = ScriptedConsole(passwords=[MNEMONIC, ""])
    dispatcher, _ = _dispatcher(console)

    code = dispatcher.run(["address", "mainnet"], env={})

    assert code == EXIT_OK, console.errors
    assert console.prompts == ["Mnemonic> ", "Mnemonic password> "]
    expected = address_from_mnemonic(NetworkType.MAINNET, SecretString(MNEMONIC), SecretString(""))
    assert f"Pre-EIP-3: {expected}" in console.transcript
    assert "Post-EIP-3 /2: " in console.transcript
    assert "Secret root" not in console.transcript
    assert MNEMONIC not in console.transcript


def test_address_prints_secret_root_only_with_flag() -> None:
    console = ScriptedConsole(passwords=[MNEMONIC, ""])
    dispatcher, _ = _dispatcher(console)

    assert dispatcher.run(["address", "testnet", "--print-secrets"], env={}) == EXIT_OK
    assert "Secret root: " in console.transcript
    assert "Secret m/44'/429'/0'/0: " in console.transcript


def test_missing_parameter_exit_code_and_usage(console) -> None:
    dispatcher, _ = _dispatcher(console)

    code = dispatcher.run(["checkAddress"], env={})

    assert code == EXIT_PARAMETER_FAILURE
    assert len(console.errors) == 1
    assert "network" in console.errors[0]
    assert "usage: ergotool checkAddress testnet|mainnet <address>" in console.errors[0]


def test_required_shortfall_fails_at_next_descriptor(console) -> None:
    dispatcher, sessions = _dispatcher(console)

    code = dispatcher.run(["dex:SellOrder", "s.json", _seller_address(), "100"], env={})

    assert code == EXIT_PARAMETER_FAILURE
    assert "'tokenId'" in console.errors[0]
    assert sessions.opened == 0


def test_parse_error_is_reported_before_prompting(console) -> None:
    dispatcher, _ = _dispatcher(console)

    code = dispatcher.run(["address", "moonnet"], env={})

    assert code == EXIT_PARAMETER_FAILURE
    assert console.prompts == []
    assert "'moonnet'" in console.errors[0]


def test_check_address_ok_and_network_mismatch() -> None:
    address = address_from_mnemonic(NetworkType.TESTNET, SecretString(MNEMONIC), SecretString("pw"))

    console = ScriptedConsole(passwords=[MNEMONIC, "pw"])
    dispatcher, _ = _dispatcher(console)
    assert dispatcher.run(["checkAddress", "testnet", str(address)], env={}) == EXIT_OK
    assert console.transcript.endswith("Ok\n")

    console = ScriptedConsole(passwords=[MNEMONIC, "other"])
    dispatcher, _ = _dispatcher(console)
    assert dispatcher.run(["checkAddress", "testnet", str(address)], env={}) == EXIT_OK
    assert console.transcript.endswith("Error\n")

    console = ScriptedConsole(passwords=[MNEMONIC, "pw"])
    dispatcher, _ = _dispatcher(console)
    assert dispatcher.run(["checkAddress", "mainnet", str(address)], env={}) == EXIT_DOMAIN_FAILURE
    assert "doesn't match" in console.errors[0]


def test_configuration_failure_is_fatal(console) -> None:
    def loader(**_kwargs):
        raise ConfigurationError("Config file not found: nope.yaml")

    dispatcher, _ = _dispatcher(console, loader=loader)

    assert dispatcher.run(["help"], env={}) == EXIT_CONFIG_FAILURE
    assert console.errors == ["error: Config file not found: nope.yaml"]


def test_unexpected_exception_becomes_domain_failure(console, monkeypatch) -> None:
    from ergotool.commands import help_cmd

    def explode(self, ctx):
        raise KeyError("surprise")

    monkeypatch.setattr(help_cmd.HelpCmd, "run", explode)
    dispatcher, _ = _dispatcher(console)

    assert dispatcher.run(["help"], env={}) == EXIT_DOMAIN_FAILURE
    assert len(console.errors) == 1
    assert "KeyError" in console.errors[0]


def test_help_lists_every_command(console) -> None:
    dispatcher, _ = _dispatcher(console)

    assert dispatcher.run([], env={}) == EXIT_OK
    for name in build_registry().names():
        assert name in console.transcript


def test_help_flag_shows_command_usage(console) -> None:
    dispatcher, _ = _dispatcher(console)

    assert dispatcher.run(["send", "--help"], env={}) == EXIT_OK
    assert console.transcript.startswith("Usage: ergotool send <storageFile> <recipientAddr> <amount>")


def test_config_option_without_value_is_a_parameter_failure(console) -> None:
    dispatcher, _ = _dispatcher(console)
    assert dispatcher.run(["help", "--conf"], env={}) == EXIT_PARAMETER_FAILURE
    assert console.errors == ["error: option --conf expects a value"]


def test_dash_prefixed_secret_token_is_a_positional_value() -> None:
    console = ScriptedConsole()
    dispatcher, _ = _dispatcher(console)

    code = dispatcher.run(["address", "mainnet", MNEMONIC, "-Hunter2pw"], env={})

    assert code == EXIT_OK, console.errors
    assert console.prompts == []
    expected = address_from_mnemonic(NetworkType.MAINNET, SecretString(MNEMONIC), SecretString("-Hunter2pw"))
    assert f"Pre-EIP-3: {expected}" in console.transcript


def test_surplus_dash_prefixed_token_is_never_echoed(console) -> None:
    dispatcher, _ = _dispatcher(console)

    code = dispatcher.run(["address", "mainnet", MNEMONIC, "", "-Hunter2pw"], env={})

    assert code == EXIT_PARAMETER_FAILURE
    assert len(console.errors) == 1
    assert "Hunter2pw" not in console.errors[0]
    assert "Hunter2pw" not in console.transcript


@pytest.mark.parametrize("token", ["--dry", "--pr", "--co", "--verb", "--frobnicate"])
def test_flag_prefixes_are_not_abbreviations(token: str) -> None:
    options = parse_global_options(["address", "mainnet", MNEMONIC, token], env={})

    assert options.tokens == ["mainnet", MNEMONIC, token]
    assert options.dry_run is False
    assert options.print_secrets is False
    assert options.config_path is None


def test_abbreviated_flag_is_used_as_the_password() -> None:
    console = ScriptedConsole()
    session = FakeSession()
    dispatcher, _ = _dispatcher(console, session=session)

    assert dispatcher.run(["address", "mainnet", MNEMONIC, "--dry"], env={}) == EXIT_OK, console.errors
    assert console.prompts == []
    expected = address_from_mnemonic(NetworkType.MAINNET, SecretString(MNEMONIC), SecretString("--dry"))
    assert f"Pre-EIP-3: {expected}" in console.transcript


def test_double_dash_ends_global_options() -> None:
    options = parse_global_options(["--dry-run", "address", "--", "mainnet", "--help", "-v"], env={})

    assert options.dry_run is True
    assert options.show_help is False
    assert options.verbose is False
    assert options.command == "address"
    assert options.tokens == ["mainnet", "--help", "-v"]


def _sell_order_args(storage_file: Path) -> list[str]:
    return ["dex:SellOrder", str(storage_file), _seller_address(), "2000000", TOKEN_ID, "10", "5000000"]


def test_sell_order_dry_run_skips_broadcast(storage_file: Path, funded_boxes) -> None:
    live_console = ScriptedConsole(passwords=["storage-pass"])
    live_session = FakeSession(funded_boxes)
    live, live_sessions = _dispatcher(live_console, session=live_session)
    assert live.run(_sell_order_args(storage_file), env={}) == EXIT_OK, live_console.errors

    dry_console = ScriptedConsole(passwords=["storage-pass"])
    dry_session = FakeSession(funded_boxes)
    dry, dry_sessions = _dispatcher(dry_console, session=dry_session)
    assert dry.run(_sell_order_args(storage_file) + ["--dry-run"], env={}) == EXIT_OK, dry_console.errors

    assert len(live_session.sent) == 1
    assert dry_session.sent == []
    assert live_console.transcript.startswith(dry_console.transcript)
    assert "Sending the transaction" not in dry_console.transcript
    assert live_console.transcript[len(dry_console.transcript):].startswith("Sending the transaction: Ok")
    assert live_sessions.closed == live_sessions.opened == 1
    assert dry_sessions.closed == dry_sessions.opened == 1


def test_sell_order_builds_order_box(storage_file: Path, funded_boxes) -> None:
    console = ScriptedConsole(passwords=["storage-pass"])
    session = FakeSession(funded_boxes)
    dispatcher, _ = _dispatcher(console, session=session)

    assert dispatcher.run(_sell_order_args(storage_file) + ["--dry-run"], env={}) == EXIT_OK

    (source,) = [arg for call, arg in session.calls if call == "compile_contract"]
    assert "2000000L" in source
    (unsigned,) = [arg for call, arg in session.calls if call == "sign_transaction"]
    order_box = unsigned["outputs"][0]
    assert order_box["value"] == 5_000_000
    assert order_box["ergoTree"] == "100204a00b08cd"
    assert order_box["assets"] == [{"tokenId": TOKEN_ID, "amount": 10}]
    assert "contract ergo tree: 100204a00b08cd" in console.transcript


def test_domain_error_inside_session_is_reported_and_session_closed(storage_file: Path) -> None:
    console = ScriptedConsole(passwords=["storage-pass"])
    session = FakeSession(boxes=[])
    dispatcher, sessions = _dispatcher(console, session=session)

    code = dispatcher.run(_sell_order_args(storage_file), env={})

    assert code == EXIT_DOMAIN_FAILURE
    assert "Insufficient funds" in console.errors[0]
    assert sessions.closed == 1
    assert session.sent == []


def test_wrong_storage_password_is_a_domain_failure(storage_file: Path, funded_boxes) -> None:
    console = ScriptedConsole(passwords=["wrong"])
    session = FakeSession(funded_boxes)
    dispatcher, _ = _dispatcher(console, session=session)

    assert dispatcher.run(_sell_order_args(storage_file), env={}) == EXIT_DOMAIN_FAILURE
    assert "invalid password" in console.errors[0]
    assert "wrong" not in console.transcript
    assert session.calls == []

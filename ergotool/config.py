"""Shared configuration loader for ergotool."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from .errors import ConfigurationError
from .model import NetworkType

DEFAULT_CONFIG_PATH = Path("ergotool.yaml")
DEFAULT_API_URL = "http://127.0.0.1:9053"
DEFAULT_TIMEOUT = 30.0


@dataclass
class NodeConfig:
    """Connection details for the Ergo node REST API."""

    api_url: str = DEFAULT_API_URL
    api_key: str | None = None
    network_type: NetworkType = NetworkType.MAINNET
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class ToolConfig:
    node: NodeConfig = field(default_factory=NodeConfig)
    source: Path | None = None


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with a 'node' section")
    return loaded


def _coerce_timeout(raw: Any, *, source: str) -> float | None:
    if raw is None:
        return None
    try:
        timeout = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid timeout in {source}: {raw}") from exc
    if timeout <= 0:
        raise ConfigurationError(f"Timeout in {source} must be positive: {raw}")
    return timeout


def _coerce_network(raw: Any, *, source: str) -> NetworkType | None:
    if raw is None:
        return None
    if isinstance(raw, NetworkType):
        return raw
    try:
        return NetworkType(str(raw).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid network_type in {source}: {raw} (expected mainnet or testnet)"
        ) from exc


def _check_url(raw: str | None, *, source: str) -> str | None:
    if not raw:
        return None
    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ConfigurationError(f"Invalid node API URL in {source}: {raw}")
    return raw.rstrip("/")


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    return None


def load_tool_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ToolConfig:
    """Load tool configuration from environment variables and optional YAML.

    The file is optional unless a path is given explicitly, either through
    ``config_path`` or ``ERGOTOOL_CONFIG``.
    """

    env_map = os.environ if env is None else env
    env_path = env_map.get("ERGOTOOL_CONFIG")
    explicit_path = config_path is not None or bool(env_path)
    if config_path is not None:
        path = Path(config_path).expanduser()
    elif env_path:
        path = Path(env_path).expanduser()
    else:
        path = DEFAULT_CONFIG_PATH

    file_config = _load_config_file(path, required=explicit_path)
    node_section = file_config.get("node") or {}
    if not isinstance(node_section, dict):
        raise ConfigurationError(f"Expected 'node' to be a mapping in {path}")

    override_map = dict(overrides or {})

    api_url = _first_value(
        _check_url(override_map.get("api_url"), source="overrides"),
        _check_url(env_map.get("ERGOTOOL_NODE_URL"), source="ERGOTOOL_NODE_URL"),
        _check_url(node_section.get("api_url"), source=f"{path} node.api_url"),
        DEFAULT_API_URL,
    )
    api_key = _first_value(
        override_map.get("api_key"), env_map.get("ERGOTOOL_API_KEY"), node_section.get("api_key")
    )
    network_type = _first_value(
        _coerce_network(override_map.get("network_type"), source="overrides"),
        _coerce_network(env_map.get("ERGOTOOL_NETWORK"), source="ERGOTOOL_NETWORK"),
        _coerce_network(node_section.get("network_type"), source=f"{path} node.network_type"),
        NetworkType.MAINNET,
    )
    timeout = _first_value(
        _coerce_timeout(override_map.get("timeout"), source="overrides"),
        _coerce_timeout(env_map.get("ERGOTOOL_TIMEOUT"), source="ERGOTOOL_TIMEOUT"),
        _coerce_timeout(node_section.get("timeout"), source=f"{path} node.timeout"),
        DEFAULT_TIMEOUT,
    )

    return ToolConfig(
        node=NodeConfig(
            api_url=api_url,
            api_key=str(api_key) if api_key is not None else None,
            network_type=network_type,
            timeout=timeout,
        ),
        source=path if path.exists() else None,
    )

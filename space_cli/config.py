"""Session configuration loader for space-cli."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from .errors import ConfigurationError
from .fees import parse_amount

DEFAULT_CONFIG_PATH = Path.home() / ".space-cli.yaml"
DEFAULT_WALLET = "default"
DEFAULT_TIMEOUT = 30.0


class ExtendedNetwork(str, Enum):
    """Bitcoin networks spaced can run against."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    TESTNET4 = "testnet4"
    SIGNET = "signet"
    REGTEST = "regtest"

    def __str__(self) -> str:
        return self.value


DEFAULT_SPACED_RPC_PORTS: dict[ExtendedNetwork, int] = {
    ExtendedNetwork.MAINNET: 7225,
    ExtendedNetwork.TESTNET4: 7224,
    ExtendedNetwork.TESTNET: 7223,
    ExtendedNetwork.SIGNET: 7221,
    ExtendedNetwork.REGTEST: 7218,
}


def default_spaced_rpc_url(network: ExtendedNetwork) -> str:
    return f"http://127.0.0.1:{DEFAULT_SPACED_RPC_PORTS[network]}"


@dataclass(frozen=True)
class SessionConfig:
    """Process-wide settings shared by every command."""

    wallet: str = DEFAULT_WALLET
    network: ExtendedNetwork = ExtendedNetwork.MAINNET
    rpc_url: str = default_spaced_rpc_url(ExtendedNetwork.MAINNET)
    dust: int | None = None
    force: bool = False
    skip_tx_check: bool = False
    rpc_user: str | None = None
    rpc_password: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def auth(self) -> tuple[str, str] | None:
        if self.rpc_user and self.rpc_password:
            return (self.rpc_user, self.rpc_password)
        return None


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with a 'session' section")
    return loaded


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    return None


def _coerce_network(raw: Any, *, source: str) -> ExtendedNetwork | None:
    if raw is None:
        return None
    if isinstance(raw, ExtendedNetwork):
        return raw
    try:
        return ExtendedNetwork(str(raw).strip().lower())
    except ValueError as exc:
        choices = ", ".join(network.value for network in ExtendedNetwork)
        raise ConfigurationError(f"Invalid chain in {source}: {raw} (expected one of {choices})") from exc


def _coerce_dust(raw: Any, *, source: str) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        return parse_amount(raw, "dust")
    except ValueError as exc:
        raise ConfigurationError(f"Invalid dust in {source}: {raw}") from exc


def _coerce_timeout(raw: Any, *, source: str) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        timeout = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid timeout in {source}: {raw}") from exc
    if timeout <= 0:
        raise ConfigurationError(f"Invalid timeout in {source}: {raw} (must be positive)")
    return timeout


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _validate_endpoint(raw: str) -> str:
    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ConfigurationError(f"Invalid spaced RPC URL: {raw}")
    return raw.rstrip("/")


def load_session_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> SessionConfig:
    """Resolve the session from CLI overrides, environment and optional YAML."""

    env_map = os.environ if env is None else env
    explicit_path = config_path is not None
    path = Path(config_path).expanduser() if explicit_path else DEFAULT_CONFIG_PATH

    file_config = _load_config_file(path, required=explicit_path)
    section = file_config.get("session") or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected 'session' to be a mapping in {path}")

    override_map = {key: value for key, value in (overrides or {}).items() if value is not None}

    network = _first_value(
        _coerce_network(override_map.get("chain"), source="arguments"),
        _coerce_network(env_map.get("SPACED_CHAIN") or None, source="SPACED_CHAIN"),
        _coerce_network(section.get("chain"), source=f"{path} session.chain"),
        ExtendedNetwork.MAINNET,
    )

    endpoint = _first_value(
        override_map.get("rpc_url"),
        env_map.get("SPACED_RPC_URL") or None,
        section.get("rpc_url"),
    )
    rpc_url = _validate_endpoint(endpoint) if endpoint else default_spaced_rpc_url(network)

    wallet = _first_value(
        override_map.get("wallet"),
        env_map.get("SPACE_CLI_WALLET") or None,
        section.get("wallet"),
        DEFAULT_WALLET,
    )

    dust = _first_value(
        _coerce_dust(override_map.get("dust"), source="arguments"),
        _coerce_dust(env_map.get("SPACE_CLI_DUST"), source="SPACE_CLI_DUST"),
        _coerce_dust(section.get("dust"), source=f"{path} session.dust"),
    )

    # Boolean flags on the command line can only switch a default on.
    force = bool(
        override_map.get("force")
        or _first_value(
            _coerce_bool(env_map.get("SPACE_CLI_FORCE")),
            _coerce_bool(section.get("force")),
            False,
        )
    )
    skip_tx_check = bool(
        override_map.get("skip_tx_check")
        or _first_value(
            _coerce_bool(env_map.get("SPACE_CLI_SKIP_TX_CHECK")),
            _coerce_bool(section.get("skip_tx_check")),
            False,
        )
    )

    rpc_user = _first_value(
        override_map.get("rpc_user"), env_map.get("SPACED_RPC_USER") or None, section.get("rpc_user")
    )
    rpc_password = _first_value(
        override_map.get("rpc_password"),
        env_map.get("SPACED_RPC_PASSWORD") or None,
        section.get("rpc_password"),
    )
    if bool(rpc_user) != bool(rpc_password):
        raise ConfigurationError("RPC user and password must be provided together")

    timeout = _first_value(
        _coerce_timeout(override_map.get("timeout"), source="arguments"),
        _coerce_timeout(env_map.get("SPACE_CLI_TIMEOUT"), source="SPACE_CLI_TIMEOUT"),
        _coerce_timeout(section.get("timeout"), source=f"{path} session.timeout"),
        DEFAULT_TIMEOUT,
    )

    return SessionConfig(
        wallet=str(wallet),
        network=network,
        rpc_url=rpc_url,
        dust=dust,
        force=force,
        skip_tx_check=skip_tx_check,
        rpc_user=rpc_user,
        rpc_password=rpc_password,
        timeout=timeout,
    )

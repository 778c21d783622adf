from pathlib import Path

import pytest

from space_cli.config import (
    ConfigurationError,
    ExtendedNetwork,
    SessionConfig,
    default_spaced_rpc_url,
    load_session_config,
)


@pytest.fixture(autouse=True)
def no_home_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("space_cli.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    "network, port",
    [
        (ExtendedNetwork.MAINNET, 7225),
        (ExtendedNetwork.TESTNET4, 7224),
        (ExtendedNetwork.TESTNET, 7223),
        (ExtendedNetwork.SIGNET, 7221),
        (ExtendedNetwork.REGTEST, 7218),
    ],
)
def test_default_url_follows_network(network: ExtendedNetwork, port: int) -> None:
    assert default_spaced_rpc_url(network) == f"http://127.0.0.1:{port}"


def test_defaults_without_any_source() -> None:
    config = load_session_config(env={})

    assert config == SessionConfig()
    assert config.rpc_url == "http://127.0.0.1:7225"
    assert config.auth is None


def test_chain_from_environment_picks_port() -> None:
    config = load_session_config(env={"SPACED_CHAIN": "Testnet4"})

    assert config.network is ExtendedNetwork.TESTNET4
    assert config.rpc_url == "http://127.0.0.1:7224"


def test_overrides_win_over_environment_and_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
        session:
          chain: signet
          wallet: filewallet
          dust: 700
          rpc_url: http://filehost:1111
          skip_tx_check: true
        """
    )
    env_map = {"SPACE_CLI_WALLET": "envwallet", "SPACE_CLI_DUST": "650"}

    config = load_session_config(
        config_path=config_path,
        env=env_map,
        overrides={"wallet": "argwallet", "rpc_url": None, "force": False},
    )

    assert config.network is ExtendedNetwork.SIGNET
    assert config.wallet == "argwallet"
    assert config.dust == 650
    assert config.rpc_url == "http://filehost:1111"
    assert config.skip_tx_check is True
    assert config.force is False


def test_explicit_config_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_session_config(config_path=tmp_path / "nope.yaml", env={})


@pytest.mark.parametrize(
    "env_map",
    [
        {"SPACED_CHAIN": "dogecoin"},
        {"SPACED_RPC_URL": "127.0.0.1:7225"},
        {"SPACE_CLI_DUST": "lots"},
        {"SPACE_CLI_TIMEOUT": "0"},
        {"SPACED_RPC_USER": "only-user"},
    ],
)
def test_invalid_values_raise_configuration_error(env_map) -> None:
    with pytest.raises(ConfigurationError):
        load_session_config(env=env_map)


def test_session_is_immutable() -> None:
    config = load_session_config(env={})

    with pytest.raises(AttributeError):
        config.wallet = "other"  # type: ignore[misc]


def test_unreadable_config_file_raises_configuration_error(tmp_path: Path) -> None:
    directory = tmp_path / "config.yaml"
    directory.mkdir()
    with pytest.raises(ConfigurationError):
        load_session_config(config_path=directory, env={})

    binary = tmp_path / "binary.yaml"
    binary.write_bytes(b"session:\n  wallet: \xff\xfe\n")
    with pytest.raises(ConfigurationError):
        load_session_config(config_path=binary, env={})

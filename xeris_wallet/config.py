"""Runtime configuration for the wallet: endpoint, commitment, timeouts, program."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

from .constants import (
    ALLOWED_COMMITMENTS,
    DEFAULT_COMMITMENT,
    DEFAULT_CONFIRM_TIMEOUT,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RPC_URL,
)
from .errors import ConfigError

BUNDLED_IDL = Path(__file__).resolve().parent / "xeris_stake_idl.json"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "xeris" / "wallet.toml"

CONFIG_ENV = "XERIS_WALLET_CONFIG"
ENV_KEYS = {
    "XERIS_RPC_URL": "rpc_url",
    "XERIS_FAUCET_URL": "faucet_url",
    "XERIS_COMMITMENT": "commitment",
    "XERIS_STAKE_PROGRAM_ID": "stake_program_id",
}

_FLOAT_KEYS = {"confirm_timeout", "poll_interval", "http_timeout"}


@dataclass(frozen=True)
class WalletConfig:
    """Resolved values shared by every command."""

    rpc_url: str = DEFAULT_RPC_URL
    faucet_url: str | None = None
    commitment: str = DEFAULT_COMMITMENT
    confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    stake_program_id: str | None = None
    idl_path: Path = BUNDLED_IDL

    @property
    def faucet_base(self) -> str:
        """The airdrop endpoint is served by the node's HTTP port unless overridden."""
        return (self.faucet_url or self.rpc_url).rstrip("/")


def _clean(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        import tomllib  # Python 3.11+
    except ImportError:  # pragma: no cover
        import tomli as tomllib  # type: ignore
    try:
        return tomllib.loads(path.read_text())
    except OSError as exc:
        raise ConfigError(str(path), exc.strerror or str(exc)) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(path), str(exc)) from exc


def _config_path(explicit: str | None, env: Mapping[str, str]) -> tuple[Path | None, bool]:
    """Return the config file to read and whether it was asked for explicitly."""
    if explicit:
        return Path(explicit).expanduser(), True
    from_env = _clean(env.get(CONFIG_ENV))
    if from_env:
        return Path(from_env).expanduser(), True
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH, False
    return None, False


def _file_values(path: Path) -> dict[str, Any]:
    data = _load_toml(path)
    table = data.get("wallet", {})
    if not isinstance(table, dict):
        raise ConfigError(str(path), "[wallet] must be a table")
    known = {f.name for f in fields(WalletConfig)}
    values: dict[str, Any] = {}
    for key, raw in table.items():
        if key not in known:
            raise ConfigError(str(path), f"unknown key wallet.{key}")
        if key in _FLOAT_KEYS:
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ConfigError(str(path), f"wallet.{key} must be a number")
            values[key] = float(raw)
        elif key == "idl_path":
            if not _clean(raw):
                raise ConfigError(str(path), "wallet.idl_path must be a non-empty string")
            candidate = Path(raw).expanduser()
            if not candidate.is_absolute():
                candidate = (path.resolve().parent / candidate).resolve()
            values[key] = candidate
        else:
            text = _clean(raw)
            if text is None:
                raise ConfigError(str(path), f"wallet.{key} must be a non-empty string")
            values[key] = text
    return values


def _validate(config: WalletConfig, source: str | None) -> WalletConfig:
    if config.commitment not in ALLOWED_COMMITMENTS:
        raise ConfigError(
            source,
            f"commitment must be one of {', '.join(ALLOWED_COMMITMENTS)}, got {config.commitment!r}",
        )
    for name in sorted(_FLOAT_KEYS):
        if getattr(config, name) <= 0:
            raise ConfigError(source, f"{name} must be > 0")
    return config


def resolve_config(
    config_path: str | None = None,
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> WalletConfig:
    """Merge defaults, config file, environment and CLI overrides (later wins)."""

    env = os.environ if env is None else env
    config = WalletConfig()

    path, explicit = _config_path(config_path, env)
    source = str(path) if path is not None else None
    if path is not None:
        if explicit and not path.exists():
            raise ConfigError(str(path), "file not found")
        config = replace(config, **_file_values(path))

    from_env = {field: _clean(env.get(var)) for var, field in ENV_KEYS.items()}
    config = replace(config, **{k: v for k, v in from_env.items() if v is not None})

    if overrides:
        config = replace(config, **{k: v for k, v in overrides.items() if v is not None})

    return _validate(config, source)

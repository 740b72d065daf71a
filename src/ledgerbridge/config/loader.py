"""Configuration loading: TOML files, .env, env var overrides, merge logic.

Discovery order (later overrides earlier):
    1. Built-in defaults (Pydantic model defaults)
    2. User config: ``~/.config/ledgerbridge/config.toml``
    3. Project-local config: ``./ledgerbridge.toml``
    4. ``$LEDGERBRIDGE_CONFIG`` environment variable (explicit path)
    5. Explicit path passed to ``load_config``
    6. Network selector from the environment (``$CHAIN_ENV`` by default)
    7. Programmatic overrides (passed to ``load_config``)

Secrets are never read from TOML defaults: ``model.api_key_env`` and
``chain.private_key_env`` name environment variables that are resolved
after validation when no explicit value was given. A ``.env`` file in
the working directory is loaded first; it never replaces variables that
are already set.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ledgerbridge.core.errors import ConfigError

from .schema import ChainConfig, LedgerBridgeConfig


def _user_config_path() -> Path:
    """Return XDG-compliant user config path."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "ledgerbridge" / "config.toml"


def _project_config_path() -> Path:
    """Return project-local config path."""
    return Path.cwd() / "ledgerbridge.toml"


def _discover_config_files() -> list[Path]:
    """Return config files in merge order (first = lowest priority)."""
    paths: list[Path] = []

    user = _user_config_path()
    if user.is_file():
        paths.append(user)

    project = _project_config_path()
    if project.is_file():
        paths.append(project)

    env_path = os.environ.get("LEDGERBRIDGE_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.is_file():
            msg = f"LEDGERBRIDGE_CONFIG points to non-existent file: {env_path}"
            raise ConfigError(msg)
        paths.append(p)

    return paths


def _read_toml(path: Path) -> dict[str, Any]:
    """Read and parse a TOML file."""
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override wins on conflicts."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _network_from_env(merged: dict[str, Any]) -> dict[str, Any]:
    """Apply the network selector env var named by ``chain.network_env``."""
    chain = merged.get("chain", {})
    env_name = chain.get("network_env", ChainConfig().network_env)
    value = os.environ.get(env_name)
    if not value:
        return merged
    return _deep_merge(merged, {"chain": {"network": value.strip().lower()}})


def _resolve_secrets(config: LedgerBridgeConfig) -> None:
    """Resolve API key and signing key from environment variables (in-place)."""
    if config.model.api_key is None and config.model.api_key_env:
        config.model.api_key = os.environ.get(config.model.api_key_env) or None
    if config.chain.private_key is None and config.chain.private_key_env:
        config.chain.private_key = os.environ.get(config.chain.private_key_env) or None


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    dotenv: bool = True,
) -> LedgerBridgeConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file path (highest file priority).
        overrides: Dict of overrides merged last (highest overall priority).
        dotenv: Load ``./.env`` into the environment first.

    Returns:
        Validated LedgerBridgeConfig instance.

    Raises:
        ConfigError: On invalid TOML, missing files, or validation failure.
    """
    if dotenv:
        load_dotenv(Path.cwd() / ".env", override=False)

    merged: dict[str, Any] = {}

    files = _discover_config_files()
    if path is not None:
        p = Path(path)
        if not p.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        files.append(p)

    for config_file in files:
        merged = _deep_merge(merged, _read_toml(config_file))

    merged = _network_from_env(merged)

    if overrides:
        merged = _deep_merge(merged, overrides)

    try:
        config = LedgerBridgeConfig.model_validate(merged)
    except Exception as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e

    _resolve_secrets(config)
    return config


def require_api_key(config: LedgerBridgeConfig) -> str:
    """Return the model API key or raise :class:`ConfigError`."""
    if not config.model.api_key:
        msg = f"{config.model.api_key_env} is not set"
        raise ConfigError(msg)
    return config.model.api_key

"""Configuration management for askai.

Loads user settings from ~/.config/askai/config.cfg, merges values from an
optional .env file, and applies ASKAI_* environment overrides.
Also resolves the fixed per-user paths used by the cache and the daemon.
"""

import configparser
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from askai.errors import ConfigurationError

CONFIG_DIR_ENV = "ASKAI_CONFIG_DIR"

# Provider name -> config key holding its API key
API_KEY_MAP = {
    "mistralai": "mistral_api_key",
    "gemini-api": "gemini_api_key",
    "deepinfra": "deepinfra_api_token",
}

DEFAULT_MODELS = {
    "mistralai": "codestral-2501",
    "gemini-api": "gemini-2.0-flash",
    "deepinfra": "Qwen/Qwen2.5-Coder-32B-Instruct",
}

ENV_OVERRIDES = {
    "ASKAI_PROVIDER": "default_provider",
    "ASKAI_MAX_PARALLEL": "max_parallel_jobs",
    "ASKAI_CACHE_TTL_DAYS": "cache_ttl_days",
    "ASKAI_CACHE_MAX_ENTRIES": "cache_max_entries",
    "MISTRAL_API_KEY": "mistral_api_key",
    "GEMINI_API_KEY": "gemini_api_key",
    "DEEPINFRA_API_TOKEN": "deepinfra_api_token",
}


@dataclass
class Settings:
    default_provider: str = "gemini"
    max_parallel_jobs: int = 4
    cache_ttl_days: int = 7
    cache_max_entries: int = 1000
    temperature: float = 0.2
    timeout: int = 30
    models: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MODELS))
    api_keys: Dict[str, str] = field(default_factory=dict)

    def api_key_for(self, provider: str) -> str:
        return self.api_keys.get(provider.lower(), "")

    def model_for(self, provider: str) -> str:
        return self.models.get(provider.lower(), "")


def get_config_dir() -> Path:
    """Return the per-user askai directory (not created here)."""
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    try:
        home = Path.home()
    except RuntimeError as e:
        raise ConfigurationError(f"Could not find home directory: {e}") from e
    return home / ".config" / "askai"


def get_config_path() -> Path:
    return get_config_dir() / "config.cfg"


def get_cache_path() -> Path:
    return get_config_dir() / "cache.json"


def get_socket_path() -> Path:
    return get_config_dir() / "daemon.sock"


def get_pid_path() -> Path:
    return get_config_dir() / "daemon.pid"


def get_log_path() -> Path:
    return get_config_dir() / "daemon.log"


def load_raw_config(
    path: Optional[Path] = None,
    env_path: Optional[Path] = None,
) -> Dict[str, str]:
    """
    Load configuration values from the config file and optional .env file.

    The .env file is read first so that config.cfg wins on conflicts.
    Values are returned with lowercase keys for convenience.
    """
    path = path or get_config_path()
    env_path = env_path or path.parent / ".env"
    data: Dict[str, str] = {}

    if env_path.exists():
        data.update(
            {k.lower(): v for k, v in dotenv_values(env_path).items() if v is not None}
        )

    if path.exists():
        cfg = configparser.ConfigParser()
        try:
            cfg.read(path)
        except configparser.Error as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e
        if "DEFAULT" in cfg:
            data.update({k.lower(): v for k, v in cfg["DEFAULT"].items()})
        if "API_KEYS" in cfg:
            data.update({k.lower(): v for k, v in cfg["API_KEYS"].items()})

    return data


def _apply_env_overrides(raw: Dict[str, str]) -> Dict[str, str]:
    merged = dict(raw)
    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None and value.strip() != "":
            merged[key] = value.strip()
    return merged


def _get_int(raw: Dict[str, str], key: str, default: int) -> int:
    value = raw.get(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Setting '{key}' must be a number, got {value!r}") from e
    if number < 1:
        raise ConfigurationError(f"Setting '{key}' must be positive, got {number}")
    return number


def get_settings(raw: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build Settings from raw configuration values.

    Environment variables override file values. Raises ConfigurationError
    for values that cannot be parsed.
    """
    raw = _apply_env_overrides(load_raw_config() if raw is None else raw)

    models = dict(DEFAULT_MODELS)
    for provider in DEFAULT_MODELS:
        model = raw.get(f"{provider.replace('-', '_')}_model", "").strip()
        if model:
            models[provider] = model

    api_keys = {}
    for provider, key_name in API_KEY_MAP.items():
        api_key = raw.get(key_name, "").strip()
        if api_key:
            api_keys[provider] = api_key

    try:
        temperature = float(raw.get("temperature", 0.2) or 0.2)
    except ValueError as e:
        raise ConfigurationError(f"Setting 'temperature' must be a number: {e}") from e

    return Settings(
        default_provider=raw.get("default_provider", "gemini").strip().lower() or "gemini",
        max_parallel_jobs=_get_int(raw, "max_parallel_jobs", 4),
        cache_ttl_days=_get_int(raw, "cache_ttl_days", 7),
        cache_max_entries=_get_int(raw, "cache_max_entries", 1000),
        temperature=temperature,
        timeout=_get_int(raw, "timeout", 30),
        models=models,
        api_keys=api_keys,
    )

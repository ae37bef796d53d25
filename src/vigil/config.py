"""Centralized settings: YAML config + env var overrides.

Priority: env var > YAML file > default.
Env vars use the VIGIL_{SETTING} convention (e.g. VIGIL_STORE=json).
YAML file default: ~/.vigil/config.yaml (override with VIGIL_CONFIG).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

_TRUTHY = {"1", "true", "on", "yes"}
_FALSY = {"0", "false", "off", "no"}
_DEFAULT_PATH = "~/.vigil/config.yaml"

_STORE_BACKENDS = ("sqlite", "json")

# setting name -> env var
_ENV_KEYS = {
    "state_dir": "VIGIL_STATE_DIR",
    "store_backend": "VIGIL_STORE",
    "storage_retries": "VIGIL_STORAGE_RETRIES",
    "allow_type_change": "VIGIL_ALLOW_TYPE_CHANGE",
}


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Coerce a YAML/env value to the type of the dataclass default."""
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        val = str(raw).lower()
        if val in _TRUTHY:
            return True
        if val in _FALSY:
            return False
        raise ValueError(f"Invalid boolean for {name}: {raw!r}.")
    if isinstance(default, int):
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ValueError(
                f"Invalid integer for {name}: {raw!r}. Expected a number."
            ) from None
    return str(raw)


@dataclass
class VigilConfig:
    # Where stores keep their files (conditions.db / conditions.json, streams.yaml)
    state_dir: str = "~/.vigil"
    # "sqlite" (default) | "json"
    store_backend: str = "sqlite"
    # Attempts per store operation before StorageUnavailable
    storage_retries: int = 3
    # Let update() switch a condition to a different type
    allow_type_change: bool = False

    def __post_init__(self) -> None:
        if self.store_backend not in _STORE_BACKENDS:
            raise ValueError(
                f"Unknown store backend: {self.store_backend!r}. Available: {list(_STORE_BACKENDS)}."
            )
        if not 1 <= self.storage_retries <= 10:
            raise ValueError(f"storage_retries={self.storage_retries} must be between 1 and 10.")

    @classmethod
    def load(cls, path: Path | None = None) -> VigilConfig:
        """Load settings from YAML file, then override with env vars."""
        file_path = path or Path(os.environ.get("VIGIL_CONFIG", _DEFAULT_PATH)).expanduser()
        file_values: dict[str, Any] = {}

        if file_path.exists():
            raw = yaml.safe_load(file_path.read_text()) or {}
            if isinstance(raw, dict):
                file_values = raw

        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            name = f.name
            env_key = _ENV_KEYS[name]
            if env_key in os.environ:
                kwargs[name] = _coerce(name, os.environ[env_key], f.default)
            elif name in file_values:
                kwargs[name] = _coerce(name, file_values[name], f.default)
            # else: use dataclass default

        return cls(**kwargs)

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir).expanduser()

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# Singleton
_config: VigilConfig | None = None


def get_config(path: Path | None = None) -> VigilConfig:
    """Get the singleton VigilConfig instance."""
    global _config
    if _config is None:
        _config = VigilConfig.load(path)
    return _config


def reset_config() -> None:
    """Reset for testing."""
    global _config
    _config = None

"""
Coin flip configuration.

This file defines a typed configuration object and helpers for:
- Server secret size (bytes of entropy behind each commitment)
- Default client seed size for the "randomize" action
- History bound (how many resolved flips the ledger keeps)
- Nonce starting value

It provides:
- A dataclass-based config with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML file
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict

import yaml

from coinflip.constants import (DEFAULT_CLIENT_SEED_BYTES,
                                DEFAULT_HISTORY_SIZE, DEFAULT_NONCE_START,
                                DEFAULT_SECRET_BYTES, MIN_SECRET_BYTES)


@dataclass
class FlipConfig:
    """
    secret_bytes: random bytes per server secret (hex-encoded before hashing)
    client_seed_bytes: random bytes for a generated client seed
    history_size: max resolved flips kept by the history ledger
    nonce_start: nonce before the first flip; the first flip uses start + 1
    """

    secret_bytes: int = DEFAULT_SECRET_BYTES
    client_seed_bytes: int = DEFAULT_CLIENT_SEED_BYTES
    history_size: int = DEFAULT_HISTORY_SIZE
    nonce_start: int = DEFAULT_NONCE_START

    def validate(self) -> None:
        for f_name in ("secret_bytes", "client_seed_bytes", "history_size", "nonce_start"):
            v = getattr(self, f_name)
            if isinstance(v, bool) or not isinstance(v, int):
                raise ValueError(f"{f_name} must be an integer")
        if self.secret_bytes < MIN_SECRET_BYTES:
            raise ValueError(f"secret_bytes must be >= {MIN_SECRET_BYTES}")
        if self.client_seed_bytes < 1:
            raise ValueError("client_seed_bytes must be >= 1")
        if self.history_size < 1:
            raise ValueError("history_size must be >= 1")
        if self.nonce_start < 0:
            raise ValueError("nonce_start must be >= 0")

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "COINFLIP_") -> "FlipConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys:
          - COINFLIP_SECRET_BYTES=32
          - COINFLIP_CLIENT_SEED_BYTES=16
          - COINFLIP_HISTORY_SIZE=12
          - COINFLIP_NONCE_START=0
        """

        def _get(name: str, default: int) -> int:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        cfg = FlipConfig(
            secret_bytes=_get("SECRET_BYTES", DEFAULT_SECRET_BYTES),
            client_seed_bytes=_get("CLIENT_SEED_BYTES", DEFAULT_CLIENT_SEED_BYTES),
            history_size=_get("HISTORY_SIZE", DEFAULT_HISTORY_SIZE),
            nonce_start=_get("NONCE_START", DEFAULT_NONCE_START),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "FlipConfig":
        """
        Load configuration from a JSON or YAML file. Example (YAML):

            secret_bytes: 32
            client_seed_bytes: 16
            history_size: 12
            nonce_start: 0
        """
        text = _read_text(path)
        data = _parse_json_or_yaml(text, path)
        if not isinstance(data, dict):
            raise ValueError(f"{path!r} must contain a mapping at the top level")

        unknown = set(data) - {"secret_bytes", "client_seed_bytes", "history_size", "nonce_start"}
        if unknown:
            raise ValueError(f"unknown config keys in {path!r}: {sorted(unknown)}")

        cfg = FlipConfig(
            secret_bytes=data.get("secret_bytes", DEFAULT_SECRET_BYTES),
            client_seed_bytes=data.get("client_seed_bytes", DEFAULT_CLIENT_SEED_BYTES),
            history_size=data.get("history_size", DEFAULT_HISTORY_SIZE),
            nonce_start=data.get("nonce_start", DEFAULT_NONCE_START),
        )
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Any:
    # First try JSON
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValueError(
            f"Failed to parse {path_hint!r} as JSON or YAML. Original error: {e}"
        ) from e


DEFAULT: FlipConfig = FlipConfig()


__all__ = [
    "FlipConfig",
    "DEFAULT",
]

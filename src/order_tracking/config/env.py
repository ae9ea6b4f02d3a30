# src/order_tracking/config/env.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from dotenv import dotenv_values, find_dotenv, load_dotenv

from order_tracking.errors import ConfigError
from order_tracking.models import CarrierCredentials

# Only the platform token is mandatory; carrier keys merely enable live calls.
REQUIRED_KEYS: Tuple[str, ...] = ("SHOPIFY_ACCESS_TOKEN",)

_TRUTHY = {"1", "true", "yes", "on"}


def _nearest_dotenv(start: Optional[Path]) -> Optional[Path]:
    if start is None:
        found = find_dotenv(filename=".env", usecwd=True)
        return Path(found) if found else None
    start = Path(start).resolve()
    for folder in (start, *start.parents):
        candidate = folder / ".env"
        if candidate.is_file():
            return candidate
    return None


def load_project_dotenv(start: Optional[Path] = None, *, override: bool = False) -> Optional[Path]:
    """
    Load the nearest `.env` above `start` (default: CWD) into os.environ.
    Existing variables win unless `override=True`. Returns the file used, or None.
    """
    path = _nearest_dotenv(start)
    if path is None:
        return None
    load_dotenv(dotenv_path=path, override=override)
    return path.resolve()


def env(name: str, *, default: Optional[str] = None, required: bool = False, cast: Optional[Callable] = None):
    """
    os.getenv with a `required` switch (KeyError when unset) and an optional
    `cast` whose errors propagate.
    """
    raw = os.getenv(name)
    if raw is None:
        if required:
            raise KeyError(name)
        return default
    return cast(raw) if cast is not None else raw


def env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in _TRUTHY


def load_env(
    dotenv_path: Optional[Path] = None,
    *,
    override: bool = False,
    required_keys: Tuple[str, ...] = (),
    strict: bool = False,
) -> Dict[str, str]:
    """
    Push a .env file into the process environment and return what the file held.

    An explicit `dotenv_path` that does not exist loads nothing; no path at
    all falls back to the nearest project `.env`. With `strict=True` every
    name in `required_keys` must be non-empty afterwards, else ConfigError.
    """
    if dotenv_path is not None:
        path: Optional[Path] = Path(dotenv_path) if Path(dotenv_path).is_file() else None
        if path is not None:
            load_dotenv(dotenv_path=path, override=override)
    else:
        path = load_project_dotenv(override=override)

    loaded = {k: v for k, v in dotenv_values(path).items() if v is not None} if path else {}

    if strict:
        missing = [k for k in required_keys if not os.getenv(k)]
        if missing:
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")
    return loaded


@dataclass(frozen=True)
class AppConfig:
    SHOPIFY_SHOP_DOMAIN: str = ""
    SHOPIFY_ACCESS_TOKEN: str = ""
    SHOPIFY_API_VERSION: str = "2023-10"
    DATABASE_URL: str = "sqlite:///order_tracking.sqlite"
    CARRIER_TIMEOUT: float = 10.0
    ENHANCE_ALL_FULFILLMENTS: bool = False
    UPS_API_KEY: str = ""
    FEDEX_API_KEY: str = ""
    FEDEX_SECRET_KEY: str = ""
    USPS_USER_ID: str = ""
    DHL_API_KEY: str = ""

    @property
    def carrier_credentials(self) -> CarrierCredentials:
        return CarrierCredentials(
            ups_api_key=self.UPS_API_KEY,
            fedex_api_key=self.FEDEX_API_KEY,
            fedex_secret_key=self.FEDEX_SECRET_KEY,
            usps_user_id=self.USPS_USER_ID,
            dhl_api_key=self.DHL_API_KEY,
        )


def _read(field_name: str, default):
    """Typed read of one AppConfig field; blank values keep the default."""
    if isinstance(default, bool):
        return env_bool(field_name, default)
    raw = (os.getenv(field_name) or "").strip()
    if not raw:
        return default
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError as e:
            raise ConfigError(f"{field_name} must be a number, got {raw!r}") from e
    return raw


def get_app_env(dotenv_path: Path | str | None = ".env", *, strict: bool = False) -> AppConfig:
    """
    Load `.env` (process variables win) and build an AppConfig.

    `dotenv_path=None` searches upward from the CWD. `strict=True` requires
    REQUIRED_KEYS to be set.
    """
    load_env(
        Path(dotenv_path) if dotenv_path else None,
        required_keys=REQUIRED_KEYS,
        strict=strict,
    )
    values = {f.name: _read(f.name, f.default) for f in fields(AppConfig)}
    return AppConfig(**values)


__all__ = [
    "REQUIRED_KEYS",
    "load_project_dotenv",
    "load_env",
    "env",
    "env_bool",
    "AppConfig",
    "get_app_env",
]

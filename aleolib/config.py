"""Runtime configuration profiles for aleolib."""
from __future__ import annotations

import os
from typing import Dict, Optional

PROFILE = os.getenv("ALEOLIB_PROFILE", "default")

# Node API caps /blocks requests at 50 heights.
MAX_BLOCK_PAGE_SIZE = 50

PROFILES: Dict[str, Dict[str, str]] = {
    "default": {
        "ALEOLIB_HOST": "https://api.explorer.aleo.org/v1",
        "ALEOLIB_NETWORK": "testnet3",
        "ALEOLIB_REQUEST_TIMEOUT": "30",
        "ALEOLIB_SCAN_TIMEOUT": "0",
        "ALEOLIB_MAX_CONCURRENCY": "4",
        "ALEOLIB_BLOCK_PAGE_SIZE": "50",
        "ALEOLIB_VERBOSE": "0",
        "ALEOLIB_QUIET": "0",
    },
    "local": {
        "ALEOLIB_HOST": "http://localhost:3030",
        "ALEOLIB_NETWORK": "testnet3",
        "ALEOLIB_REQUEST_TIMEOUT": "10",
        "ALEOLIB_SCAN_TIMEOUT": "0",
        "ALEOLIB_MAX_CONCURRENCY": "8",
        "ALEOLIB_BLOCK_PAGE_SIZE": "50",
        "ALEOLIB_VERBOSE": "1",
        "ALEOLIB_QUIET": "0",
    },
}


def apply_profile() -> None:
    profile = os.getenv("ALEOLIB_PROFILE", PROFILE)
    if not profile:
        return
    settings = PROFILES.get(profile)
    if not settings:
        return
    for key, value in settings.items():
        os.environ.setdefault(key, value)


def _default(name: str) -> Optional[str]:
    profile = os.getenv("ALEOLIB_PROFILE", PROFILE)
    settings = PROFILES.get(profile) or PROFILES["default"]
    return settings.get(name, PROFILES["default"].get(name))


def get_str(name: str) -> str:
    value = os.getenv(name)
    if value is None or value == "":
        value = _default(name) or ""
    return value


def get_int(name: str, minimum: int = 0) -> int:
    """Integer setting; unparseable or too-small values fall back to the profile default."""
    fallback = int(_default(name) or 0)
    try:
        value = int(get_str(name))
    except ValueError:
        return fallback
    if value < minimum:
        return fallback
    return value


def get_float(name: str) -> float:
    try:
        value = float(get_str(name))
    except ValueError:
        value = float(_default(name) or 0)
    return max(value, 0.0)


def get_flag(name: str) -> bool:
    return get_str(name).strip().lower() in ("1", "true", "yes", "on")


def default_host() -> str:
    return get_str("ALEOLIB_HOST").rstrip("/")


def default_network() -> str:
    return get_str("ALEOLIB_NETWORK").strip("/")


def request_timeout() -> float:
    return get_float("ALEOLIB_REQUEST_TIMEOUT") or 30.0


def scan_timeout() -> Optional[float]:
    value = get_float("ALEOLIB_SCAN_TIMEOUT")
    return value if value > 0 else None


def max_concurrency() -> int:
    return get_int("ALEOLIB_MAX_CONCURRENCY", minimum=1)


def block_page_size() -> int:
    return min(get_int("ALEOLIB_BLOCK_PAGE_SIZE", minimum=1), MAX_BLOCK_PAGE_SIZE)

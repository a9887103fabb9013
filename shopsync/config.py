"""Settings loading and validation.

Settings come from an optional TOML file, then environment overrides:

    [api]
    base_url = "http://localhost:3001/api/v1"
    timeout = 10.0

    [poll]
    initial_delay_ms = 1000
    max_delay_ms = 5000
    factor = 1.5
    timeout_ms = 120000

    [cache]
    max_size = 256

Environment: SHOPSYNC_API_BASE_URL, SHOPSYNC_REQUEST_TIMEOUT.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

from shopsync.poll import PollPolicy

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001/api/v1"
ENV_BASE_URL = "SHOPSYNC_API_BASE_URL"
ENV_TIMEOUT = "SHOPSYNC_REQUEST_TIMEOUT"


# ---------------------------------------------------------------------------
# Configuration error
# ---------------------------------------------------------------------------

class ConfigurationError(Exception):
    """Fatal configuration error(s)."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("\n".join(errors))


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Settings:
    api_base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 10.0
    poll: PollPolicy = field(default_factory=PollPolicy)
    cache_max_size: int = 256


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from TOML (optional) and environment overrides.

    All problems are collected and raised together as ConfigurationError.
    """
    env = os.environ if env is None else env
    raw: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigurationError([f"config file not found: {path}"]) from None
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError([f"invalid TOML in {path}: {e}"]) from e
        logger.debug("loaded settings from %s", path)

    errors: list[str] = []
    api = _table(raw, "api", errors)
    poll = _table(raw, "poll", errors)
    cache = _table(raw, "cache", errors)

    base_url = env.get(ENV_BASE_URL) or api.get("base_url", DEFAULT_BASE_URL)
    if not isinstance(base_url, str) or not base_url.startswith(("http://", "https://")):
        errors.append(f"api.base_url must be an http(s) URL, got {base_url!r}")

    timeout = _number(env.get(ENV_TIMEOUT, api.get("timeout", 10.0)), "api.timeout", errors)
    if timeout is not None and timeout <= 0:
        errors.append("api.timeout must be positive")

    max_size = cache.get("max_size", 256)
    if not isinstance(max_size, int) or isinstance(max_size, bool) or max_size < 1:
        errors.append(f"cache.max_size must be a positive integer, got {max_size!r}")

    policy = _poll_policy(poll, errors)

    if errors:
        raise ConfigurationError(errors)

    return Settings(
        api_base_url=str(base_url).rstrip("/"),
        request_timeout=float(timeout),  # type: ignore[arg-type]
        poll=policy,  # type: ignore[arg-type]
        cache_max_size=max_size,
    )


def _table(raw: Mapping[str, Any], name: str, errors: list[str]) -> Mapping[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, Mapping):
        errors.append(f"[{name}] must be a table")
        return {}
    return value


def _number(value: Any, name: str, errors: list[str]) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be a number, got {value!r}")
        return None


def _poll_policy(poll: Mapping[str, Any], errors: list[str]) -> PollPolicy | None:
    defaults = PollPolicy()
    values = {
        "initial_delay_ms": poll.get("initial_delay_ms", defaults.initial_delay_ms),
        "max_delay_ms": poll.get("max_delay_ms", defaults.max_delay_ms),
        "factor": poll.get("factor", defaults.factor),
        "timeout_ms": poll.get("timeout_ms", defaults.timeout_ms),
    }
    numbers = {k: _number(v, f"poll.{k}", errors) for k, v in values.items()}
    if any(v is None for v in numbers.values()):
        return None
    try:
        return PollPolicy(
            initial_delay=timedelta(milliseconds=numbers["initial_delay_ms"]),
            max_delay=timedelta(milliseconds=numbers["max_delay_ms"]),
            factor=numbers["factor"],  # type: ignore[arg-type]
            timeout=timedelta(milliseconds=numbers["timeout_ms"]),
        )
    except ValueError as e:
        errors.append(f"poll: {e}")
        return None

"""
Runtime settings for the results client.

Settings are resolved in three layers: built-in defaults, then environment
variables, then explicit overrides (usually CLI flags). Nothing is written
back to disk.

Environment:
    BINMAVE_SERVER: Base URL of the service.
    BINMAVE_TOKEN: Bearer access token.
    BINMAVE_TIMEOUT: Per-request timeout in seconds.
    BINMAVE_POLL_INTERVAL: Seconds between status refreshes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

from binmave.errors import ConfigError


DEFAULT_SERVER = "https://dib3oav9kh29t.cloudfront.net"
DEFAULT_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_PAGE_SIZE = 100

# Timeout used by the watch command for each status poll
WATCH_REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    """Resolved client settings.

    Attributes:
        server: Base URL of the service, without a trailing slash.
        token: Bearer access token, or None when not logged in.
        request_timeout: Per-request timeout in seconds.
        poll_interval: Seconds between status refreshes while running.
        page_size: Page size used when collecting all results.
    """

    server: str = DEFAULT_SERVER
    token: str | None = None
    request_timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    page_size: int = DEFAULT_PAGE_SIZE


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds (got {raw!r})") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive (got {raw!r})")
    return value


def load_settings(
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """Build Settings from the environment plus explicit overrides.

    Args:
        environ: Environment mapping. Defaults to os.environ.
        **overrides: Field values that win over the environment. None
            values are ignored so argparse defaults can be passed through.

    Returns:
        The resolved Settings.

    Raises:
        ConfigError: If a numeric variable cannot be parsed.
    """
    if environ is None:
        environ = os.environ

    settings = Settings(
        server=(environ.get("BINMAVE_SERVER") or DEFAULT_SERVER).rstrip("/"),
        token=environ.get("BINMAVE_TOKEN") or None,
        request_timeout=_env_float(environ, "BINMAVE_TIMEOUT", DEFAULT_TIMEOUT),
        poll_interval=_env_float(environ, "BINMAVE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
    )

    explicit = {key: value for key, value in overrides.items() if value is not None}
    unknown = set(explicit) - set(Settings.__dataclass_fields__)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    if "server" in explicit:
        explicit["server"] = str(explicit["server"]).rstrip("/")
    return replace(settings, **explicit)

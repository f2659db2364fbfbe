"""
Runtime configuration.

Resolution order for every setting:
    command line flag  >  environment variable  >  default below
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0

ENV_BASE_URL = "COURSEDESK_API_URL"
ENV_TIMEOUT = "COURSEDESK_TIMEOUT"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT


def parse_timeout(raw: str) -> Optional[float]:
    """A positive, finite number of seconds, or None."""
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) and value > 0 else None


def load_settings(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from explicit values, falling back to the environment.

    An unusable timeout, whether passed in or read from COURSEDESK_TIMEOUT,
    is ignored (with a warning) instead of reaching the HTTP layer.
    """
    env = os.environ if environ is None else environ

    url = (base_url or env.get(ENV_BASE_URL, "") or DEFAULT_BASE_URL).strip()
    url = url.rstrip("/")

    if timeout is not None and parse_timeout(str(timeout)) is None:
        logger.warning("Ignoring invalid timeout %r", timeout)
        timeout = None
    if timeout is None:
        raw = env.get(ENV_TIMEOUT, "").strip()
        if raw:
            timeout = parse_timeout(raw)
            if timeout is None:
                logger.warning("Ignoring invalid %s=%r", ENV_TIMEOUT, raw)
    if timeout is None:
        timeout = DEFAULT_TIMEOUT

    return Settings(base_url=url, timeout=timeout)


def setup_logging(verbose: bool = False) -> None:
    """
    Route log records through rich, on stderr so they never mix with
    command output.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )
    # urllib3 is chatty at DEBUG and only repeats what the gateway logs
    logging.getLogger("urllib3").setLevel(logging.WARNING)

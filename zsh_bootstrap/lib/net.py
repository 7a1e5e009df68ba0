from __future__ import annotations

import logging
from typing import Callable

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

PROBE_URL = "https://github.com"
PROBE_TIMEOUT_S = 5


def is_online(
    *,
    url: str = PROBE_URL,
    runner: Callable[..., CmdResult] = run_cmd,
    dry_run: bool = False,
) -> bool:
    """Single HEAD request with a short connect timeout."""

    r = runner(
        ["curl", "-s", "--head", "--connect-timeout", str(PROBE_TIMEOUT_S), url],
        check=False,
        dry_run=dry_run,
        timeout=PROBE_TIMEOUT_S * 3,
    )
    if not r.ok:
        logger.debug("Connectivity probe to %s failed (%s)", url, r.returncode)
    return r.ok

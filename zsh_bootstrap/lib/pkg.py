from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from .platforms import OSIdentity, PackageManagerUnavailableError

if TYPE_CHECKING:
    from ..context import BootstrapCtx

logger = logging.getLogger(__name__)

HOMEBREW_INSTALLER = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
HOMEBREW_PREFIXES = ("/opt/homebrew/bin", "/usr/local/bin")


def install_packages(ctx: "BootstrapCtx", packages: Sequence[str]) -> None:
    if not packages:
        return
    ctx.refresh_package_index()
    ctx.run(ctx.caps.install_cmd(*packages))


def export_homebrew_path(environ=os.environ) -> Optional[str]:
    """Put brew's bin dir on PATH for this process, like ``brew shellenv``."""

    for prefix in HOMEBREW_PREFIXES:
        if (Path(prefix) / "brew").exists():
            parts = environ.get("PATH", "").split(os.pathsep)
            if prefix not in parts:
                environ["PATH"] = os.pathsep.join([prefix, *[p for p in parts if p]])
            return prefix
    return None


def ensure_package_manager(ctx: "BootstrapCtx") -> Optional[bool]:
    """Hard prerequisite for every install that follows.

    Returns True if Homebrew was installed by this run, False if it was
    already there, None on Linux where the package manager is only verified.
    Raises PackageManagerUnavailableError when it cannot be made available.
    """

    pm = ctx.caps.package_manager
    if ctx.identity is not OSIdentity.MACOS:
        if not ctx.has_command(pm):
            raise PackageManagerUnavailableError(f"{pm} not found; cannot install packages")
        return None

    export_homebrew_path()
    if ctx.has_command(pm):
        return False

    logger.info("Installing Homebrew (this may take several minutes)...")
    r = ctx.run(
        ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALLER})"'],
        check=False,
        env={"NONINTERACTIVE": "1"},
        interactive=True,
    )
    if not r.ok:
        raise PackageManagerUnavailableError("Homebrew installation failed; cannot continue on macOS")

    export_homebrew_path()
    if not ctx.dry_run and not ctx.has_command(pm):
        raise PackageManagerUnavailableError("Homebrew installed but not found in PATH")
    return True

from __future__ import annotations

import logging
import os
import pwd
from typing import Optional

from ..context import BootstrapCtx
from ..report import Bucket
from .base import BaseCheck

logger = logging.getLogger(__name__)


def current_login_shell() -> str:
    return pwd.getpwuid(os.getuid()).pw_shell


class DefaultShellCheck(BaseCheck):
    check_id = "default-shell"
    label = "Default shell → Zsh"
    section = "Installing Core Packages"
    bucket = Bucket.CONFIGURED
    requires = ("package:zsh",)

    def _zsh(self, ctx: BootstrapCtx) -> Optional[str]:
        return ctx.which("zsh")

    def applies(self, ctx: BootstrapCtx) -> bool:
        if ctx.caps.can_change_shell:
            return True
        zsh = self._zsh(ctx)
        if zsh and not self.is_satisfied(ctx):
            logger.info("Default shell is not Zsh. Run: chsh -s %s", zsh)
        return False

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        zsh = self._zsh(ctx)
        if not zsh:
            return False
        return os.path.realpath(current_login_shell()) == os.path.realpath(zsh)

    def precondition(self, ctx: BootstrapCtx) -> Optional[str]:
        if not self._zsh(ctx):
            return "zsh not found in PATH"
        return None

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        ctx.run(["chsh", "-s", str(self._zsh(ctx))], interactive=True)
        return None


class FrameworkCheck(BaseCheck):
    """Oh My Zsh, installed unattended from its upstream script."""

    check_id = "framework"
    section = "Installing Oh My Zsh"
    requires = ("package:git", "package:zsh")

    def __init__(self, label: str, installer_url: str):
        self.label = label
        self.installer_url = installer_url

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        return ctx.framework_dir.is_dir()

    def precondition(self, ctx: BootstrapCtx) -> Optional[str]:
        for cmd in ("git", "zsh"):
            if not ctx.has_command(cmd):
                return f"requires {cmd}, which is not in PATH"
        return None

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        ctx.run(
            ["sh", "-c", f'curl -fsSL {self.installer_url} | sh -s -- --unattended'],
            env={"ZSH": str(ctx.framework_dir), "RUNZSH": "no", "CHSH": "no"},
            interactive=True,
        )
        return None

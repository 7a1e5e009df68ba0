from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..context import BootstrapCtx
from ..lib.pkg import install_packages
from ..lib.platforms import OSIdentity
from .base import BaseCheck, CheckFailed

logger = logging.getLogger(__name__)


class PackageCheck(BaseCheck):
    """Install a package unless one of its commands is already on PATH."""

    def __init__(
        self,
        name: str,
        *,
        label: Optional[str] = None,
        commands: Sequence[str] = (),
        names: Optional[Dict[str, str]] = None,
        section: str = "Installing CLI Tools",
    ):
        self.name = name
        self.check_id = f"package:{name}"
        self.label = label or name
        self.commands = tuple(commands) or (name,)
        self.names = dict(names or {})
        self.section = section

    @classmethod
    def from_entry(cls, entry: Dict[str, Any], *, section: str) -> "PackageCheck":
        return cls(
            str(entry["name"]),
            label=entry.get("label"),
            commands=[str(c) for c in entry.get("commands") or []],
            names=entry.get("names"),
            section=section,
        )

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        return ctx.has_command(*self.commands)

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        install_packages(ctx, [ctx.caps.package_name(self.name, self.names)])
        if not ctx.dry_run and not ctx.has_command(*self.commands):
            raise CheckFailed(f"installed but {'/'.join(self.commands)} not found in PATH")
        return None


class XcodeCltCheck(BaseCheck):
    check_id = "xcode-clt"
    label = "Xcode CLT"
    section = "Installing Xcode Command Line Tools"
    platforms = frozenset({OSIdentity.MACOS})

    TRIGGER = Path("/tmp/.com.apple.dt.CommandLineTools.installondemand.in-progress")
    _LABEL_RX = re.compile(r"Command Line Tools for Xcode-[0-9.]+")

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        return ctx.run(["xcode-select", "-p"], check=False, probe=True).ok

    def _find_package(self, listing: str) -> Optional[str]:
        m = self._LABEL_RX.search(listing)
        if m:
            return m.group(0)
        for line in listing.splitlines():
            if "*" in line and "Command Line" in line:
                return line.split("*", 1)[1].strip().removeprefix("Label:").strip()
        return None

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        if not ctx.dry_run:
            self.TRIGGER.touch()
        try:
            listing = ctx.run(["softwareupdate", "-l"], check=False, probe=True)
            package = self._find_package(listing.stdout + listing.stderr)
            if not package:
                raise CheckFailed("could not find Command Line Tools package; run: xcode-select --install")
            ctx.run(["softwareupdate", "-i", package, "--verbose"], interactive=True)
        finally:
            self.TRIGGER.unlink(missing_ok=True)
        return None


class InstallStep:
    def __init__(self, argv: Sequence[str], privileged: bool = False):
        self.argv = [str(a) for a in argv]
        self.privileged = privileged


class TerminalInstallCheck(BaseCheck):
    """Terminal emulator with a per-platform install recipe."""

    section = "Installing Terminal"

    def __init__(
        self,
        check_id: str,
        label: str,
        *,
        commands: Sequence[str],
        app_paths: Optional[Dict[str, str]] = None,
        recipes: Optional[Dict[OSIdentity, List[InstallStep]]] = None,
    ):
        self.check_id = check_id
        self.label = label
        self.commands = tuple(commands)
        self.app_paths = dict(app_paths or {})
        self.recipes = dict(recipes or {})
        self.section = f"Installing {label}"

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "TerminalInstallCheck":
        recipes: Dict[OSIdentity, List[InstallStep]] = {}
        for os_name, steps in (entry.get("install") or {}).items():
            recipes[OSIdentity(os_name)] = [
                InstallStep(s["argv"], bool(s.get("privileged", False))) for s in steps or []
            ]
        label = str(entry.get("label") or "terminal")
        return cls(
            str(entry.get("id") or label.lower()),
            label,
            commands=[str(c) for c in entry.get("commands") or [label.lower()]],
            app_paths=entry.get("app_paths"),
            recipes=recipes,
        )

    def applies(self, ctx: BootstrapCtx) -> bool:
        if ctx.identity not in self.recipes:
            logger.info("%s: manual install required on %s", self.label, ctx.identity.value)
            return False
        return True

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        if ctx.has_command(*self.commands):
            return True
        app = self.app_paths.get(ctx.identity.value)
        return bool(app) and Path(app).exists()

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        for step in self.recipes[ctx.identity]:
            argv = ctx.caps.privileged(step.argv) if step.privileged else step.argv
            ctx.run(argv)
        return None

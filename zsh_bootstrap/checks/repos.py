from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from ..context import BootstrapCtx
from ..lib.git import clone_repo
from .base import BaseCheck

logger = logging.getLogger(__name__)


class CloneCheck(BaseCheck):
    """Clone a theme or plugin into the framework's custom directory."""

    requires = ("package:git", "framework")

    def __init__(self, repo_id: str, label: str, url: str, dest: str, *, depth: Optional[int] = None, section: str = ""):
        self.check_id = f"repo:{repo_id}"
        self.label = label
        self.url = url
        self.dest = dest
        self.depth = depth
        self.section = section or "Installing Zsh Plugins"

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "CloneCheck":
        dest = str(entry["dest"])
        section = "Installing Zsh Themes" if "/themes/" in dest else "Installing Zsh Plugins"
        return cls(
            str(entry["id"]),
            str(entry.get("label") or entry["id"]),
            str(entry["url"]),
            dest,
            depth=entry.get("depth"),
            section=section,
        )

    def path_templates(self) -> Tuple[str, ...]:
        return (self.dest,)

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        return ctx.expand(self.dest).is_dir()

    def precondition(self, ctx: BootstrapCtx) -> Optional[str]:
        if not ctx.framework_dir.is_dir():
            return f"requires Oh My Zsh ({ctx.framework_dir} missing)"
        if not ctx.has_command("git"):
            return "requires git, which is not in PATH"
        return None

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        clone_repo(ctx, self.url, ctx.expand(self.dest), depth=self.depth)
        return None

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from ..context import BootstrapCtx
from ..lib.assets import install_fonts
from ..lib.platforms import OSIdentity
from ..report import Bucket
from .base import BaseCheck, CheckFailed

logger = logging.getLogger(__name__)


class FontsCheck(BaseCheck):
    check_id = "fonts"
    section = "Installing Fonts"

    def __init__(self, label: str, base_url: str, files: Sequence[str]):
        self.label = label
        self.base_url = base_url
        self.files = tuple(files)

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "FontsCheck":
        files = [str(f) for f in entry.get("files") or []]
        if not files or not entry.get("base_url"):
            raise ValueError("fonts needs base_url and files")
        return cls(str(entry.get("label") or "fonts"), str(entry["base_url"]), files)

    def missing(self, ctx: BootstrapCtx) -> list[str]:
        font_dir = ctx.font_dir
        return [f for f in self.files if not (font_dir / f).is_file()]

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        return not self.missing(ctx)

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        installed, failed = install_fonts(ctx, self.base_url, self.missing(ctx), ctx.font_dir)
        if failed:
            raise CheckFailed(f"failed to download {', '.join(failed)}")
        return f"{self.label} ({len(installed)})"


_GET_FONT = 'tell application "Terminal" to get font name of default settings'
_SET_FONT = """\
tell application "Terminal"
    set defaultSettings to default settings
    set font name of defaultSettings to "{family}"
    set font size of defaultSettings to {size}
end tell
"""


class TerminalFontCheck(BaseCheck):
    """Terminal.app default profile font (macOS)."""

    check_id = "terminal-font"
    section = "Configuring macOS Terminal Font"
    bucket = Bucket.CONFIGURED
    platforms = frozenset({OSIdentity.MACOS})
    requires = ("fonts",)

    def __init__(self, label: str, family: str, size: int, fonts: FontsCheck):
        self.label = label
        self.family = family
        self.size = int(size)
        self.fonts = fonts

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        r = ctx.run(["osascript", "-e", _GET_FONT], check=False, probe=True)
        return r.ok and r.stdout.strip() == self.family

    def precondition(self, ctx: BootstrapCtx) -> Optional[str]:
        missing = self.fonts.missing(ctx)
        if missing:
            return f"requires {self.fonts.label} ({', '.join(missing)} missing)"
        return None

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        ctx.run(["osascript"], input_text=_SET_FONT.format(family=self.family, size=self.size))
        return None

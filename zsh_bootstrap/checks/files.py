from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config import ConfigError
from ..context import BootstrapCtx
from ..lib.rcfile import BlockFragment, FileFragment, Fragment, ReplaceFragment, SettingFragment
from ..report import Bucket
from .base import BaseCheck, parse_platforms

logger = logging.getLogger(__name__)


def fragment_from_entry(entry: Dict[str, Any]) -> Fragment:
    """Build a fragment from its manifest entry.

    ``replace`` -> ReplaceFragment, ``key`` -> SettingFragment,
    ``content`` -> FileFragment, ``lines`` -> BlockFragment.
    """

    try:
        if "replace" in entry:
            r = entry["replace"]
            return ReplaceFragment(
                find=str(r["find"]),
                replace=str(r["with"]),
                present_if=tuple(str(p) for p in r.get("present_if") or ()),
            )
        if "key" in entry:
            return SettingFragment(
                key=str(entry["key"]),
                value=str(entry["value"]),
                separator=str(entry.get("separator", " = ")),
                comment=entry.get("comment"),
                section=entry.get("section"),
                override=bool(entry.get("override", False)),
            )
        if "content" in entry:
            return FileFragment(content=str(entry["content"]))
        lines = tuple(str(l) for l in entry.get("lines") or ())
        return BlockFragment(
            lines=lines,
            marker=str(entry.get("marker") or (lines[0] if lines else "")),
            comment=entry.get("comment"),
            equivalents=tuple(str(e) for e in entry.get("equivalents") or ()),
        )
    except (KeyError, ValueError) as e:
        raise ConfigError(f"invalid fragment {entry.get('id') or entry.get('label')}: {e}") from e


class FragmentCheck(BaseCheck):
    """One desired fragment of one host config file."""

    bucket = Bucket.CONFIGURED

    def __init__(
        self,
        check_id: str,
        label: str,
        path: str,
        fragment: Fragment,
        *,
        section: str = "",
        requires: Sequence[str] = (),
        platforms: Optional[Sequence[str]] = None,
        requires_paths: Sequence[str] = (),
        requires_commands: Sequence[str] = (),
        when_paths: Sequence[str] = (),
        when_commands: Sequence[str] = (),
    ):
        self.check_id = check_id
        self.label = label
        self.path = path
        self.fragment = fragment
        self.section = section
        self.requires = tuple(requires)
        self.platforms = parse_platforms(platforms)
        self.requires_paths = tuple(requires_paths)
        self.requires_commands = tuple(requires_commands)
        self.when_paths = tuple(when_paths)
        self.when_commands = tuple(when_commands)

    @classmethod
    def from_entry(cls, entry: Dict[str, Any], *, path: str, prefix: str, section: str) -> "FragmentCheck":
        frag_id = entry.get("id") or entry.get("key")
        if not frag_id:
            raise ConfigError(f"{prefix} fragment needs an id: {entry}")
        return cls(
            f"{prefix}:{frag_id}",
            str(entry.get("label") or frag_id),
            str(entry.get("path") or path),
            fragment_from_entry(entry),
            section=section,
            requires=[r if ":" in r or r in _GLOBAL_IDS else f"{prefix}:{r}" for r in entry.get("requires") or ()],
            platforms=entry.get("platforms"),
            requires_paths=entry.get("requires_paths") or (),
            requires_commands=entry.get("requires_commands") or (),
            when_paths=entry.get("when_paths") or (),
            when_commands=entry.get("when_commands") or (),
        )

    def path_templates(self) -> Tuple[str, ...]:
        return (self.path, *self.requires_paths, *self.when_paths)

    def document_path(self, ctx: BootstrapCtx) -> Path:
        return ctx.expand(self.path)

    def applies(self, ctx: BootstrapCtx) -> bool:
        if not super().applies(ctx):
            return False
        for p in self.when_paths:
            if not ctx.expand(p).exists():
                logger.info("%s: %s not found, not configuring", self.label, ctx.expand(p))
                return False
        if self.when_commands and not all(ctx.has_command(c) for c in self.when_commands):
            return False
        return True

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        return self.fragment.is_present(ctx.document(self.document_path(ctx)))

    def precondition(self, ctx: BootstrapCtx) -> Optional[str]:
        for p in self.requires_paths:
            if not ctx.expand(p).exists():
                return f"requires {ctx.expand(p)}, which is missing"
        for c in self.requires_commands:
            if not ctx.has_command(c):
                return f"requires {c}, which is not in PATH"
        return None

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        self.fragment.apply(ctx.document(self.document_path(ctx)))
        return None


# Check ids that fragment ``requires`` may name without a prefix.
_GLOBAL_IDS = {"framework", "fonts", "default-shell", "xcode-clt"}

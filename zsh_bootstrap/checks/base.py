from __future__ import annotations

from typing import FrozenSet, Iterable, Optional, Tuple

from ..context import BootstrapCtx
from ..lib.platforms import OSIdentity
from ..report import Bucket


class CheckFailed(RuntimeError):
    pass


def parse_platforms(raw: Optional[Iterable[str]]) -> Optional[FrozenSet[OSIdentity]]:
    if raw is None:
        return None
    return frozenset(OSIdentity(str(p).lower()) for p in raw)


class BaseCheck:
    """Defaults shared by the concrete checks.

    Subclasses implement ``is_satisfied`` and ``apply``; ``precondition``
    re-verifies artifacts that earlier checks were supposed to produce.
    """

    check_id: str = ""
    label: str = ""
    section: str = ""
    bucket: Bucket = Bucket.INSTALLED
    requires: Tuple[str, ...] = ()
    platforms: Optional[FrozenSet[OSIdentity]] = None

    def applies(self, ctx: BootstrapCtx) -> bool:
        return self.platforms is None or ctx.identity in self.platforms

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        raise NotImplementedError

    def precondition(self, ctx: BootstrapCtx) -> Optional[str]:
        return None

    def path_templates(self) -> Tuple[str, ...]:
        """Manifest paths this check expands at run time."""
        return ()

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.check_id}>"

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..context import BootstrapCtx

logger = logging.getLogger(__name__)


def clone_repo(ctx: "BootstrapCtx", url: str, dest: Path, *, depth: Optional[int] = None) -> None:
    argv = ["git", "clone"]
    if depth:
        argv += [f"--depth={int(depth)}"]
    argv += [url, str(dest)]
    ctx.run(argv)

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Sequence, Tuple
from urllib.parse import quote

if TYPE_CHECKING:
    from ..context import BootstrapCtx

logger = logging.getLogger(__name__)


def download_file(ctx: "BootstrapCtx", url: str, dest: Path, *, mode: int = 0o644) -> None:
    """Download to a temp name and rename, so a failed fetch leaves nothing behind."""

    tmp = dest.with_name(f".{dest.name}.part")
    r = ctx.run(["curl", "-fsSL", url, "--output", str(tmp)], check=False)
    if ctx.dry_run:
        return
    if not r.ok:
        tmp.unlink(missing_ok=True)
        raise RuntimeError(f"download failed ({r.returncode}): {url}")
    tmp.replace(dest)
    dest.chmod(mode)


def install_fonts(
    ctx: "BootstrapCtx", base_url: str, files: Sequence[str], font_dir: Path
) -> Tuple[List[str], List[str]]:
    """Fetch every missing font file. Returns (installed, failed) names."""

    if not ctx.dry_run:
        font_dir.mkdir(parents=True, exist_ok=True)

    installed: List[str] = []
    failed: List[str] = []
    for name in files:
        dest = font_dir / name
        if dest.exists():
            continue
        try:
            download_file(ctx, f"{base_url.rstrip('/')}/{quote(name)}", dest)
            installed.append(name)
        except RuntimeError as e:
            logger.error("Failed to download %s: %s", name, e)
            failed.append(name)

    if installed and ctx.caps.refresh_font_cache:
        ctx.run(["fc-cache", "-f"], check=False)
    return installed, failed

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Sequence

from .config import BootstrapConfig
from .lib.command import CmdResult, run_cmd
from .lib.platforms import Capabilities, OSIdentity
from .lib.rcfile import ConfigDocument

logger = logging.getLogger(__name__)


@dataclass
class BootstrapCtx:
    """Per-run state shared by every check."""

    caps: Capabilities
    cfg: BootstrapConfig
    home: Path = field(default_factory=Path.home)
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    dry_run: bool = False
    runner: Callable[..., CmdResult] = run_cmd
    which: Callable[[str], Optional[str]] = shutil.which
    documents: Dict[Path, ConfigDocument] = field(default_factory=dict)
    index_refreshed: bool = False

    @property
    def identity(self) -> OSIdentity:
        return self.caps.identity

    def _vars(self) -> Dict[str, str]:
        v = {"home": str(self.home)}
        v["xdg_config_home"] = self.env.get("XDG_CONFIG_HOME") or str(self.home / ".config")
        v["framework_dir"] = self.cfg.framework_dir.format(**v)
        v["zsh_custom"] = self.env.get("ZSH_CUSTOM") or self.cfg.framework_custom_dir.format(**v)
        v["font_dir"] = self.caps.font_dir.format(**v)
        v["terminal_config_dir"] = self.caps.terminal_config_dir.format(**v)
        return v

    def expand(self, template: str) -> Path:
        try:
            s = template.format(**self._vars())
        except (KeyError, IndexError) as e:
            raise ValueError(f"Unknown placeholder {e} in path {template!r}") from e
        if s.startswith("~"):
            s = str(self.home) + s[1:]
        return Path(s)

    @property
    def framework_dir(self) -> Path:
        return self.expand("{framework_dir}")

    @property
    def font_dir(self) -> Path:
        return self.expand("{font_dir}")

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
        probe: bool = False,
        interactive: bool = False,
    ) -> CmdResult:
        """Run a command for this host; read-only probes still run under dry-run.

        ``interactive`` commands keep the terminal (password prompts, installer
        progress) instead of having their output captured.
        """
        return self.runner(
            argv,
            check=check,
            env=env,
            input_text=input_text,
            dry_run=self.dry_run and not probe,
            capture=not interactive,
        )

    def has_command(self, *names: str) -> bool:
        return any(self.which(n) for n in names)

    def document(self, path: Path) -> ConfigDocument:
        """Config files are read once, on first use, so files created by
        earlier checks are picked up."""
        p = Path(path)
        if p not in self.documents:
            self.documents[p] = ConfigDocument(p)
        return self.documents[p]

    def refresh_package_index(self) -> None:
        if self.index_refreshed:
            return
        argv = self.caps.refresh_cmd()
        if argv:
            logger.info("Refreshing %s package index...", self.caps.package_manager)
            self.run(argv)
        self.index_refreshed = True

"""Shared test fixtures for zsh-bootstrap tests."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Set

import pytest

from zsh_bootstrap.config import load_config
from zsh_bootstrap.context import BootstrapCtx
from zsh_bootstrap.lib.command import CmdResult
from zsh_bootstrap.lib.platforms import OSIdentity, capabilities_for

ZSHRC_TEMPLATE = """\
export ZSH="$HOME/.oh-my-zsh"

ZSH_THEME="robbyrussell"

# HIST_STAMPS="mm/dd/yyyy"

plugins=(git)

source $ZSH/oh-my-zsh.sh
"""

# Package name -> command it puts on PATH, where they differ.
PACKAGE_COMMANDS = {"fd-find": "fdfind", "bat": "batcat"}


class FakeHost:
    """Simulated machine: records commands and applies their side effects."""

    def __init__(self, home: Path, commands: Optional[Set[str]] = None):
        self.home = home
        self.commands: Set[str] = set(commands or {"apt-get", "curl", "sudo", "sh", "bash"})
        self.login_shell = "/bin/bash"
        self.calls: List[List[str]] = []
        self.fail: Set[str] = set()
        self.interactive: List[List[str]] = []

    def which(self, name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.commands else None

    def run(self, argv, *, check=True, env=None, cwd=None, input_text=None, dry_run=False, timeout=None, capture=True):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        if not capture:
            self.interactive.append(argv)
        joined = " ".join(argv)
        rc = 1 if any(f in joined for f in self.fail) else 0
        if rc == 0 and not dry_run:
            self._effect(argv, env or {})
        if check and rc:
            raise RuntimeError(f"Command failed ({rc}): {joined}")
        return CmdResult(argv=argv, returncode=rc, stdout="", stderr="")

    def ran(self, *prefix: str) -> bool:
        n = len(prefix)
        return any(self._strip(c)[:n] == list(prefix) for c in self.calls)

    @staticmethod
    def _strip(argv: List[str]) -> List[str]:
        return argv[1:] if argv and argv[0] == "sudo" else argv

    def _effect(self, argv: List[str], env) -> None:
        a = self._strip(argv)
        if a[:2] in (["apt-get", "install"], ["dnf", "install"]) or a[:2] == ["brew", "install"]:
            for pkg in a[2:]:
                if not pkg.startswith("-"):
                    self.commands.add(PACKAGE_COMMANDS.get(pkg, pkg))
        elif a[:2] == ["git", "clone"]:
            Path(a[-1]).mkdir(parents=True)
        elif a[0] == "curl" and "--output" in a:
            Path(a[a.index("--output") + 1]).write_bytes(b"font")
        elif a[0] == "sh" and "ohmyzsh" in a[-1]:
            zsh_dir = Path(env["ZSH"])
            (zsh_dir / "custom" / "themes").mkdir(parents=True)
            (zsh_dir / "custom" / "plugins").mkdir(parents=True)
            zshrc = self.home / ".zshrc"
            if not zshrc.exists():
                zshrc.write_text(ZSHRC_TEMPLATE, encoding="utf-8")
        elif a[0] == "bash" and "ghostty" in a[-1]:
            self.commands.add("ghostty")
        elif a[0] == "chsh":
            self.login_shell = a[-1]


@pytest.fixture
def home(tmp_path) -> Path:
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def host(home, monkeypatch) -> FakeHost:
    h = FakeHost(home)
    monkeypatch.setattr("zsh_bootstrap.checks.shell.current_login_shell", lambda: h.login_shell)
    return h


@pytest.fixture
def make_ctx(home, host):
    """Factory: a fresh run context against the same simulated host."""

    def _make(identity: OSIdentity = OSIdentity.UBUNTU, cfg=None, dry_run: bool = False) -> BootstrapCtx:
        return BootstrapCtx(
            caps=capabilities_for(identity),
            cfg=cfg or load_config(),
            home=home,
            env={},
            dry_run=dry_run,
            runner=host.run,
            which=host.which,
        )

    return _make


@pytest.fixture
def ctx(make_ctx) -> BootstrapCtx:
    return make_ctx()

from __future__ import annotations

import enum
import logging
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = "/etc/os-release"


class OSIdentity(str, enum.Enum):
    FEDORA = "fedora"
    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    MACOS = "macos"


@dataclass(frozen=True)
class Capabilities:
    """Everything a check needs to know about the host platform."""

    identity: OSIdentity
    package_manager: str
    install_argv: Tuple[str, ...]
    refresh_argv: Tuple[str, ...] = ()
    needs_sudo: bool = True
    font_dir: str = "{home}/.local/share/fonts"
    terminal_config_dir: str = "{xdg_config_home}/ghostty"
    refresh_font_cache: bool = True
    can_change_shell: bool = True
    package_names: Dict[str, str] = field(default_factory=dict)

    def package_name(self, name: str, overrides: Optional[Dict[str, str]] = None) -> str:
        if overrides and self.identity.value in overrides:
            return str(overrides[self.identity.value])
        return self.package_names.get(name, name)

    def privileged(self, argv: Sequence[str]) -> list[str]:
        if self.needs_sudo and _euid() != 0:
            return ["sudo", *argv]
        return list(argv)

    def install_cmd(self, *packages: str) -> list[str]:
        return self.privileged([*self.install_argv, *packages])

    def refresh_cmd(self) -> list[str]:
        if not self.refresh_argv:
            return []
        return self.privileged(self.refresh_argv)


def _euid() -> int:
    geteuid = getattr(os, "geteuid", None)
    return geteuid() if geteuid else -1


_DEBIAN_FAMILY = dict(
    package_manager="apt-get",
    install_argv=("apt-get", "install", "-y"),
    refresh_argv=("apt-get", "update"),
    package_names={"fd": "fd-find"},
)

CAPABILITIES: Dict[OSIdentity, Capabilities] = {
    OSIdentity.FEDORA: Capabilities(
        identity=OSIdentity.FEDORA,
        package_manager="dnf",
        install_argv=("dnf", "install", "-y"),
    ),
    OSIdentity.UBUNTU: Capabilities(identity=OSIdentity.UBUNTU, **_DEBIAN_FAMILY),
    OSIdentity.DEBIAN: Capabilities(identity=OSIdentity.DEBIAN, **_DEBIAN_FAMILY),
    OSIdentity.MACOS: Capabilities(
        identity=OSIdentity.MACOS,
        package_manager="brew",
        install_argv=("brew", "install"),
        needs_sudo=False,
        font_dir="{home}/Library/Fonts",
        terminal_config_dir="{home}/Library/Application Support/com.mitchellh.ghostty",
        refresh_font_cache=False,
        can_change_shell=False,
    ),
}


class FatalPreconditionError(RuntimeError):
    """Aborts the whole run before any check is attempted."""

    exit_code = 1


class UnsupportedOSError(FatalPreconditionError):
    exit_code = 2


class NetworkUnavailableError(FatalPreconditionError):
    exit_code = 3


class PackageManagerUnavailableError(FatalPreconditionError):
    exit_code = 4


def parse_os_release(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        out[key.strip()] = value.strip().strip('"').strip("'")
    return out


def resolve_os_identity(
    *,
    system: Optional[str] = None,
    os_release_path: str = OS_RELEASE_PATH,
) -> OSIdentity:
    """Map host platform signals onto a supported OSIdentity.

    Linux distributions are matched on ``ID`` first, then on each ``ID_LIKE``
    token, so derivatives such as Pop!_OS resolve to their parent.
    """

    system = system if system is not None else platform.system()

    if system == "Darwin":
        return OSIdentity.MACOS

    if system != "Linux":
        raise UnsupportedOSError(f"Unsupported operating system: {system or 'unknown'}")

    p = Path(os_release_path)
    if not p.exists():
        raise UnsupportedOSError(f"Cannot identify Linux distribution: {os_release_path} missing")

    info = parse_os_release(p.read_text(encoding="utf-8", errors="ignore"))
    candidates = [info.get("ID", "")] + info.get("ID_LIKE", "").split()
    known = {o.value: o for o in OSIdentity if o is not OSIdentity.MACOS}
    for c in candidates:
        if c.lower() in known:
            identity = known[c.lower()]
            if c != candidates[0]:
                logger.info("Treating %s as %s (ID_LIKE)", candidates[0], identity.value)
            return identity

    raise UnsupportedOSError(f"Unsupported Linux distribution: {info.get('ID') or 'unknown'}")


def capabilities_for(identity: OSIdentity) -> Capabilities:
    return CAPABILITIES[identity]

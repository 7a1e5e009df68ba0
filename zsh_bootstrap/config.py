from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_MANIFEST = Path(__file__).resolve().parent / "manifests" / "default.yaml"


class ConfigError(ValueError):
    pass


def _list_of_mappings(raw: Any, where: str) -> List[Dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(i, dict) for i in raw):
        raise ConfigError(f"{where} must be a list of mappings")
    return list(raw)


def _mapping(raw: Any, where: str) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping")
    return raw


@dataclass(frozen=True)
class BootstrapConfig:
    raw: Dict[str, Any]

    @property
    def core_packages(self) -> List[Dict[str, Any]]:
        return _list_of_mappings(self.raw.get("core_packages"), "core_packages")

    @property
    def tool_packages(self) -> List[Dict[str, Any]]:
        return _list_of_mappings(self.raw.get("tool_packages"), "tool_packages")

    @property
    def framework(self) -> Dict[str, Any]:
        return _mapping(self.raw.get("framework"), "framework")

    @property
    def framework_dir(self) -> str:
        return str(self.framework.get("dir") or "{home}/.oh-my-zsh")

    @property
    def framework_custom_dir(self) -> str:
        return str(self.framework.get("custom_dir") or "{framework_dir}/custom")

    @property
    def framework_installer_url(self) -> str:
        return str(
            self.framework.get("installer_url")
            or "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
        )

    @property
    def repos(self) -> List[Dict[str, Any]]:
        return _list_of_mappings(self.raw.get("repos"), "repos")

    @property
    def fonts(self) -> Dict[str, Any]:
        return _mapping(self.raw.get("fonts"), "fonts")

    @property
    def terminal(self) -> Dict[str, Any]:
        return _mapping(self.raw.get("terminal"), "terminal")

    @property
    def zshrc_path(self) -> str:
        return str(_mapping(self.raw.get("zshrc"), "zshrc").get("path") or "{home}/.zshrc")

    @property
    def zshrc_fragments(self) -> List[Dict[str, Any]]:
        return _list_of_mappings(_mapping(self.raw.get("zshrc"), "zshrc").get("fragments"), "zshrc.fragments")

    @property
    def konsole(self) -> Dict[str, Any]:
        return _mapping(self.raw.get("konsole"), "konsole")


def load_config(path: Optional[str] = None) -> BootstrapConfig:
    p = Path(path).expanduser() if path else DEFAULT_MANIFEST
    if not p.exists():
        raise FileNotFoundError(str(p))

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("bootstrap manifest must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{p} must contain a mapping/object")

    return BootstrapConfig(raw=raw)

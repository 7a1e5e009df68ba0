from .base import BaseCheck, CheckFailed
from .files import FragmentCheck, fragment_from_entry
from .fonts import FontsCheck, TerminalFontCheck
from .packages import PackageCheck, TerminalInstallCheck, XcodeCltCheck
from .repos import CloneCheck
from .shell import DefaultShellCheck, FrameworkCheck

__all__ = [
    "BaseCheck",
    "CheckFailed",
    "CloneCheck",
    "DefaultShellCheck",
    "FontsCheck",
    "FragmentCheck",
    "FrameworkCheck",
    "PackageCheck",
    "TerminalFontCheck",
    "TerminalInstallCheck",
    "XcodeCltCheck",
    "fragment_from_entry",
]

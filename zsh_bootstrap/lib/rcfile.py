from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

logger = logging.getLogger(__name__)


_ERRORS = "surrogateescape"


class FragmentError(RuntimeError):
    pass


class ConfigDocument:
    """In-memory view of one host config file.

    Loaded once, mutated by fragments, written back with a single rewrite.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._original: Optional[str] = None
        if self.path.exists():
            # Bytes that are not UTF-8 and CRLF endings must survive a rewrite.
            with open(self.path, encoding="utf-8", errors=_ERRORS, newline="") as f:
                self._original = f.read()
        self.text = self._original or ""
        self.newline = "\r\n" if "\r\n" in self.text else "\n"

    @property
    def exists(self) -> bool:
        return self._original is not None

    @property
    def dirty(self) -> bool:
        return self.text != (self._original or "")

    def lines(self) -> List[str]:
        return self.text.splitlines()

    def has_line(self, line: str) -> bool:
        want = line.strip()
        return any(l.strip() == want for l in self.lines())

    def append(self, lines: Sequence[str], *, comment: Optional[str] = None) -> None:
        chunk: List[str] = []
        if self.text:
            if not self.text.endswith("\n"):
                self.text += self.newline
            chunk.append("")
        if comment:
            chunk.append(f"# {comment}")
        chunk.extend(lines)
        self.text += self.newline.join(chunk) + self.newline

    def replace_lines(self, match, replacement: str) -> int:
        """Replace whole lines for which ``match(line)`` is true; returns count."""
        out: List[str] = []
        n = 0
        for l in self.lines():
            if match(l):
                indent = l[: len(l) - len(l.lstrip())]
                out.append(indent + replacement)
                n += 1
            else:
                out.append(l)
        if n:
            self.text = self.newline.join(out) + self.newline
        return n

    def flush(self, *, dry_run: bool = False) -> bool:
        """Write pending changes; returns True if the file was written."""

        if not self.dirty:
            return False
        if dry_run:
            logger.info("Would write %s", self.path)
            return False

        self.path.parent.mkdir(parents=True, exist_ok=True)
        mode = self.path.stat().st_mode & 0o777 if self.path.exists() else 0o644
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors=_ERRORS, newline="") as f:
                f.write(self.text)
            os.chmod(tmp, mode)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        self._original = self.text
        logger.debug("Wrote %s", self.path)
        return True


class Fragment(Protocol):
    def is_present(self, doc: ConfigDocument) -> bool:
        ...

    def apply(self, doc: ConfigDocument) -> None:
        ...


@dataclass(frozen=True)
class BlockFragment:
    """Append a block; present iff its marker line already exists."""

    lines: Tuple[str, ...]
    marker: str
    comment: Optional[str] = None
    equivalents: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("block fragment needs at least one line")
        if self.marker.strip() not in {l.strip() for l in self.lines}:
            raise ValueError(f"block marker {self.marker!r} is not one of the lines it writes")

    def is_present(self, doc: ConfigDocument) -> bool:
        return any(doc.has_line(m) for m in (self.marker, *self.equivalents))

    def apply(self, doc: ConfigDocument) -> None:
        doc.append(self.lines, comment=self.comment)


@dataclass(frozen=True)
class ReplaceFragment:
    """Swap a known default line for a customised one.

    ``present_if`` patterns mark lines that mean the user already chose
    their own value; such a file is left alone.
    """

    find: str
    replace: str
    present_if: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for pattern in self.present_if:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"bad present_if pattern {pattern!r}: {e}") from e

    def is_present(self, doc: ConfigDocument) -> bool:
        if doc.has_line(self.replace):
            return True
        rxs = [re.compile(p) for p in self.present_if]
        return any(rx.search(l) for rx in rxs for l in doc.lines())

    def apply(self, doc: ConfigDocument) -> None:
        want = self.find.strip()
        if not doc.replace_lines(lambda l: l.strip() == want, self.replace.strip()):
            raise FragmentError(f"default marker not found in {doc.path}: {self.find}")


@dataclass(frozen=True)
class SettingFragment:
    """A ``key = value`` assignment.

    Without ``override`` any existing assignment of the key is left alone.
    """

    key: str
    value: str
    separator: str = " = "
    comment: Optional[str] = None
    section: Optional[str] = None
    override: bool = False

    @property
    def line(self) -> str:
        return f"{self.key}{self.separator}{self.value}"

    def _key_rx(self) -> re.Pattern:
        return re.compile(rf"^\s*{re.escape(self.key)}\s*=")

    def is_present(self, doc: ConfigDocument) -> bool:
        if self.override:
            return doc.has_line(self.line)
        rx = self._key_rx()
        return any(rx.match(l) for l in doc.lines())

    def apply(self, doc: ConfigDocument) -> None:
        if self.override and doc.replace_lines(lambda l: bool(self._key_rx().match(l)), self.line):
            return
        if self.section and not doc.has_line(f"[{self.section}]"):
            doc.append([f"[{self.section}]", self.line], comment=self.comment)
            return
        if self.section:
            self._insert_in_section(doc)
            return
        doc.append([self.line], comment=self.comment)

    def _insert_in_section(self, doc: ConfigDocument) -> None:
        out = doc.lines()
        header = f"[{self.section}]"
        start = next(i for i, l in enumerate(out) if l.strip() == header)
        end = start + 1
        while end < len(out) and not out[end].strip().startswith("["):
            end += 1
        while end > start + 1 and not out[end - 1].strip():
            end -= 1
        out.insert(end, self.line)
        doc.text = doc.newline.join(out) + doc.newline


@dataclass(frozen=True)
class FileFragment:
    """Whole-file content."""

    content: str = field(repr=False)

    def is_present(self, doc: ConfigDocument) -> bool:
        return doc.text == self.content

    def apply(self, doc: ConfigDocument) -> None:
        doc.text = self.content

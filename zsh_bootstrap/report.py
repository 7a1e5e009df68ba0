from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from rich.console import Console
from rich.text import Text

logger = logging.getLogger(__name__)


class Bucket(str, enum.Enum):
    INSTALLED = "installed"
    CONFIGURED = "configured"
    SKIPPED = "skipped"
    FAILED = "failed"


# (heading, bullet, style) per bucket, in render order.
_LAYOUT: Dict[Bucket, Tuple[str, str, str]] = {
    Bucket.INSTALLED: ("Installed:", "✓", "green"),
    Bucket.CONFIGURED: ("Configured:", "✓", "blue"),
    Bucket.SKIPPED: ("Skipped (already present):", "–", "yellow"),
    Bucket.FAILED: ("Failed:", "✗", "red"),
}


@dataclass(frozen=True)
class Outcome:
    bucket: Bucket
    label: str
    check_id: str = ""
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"bucket": self.bucket.value, "label": self.label, "check_id": self.check_id}
        if self.detail:
            d["detail"] = self.detail
        return d


@dataclass(frozen=True)
class Report:
    """Immutable fold of check outcomes for one run."""

    outcomes: Tuple[Outcome, ...] = ()

    def add(self, outcome: Outcome) -> "Report":
        return Report(outcomes=self.outcomes + (outcome,))

    def labels(self, bucket: Bucket) -> List[str]:
        return [o.label for o in self.outcomes if o.bucket is bucket]

    def counts(self) -> Dict[Bucket, int]:
        return {b: len(self.labels(b)) for b in Bucket}

    @property
    def failed(self) -> bool:
        return any(o.bucket is Bucket.FAILED for o in self.outcomes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {b.value: n for b, n in self.counts().items()},
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def render(report: Report) -> str:
    """Plain-text summary grouped by bucket; empty buckets are omitted."""

    blocks: List[str] = []
    for bucket, (heading, bullet, _) in _LAYOUT.items():
        labels = report.labels(bucket)
        if not labels:
            continue
        blocks.append("\n".join([heading, *[f"  {bullet} {label}" for label in labels]]))
    return "\n\n".join(blocks) + ("\n" if blocks else "")


def print_report(report: Report, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print()
    console.rule("[bold green]SUMMARY")
    console.print()
    for bucket, (heading, bullet, style) in _LAYOUT.items():
        labels = report.labels(bucket)
        if not labels:
            continue
        console.print(Text(heading, style=style))
        for label in labels:
            console.print(Text.assemble("  ", (bullet, style), " ", label))
        console.print()
    console.rule(style="blue")
    console.print()
    console.print("To apply changes, run:")
    console.print(Text("  exec zsh", style="green"))
    console.print()


def save_report(path: str, report: Report) -> None:
    """Write the structured report (json, or yaml by suffix)."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = report.to_dict()
    if p.suffix.lower() in {".yaml", ".yml"}:
        p.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("Report written to %s", p)

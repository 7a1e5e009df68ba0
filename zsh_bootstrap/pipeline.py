from __future__ import annotations

import logging
from functools import reduce
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from .context import BootstrapCtx
from .logging_utils import DONE, FAIL, SECTION, SKIP
from .report import Bucket, Outcome, Report

logger = logging.getLogger(__name__)


class Check(Protocol):
    """A single idempotent desired-state check."""

    check_id: str
    label: str
    section: str
    bucket: Bucket
    requires: Tuple[str, ...]

    def applies(self, ctx: BootstrapCtx) -> bool:
        ...

    def is_satisfied(self, ctx: BootstrapCtx) -> bool:
        ...

    def precondition(self, ctx: BootstrapCtx) -> Optional[str]:
        ...

    def path_templates(self) -> Tuple[str, ...]:
        ...

    def apply(self, ctx: BootstrapCtx) -> Optional[str]:
        ...


def validate_order(checks: Sequence[Check]) -> None:
    """Every ``requires`` id must name a check declared earlier."""

    seen: set = set()
    ids = {c.check_id for c in checks}
    for c in checks:
        if c.check_id in seen:
            raise ValueError(f"Duplicate check id: {c.check_id}")
        for dep in c.requires:
            if dep not in ids:
                raise ValueError(f"{c.check_id} requires unknown check {dep}")
            if dep not in seen:
                raise ValueError(f"{c.check_id} requires {dep}, which is declared after it")
        seen.add(c.check_id)


def run_check(check: Check, ctx: BootstrapCtx) -> Outcome:
    """Predicate, then precondition, then apply. Never raises."""

    try:
        satisfied = check.is_satisfied(ctx)
    except Exception as e:
        logger.error("%s: presence check failed: %s", check.label, e, extra={"status": FAIL})
        return Outcome(Bucket.FAILED, check.label, check.check_id, detail=str(e))

    if satisfied:
        logger.info("%s already present", check.label, extra={"status": SKIP})
        return Outcome(Bucket.SKIPPED, check.label, check.check_id)

    try:
        missing = check.precondition(ctx)
    except Exception as e:
        logger.error("%s: precondition check failed: %s", check.label, e, extra={"status": FAIL})
        return Outcome(Bucket.FAILED, check.label, check.check_id, detail=str(e))
    if missing:
        logger.error("%s: %s", check.label, missing, extra={"status": FAIL})
        return Outcome(Bucket.FAILED, check.label, check.check_id, detail=missing)

    verb = "Installing" if check.bucket is Bucket.INSTALLED else "Configuring"
    logger.info("%s %s...", verb, check.label)
    try:
        label = check.apply(ctx) or check.label
    except Exception as e:
        logger.error("%s failed: %s", check.label, e, extra={"status": FAIL})
        logger.debug("%s traceback", check.check_id, exc_info=True)
        return Outcome(Bucket.FAILED, check.label, check.check_id, detail=str(e))

    logger.info("%s", label, extra={"status": DONE})
    return Outcome(check.bucket, label, check.check_id)


def flush_documents(ctx: BootstrapCtx) -> Dict[Path, str]:
    """Write every modified config file once; returns the ones that failed."""

    failed: Dict[Path, str] = {}
    for path, doc in ctx.documents.items():
        try:
            doc.flush(dry_run=ctx.dry_run)
        except OSError as e:
            logger.error("Could not write %s: %s", path, e, extra={"status": FAIL})
            failed[path] = str(e)
    return failed


def _demote(outcome: Outcome, reason: str) -> Outcome:
    return Outcome(Bucket.FAILED, outcome.label, outcome.check_id, detail=reason)


def run_sequence(
    checks: Sequence[Check],
    ctx: BootstrapCtx,
    *,
    only: Optional[Iterable[str]] = None,
    report: Optional[Report] = None,
) -> Report:
    """Run checks in declared order and fold their outcomes into a Report."""

    validate_order(checks)
    wanted = set(only) if only else None

    ran: List[Tuple[Check, Outcome]] = []
    section: Optional[str] = None
    for check in checks:
        if wanted is not None and check.check_id not in wanted:
            continue
        try:
            applicable = check.applies(ctx)
        except Exception as e:
            logger.error("%s: applicability check failed: %s", check.label, e, extra={"status": FAIL})
            ran.append((check, Outcome(Bucket.FAILED, check.label, check.check_id, detail=str(e))))
            continue
        if not applicable:
            logger.debug("Not applicable here: %s", check.check_id)
            continue
        if check.section != section:
            section = check.section
            logger.info("%s", section, extra={"status": SECTION})
        ran.append((check, run_check(check, ctx)))

    failed_docs = flush_documents(ctx)

    outcomes: List[Outcome] = []
    for check, outcome in ran:
        doc_path = getattr(check, "document_path", None)
        if failed_docs and outcome.bucket is Bucket.CONFIGURED and doc_path is not None:
            p = doc_path(ctx)
            if p in failed_docs:
                outcome = _demote(outcome, failed_docs[p])
        outcomes.append(outcome)

    return reduce(Report.add, outcomes, report or Report())

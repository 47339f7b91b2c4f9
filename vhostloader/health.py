from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional

from .binder import Confirmation
from .errors import BindError
from .scanner import ScanOutcome, ScanSkip


def summarize_outcomes(outcomes: Iterable[ScanOutcome]) -> dict[str, Any]:
    bound: list[str] = []
    failed: dict[str, str] = {}
    skipped: list[str] = []
    for outcome in outcomes:
        if isinstance(outcome, Confirmation):
            bound.append(outcome.domain)
        elif isinstance(outcome, BindError):
            failed[outcome.domain] = outcome.error_code
        elif isinstance(outcome, ScanSkip):
            skipped.append(outcome.entry)
    return {"bound": bound, "failed": failed, "skipped": skipped}


def readiness_state(
    outcomes: Optional[list[ScanOutcome]],
) -> tuple[bool, dict[str, Any]]:
    if outcomes is None:
        return False, {}
    return True, summarize_outcomes(outcomes)

"""
SocialCue — Session Diagnostics

Append-only log of ValidationResults for ONE session, plus aggregate
compliance stats. One instance per session, owned by the session and
handed to its ResponseValidator. There is no process-wide instance.

Summaries are recomputed from the log on every call.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from socialcue.config import (
    SESSION_IDEAL_TURNS, SESSION_MAX_TURNS, SESSION_MIN_TURNS,
    SESSION_TARGET_SECONDS, TOP_ISSUES_LIMIT,
)
from socialcue.tutor.validator import ValidationResult

logger = logging.getLogger("socialcue.tutor.diagnostics")


@dataclass(frozen=True)
class SessionDiagnosticsSummary:
    total_responses: int
    responses_with_issues: int
    success_rate: str    # percentage, one decimal, e.g. "66.7"
    avg_word_count: str  # one decimal
    top_issues: list = field(default_factory=list)  # [{"issue": str, "count": int}]
    exempt_responses: int = 0  # counted as clean; structural rules were skipped

    def to_dict(self) -> dict:
        return {
            "total_responses": self.total_responses,
            "responses_with_issues": self.responses_with_issues,
            "success_rate": self.success_rate,
            "avg_word_count": self.avg_word_count,
            "top_issues": [dict(item) for item in self.top_issues],
            "exempt_responses": self.exempt_responses,
        }


def rank_issues(log: Iterable[ValidationResult], limit: int = TOP_ISSUES_LIMIT) -> list:
    """Issue counts, descending. Ties keep first-seen order."""
    counts: dict = {}
    for result in log:
        for issue in result.issues:
            counts[issue.value] = counts.get(issue.value, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])  # stable
    return [{"issue": issue, "count": count} for issue, count in ranked[:limit]]


def summarize(log: Iterable[ValidationResult]) -> SessionDiagnosticsSummary:
    """Pure aggregate over a log. Empty log is vacuously 100% successful."""
    log = list(log)
    total = len(log)
    if total == 0:
        return SessionDiagnosticsSummary(
            total_responses=0,
            responses_with_issues=0,
            success_rate="100.0",
            avg_word_count="0.0",
            top_issues=[],
        )

    with_issues = sum(1 for result in log if result.issues)
    avg_words = sum(result.word_count for result in log) / total

    return SessionDiagnosticsSummary(
        total_responses=total,
        responses_with_issues=with_issues,
        success_rate=f"{(total - with_issues) / total * 100:.1f}",
        avg_word_count=f"{avg_words:.1f}",
        top_issues=rank_issues(log),
        exempt_responses=sum(1 for result in log if result.exempt),
    )


class SessionDiagnostics:
    """Per-session validation log."""

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id
        self._log: list[ValidationResult] = []
        self._started_at = datetime.now(timezone.utc)

    def __len__(self) -> int:
        return len(self._log)

    @property
    def log(self) -> tuple:
        """Read-only view, in append order."""
        return tuple(self._log)

    def record(self, result: ValidationResult) -> None:
        self._log.append(result)

    def summarize(self, log: Optional[Iterable[ValidationResult]] = None) -> SessionDiagnosticsSummary:
        return summarize(self._log if log is None else log)

    def export_log(self) -> str:
        """JSON snapshot of the full log + summary, append order preserved."""
        return json.dumps({
            "session_id": self.session_id,
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "summary": self.summarize().to_dict(),
            "logs": [result.to_dict() for result in self._log],
        }, indent=2)

    def log_timing(self, event: str, duration_ms: float) -> None:
        logger.info(f"[{self.session_id}] {event}: {duration_ms:.0f}ms")

    def validate_session(self, elapsed_seconds: Optional[float] = None) -> dict:
        """
        Session-level report against pacing targets (10-minute session).

        elapsed_seconds defaults to time since this log was created.
        """
        if elapsed_seconds is None:
            elapsed_seconds = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        summary = self.summarize()
        total = summary.total_responses
        projected = round(total / elapsed_seconds * SESSION_TARGET_SECONDS) if elapsed_seconds > 0 else 0

        report = {
            "session_length_s": round(elapsed_seconds, 1),
            "total_exchanges": total,
            "failed_validations": summary.responses_with_issues,
            "exempt_responses": summary.exempt_responses,
            "success_rate": summary.success_rate,
            "avg_word_count": summary.avg_word_count,
            "meets_exchange_target": total >= SESSION_MIN_TURNS,
            "exceeds_exchange_max": total > SESSION_MAX_TURNS,
            "exchange_target_diff": total - SESSION_IDEAL_TURNS,
            "projected_exchanges": projected,
            "common_issues": summary.top_issues,
        }
        logger.info(f"[{self.session_id}] session validation: {report}")
        return report

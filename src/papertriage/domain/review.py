"""
Review workflow domain: statuses, thresholds and the status resolver.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

DEFAULT_AUTO_APPROVE_THRESHOLD = 70
DEFAULT_AUTO_SKIP_THRESHOLD = 30
NEUTRAL_SCORE = 50


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    AUTO_APPROVED = "auto_approved"
    SKIPPED = "skipped"
    AUTO_SKIPPED = "auto_skipped"


# Papers in these states (or favorited) can seed citation exploration.
SEED_ELIGIBLE_STATUSES = (ReviewStatus.APPROVED, ReviewStatus.AUTO_APPROVED)


class ReviewAction(str, Enum):
    APPROVE = "approve"
    SKIP = "skip"

    @property
    def target_status(self) -> ReviewStatus:
        if self is ReviewAction.APPROVE:
            return ReviewStatus.APPROVED
        return ReviewStatus.SKIPPED


def _parse_int(value: Any, default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _parse_bool(value: Any) -> bool:
    return str(value).strip().lower() == "true"


@dataclass
class ReviewSettings:
    """Process-wide triage configuration, re-read at the start of every run."""

    auto_approve_threshold: int = DEFAULT_AUTO_APPROVE_THRESHOLD
    auto_skip_threshold: int = DEFAULT_AUTO_SKIP_THRESHOLD
    scoring_enabled: bool = True
    auto_collect_enabled: bool = True

    KEYS = (
        "auto_approve_threshold",
        "auto_skip_threshold",
        "scoring_enabled",
        "auto_collect_enabled",
    )

    @classmethod
    def from_rows(cls, rows: Mapping[str, Any]) -> "ReviewSettings":
        """Build settings from stored key/value strings, keeping defaults for bad rows."""
        settings = cls()
        if "auto_approve_threshold" in rows:
            settings.auto_approve_threshold = _parse_int(
                rows["auto_approve_threshold"], DEFAULT_AUTO_APPROVE_THRESHOLD
            )
        if "auto_skip_threshold" in rows:
            settings.auto_skip_threshold = _parse_int(
                rows["auto_skip_threshold"], DEFAULT_AUTO_SKIP_THRESHOLD
            )
        if "scoring_enabled" in rows:
            settings.scoring_enabled = _parse_bool(rows["scoring_enabled"])
        if "auto_collect_enabled" in rows:
            settings.auto_collect_enabled = _parse_bool(rows["auto_collect_enabled"])
        return settings

    def to_rows(self) -> Dict[str, str]:
        return {
            "auto_approve_threshold": str(self.auto_approve_threshold),
            "auto_skip_threshold": str(self.auto_skip_threshold),
            "scoring_enabled": "true" if self.scoring_enabled else "false",
            "auto_collect_enabled": "true" if self.auto_collect_enabled else "false",
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auto_approve_threshold": self.auto_approve_threshold,
            "auto_skip_threshold": self.auto_skip_threshold,
            "scoring_enabled": self.scoring_enabled,
            "auto_collect_enabled": self.auto_collect_enabled,
        }


def resolve_review_status(score: int, settings: ReviewSettings) -> ReviewStatus:
    """
    Map a relevance score to a triage state.

    Both thresholds are inclusive. Approve is checked first, so a score that
    satisfies both (only possible with crossed thresholds) is auto-approved.
    """
    if score >= settings.auto_approve_threshold:
        return ReviewStatus.AUTO_APPROVED
    if score <= settings.auto_skip_threshold:
        return ReviewStatus.AUTO_SKIPPED
    return ReviewStatus.PENDING


def expected_action(score: int, settings: ReviewSettings) -> ReviewAction:
    """Action a reviewer is expected to take given the configured thresholds."""
    midpoint = (settings.auto_approve_threshold + settings.auto_skip_threshold) / 2
    return ReviewAction.APPROVE if score >= midpoint else ReviewAction.SKIP


@dataclass
class ReviewBreakdown:
    auto_approved: int = 0
    pending: int = 0
    auto_skipped: int = 0

    def add(self, status: ReviewStatus) -> None:
        if status is ReviewStatus.AUTO_APPROVED:
            self.auto_approved += 1
        elif status is ReviewStatus.AUTO_SKIPPED:
            self.auto_skipped += 1
        else:
            self.pending += 1

    def merge(self, other: Optional["ReviewBreakdown"]) -> None:
        if other is None:
            return
        self.auto_approved += other.auto_approved
        self.pending += other.pending
        self.auto_skipped += other.auto_skipped

    @property
    def total(self) -> int:
        return self.auto_approved + self.pending + self.auto_skipped

    def to_dict(self) -> Dict[str, int]:
        return {
            "auto_approved": self.auto_approved,
            "pending": self.pending,
            "auto_skipped": self.auto_skipped,
        }

    @classmethod
    def combine(cls, items: Iterable[Optional["ReviewBreakdown"]]) -> "ReviewBreakdown":
        combined = cls()
        for item in items:
            combined.merge(item)
        return combined

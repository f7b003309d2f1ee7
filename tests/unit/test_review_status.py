"""
Review-status resolution, expected action and stored settings parsing.
"""

import pytest

from papertriage.domain.collection import CollectionSummary, KeywordCollectResult, RunStatus
from papertriage.domain.review import (
    ReviewAction,
    ReviewBreakdown,
    ReviewSettings,
    ReviewStatus,
    expected_action,
    resolve_review_status,
)


@pytest.mark.parametrize(
    "score,expected",
    [
        (100, ReviewStatus.AUTO_APPROVED),
        (70, ReviewStatus.AUTO_APPROVED),
        (69, ReviewStatus.PENDING),
        (31, ReviewStatus.PENDING),
        (30, ReviewStatus.AUTO_SKIPPED),
        (0, ReviewStatus.AUTO_SKIPPED),
    ],
)
def test_default_thresholds_are_inclusive(score, expected):
    assert resolve_review_status(score, ReviewSettings()) is expected


def test_approve_wins_when_both_thresholds_match():
    settings = ReviewSettings(auto_approve_threshold=30, auto_skip_threshold=30)
    assert resolve_review_status(30, settings) is ReviewStatus.AUTO_APPROVED


def test_neutral_score_is_pending_with_defaults():
    assert resolve_review_status(50, ReviewSettings()) is ReviewStatus.PENDING


def test_expected_action_uses_threshold_midpoint():
    settings = ReviewSettings()  # midpoint 50
    assert expected_action(50, settings) is ReviewAction.APPROVE
    assert expected_action(49, settings) is ReviewAction.SKIP


def test_review_action_target_status():
    assert ReviewAction.APPROVE.target_status is ReviewStatus.APPROVED
    assert ReviewAction.SKIP.target_status is ReviewStatus.SKIPPED


def test_settings_from_rows_falls_back_per_key():
    settings = ReviewSettings.from_rows(
        {
            "auto_approve_threshold": "80",
            "auto_skip_threshold": "garbage",
            "scoring_enabled": "false",
        }
    )
    assert settings.auto_approve_threshold == 80
    assert settings.auto_skip_threshold == 30
    assert settings.scoring_enabled is False
    assert settings.auto_collect_enabled is True


def test_settings_rows_round_trip_strings():
    rows = ReviewSettings(auto_approve_threshold=90, scoring_enabled=False).to_rows()
    assert rows["auto_approve_threshold"] == "90"
    assert rows["scoring_enabled"] == "false"
    assert ReviewSettings.from_rows(rows).to_dict() == {
        "auto_approve_threshold": 90,
        "auto_skip_threshold": 30,
        "scoring_enabled": False,
        "auto_collect_enabled": True,
    }


def test_breakdown_counts_and_summary_merge():
    breakdown = ReviewBreakdown()
    breakdown.add(ReviewStatus.AUTO_APPROVED)
    breakdown.add(ReviewStatus.PENDING)
    breakdown.add(ReviewStatus.AUTO_SKIPPED)
    breakdown.add(ReviewStatus.AUTO_SKIPPED)
    assert breakdown.to_dict() == {"auto_approved": 1, "pending": 1, "auto_skipped": 2}
    assert breakdown.total == 4

    results = [
        KeywordCollectResult(1, "a", RunStatus.SUCCESS, 4, review_breakdown=breakdown),
        KeywordCollectResult(2, "b", RunStatus.ERROR, 0, message="boom"),
    ]
    summary = CollectionSummary.from_results(results)
    assert summary.processed == 2
    assert summary.total_papers_found == 4
    assert summary.errors == 1

    summary.merge(CollectionSummary.from_results(results[:1]))
    assert summary.total_papers_found == 8
    assert summary.review_breakdown.auto_skipped == 4

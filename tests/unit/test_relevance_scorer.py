"""
RelevanceScorer unit tests: response parsing and fallback paths.
"""

import pytest

from papertriage.application.services.relevance_scorer import (
    RelevanceScorer,
    format_interests,
    format_paper,
    parse_score_response,
)
from papertriage.domain.interest import InterestEntry
from papertriage.domain.paper import ScoringInput

PROFILE = [InterestEntry(label="graph neural networks", weight=1.5), InterestEntry(label="traffic", weight=0.5)]
PAPER = ScoringInput(title_original="GNNs for Traffic Forecasting", abstract="We forecast traffic.")


class TestParseScoreResponse:
    def test_json_object(self):
        details = parse_score_response(
            '{"reasoning": "direct match", "matched_interests": ["traffic"], "score": 88}'
        )
        assert details.score == 88
        assert details.reasoning == "direct match"
        assert details.matched_interests == ["traffic"]
        assert details.fallback is False

    def test_json_object_wrapped_in_prose(self):
        details = parse_score_response('Here you go:\n{"score": 73, "reasoning": "ok"}\nThanks')
        assert details.score == 73

    def test_bare_integer(self):
        assert parse_score_response("85").score == 85
        assert parse_score_response("  42 points").score == 42

    @pytest.mark.parametrize("text", ["150", "-5", '{"score": 101}', '{"score": "high"}', "no number", ""])
    def test_out_of_range_or_garbage_is_neutral(self, text):
        details = parse_score_response(text)
        assert details.score == 50
        assert details.fallback is True

    def test_boolean_score_rejected(self):
        assert parse_score_response('{"score": true}').score == 50


class TestFormatting:
    def test_interests_include_weights(self):
        text = format_interests(PROFILE)
        assert "- graph neural networks (weight: 1.5)" in text
        assert "- traffic (weight: 0.5)" in text

    def test_long_abstract_is_truncated(self):
        paper = ScoringInput(title_original="T", abstract="x" * 2000)
        text = format_paper(paper)
        assert "x" * 1500 + "..." in text
        assert "x" * 1501 not in text


class TestRelevanceScorer:
    @pytest.mark.asyncio
    async def test_empty_profile_skips_llm(self, fake_llm_cls):
        llm = fake_llm_cls({"score": '{"score": 99}'})
        scorer = RelevanceScorer(llm)
        assert await scorer.score(PAPER, []) == 50
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_score_uses_json_mode_and_profile(self, fake_llm_cls):
        llm = fake_llm_cls({"score": '{"score": 91, "reasoning": "match", "matched_interests": []}'})
        scorer = RelevanceScorer(llm)
        assert await scorer.score(PAPER, PROFILE) == 91
        assert llm.count("score") == 1
        assert "graph neural networks" in llm.calls[0]["user"]
        assert "GNNs for Traffic Forecasting" in llm.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_transport_failure_is_neutral(self, fake_llm_cls):
        scorer = RelevanceScorer(fake_llm_cls({"score": RuntimeError("timeout")}))
        details = await scorer.score_detailed(PAPER, PROFILE)
        assert details.score == 50
        assert details.fallback is True

    @pytest.mark.asyncio
    async def test_without_provider_is_neutral(self):
        scorer = RelevanceScorer(None)
        assert await scorer.score(PAPER, PROFILE) == 50

    @pytest.mark.asyncio
    async def test_score_always_in_bounds(self, fake_llm_cls):
        for reply in ["0", "100", "-1", "1000", '{"score": 55.0}', "[1,2]"]:
            score = await RelevanceScorer(fake_llm_cls({"score": reply})).score(PAPER, PROFILE)
            assert 0 <= score <= 100

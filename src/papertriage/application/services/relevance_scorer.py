"""
LLM relevance scoring against the weighted interest profile.

Every failure path (no profile, transport error, unparseable or out-of-range
output) yields NEUTRAL_SCORE; scoring never raises into the pipeline.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from papertriage.application.ports.text_generation_port import TextGenerationPort
from papertriage.application.prompts import PromptRegistry
from papertriage.domain.interest import InterestEntry
from papertriage.domain.paper import ScoringInput
from papertriage.domain.review import NEUTRAL_SCORE
from papertriage.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)

ABSTRACT_MAX_CHARS = 1500
SCORE_MAX_TOKENS = 300
SCORE_TEMPERATURE = 0.1

_LEADING_INT_RE = re.compile(r"^\s*(-?\d+)")
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class ScoreDetails:
    score: int
    reasoning: str = ""
    matched_interests: List[str] = field(default_factory=list)
    fallback: bool = False
    raw: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "reasoning": self.reasoning,
            "matched_interests": list(self.matched_interests),
            "fallback": self.fallback,
        }


def format_interests(interests: Sequence[InterestEntry]) -> str:
    return "\n".join(f"- {i.label} (weight: {i.weight:g})" for i in interests)


def format_paper(paper: ScoringInput, *, abstract_limit: int = ABSTRACT_MAX_CHARS) -> str:
    parts = [f"Title: {paper.title_original}"]
    if paper.title_translated:
        parts.append(f"Translated title: {paper.title_translated}")
    if paper.authors:
        parts.append(f"Authors: {', '.join(paper.authors)}")
    if paper.abstract:
        abstract = paper.abstract.strip()
        if len(abstract) > abstract_limit:
            abstract = abstract[:abstract_limit].rstrip() + "..."
        parts.append(f"Abstract: {abstract}")
    if paper.summary:
        parts.append(f"Summary: {paper.summary}")
    return "\n".join(parts)


def _valid_score(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        score = value
    elif isinstance(value, float) and value.is_integer():
        score = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        score = int(value.strip())
    else:
        return None
    return score if 0 <= score <= 100 else None


def parse_score_response(text: str) -> ScoreDetails:
    """
    Parse ``{reasoning, matched_interests, score}``.

    Non-JSON output falls back to a bare leading integer; anything else, or a
    value outside [0, 100], is the neutral score.
    """
    raw = (text or "").strip()
    data: Any = None
    try:
        data = json.loads(raw)
    except ValueError:
        match = _JSON_OBJECT_RE.search(raw)
        if match:
            try:
                data = json.loads(match.group(0))
            except ValueError:
                data = None

    if isinstance(data, dict):
        score = _valid_score(data.get("score"))
        matched = data.get("matched_interests") or []
        if not isinstance(matched, list):
            matched = []
        if score is not None:
            return ScoreDetails(
                score=score,
                reasoning=str(data.get("reasoning") or ""),
                matched_interests=[str(m) for m in matched],
                raw=raw,
            )
        return ScoreDetails(score=NEUTRAL_SCORE, fallback=True, raw=raw)

    if isinstance(data, (int, float)) and not isinstance(data, bool):
        score = _valid_score(data)
        if score is not None:
            return ScoreDetails(score=score, raw=raw)
        return ScoreDetails(score=NEUTRAL_SCORE, fallback=True, raw=raw)

    match = _LEADING_INT_RE.match(raw)
    if match:
        score = _valid_score(int(match.group(1)))
        if score is not None:
            return ScoreDetails(score=score, raw=raw)
    return ScoreDetails(score=NEUTRAL_SCORE, fallback=True, raw=raw)


class RelevanceScorer:
    """score(paper, interests) -> int in [0, 100], one LLM call per paper."""

    def __init__(self, llm: Optional[TextGenerationPort], prompt_registry: Optional[PromptRegistry] = None):
        self.llm = llm
        self._prompts = prompt_registry or PromptRegistry()

    async def score(self, paper: ScoringInput, interests: Sequence[InterestEntry]) -> int:
        details = await self.score_detailed(paper, interests)
        return details.score

    async def score_detailed(self, paper: ScoringInput, interests: Sequence[InterestEntry]) -> ScoreDetails:
        if not interests:
            return ScoreDetails(score=NEUTRAL_SCORE, reasoning="empty interest profile", fallback=True)
        if self.llm is None:
            return ScoreDetails(score=NEUTRAL_SCORE, reasoning="no text-generation provider", fallback=True)

        prompt = self._prompts.get("relevance_score")
        user = prompt.user.format(interests=format_interests(interests), paper=format_paper(paper))
        try:
            text = await self.llm.generate(
                system=prompt.system,
                user=user,
                max_tokens=SCORE_MAX_TOKENS,
                temperature=SCORE_TEMPERATURE,
                json_mode=True,
            )
        except Exception as exc:
            logger.warning("Relevance scoring failed: %s", exc)
            Logger.warning(
                f"Scoring call failed for '{paper.title_original[:80]}': {exc}", file=LogFiles.SCORING
            )
            return ScoreDetails(score=NEUTRAL_SCORE, fallback=True)

        details = parse_score_response(text)
        if details.fallback:
            Logger.warning(
                f"Unparseable score for '{paper.title_original[:80]}': {details.raw[:120]!r}",
                file=LogFiles.SCORING,
            )
        else:
            Logger.debug(
                f"Scored {details.score} for '{paper.title_original[:80]}'", file=LogFiles.SCORING
            )
        return details

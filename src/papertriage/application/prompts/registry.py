from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from papertriage.application.prompts.enrichment import (
    PAPER_CONTEXT_USER,
    PAPER_EXPLAIN_SYSTEM,
    PAPER_SUMMARY_SYSTEM,
    TITLE_TRANSLATE_SYSTEM,
    TITLE_TRANSLATE_USER,
)
from papertriage.application.prompts.triage import (
    KEYWORD_EXTRACT_SYSTEM,
    KEYWORD_EXTRACT_USER,
    RELEVANCE_SCORE_SYSTEM,
    RELEVANCE_SCORE_USER,
)


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    system: str
    user: str


class PromptRegistry:
    def __init__(self) -> None:
        self._templates: Dict[str, PromptTemplate] = {
            "relevance_score": PromptTemplate(
                name="relevance_score",
                system=RELEVANCE_SCORE_SYSTEM,
                user=RELEVANCE_SCORE_USER,
            ),
            "keyword_extract": PromptTemplate(
                name="keyword_extract",
                system=KEYWORD_EXTRACT_SYSTEM,
                user=KEYWORD_EXTRACT_USER,
            ),
            "paper_summary": PromptTemplate(
                name="paper_summary",
                system=PAPER_SUMMARY_SYSTEM,
                user=PAPER_CONTEXT_USER,
            ),
            "paper_explain": PromptTemplate(
                name="paper_explain",
                system=PAPER_EXPLAIN_SYSTEM,
                user=PAPER_CONTEXT_USER,
            ),
            "title_translate": PromptTemplate(
                name="title_translate",
                system=TITLE_TRANSLATE_SYSTEM,
                user=TITLE_TRANSLATE_USER,
            ),
        }

    def get(self, name: str) -> PromptTemplate:
        key = (name or "").strip().lower()
        if key not in self._templates:
            raise KeyError(f"Unknown prompt template: {name}")
        return self._templates[key]

"""
AI enrichment of collected papers: translated title, summary, explanation.

Each generation call degrades independently to an empty field.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from papertriage.application.ports.text_generation_port import TextGenerationPort
from papertriage.application.prompts import PromptRegistry
from papertriage.domain.harvest import CollectedPaper
from papertriage.domain.paper import PaperEnrichment

logger = logging.getLogger(__name__)


class EnrichmentLevel(str, Enum):
    FULL = "full"  # title + summary + explanation
    LIGHT = "light"  # title + summary
    TITLE = "title"  # title only


def build_paper_context(paper: CollectedPaper) -> str:
    parts = [f"Title: {paper.title}"]
    if paper.authors:
        parts.append(f"Authors: {', '.join(paper.authors)}")
    if paper.abstract:
        parts.append(f"Abstract:\n{paper.abstract}")
    return "\n\n".join(parts)


class PaperEnricher:
    def __init__(
        self,
        llm: Optional[TextGenerationPort],
        *,
        language: str = "Japanese",
        prompt_registry: Optional[PromptRegistry] = None,
    ):
        self.llm = llm
        self.language = language
        self._prompts = prompt_registry or PromptRegistry()

    async def enrich(self, paper: CollectedPaper, level: EnrichmentLevel = EnrichmentLevel.FULL) -> PaperEnrichment:
        result = PaperEnrichment()
        if self.llm is None:
            return result

        result.title_translated = await self.translate_title(paper.title)
        if level is EnrichmentLevel.TITLE:
            return result

        context = build_paper_context(paper)
        result.summary = await self._run("paper_summary", context=context, max_tokens=1000, temperature=0.3)
        if level is EnrichmentLevel.FULL:
            result.explanation = await self._run(
                "paper_explain", context=context, max_tokens=2000, temperature=0.3
            )
        return result

    async def translate_title(self, title: str) -> Optional[str]:
        prompt = self._prompts.get("title_translate")
        return await self._call(
            "title_translate",
            system=prompt.system.format(language=self.language),
            user=prompt.user.format(title=title),
            max_tokens=200,
            temperature=0.1,
        )

    async def _run(self, name: str, *, context: str, max_tokens: int, temperature: float) -> Optional[str]:
        prompt = self._prompts.get(name)
        return await self._call(
            name,
            system=prompt.system.format(language=self.language),
            user=prompt.user.format(context=context),
            max_tokens=max_tokens,
            temperature=temperature,
        )

    async def _call(self, name: str, *, system: str, user: str, max_tokens: int, temperature: float) -> Optional[str]:
        try:
            text = await self.llm.generate(
                system=system, user=user, max_tokens=max_tokens, temperature=temperature
            )
        except Exception as exc:
            logger.warning("Enrichment step %s failed: %s", name, exc)
            return None
        text = (text or "").strip()
        return text or None

"""
Interest profile learning from review decisions.

approve: matching learned entries +0.1 (max 2.0), unknown keywords inserted at 1.0
skip:    matching learned entries -0.05 (min 0.1), nothing inserted
Manual entries are never touched.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from papertriage.application.ports.text_generation_port import TextGenerationPort
from papertriage.application.prompts import PromptRegistry
from papertriage.domain.interest import (
    APPROVAL_STEP,
    DEFAULT_WEIGHT,
    SKIP_STEP,
    InterestEntry,
    InterestType,
    clamp_weight,
)
from papertriage.domain.paper import ScoringInput
from papertriage.infrastructure.stores.interest_store import InterestStore
from papertriage.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 5
_JSON_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


def parse_keyword_array(text: str) -> List[str]:
    """JSON array of strings, or [] for anything else. At most five, de-duplicated."""
    raw = (text or "").strip()
    data: Any = None
    try:
        data = json.loads(raw)
    except ValueError:
        match = _JSON_ARRAY_RE.search(raw)
        if match:
            try:
                data = json.loads(match.group(0))
            except ValueError:
                data = None
    if isinstance(data, dict):
        # json_object mode wraps arrays, e.g. {"keywords": [...]}
        data = next((v for v in data.values() if isinstance(v, list)), None)
    if not isinstance(data, list):
        return []

    keywords: List[str] = []
    seen = set()
    for item in data:
        if not isinstance(item, str):
            continue
        label = item.strip()
        if not label or label.lower() in seen:
            continue
        seen.add(label.lower())
        keywords.append(label)
    return keywords[:MAX_KEYWORDS]


def build_keyword_context(paper: ScoringInput) -> str:
    parts = [f"Title: {paper.title_original}"]
    if paper.title_translated:
        parts.append(f"Translated title: {paper.title_translated}")
    if paper.summary:
        parts.append(f"Summary: {paper.summary}")
    return "\n".join(parts)


class InterestLearner:
    def __init__(
        self,
        llm: Optional[TextGenerationPort],
        store: InterestStore,
        prompt_registry: Optional[PromptRegistry] = None,
    ):
        self.llm = llm
        self.store = store
        self._prompts = prompt_registry or PromptRegistry()

    async def extract_keywords(self, paper: ScoringInput) -> List[str]:
        if self.llm is None:
            return []
        prompt = self._prompts.get("keyword_extract")
        try:
            text = await self.llm.generate(
                system=prompt.system,
                user=prompt.user.format(paper=build_keyword_context(paper)),
                max_tokens=300,
                temperature=0.3,
            )
        except Exception as exc:
            logger.warning("Keyword extraction failed: %s", exc)
            return []
        return parse_keyword_array(text)

    async def learn_from_approval(self, paper: ScoringInput) -> List[str]:
        keywords = await self.extract_keywords(paper)
        if not keywords:
            return []

        learned: Dict[str, InterestEntry] = self.store.learned_by_key()
        applied: List[str] = []
        for keyword in keywords:
            key = keyword.lower()
            entry = learned.get(key)
            if entry is not None and entry.id is not None:
                updated = self.store.update_weight(entry.id, clamp_weight(entry.weight + APPROVAL_STEP))
                if updated is not None:
                    learned[key] = updated
            else:
                learned[key] = self.store.add_interest(
                    keyword, weight=DEFAULT_WEIGHT, type=InterestType.LEARNED
                )
            applied.append(keyword)

        Logger.info(
            f"Learned from approval of '{paper.title_original[:80]}': {', '.join(applied)}",
            file=LogFiles.SCORING,
        )
        return applied

    async def learn_from_skip(self, paper: ScoringInput) -> None:
        keywords = await self.extract_keywords(paper)
        if not keywords:
            return

        learned = self.store.learned_by_key()
        if not learned:
            return
        lowered: List[str] = []
        for keyword in keywords:
            entry = learned.get(keyword.lower())
            if entry is None or entry.id is None:
                continue
            self.store.update_weight(entry.id, clamp_weight(entry.weight - SKIP_STEP))
            lowered.append(entry.label)

        if lowered:
            Logger.info(
                f"Lowered learned interests after skip of '{paper.title_original[:80]}': {', '.join(lowered)}",
                file=LogFiles.SCORING,
            )

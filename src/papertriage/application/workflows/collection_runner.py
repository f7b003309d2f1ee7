# src/papertriage/application/workflows/collection_runner.py
"""
Combined collection run.

Keyword search, then RSS, then citation exploration if the wall-clock budget
still allows at least one seed. The seed cap shrinks as the budget is spent:

    seeds = min(cap, int((budget - elapsed) / seconds_per_seed))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from papertriage.application.ports.citation_graph_port import CitationGraphPort
from papertriage.application.ports.feed_reader_port import FeedReaderPort
from papertriage.application.ports.harvester_port import HarvesterPort
from papertriage.application.ports.text_generation_port import TextGenerationPort
from papertriage.application.services.interest_learner import InterestLearner
from papertriage.application.services.paper_deduplicator import PaperDeduplicator
from papertriage.application.services.paper_enricher import PaperEnricher
from papertriage.application.services.paper_intake import PaperIntake
from papertriage.application.services.relevance_scorer import RelevanceScorer
from papertriage.application.services.review_service import ReviewService
from papertriage.application.workflows.citation_explorer import CitationExplorer
from papertriage.application.workflows.keyword_collector import KeywordCollector
from papertriage.application.workflows.rss_collector import RssCollector
from papertriage.config import Settings
from papertriage.domain.collection import CollectionSummary
from papertriage.domain.harvest import HarvestSource
from papertriage.infrastructure.api_clients.base import RateLimiter
from papertriage.infrastructure.stores.collection_log_store import CollectionLogStore
from papertriage.infrastructure.stores.interest_store import InterestStore
from papertriage.infrastructure.stores.paper_store import PaperStore
from papertriage.infrastructure.stores.scoring_feedback_store import ScoringFeedbackStore
from papertriage.infrastructure.stores.settings_store import SettingsStore
from papertriage.infrastructure.stores.source_config_store import SourceConfigStore
from papertriage.utils.logging_config import LogFiles, Logger, clear_trace_id, set_trace_id

logger = logging.getLogger(__name__)

AUTO_COLLECT_DISABLED = "automatic collection is disabled"


def adaptive_seed_cap(cap: int, *, budget: float, elapsed: float, seconds_per_seed: float) -> int:
    if cap <= 0 or seconds_per_seed <= 0:
        return 0
    remaining = budget - elapsed
    if remaining <= 0:
        return 0
    return max(0, min(cap, int(remaining / seconds_per_seed)))


def _section(results: List[Any]) -> Dict[str, Any]:
    return {
        "results": [r.to_dict() for r in results],
        "summary": CollectionSummary.from_results(results).to_dict(),
    }


@dataclass
class Stores:
    papers: PaperStore
    configs: SourceConfigStore
    settings: SettingsStore
    interests: InterestStore
    logs: CollectionLogStore
    feedback: ScoringFeedbackStore

    @classmethod
    def from_db_url(cls, db_url: Optional[str] = None) -> "Stores":
        return cls(
            papers=PaperStore(db_url),
            configs=SourceConfigStore(db_url),
            settings=SettingsStore(db_url),
            interests=InterestStore(db_url),
            logs=CollectionLogStore(db_url),
            feedback=ScoringFeedbackStore(db_url),
        )

    def close(self) -> None:
        for store in (self.papers, self.configs, self.settings, self.interests, self.logs, self.feedback):
            store.close()


class CollectionRunner:
    """Owns the stores, providers and orchestrators for one process."""

    def __init__(
        self,
        *,
        stores: Stores,
        llm: Optional[TextGenerationPort],
        harvesters: Dict[HarvestSource, HarvesterPort],
        feed_reader: FeedReaderPort,
        graph: CitationGraphPort,
        config: Optional[Settings] = None,
        rate_limiter: Optional[RateLimiter] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or Settings()
        self.stores = stores
        self.llm = llm
        self.harvesters = harvesters
        self.feed_reader = feed_reader
        self.graph = graph
        self._clock = clock

        deduplicator = PaperDeduplicator(stores.papers)
        self.scorer = RelevanceScorer(llm)
        self.enricher = PaperEnricher(llm, language=self.config.summary_language)
        intake = PaperIntake(papers=stores.papers, enricher=self.enricher, scorer=self.scorer)

        self.keyword_collector = KeywordCollector(
            harvesters=harvesters,
            configs=stores.configs,
            settings=stores.settings,
            interests=stores.interests,
            logs=stores.logs,
            intake=intake,
            deduplicator=deduplicator,
            max_results=self.config.keyword_max_results,
        )
        self.rss_collector = RssCollector(
            reader=feed_reader,
            configs=stores.configs,
            settings=stores.settings,
            interests=stores.interests,
            logs=stores.logs,
            intake=intake,
            deduplicator=deduplicator,
        )
        self.citation_explorer = CitationExplorer(
            graph=graph,
            papers=stores.papers,
            settings=stores.settings,
            interests=stores.interests,
            logs=stores.logs,
            intake=intake,
            deduplicator=deduplicator,
            rate_limiter=rate_limiter,
        )
        self.review_service = ReviewService(
            papers=stores.papers,
            settings=stores.settings,
            interests=stores.interests,
            feedback=stores.feedback,
            learner=InterestLearner(llm, stores.interests),
            scorer=self.scorer,
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "CollectionRunner":
        from papertriage.infrastructure.connectors.rss_reader import RssFeedReader
        from papertriage.infrastructure.connectors.semantic_scholar_graph import (
            SemanticScholarGraphConnector,
        )
        from papertriage.infrastructure.harvesters import (
            ArxivHarvester,
            OpenAlexHarvester,
            SemanticScholarHarvester,
        )
        from papertriage.infrastructure.llm.openai_provider import OpenAIProvider

        config = config or Settings.from_env()
        return cls(
            config=config,
            stores=Stores.from_db_url(config.db_url),
            llm=OpenAIProvider.from_settings(config) if config.llm_api_key else None,
            harvesters={
                HarvestSource.ARXIV: ArxivHarvester(),
                HarvestSource.SEMANTIC_SCHOLAR: SemanticScholarHarvester(api_key=config.semantic_scholar_api_key),
                HarvestSource.OPENALEX: OpenAlexHarvester(email=config.openalex_email),
            },
            feed_reader=RssFeedReader(),
            graph=SemanticScholarGraphConnector(api_key=config.semantic_scholar_api_key),
        )

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def run_keywords(self) -> Dict[str, Any]:
        trace_id = set_trace_id()
        try:
            results = await self.keyword_collector.collect_all()
            return {"trace_id": trace_id, **_section(results)}
        finally:
            clear_trace_id()

    async def run_rss(self) -> Dict[str, Any]:
        trace_id = set_trace_id()
        try:
            results = await self.rss_collector.collect_all()
            return {"trace_id": trace_id, **_section(results)}
        finally:
            clear_trace_id()

    async def run_citations(self, *, max_seeds: Optional[int] = None, scheduled: bool = False) -> Dict[str, Any]:
        trace_id = set_trace_id()
        try:
            if scheduled and not self.stores.settings.get_review_settings().auto_collect_enabled:
                return {"trace_id": trace_id, "skipped": True, "message": AUTO_COLLECT_DISABLED}
            if max_seeds is None:
                max_seeds = self.config.citation_max_seeds if scheduled else self.config.citation_manual_max_seeds
            results = await self.citation_explorer.explore_all(max_seeds=max_seeds)
            return {"trace_id": trace_id, "skipped": False, **_section(results)}
        finally:
            clear_trace_id()

    async def run_all(self, *, scheduled: bool = False) -> Dict[str, Any]:
        """
        Keyword -> RSS -> citation. A scheduled run is skipped entirely while
        auto-collect is disabled; a manual run ignores the flag.
        """
        trace_id = set_trace_id()
        started = self._clock()
        try:
            if scheduled and not self.stores.settings.get_review_settings().auto_collect_enabled:
                Logger.info("Scheduled collection skipped: auto-collect disabled", file=LogFiles.COLLECT)
                return {"trace_id": trace_id, "skipped": True, "message": AUTO_COLLECT_DISABLED}

            Logger.info(f"Collection run started (scheduled={scheduled})", file=LogFiles.COLLECT)
            keyword_results = await self.keyword_collector.collect_all()
            feed_results = await self.rss_collector.collect_all()

            cap = self.config.citation_max_seeds if scheduled else self.config.citation_manual_max_seeds
            elapsed = self._clock() - started
            seeds = adaptive_seed_cap(
                cap,
                budget=self.config.run_time_budget_seconds,
                elapsed=elapsed,
                seconds_per_seed=self.config.citation_seconds_per_seed,
            )
            citation_results = []
            if seeds >= 1:
                citation_results = await self.citation_explorer.explore_all(max_seeds=seeds)
            else:
                Logger.info(
                    f"Citation exploration skipped: {elapsed:.1f}s of {self.config.run_time_budget_seconds:.0f}s budget used",
                    file=LogFiles.COLLECT,
                )

            summary = CollectionSummary.from_results(keyword_results)
            summary.merge(CollectionSummary.from_results(feed_results))
            summary.merge(CollectionSummary.from_results(citation_results))

            Logger.info(
                f"Collection run finished: {summary.total_papers_found} new papers, {summary.errors} errors",
                file=LogFiles.COLLECT,
            )
            return {
                "trace_id": trace_id,
                "skipped": False,
                "keywords": _section(keyword_results),
                "rss": _section(feed_results),
                "citations": {
                    **_section(citation_results),
                    "max_seeds": seeds,
                    "skipped": seeds < 1,
                },
                "summary": summary.to_dict(),
                "elapsed_seconds": round(self._clock() - started, 2),
            }
        finally:
            clear_trace_id()

    async def close(self) -> None:
        for harvester in self.harvesters.values():
            await harvester.close()
        await self.feed_reader.close()
        await self.graph.close()
        close_llm = getattr(self.llm, "close", None)
        if close_llm is not None:
            await close_llm()
        self.stores.close()


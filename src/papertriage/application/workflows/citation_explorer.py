# src/papertriage/application/workflows/citation_explorer.py
"""
Citation graph exploration.

Seeds are favorited or approved papers that were never explored. Each seed is
resolved to a Semantic Scholar id, its citing and cited neighbours are fetched,
deduplicated three ways and ingested with light enrichment.

Seeds are processed strictly one at a time and every graph request waits on
the explorer's own RateLimiter (1 request per second by default).

A seed is marked explored after any outcome except rate limiting, which
leaves it selectable so a later run retries it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

from papertriage.application.ports.citation_graph_port import CitationGraphPort
from papertriage.application.services.paper_deduplicator import PaperDeduplicator
from papertriage.application.services.paper_enricher import EnrichmentLevel
from papertriage.application.services.paper_intake import PaperIntake
from papertriage.application.workflows.keyword_collector import format_breakdown, load_profile
from papertriage.domain.collection import CitationCollectResult, LogOrigin, RunStatus
from papertriage.domain.interest import InterestEntry
from papertriage.domain.paper import PaperSource, SeedPaper
from papertriage.domain.review import ReviewBreakdown, ReviewSettings
from papertriage.infrastructure.api_clients.base import RateLimiter
from papertriage.infrastructure.api_clients.errors import ProviderError, RateLimitedError
from papertriage.infrastructure.stores.collection_log_store import CollectionLogStore
from papertriage.infrastructure.stores.interest_store import InterestStore
from papertriage.infrastructure.stores.paper_store import PaperStore
from papertriage.infrastructure.stores.settings_store import SettingsStore
from papertriage.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)

NEIGHBOUR_LIMIT = 10
SEED_NOT_FOUND = "paper not found on Semantic Scholar"


@dataclass
class DedupCounts:
    fetched: int = 0
    between_neighbours: int = 0
    across_seeds: int = 0
    already_stored: int = 0


def build_citation_message(counts: DedupCounts, saved: int, breakdown: Optional[ReviewBreakdown]) -> str:
    parts = [f"fetched {counts.fetched} citing/cited papers"]
    if counts.between_neighbours:
        parts.append(f"{counts.between_neighbours} duplicated between citing and cited")
    if counts.across_seeds:
        parts.append(f"{counts.across_seeds} already seen via another seed")
    if counts.already_stored:
        parts.append(f"{counts.already_stored} already stored")
    parts.append(f"{saved} newly registered")
    message = ", ".join(parts)
    if breakdown is not None and saved > 0:
        message += f" {format_breakdown(breakdown)}"
    return message


class CitationExplorer:
    def __init__(
        self,
        *,
        graph: CitationGraphPort,
        papers: PaperStore,
        settings: SettingsStore,
        interests: InterestStore,
        logs: CollectionLogStore,
        intake: PaperIntake,
        deduplicator: PaperDeduplicator,
        rate_limiter: Optional[RateLimiter] = None,
        neighbour_limit: int = NEIGHBOUR_LIMIT,
    ):
        self.graph = graph
        self.papers = papers
        self.settings = settings
        self.interests = interests
        self.logs = logs
        self.intake = intake
        self.deduplicator = deduplicator
        self.rate_limiter = rate_limiter or RateLimiter(1.0)
        self.neighbour_limit = neighbour_limit

    async def explore_all(self, max_seeds: int = 5) -> List[CitationCollectResult]:
        try:
            seeds = self.papers.select_seeds(limit=max_seeds)
        except Exception as exc:
            Logger.error(f"Failed to select citation seeds: {exc}", file=LogFiles.ERROR)
            return []
        if not seeds:
            return []

        review_settings = self.settings.get_review_settings()
        profile = load_profile(self.interests, review_settings)

        # Keys of every neighbour kept so far in this run.
        seen_keys: Set[str] = set()

        results: List[CitationCollectResult] = []
        for seed in seeds:
            results.append(await self.explore_seed(seed, review_settings, profile, seen_keys))
        return results

    async def resolve_seed(self, seed: SeedPaper) -> Optional[str]:
        """DOI lookup first, then title search. Only rate limiting escapes the DOI step."""
        if seed.doi:
            try:
                await self.rate_limiter.wait()
                paper_id = await self.graph.resolve_by_doi(seed.doi)
            except RateLimitedError:
                raise
            except ProviderError as exc:
                logger.info("DOI lookup failed for seed %s: %s", seed.id, exc)
                paper_id = None
            if paper_id:
                return paper_id

        if not seed.title_original.strip():
            return None
        await self.rate_limiter.wait()
        return await self.graph.resolve_by_title(seed.title_original)

    async def explore_seed(
        self,
        seed: SeedPaper,
        review_settings: ReviewSettings,
        profile: Sequence[InterestEntry],
        seen_keys: Set[str],
    ) -> CitationCollectResult:
        try:
            s2_id = await self.resolve_seed(seed)
            if not s2_id:
                self.papers.mark_citation_explored(seed.id)
                self._append_log(seed, RunStatus.ERROR, 0, SEED_NOT_FOUND)
                Logger.warning(f"Seed {seed.id} unresolved: '{seed.title_original[:80]}'", file=LogFiles.CITATION)
                return CitationCollectResult(
                    seed_paper_id=seed.id,
                    seed_paper_title=seed.title_original,
                    status=RunStatus.ERROR,
                    papers_found=0,
                    message=SEED_NOT_FOUND,
                )

            await self.rate_limiter.wait()
            citing = await self.graph.fetch_citing(s2_id, limit=self.neighbour_limit)
            await self.rate_limiter.wait()
            cited = await self.graph.fetch_cited(s2_id, limit=self.neighbour_limit)

            neighbours = list(citing) + list(cited)
            counts = DedupCounts(fetched=len(neighbours))
            unique = self.deduplicator.deduplicate(neighbours)
            counts.between_neighbours = len(neighbours) - len(unique)
            unseen = self.deduplicator.filter_by_seen_keys(unique, seen_keys)
            counts.across_seeds = len(unique) - len(unseen)
            new_papers = self.deduplicator.filter_existing(unseen)
            counts.already_stored = len(unseen) - len(new_papers)

            saved = 0
            breakdown = ReviewBreakdown()
            for paper in new_papers:
                try:
                    outcome = await self.intake.ingest(
                        paper,
                        source=PaperSource.CITATION,
                        level=EnrichmentLevel.LIGHT,
                        settings=review_settings,
                        interests=profile,
                    )
                except Exception as exc:
                    Logger.error(f"Failed to process citation paper '{paper.title[:80]}': {exc}", file=LogFiles.ERROR)
                    continue
                if outcome.saved:
                    saved += 1
                    breakdown.add(outcome.review_status)

            self.papers.mark_citation_explored(seed.id)

            has_breakdown = review_settings.scoring_enabled and saved > 0
            message = build_citation_message(counts, saved, breakdown if has_breakdown else None)
            self._append_log(seed, RunStatus.SUCCESS, saved, message)
            Logger.info(f"Seed {seed.id}: {message}", file=LogFiles.CITATION)
            return CitationCollectResult(
                seed_paper_id=seed.id,
                seed_paper_title=seed.title_original,
                status=RunStatus.SUCCESS,
                papers_found=saved,
                message=message,
                review_breakdown=breakdown if has_breakdown else None,
            )
        except Exception as exc:
            rate_limited = isinstance(exc, RateLimitedError)
            if not rate_limited:
                self._mark_explored_quietly(seed)
            message = str(exc) or "citation exploration failed"
            Logger.error(
                f"Seed {seed.id} failed ({'rate limited, will retry' if rate_limited else 'not retried'}): {message}",
                file=LogFiles.CITATION,
            )
            self._append_log(seed, RunStatus.ERROR, 0, message)
            return CitationCollectResult(
                seed_paper_id=seed.id,
                seed_paper_title=seed.title_original,
                status=RunStatus.ERROR,
                papers_found=0,
                message=message,
                rate_limited=rate_limited,
            )

    def _mark_explored_quietly(self, seed: SeedPaper) -> None:
        try:
            self.papers.mark_citation_explored(seed.id)
        except Exception as exc:
            Logger.error(f"Could not mark seed {seed.id} explored: {exc}", file=LogFiles.ERROR)

    def _append_log(self, seed: SeedPaper, status: RunStatus, papers_found: int, message: str) -> None:
        try:
            self.logs.append(
                origin=LogOrigin.SEED_PAPER,
                origin_id=seed.id,
                status=status,
                papers_found=papers_found,
                message=message,
            )
        except Exception as exc:
            logger.error("Could not write collection log for seed %s: %s", seed.id, exc)

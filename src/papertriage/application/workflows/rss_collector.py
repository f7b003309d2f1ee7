"""
RSS collection workflow.

Incremental per feed: only entries newer than ``last_fetched_at`` are read.
The timestamp advances on every successful fetch and never on failure.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from papertriage.application.ports.feed_reader_port import FeedReaderPort
from papertriage.application.services.paper_deduplicator import PaperDeduplicator
from papertriage.application.services.paper_enricher import EnrichmentLevel
from papertriage.application.services.paper_intake import PaperIntake
from papertriage.application.workflows.keyword_collector import format_breakdown, load_profile
from papertriage.domain.collection import FeedCollectResult, FeedConfig, LogOrigin, RunStatus
from papertriage.domain.interest import InterestEntry
from papertriage.domain.paper import PaperSource
from papertriage.domain.review import ReviewBreakdown, ReviewSettings
from papertriage.infrastructure.stores.collection_log_store import CollectionLogStore
from papertriage.infrastructure.stores.interest_store import InterestStore
from papertriage.infrastructure.stores.settings_store import SettingsStore
from papertriage.infrastructure.stores.source_config_store import SourceConfigStore
from papertriage.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)

NO_NEW_ENTRIES = "no new entries"


class RssCollector:
    def __init__(
        self,
        *,
        reader: FeedReaderPort,
        configs: SourceConfigStore,
        settings: SettingsStore,
        interests: InterestStore,
        logs: CollectionLogStore,
        intake: PaperIntake,
        deduplicator: PaperDeduplicator,
    ):
        self.reader = reader
        self.configs = configs
        self.settings = settings
        self.interests = interests
        self.logs = logs
        self.intake = intake
        self.deduplicator = deduplicator

    async def collect_all(self) -> List[FeedCollectResult]:
        try:
            feeds = self.configs.list_active_feeds()
        except Exception as exc:
            Logger.error(f"Failed to load active feeds: {exc}", file=LogFiles.ERROR)
            return []
        if not feeds:
            return []

        review_settings = self.settings.get_review_settings()
        profile = load_profile(self.interests, review_settings)

        results: List[FeedCollectResult] = []
        for feed in feeds:
            results.append(await self.collect_for_feed(feed, review_settings, profile))
        return results

    async def collect_for_feed(
        self,
        feed: FeedConfig,
        review_settings: ReviewSettings,
        profile: Sequence[InterestEntry],
    ) -> FeedCollectResult:
        try:
            entries = await self.reader.fetch(feed.feed_url, since=feed.last_fetched_at)

            if not entries:
                self.configs.mark_feed_fetched(feed.id)
                self.logs.append(
                    origin=LogOrigin.FEED,
                    origin_id=feed.id,
                    status=RunStatus.SUCCESS,
                    papers_found=0,
                    message=NO_NEW_ENTRIES,
                )
                return FeedCollectResult(
                    feed_id=feed.id,
                    feed_name=feed.name,
                    status=RunStatus.SUCCESS,
                    papers_found=0,
                    message=NO_NEW_ENTRIES,
                )

            unique = self.deduplicator.deduplicate(entries)
            new_entries = self.deduplicator.filter_existing(unique)

            saved = 0
            breakdown = ReviewBreakdown()
            for entry in new_entries:
                try:
                    outcome = await self.intake.ingest(
                        entry,
                        source=PaperSource.RSS,
                        level=EnrichmentLevel.TITLE,
                        settings=review_settings,
                        interests=profile,
                    )
                except Exception as exc:
                    Logger.error(f"Failed to process RSS entry '{entry.title[:80]}': {exc}", file=LogFiles.ERROR)
                    continue
                if outcome.saved:
                    saved += 1
                    breakdown.add(outcome.review_status)

            self.configs.mark_feed_fetched(feed.id)

            has_breakdown = review_settings.scoring_enabled and saved > 0
            message = f"{saved} of {len(entries)} entries newly registered"
            if has_breakdown:
                message += f" {format_breakdown(breakdown)}"
            self.logs.append(
                origin=LogOrigin.FEED,
                origin_id=feed.id,
                status=RunStatus.SUCCESS,
                papers_found=saved,
                message=message,
            )
            Logger.info(f"Feed '{feed.name}': {message}", file=LogFiles.COLLECT)
            return FeedCollectResult(
                feed_id=feed.id,
                feed_name=feed.name,
                status=RunStatus.SUCCESS,
                papers_found=saved,
                message=message,
                review_breakdown=breakdown if has_breakdown else None,
            )
        except Exception as exc:
            message = str(exc) or "RSS collection failed"
            Logger.error(f"Feed '{feed.name}' failed: {message}", file=LogFiles.ERROR)
            try:
                self.logs.append(
                    origin=LogOrigin.FEED,
                    origin_id=feed.id,
                    status=RunStatus.ERROR,
                    papers_found=0,
                    message=message,
                )
            except Exception as log_exc:
                logger.error("Could not write collection log for feed %s: %s", feed.id, log_exc)
            return FeedCollectResult(
                feed_id=feed.id,
                feed_name=feed.name,
                status=RunStatus.ERROR,
                papers_found=0,
                message=message,
            )

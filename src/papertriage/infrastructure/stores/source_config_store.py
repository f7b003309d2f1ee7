from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import select, update

from papertriage.domain.collection import FeedConfig, KeywordConfig
from papertriage.infrastructure.stores.models import Base, KeywordModel, RssFeedModel
from papertriage.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SourceConfigStore:
    """Keyword and RSS feed configuration rows."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    # ------------------------------------------------------------------
    # Keywords
    # ------------------------------------------------------------------

    def add_keyword(
        self,
        keyword: str,
        *,
        sources: Sequence[str] = ("arXiv", "Semantic Scholar"),
        journals: Sequence[str] = (),
        category: Optional[str] = None,
        is_active: bool = True,
    ) -> KeywordConfig:
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValueError("keyword is required")
        row = KeywordModel(
            keyword=keyword,
            category=category,
            sources_json=json.dumps(list(sources), ensure_ascii=False),
            journals_json=json.dumps(list(journals), ensure_ascii=False),
            is_active=is_active,
            created_at=_utcnow(),
        )
        with self._provider.session() as session:
            session.add(row)
            session.commit()
            return self._keyword_to_config(row)

    def list_active_keywords(self) -> List[KeywordConfig]:
        with self._provider.session() as session:
            rows = session.execute(
                select(KeywordModel).where(KeywordModel.is_active.is_(True)).order_by(KeywordModel.id)
            ).scalars().all()
            return [self._keyword_to_config(r) for r in rows]

    def set_keyword_active(self, keyword_id: int, active: bool) -> bool:
        with self._provider.session() as session:
            result = session.execute(
                update(KeywordModel).where(KeywordModel.id == keyword_id).values(is_active=active)
            )
            session.commit()
            return result.rowcount > 0

    @staticmethod
    def _keyword_to_config(row: KeywordModel) -> KeywordConfig:
        return KeywordConfig(
            id=int(row.id),
            keyword=row.keyword,
            sources=row.get_sources(),
            journals=row.get_journals(),
            category=row.category,
            is_active=bool(row.is_active),
        )

    # ------------------------------------------------------------------
    # RSS feeds
    # ------------------------------------------------------------------

    def add_feed(self, name: str, feed_url: str, *, is_active: bool = True) -> FeedConfig:
        feed_url = (feed_url or "").strip()
        if not feed_url:
            raise ValueError("feed_url is required")
        row = RssFeedModel(name=(name or "").strip(), feed_url=feed_url, is_active=is_active, created_at=_utcnow())
        with self._provider.session() as session:
            session.add(row)
            session.commit()
            return self._feed_to_config(row)

    def list_active_feeds(self) -> List[FeedConfig]:
        with self._provider.session() as session:
            rows = session.execute(
                select(RssFeedModel).where(RssFeedModel.is_active.is_(True)).order_by(RssFeedModel.id)
            ).scalars().all()
            return [self._feed_to_config(r) for r in rows]

    def get_feed(self, feed_id: int) -> Optional[FeedConfig]:
        with self._provider.session() as session:
            row = session.get(RssFeedModel, feed_id)
            return self._feed_to_config(row) if row else None

    def mark_feed_fetched(self, feed_id: int, *, at: Optional[datetime] = None) -> None:
        with self._provider.session() as session:
            session.execute(
                update(RssFeedModel).where(RssFeedModel.id == feed_id).values(last_fetched_at=at or _utcnow())
            )
            session.commit()

    @staticmethod
    def _feed_to_config(row: RssFeedModel) -> FeedConfig:
        return FeedConfig(
            id=int(row.id),
            name=row.name,
            feed_url=row.feed_url,
            last_fetched_at=_as_utc(row.last_fetched_at),
            is_active=bool(row.is_active),
        )

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

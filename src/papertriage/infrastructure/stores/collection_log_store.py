from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select

from papertriage.domain.collection import LogOrigin, RunStatus
from papertriage.infrastructure.stores.models import Base, CollectionLogModel
from papertriage.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url
from papertriage.utils.logging_config import get_trace_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CollectionLogStore:
    """Write-once audit trail of collection runs."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def append(
        self,
        *,
        origin: LogOrigin,
        origin_id: int,
        status: RunStatus,
        papers_found: int,
        message: str,
    ) -> int:
        row = CollectionLogModel(
            status=status.value,
            papers_found=int(papers_found),
            message=message,
            trace_id=get_trace_id(),
            executed_at=_utcnow(),
        )
        if origin is LogOrigin.KEYWORD:
            row.keyword_id = origin_id
        elif origin is LogOrigin.FEED:
            row.feed_id = origin_id
        else:
            row.seed_paper_id = origin_id

        with self._provider.session() as session:
            session.add(row)
            session.commit()
            return int(row.id)

    def list_recent(self, *, limit: int = 50, origin: Optional[LogOrigin] = None) -> List[Dict[str, Any]]:
        stmt = select(CollectionLogModel).order_by(desc(CollectionLogModel.id))
        if origin is LogOrigin.KEYWORD:
            stmt = stmt.where(CollectionLogModel.keyword_id.is_not(None))
        elif origin is LogOrigin.FEED:
            stmt = stmt.where(CollectionLogModel.feed_id.is_not(None))
        elif origin is LogOrigin.SEED_PAPER:
            stmt = stmt.where(CollectionLogModel.seed_paper_id.is_not(None))
        with self._provider.session() as session:
            rows = session.execute(stmt.limit(max(1, int(limit)))).scalars().all()
            return [self._log_to_dict(r) for r in rows]

    @staticmethod
    def _log_to_dict(row: CollectionLogModel) -> Dict[str, Any]:
        if row.keyword_id is not None:
            origin, origin_id = LogOrigin.KEYWORD, row.keyword_id
        elif row.feed_id is not None:
            origin, origin_id = LogOrigin.FEED, row.feed_id
        else:
            origin, origin_id = LogOrigin.SEED_PAPER, row.seed_paper_id
        return {
            "id": int(row.id),
            "origin": origin.value,
            "origin_id": origin_id,
            "status": row.status,
            "papers_found": int(row.papers_found or 0),
            "message": row.message,
            "trace_id": row.trace_id,
            "executed_at": row.executed_at.isoformat() if row.executed_at else None,
        }

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

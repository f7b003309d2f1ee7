from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select

from papertriage.domain.review import ReviewAction
from papertriage.infrastructure.stores.models import Base, ScoringFeedbackModel
from papertriage.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScoringFeedbackStore:
    """Append-only (ai_score, user_action, is_correct) rows for reporting."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def record(self, *, paper_id: int, ai_score: int, action: ReviewAction, is_correct: bool) -> None:
        with self._provider.session() as session:
            session.add(
                ScoringFeedbackModel(
                    paper_id=paper_id,
                    ai_score=int(ai_score),
                    user_action=action.value,
                    is_correct=bool(is_correct),
                    created_at=_utcnow(),
                )
            )
            session.commit()

    def list_all(self) -> List[ScoringFeedbackModel]:
        with self._provider.session() as session:
            return list(
                session.execute(select(ScoringFeedbackModel).order_by(ScoringFeedbackModel.id)).scalars()
            )

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select

from papertriage.domain.interest import DEFAULT_WEIGHT, InterestEntry, InterestType, clamp_weight
from papertriage.infrastructure.stores.models import Base, InterestModel
from papertriage.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterestStore:
    """Weighted interest profile (manual and learned entries)."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def list_interests(self, *, type: Optional[InterestType] = None) -> List[InterestEntry]:
        stmt = select(InterestModel).order_by(InterestModel.id)
        if type is not None:
            stmt = stmt.where(InterestModel.type == type.value)
        with self._provider.session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_entry(r) for r in rows]

    def learned_by_key(self) -> Dict[str, InterestEntry]:
        """Learned entries keyed by case-folded label. First row wins on collisions."""
        index: Dict[str, InterestEntry] = {}
        for entry in self.list_interests(type=InterestType.LEARNED):
            index.setdefault(entry.match_key, entry)
        return index

    def add_interest(
        self,
        label: str,
        *,
        weight: float = DEFAULT_WEIGHT,
        type: InterestType = InterestType.MANUAL,
    ) -> InterestEntry:
        label = (label or "").strip()
        if not label:
            raise ValueError("label is required")
        now = _utcnow()
        row = InterestModel(
            label=label,
            weight=clamp_weight(weight),
            type=type.value,
            created_at=now,
            updated_at=now,
        )
        with self._provider.session() as session:
            session.add(row)
            session.commit()
            return self._to_entry(row)

    def update_weight(self, interest_id: int, weight: float) -> Optional[InterestEntry]:
        with self._provider.session() as session:
            row = session.get(InterestModel, interest_id)
            if row is None:
                return None
            row.weight = clamp_weight(weight)
            row.updated_at = _utcnow()
            session.commit()
            return self._to_entry(row)

    def delete_interest(self, interest_id: int) -> bool:
        with self._provider.session() as session:
            row = session.get(InterestModel, interest_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    @staticmethod
    def _to_entry(row: InterestModel) -> InterestEntry:
        try:
            interest_type = InterestType(row.type)
        except ValueError:
            interest_type = InterestType.MANUAL
        return InterestEntry(
            id=int(row.id),
            label=row.label,
            weight=float(row.weight if row.weight is not None else DEFAULT_WEIGHT),
            type=interest_type,
        )

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

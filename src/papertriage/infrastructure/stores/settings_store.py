from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select

from papertriage.domain.review import ReviewSettings
from papertriage.infrastructure.stores.models import Base, ReviewSettingModel
from papertriage.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url
from papertriage.utils.logging_config import LogFiles, Logger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SettingsStore:
    """Key/value review settings. Missing keys fall back to the defaults."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def get_review_settings(self) -> ReviewSettings:
        """Read fresh on every call; a failed read yields defaults."""
        try:
            with self._provider.session() as session:
                rows = session.execute(
                    select(ReviewSettingModel).where(ReviewSettingModel.key.in_(ReviewSettings.KEYS))
                ).scalars().all()
                values = {r.key: r.value for r in rows}
        except Exception as exc:
            Logger.error(f"Failed to load review settings, using defaults: {exc}", file=LogFiles.ERROR)
            return ReviewSettings()
        return ReviewSettings.from_rows(values)

    def update_review_settings(self, changes: Dict[str, Any]) -> ReviewSettings:
        """
        Merge ``changes`` into the stored settings.

        Thresholds must be integers in [0, 100]; unknown keys are rejected.
        """
        unknown = set(changes) - set(ReviewSettings.KEYS)
        if unknown:
            raise ValueError(f"unknown settings: {', '.join(sorted(unknown))}")

        merged = self.get_review_settings()
        for key in ("auto_approve_threshold", "auto_skip_threshold"):
            if key in changes:
                value = changes[key]
                if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
                    raise ValueError(f"{key} must be an integer between 0 and 100")
                setattr(merged, key, value)
        for key in ("scoring_enabled", "auto_collect_enabled"):
            if key in changes:
                setattr(merged, key, bool(changes[key]))

        now = _utcnow()
        with self._provider.session() as session:
            for key, value in merged.to_rows().items():
                row = session.get(ReviewSettingModel, key)
                if row is None:
                    session.add(ReviewSettingModel(key=key, value=value, updated_at=now))
                else:
                    row.value = value
                    row.updated_at = now
            session.commit()
        return merged

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

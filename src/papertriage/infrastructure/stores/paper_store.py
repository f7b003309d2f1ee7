from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from papertriage.domain.paper import PaperSource, SeedPaper
from papertriage.domain.paper_identity import normalize_doi
from papertriage.domain.review import SEED_ELIGIBLE_STATUSES, ReviewStatus
from papertriage.infrastructure.stores.models import Base, PaperKeywordModel, PaperModel
from papertriage.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url
from papertriage.utils.logging_config import LogFiles, Logger

# Keeps IN (...) clauses well under SQLite's bound-parameter limit.
_LOOKUP_CHUNK = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _chunks(values: List[str], size: int = _LOOKUP_CHUNK) -> Iterable[List[str]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class PaperStore:
    """
    Paper repository.

    Handles:
    - Insert with unique-constraint dedup (DOI, original title)
    - Existence lookup for batch filtering
    - Seed selection and exploration marking
    - Review status updates (single, bulk, rescore)
    """

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def insert_paper(
        self,
        *,
        paper: Dict[str, Any],
        source: PaperSource,
        review_status: ReviewStatus = ReviewStatus.PENDING,
        relevance_score: Optional[int] = None,
        keyword_id: Optional[int] = None,
        collected_at: Optional[datetime] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Insert one paper. Returns the stored row, or ``None`` when the DOI or
        original title already exists (a unique-constraint hit is a duplicate,
        not an error).
        """
        now = _utcnow()
        title = str(paper.get("title") or paper.get("title_original") or "").strip()
        if not title:
            return None

        row = PaperModel(
            doi=normalize_doi(paper.get("doi")),
            title_original=title,
            title_translated=paper.get("title_translated"),
            abstract=paper.get("abstract"),
            published_date=paper.get("published_date"),
            venue=paper.get("venue"),
            url=str(paper.get("url") or ""),
            summary=paper.get("summary"),
            explanation=paper.get("explanation"),
            source=source.value,
            review_status=review_status.value,
            relevance_score=relevance_score,
            is_favorite=bool(paper.get("is_favorite", False)),
            memo=paper.get("memo"),
            collected_at=collected_at or now,
            created_at=now,
        )
        row.set_authors(paper.get("authors") or [])

        with self._provider.session() as session:
            session.add(row)
            try:
                session.flush()
                if keyword_id is not None:
                    session.add(PaperKeywordModel(paper_id=row.id, keyword_id=keyword_id))
                session.commit()
            except IntegrityError:
                session.rollback()
                Logger.info(f"Duplicate paper skipped on insert: {title[:80]}", file=LogFiles.COLLECT)
                return None
            return self._paper_to_dict(row)

    def find_existing_keys(
        self, *, dois: Iterable[str], titles: Iterable[str]
    ) -> Tuple[Set[str], Set[str]]:
        """Return the subset of DOIs (normalized) and exact titles already stored."""
        doi_list = sorted({d for d in (normalize_doi(v) for v in dois) if d})
        title_list = sorted({t for t in titles if t})

        found_dois: Set[str] = set()
        found_titles: Set[str] = set()
        with self._provider.session() as session:
            for chunk in _chunks(doi_list):
                found_dois.update(
                    session.execute(select(PaperModel.doi).where(PaperModel.doi.in_(chunk))).scalars()
                )
            for chunk in _chunks(title_list):
                found_titles.update(
                    session.execute(
                        select(PaperModel.title_original).where(PaperModel.title_original.in_(chunk))
                    ).scalars()
                )
        return found_dois, found_titles

    # ------------------------------------------------------------------
    # Citation seeds
    # ------------------------------------------------------------------

    def select_seeds(self, *, limit: int) -> List[SeedPaper]:
        """Favorited or approved papers never explored, most recently collected first."""
        if limit <= 0:
            return []
        statuses = [s.value for s in SEED_ELIGIBLE_STATUSES]
        with self._provider.session() as session:
            rows = (
                session.execute(
                    select(PaperModel)
                    .where(
                        or_(PaperModel.is_favorite.is_(True), PaperModel.review_status.in_(statuses)),
                        PaperModel.citation_explored_at.is_(None),
                    )
                    .order_by(desc(PaperModel.collected_at), desc(PaperModel.id))
                    .limit(limit)
                )
                .scalars()
                .all()
            )
            return [SeedPaper(id=r.id, title_original=r.title_original, doi=r.doi) for r in rows]

    def mark_citation_explored(self, paper_id: int, *, at: Optional[datetime] = None) -> None:
        with self._provider.session() as session:
            session.execute(
                update(PaperModel)
                .where(PaperModel.id == paper_id)
                .values(citation_explored_at=at or _utcnow())
            )
            session.commit()

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def get_paper(self, paper_id: int) -> Optional[Dict[str, Any]]:
        with self._provider.session() as session:
            row = session.get(PaperModel, paper_id)
            return self._paper_to_dict(row) if row else None

    def set_review_status(self, paper_id: int, status: ReviewStatus) -> Optional[Dict[str, Any]]:
        with self._provider.session() as session:
            row = session.get(PaperModel, paper_id)
            if row is None:
                return None
            row.review_status = status.value
            session.commit()
            return self._paper_to_dict(row)

    def set_score(self, paper_id: int, *, score: int, status: ReviewStatus) -> None:
        with self._provider.session() as session:
            session.execute(
                update(PaperModel)
                .where(PaperModel.id == paper_id)
                .values(relevance_score=score, review_status=status.value)
            )
            session.commit()

    def update_paper(
        self, paper_id: int, *, is_favorite: Optional[bool] = None, memo: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Set the favorite flag and/or memo. An empty memo clears it."""
        with self._provider.session() as session:
            row = session.get(PaperModel, paper_id)
            if row is None:
                return None
            if is_favorite is not None:
                row.is_favorite = is_favorite
            if memo is not None:
                row.memo = memo.strip() or None
            session.commit()
            return self._paper_to_dict(row)

    def bulk_update_pending(
        self,
        *,
        target: ReviewStatus,
        min_score: Optional[int] = None,
        max_score: Optional[int] = None,
    ) -> int:
        """Move pending papers with score >= min_score (or <= max_score) to ``target``."""
        conditions = [PaperModel.review_status == ReviewStatus.PENDING.value]
        if min_score is not None:
            conditions.append(PaperModel.relevance_score >= min_score)
        if max_score is not None:
            conditions.append(PaperModel.relevance_score <= max_score)

        with self._provider.session() as session:
            ids = list(session.execute(select(PaperModel.id).where(*conditions)).scalars())
            if ids:
                session.execute(
                    update(PaperModel).where(PaperModel.id.in_(ids)).values(review_status=target.value)
                )
                session.commit()
            return len(ids)

    def list_pending(self, *, sort: str = "score_desc", limit: int = 20) -> List[Dict[str, Any]]:
        stmt = select(PaperModel).where(PaperModel.review_status == ReviewStatus.PENDING.value)
        if sort == "score_desc":
            stmt = stmt.order_by(
                PaperModel.relevance_score.is_(None), desc(PaperModel.relevance_score), PaperModel.id
            )
        else:
            stmt = stmt.order_by(desc(PaperModel.collected_at), desc(PaperModel.id))
        with self._provider.session() as session:
            rows = session.execute(stmt.limit(max(1, int(limit)))).scalars().all()
            return [self._paper_to_dict(r) for r in rows]

    def count_by_status(self, status: ReviewStatus) -> int:
        with self._provider.session() as session:
            return int(
                session.execute(
                    select(func.count()).select_from(PaperModel).where(PaperModel.review_status == status.value)
                ).scalar()
                or 0
            )

    def list_recent(self, *, limit: int = 50, source: Optional[PaperSource] = None) -> List[Dict[str, Any]]:
        stmt = select(PaperModel).order_by(desc(PaperModel.collected_at), desc(PaperModel.id))
        if source is not None:
            stmt = stmt.where(PaperModel.source == source.value)
        with self._provider.session() as session:
            rows = session.execute(stmt.limit(max(1, int(limit)))).scalars().all()
            return [self._paper_to_dict(r) for r in rows]

    def get_paper_count(self) -> int:
        with self._provider.session() as session:
            return int(session.execute(select(func.count()).select_from(PaperModel)).scalar() or 0)

    @staticmethod
    def _paper_to_dict(row: PaperModel) -> Dict[str, Any]:
        return {
            "id": int(row.id),
            "doi": row.doi,
            "title_original": row.title_original,
            "title_translated": row.title_translated,
            "authors": row.get_authors(),
            "abstract": row.abstract,
            "published_date": row.published_date,
            "venue": row.venue,
            "url": row.url,
            "summary": row.summary,
            "explanation": row.explanation,
            "source": row.source,
            "review_status": row.review_status,
            "relevance_score": row.relevance_score,
            "citation_explored_at": row.citation_explored_at.isoformat() if row.citation_explored_at else None,
            "is_favorite": bool(row.is_favorite),
            "memo": row.memo,
            "collected_at": row.collected_at.isoformat() if row.collected_at else None,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PaperModel(Base):
    """Stored paper. DOI and original title are both unique natural keys."""

    __tablename__ = "papers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    doi: Mapped[Optional[str]] = mapped_column(String(256), unique=True, nullable=True, index=True)
    title_original: Mapped[str] = mapped_column(Text, unique=True)
    title_translated: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    authors_json: Mapped[str] = mapped_column(Text, default="[]")
    abstract: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_date: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    venue: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    url: Mapped[str] = mapped_column(String(1024), default="")

    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    source: Mapped[str] = mapped_column(String(32), default="keyword_search", index=True)
    review_status: Mapped[str] = mapped_column(String(32), default="pending", index=True)
    relevance_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    citation_explored_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False)
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    collected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def get_authors(self) -> List[str]:
        try:
            data = json.loads(self.authors_json or "[]")
        except (TypeError, ValueError):
            return []
        return [str(a) for a in data] if isinstance(data, list) else []

    def set_authors(self, authors: List[str]) -> None:
        self.authors_json = json.dumps(list(authors or []), ensure_ascii=False)


class KeywordModel(Base):
    """Search keyword with its provider list and optional journal allow-list."""

    __tablename__ = "keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keyword: Mapped[str] = mapped_column(String(256), unique=True)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    sources_json: Mapped[str] = mapped_column(Text, default="[]")
    journals_json: Mapped[str] = mapped_column(Text, default="[]")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def get_sources(self) -> List[str]:
        return _load_str_list(self.sources_json)

    def get_journals(self) -> List[str]:
        return _load_str_list(self.journals_json)


class RssFeedModel(Base):
    __tablename__ = "rss_feeds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), default="")
    feed_url: Mapped[str] = mapped_column(String(1024), unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    last_fetched_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class PaperKeywordModel(Base):
    __tablename__ = "paper_keywords"
    __table_args__ = (UniqueConstraint("paper_id", "keyword_id", name="uq_paper_keyword"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    paper_id: Mapped[int] = mapped_column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), index=True)
    keyword_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("keywords.id", ondelete="CASCADE"), index=True
    )


class InterestModel(Base):
    __tablename__ = "interests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(256), index=True)
    weight: Mapped[float] = mapped_column(Float, default=1.0)
    type: Mapped[str] = mapped_column(String(16), default="manual", index=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class ReviewSettingModel(Base):
    __tablename__ = "review_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(256), default="")
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class CollectionLogModel(Base):
    """Append-only audit row. Exactly one of keyword_id / feed_id / seed_paper_id is set."""

    __tablename__ = "collection_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keyword_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    feed_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    seed_paper_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(16), default="success")
    papers_found: Mapped[int] = mapped_column(Integer, default=0)
    message: Mapped[str] = mapped_column(Text, default="")
    trace_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    executed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )


class ScoringFeedbackModel(Base):
    __tablename__ = "scoring_feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    paper_id: Mapped[int] = mapped_column(Integer, index=True)
    ai_score: Mapped[int] = mapped_column(Integer)
    user_action: Mapped[str] = mapped_column(String(16))
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )


def _load_str_list(raw: Optional[str]) -> List[str]:
    try:
        data = json.loads(raw or "[]")
    except (TypeError, ValueError):
        return []
    if not isinstance(data, list):
        return []
    return [str(v).strip() for v in data if str(v).strip()]

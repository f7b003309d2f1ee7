from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from papertriage.domain.harvest import CollectedPaper


@runtime_checkable
class CitationGraphPort(Protocol):
    """
    Citation-graph provider.

    Lookups return ``None`` for "no such paper" (HTTP 404). Rate limiting raises
    RateLimitedError; every other failure raises ProviderError.
    """

    async def resolve_by_doi(self, doi: str) -> Optional[str]:
        ...

    async def resolve_by_title(self, title: str) -> Optional[str]:
        ...

    async def fetch_citing(self, paper_id: str, *, limit: int = 10) -> List[CollectedPaper]:
        ...

    async def fetch_cited(self, paper_id: str, *, limit: int = 10) -> List[CollectedPaper]:
        ...

    async def close(self) -> None:
        ...

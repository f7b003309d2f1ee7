from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

from papertriage.domain.harvest import CollectedPaper


@runtime_checkable
class FeedReaderPort(Protocol):
    async def fetch(self, feed_url: str, *, since: Optional[datetime] = None) -> List[CollectedPaper]:
        """Entries newer than ``since`` (all entries when ``None``); raises ProviderError."""
        ...

    async def close(self) -> None:
        ...

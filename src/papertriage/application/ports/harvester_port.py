# src/papertriage/application/ports/harvester_port.py
"""
Harvester port interface.

Defines the abstract interface for keyword-search harvesters.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from papertriage.domain.harvest import HarvestResult, HarvestSource


@runtime_checkable
class HarvesterPort(Protocol):
    """Abstract interface for keyword-search harvesters."""

    @property
    def source(self) -> HarvestSource:
        """Return the harvest source identifier."""
        ...

    async def search(self, query: str, *, max_results: int = 5) -> HarvestResult:
        """
        Search for papers matching the query.

        Must not raise: transport failures come back as ``HarvestResult.error``
        (with ``rate_limited`` set for HTTP 429), zero hits as an empty list.
        """
        ...

    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""
        ...

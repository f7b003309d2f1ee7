"""Process-wide runner shared by the HTTP routes."""

from __future__ import annotations

from typing import Optional

from papertriage.application.workflows.collection_runner import CollectionRunner

_runner: Optional[CollectionRunner] = None


def get_runner() -> CollectionRunner:
    """Lazy initialization of the collection runner."""
    global _runner
    if _runner is None:
        _runner = CollectionRunner.from_settings()
    return _runner


async def shutdown_runner() -> None:
    global _runner
    if _runner is not None:
        await _runner.close()
        _runner = None

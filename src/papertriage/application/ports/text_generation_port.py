from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextGenerationPort(Protocol):
    """Chat-style text generation with bounded output and low temperature."""

    async def generate(
        self,
        *,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        """Return the raw completion text; raise on transport failure."""
        ...

"""
OpenAI-compatible text-generation provider.

Any endpoint speaking the chat-completions API works; point
``PAPERTRIAGE_LLM_BASE_URL`` at it and set the model name.
"""

from __future__ import annotations

import logging
from typing import Optional

from openai import AsyncOpenAI

from papertriage.config import Settings

logger = logging.getLogger(__name__)


class OpenAIProvider:
    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "gpt-4o-mini",
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        # Lazy: a missing API key surfaces on the first call.
        if self._client is None:
            if self.base_url:
                self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
            else:
                self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIProvider":
        return cls(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
        )

    async def generate(
        self,
        *,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            **kwargs,
        )
        if not response.choices:
            return ""
        content = response.choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug("LLM call model=%s total_tokens=%s", self.model, getattr(usage, "total_tokens", None))
        return content.strip()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

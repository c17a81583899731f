"""Provider: local text generation — implements TextGenerationProvider port."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing

from hybrid_inference.l2_use_cases.engines.text_generation_engine import TextGenerationEngine
from hybrid_inference.l3_interface_adapters.providers.local_provider_base import LocalProvider


class LocalTextGenerationProvider(LocalProvider[TextGenerationEngine]):
    async def generate(
        self,
        prompt: str,
        system_prompt: str = '',
        max_tokens: int = 512,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        await self._ensure_ready()
        with self._translate_errors():
            async with aclosing(self._engine.generate(prompt, system_prompt, max_tokens, temperature)) as chunks:
                async for chunk in chunks:
                    yield chunk

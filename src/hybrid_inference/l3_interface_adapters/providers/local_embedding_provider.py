"""Provider: local embeddings — implements EmbeddingProvider port over EmbeddingEngine."""

from __future__ import annotations

from hybrid_inference.l2_use_cases.engines.embedding_engine import EmbeddingEngine
from hybrid_inference.l3_interface_adapters.providers.local_provider_base import LocalProvider


class LocalEmbeddingProvider(LocalProvider[EmbeddingEngine]):
    @property
    def dimensions(self) -> int:
        with self._translate_errors():
            return self._engine.dimensions

    async def embed(self, text: str) -> list[float]:
        await self._ensure_ready()
        with self._translate_errors():
            return await self._engine.embed(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        await self._ensure_ready()
        with self._translate_errors():
            return await self._engine.embed_batch(texts)

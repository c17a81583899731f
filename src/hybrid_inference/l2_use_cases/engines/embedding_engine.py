"""Embedding engine: text → fixed-length float vectors from a local backend."""

from __future__ import annotations

import numpy as np

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.errors import InferenceError, InvalidInputError, ModelNotLoadedError
from hybrid_inference.l2_use_cases.engines.base import CapabilityEngine
from hybrid_inference.l2_use_cases.ports.backends import EmbeddingBackend


def _encode(backend: EmbeddingBackend, texts: list[str]) -> np.ndarray:
    return backend.embed(texts)


class EmbeddingEngine(CapabilityEngine[EmbeddingBackend]):
    capability = Capability.EMBEDDING

    _dimensions: int | None = None

    @property
    def dimensions(self) -> int:
        """Vector length of the loaded model."""
        if not self.is_loaded or self._dimensions is None:
            raise ModelNotLoadedError(self.capability)
        return self._dimensions

    def _on_loaded(self, backend: EmbeddingBackend) -> None:
        dimensions = int(backend.dimensions)
        if dimensions <= 0:
            raise ValueError(f'Backend reports {dimensions} embedding dimensions')
        self._dimensions = dimensions

    async def embed(self, text: str) -> list[float]:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed every text or none: a malformed backend result fails the whole batch."""
        self._ensure_loaded()
        if not texts:
            return []
        for i, text in enumerate(texts):
            if not text:
                raise InvalidInputError(f'Cannot embed empty text (index {i})')

        matrix = np.asarray(await self._run(_encode, list(texts)), dtype=np.float32)
        if matrix.ndim != 2 or matrix.shape[0] != len(texts) or matrix.shape[1] == 0:
            raise InferenceError(f'Embedding backend returned shape {matrix.shape} for {len(texts)} texts')
        if self._dimensions is not None and matrix.shape[1] != self._dimensions:
            raise InferenceError(f'Expected {self._dimensions}-dim vectors, got {matrix.shape[1]}')
        if not np.isfinite(matrix).all():
            raise InferenceError('Embedding backend returned non-finite values')
        return matrix.tolist()

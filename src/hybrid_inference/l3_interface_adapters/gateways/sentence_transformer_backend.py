"""Gateway: sentence-transformers embedding backend — implements EmbeddingBackend port."""

from __future__ import annotations

import gc
import logging
from pathlib import Path

import numpy as np

from hybrid_inference.l1_entities.model_definition import ModelDefinition

log = logging.getLogger('hinf.backend.embedding')


class SentenceTransformerBackend:
    """Local sentence-transformers model read from a directory; vectors are L2-normalised."""

    def __init__(self, model_dir: Path, device: str | None = None) -> None:
        from sentence_transformers import SentenceTransformer  # noqa: PLC0415 -- deferred: pulls in torch

        self._model: SentenceTransformer | None = SentenceTransformer(str(model_dir), device=device)
        self._dim = int(self._model.get_sentence_embedding_dimension() or 0)
        if self._dim <= 0:
            raise RuntimeError(f'Could not determine embedding dimension of {model_dir}')
        log.info('Loaded sentence-transformers model from %s (%d dims)', model_dir, self._dim)

    @property
    def dimensions(self) -> int:
        return self._dim

    def embed(self, texts: list[str]) -> np.ndarray:
        if self._model is None:
            raise RuntimeError('Embedding model has been closed')
        return self._model.encode(texts, normalize_embeddings=True, convert_to_numpy=True, show_progress_bar=False)

    def close(self) -> None:
        self._model = None
        gc.collect()


def load_sentence_transformer_backend(model: ModelDefinition, path: Path) -> SentenceTransformerBackend:
    return SentenceTransformerBackend(path)

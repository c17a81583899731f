"""Port: native inference runtimes, one Protocol per capability.

Backends are opaque and blocking. Engines call them from worker threads and
own them exclusively; a backend is created by a loader and released by close().
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Protocol, TypeVar

import numpy as np

from hybrid_inference.l1_entities.chat_message import ChatMessage
from hybrid_inference.l1_entities.model_definition import ModelDefinition
from hybrid_inference.l1_entities.transcript import TranscriptionSegment


class InferenceBackend(Protocol):
    def close(self) -> None:
        """Release native resources."""
        ...


class EmbeddingBackend(Protocol):
    @property
    def dimensions(self) -> int: ...

    def embed(self, texts: list[str]) -> np.ndarray:
        """Return a (len(texts), dimensions) float array."""
        ...

    def close(self) -> None: ...


class TranscriptionBackend(Protocol):
    def transcribe(self, audio: np.ndarray, language: str | None) -> list[TranscriptionSegment]:
        """Transcribe mono float32 audio at 16 kHz. language=None means auto-detect."""
        ...

    def close(self) -> None: ...


class TextGenerationBackend(Protocol):
    def generate(self, messages: list[ChatMessage], max_tokens: int, temperature: float) -> Iterator[str]:
        """Yield text chunks as they are produced."""
        ...

    def close(self) -> None: ...


class VisionBackend(Protocol):
    def describe(self, image: bytes, prompt: str, max_tokens: int, temperature: float) -> Iterator[str]:
        """Yield text chunks answering *prompt* about *image*."""
        ...

    def close(self) -> None: ...


B = TypeVar('B')

BackendLoader = Callable[[ModelDefinition, Path], B]
"""Create a backend for a model whose artifacts live at the given path."""

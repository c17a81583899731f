"""Port: capability-neutral providers. Local and cloud variants share these signatures.

Zero framework types leak through. Every method raises only ProviderError
subclasses.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.audio import AudioFormat
from hybrid_inference.l1_entities.transcript import TranscriptionSegment


class EmbeddingProvider(Protocol):
    @property
    def dimensions(self) -> int: ...

    async def embed(self, text: str) -> list[float]:
        """Embed one text."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts, preserving order. Fails as a whole."""
        ...


class STTProvider(Protocol):
    async def transcribe(
        self,
        audio_data: bytes,
        fmt: AudioFormat,
        language: AppLanguage | None = None,
    ) -> list[TranscriptionSegment]:
        """Transcribe an encoded audio container."""
        ...


class TextGenerationProvider(Protocol):
    def generate(
        self,
        prompt: str,
        system_prompt: str = '',
        max_tokens: int = 512,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        """Stream generated text chunks."""
        ...


class VisionProvider(Protocol):
    async def extract_text(self, image_data: bytes, prompt: str = '') -> str:
        """OCR: return the text visible in the image."""
        ...

    def analyze_image(self, image_data: bytes, prompt: str) -> AsyncIterator[str]:
        """Stream an answer to *prompt* about the image."""
        ...

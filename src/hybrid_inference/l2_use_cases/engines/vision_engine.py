"""Vision engine: image + prompt → text, from a multimodal local backend."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import aclosing

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.errors import InvalidInputError
from hybrid_inference.l2_use_cases.engines.base import CapabilityEngine
from hybrid_inference.l2_use_cases.ports.backends import VisionBackend

OCR_PROMPT = (
    'Extract all text from this image. Preserve line breaks. '
    'Return only the extracted text without any additional commentary.'
)


def _describe(
    backend: VisionBackend,
    image: bytes,
    prompt: str,
    max_tokens: int,
    temperature: float,
) -> Iterator[str]:
    return backend.describe(image, prompt, max_tokens, temperature)


class VisionEngine(CapabilityEngine[VisionBackend]):
    capability = Capability.VISION

    async def extract_text(self, image: bytes, prompt: str | None = None, max_tokens: int = 2048) -> str:
        """OCR at temperature 0. Returns the whitespace-trimmed text."""
        chunks = [chunk async for chunk in self.analyze_image(image, prompt or OCR_PROMPT, max_tokens, 0.0)]
        return ''.join(chunks).strip()

    async def analyze_image(
        self,
        image: bytes,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> AsyncIterator[str]:
        self._ensure_loaded()
        if not image:
            raise InvalidInputError('Image data is empty')
        if not prompt:
            raise InvalidInputError('Prompt must not be empty')

        async with aclosing(self._stream(_describe, image, prompt, max_tokens, temperature)) as chunks:
            async for chunk in chunks:
                if chunk:
                    yield chunk

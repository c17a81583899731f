"""Provider: local vision/OCR — implements VisionProvider port over VisionEngine."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing

from hybrid_inference.l2_use_cases.engines.vision_engine import VisionEngine
from hybrid_inference.l3_interface_adapters.gateways.image_inspector import image_mime_type
from hybrid_inference.l3_interface_adapters.providers.local_provider_base import LocalProvider


class LocalVisionProvider(LocalProvider[VisionEngine]):
    """Validates image bytes with Pillow before the engine sees them."""

    async def extract_text(self, image_data: bytes, prompt: str = '') -> str:
        image_mime_type(image_data)
        await self._ensure_ready()
        with self._translate_errors():
            return await self._engine.extract_text(image_data, prompt or None)

    async def analyze_image(self, image_data: bytes, prompt: str) -> AsyncIterator[str]:
        image_mime_type(image_data)
        await self._ensure_ready()
        with self._translate_errors():
            async with aclosing(self._engine.analyze_image(image_data, prompt)) as chunks:
                async for chunk in chunks:
                    yield chunk

"""Provider: local speech-to-text — implements STTProvider port over TranscriptionEngine."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.audio import AudioFormat, DecodedAudio
from hybrid_inference.l1_entities.transcript import TranscriptionSegment
from hybrid_inference.l2_use_cases.engines.transcription_engine import TranscriptionEngine
from hybrid_inference.l3_interface_adapters.gateways.audio_decoder import decode_audio
from hybrid_inference.l3_interface_adapters.providers.local_provider_base import LocalProvider

AudioDecoder = Callable[[bytes, AudioFormat], DecodedAudio]


class LocalSTTProvider(LocalProvider[TranscriptionEngine]):
    """Decodes the container, then hands samples to the engine.

    Decoding happens first, so malformed audio raises AudioDecodeError even
    when the engine is not loaded. Segments are returned exactly as the
    engine produced them.
    """

    def __init__(
        self,
        engine: TranscriptionEngine,
        auto_load: bool = False,
        decoder: AudioDecoder = decode_audio,
    ) -> None:
        super().__init__(engine, auto_load)
        self._decoder = decoder

    async def transcribe(
        self,
        audio_data: bytes,
        fmt: AudioFormat,
        language: AppLanguage | None = None,
    ) -> list[TranscriptionSegment]:
        decoded = await asyncio.to_thread(self._decoder, audio_data, fmt)
        await self._ensure_ready()
        iso_code = language.iso_code if language is not None else None
        with self._translate_errors():
            return await self._engine.transcribe(decoded.samples, decoded.sample_rate, iso_code)

"""Transcription engine: mono PCM samples → timestamped segments."""

from __future__ import annotations

import numpy as np

from hybrid_inference.l1_entities.audio import SAMPLE_RATE
from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.errors import InvalidInputError
from hybrid_inference.l1_entities.transcript import TranscriptionSegment
from hybrid_inference.l2_use_cases.engines.base import CapabilityEngine
from hybrid_inference.l2_use_cases.ports.backends import TranscriptionBackend


def resample(samples: np.ndarray, sample_rate: int, target_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Linear-interpolation resample of mono float32 audio."""
    if sample_rate == target_rate or len(samples) == 0:
        return samples
    duration = len(samples) / sample_rate
    n_out = max(1, int(round(duration * target_rate)))
    src_t = np.arange(len(samples), dtype=np.float64) / sample_rate
    dst_t = np.arange(n_out, dtype=np.float64) / target_rate
    return np.interp(dst_t, src_t, samples).astype(np.float32)


def _transcribe(backend: TranscriptionBackend, audio: np.ndarray, language: str | None) -> list[TranscriptionSegment]:
    return list(backend.transcribe(audio, language))


class TranscriptionEngine(CapabilityEngine[TranscriptionBackend]):
    capability = Capability.TRANSCRIPTION

    async def transcribe(
        self,
        samples: np.ndarray,
        sample_rate: int = SAMPLE_RATE,
        language: str | None = None,
    ) -> list[TranscriptionSegment]:
        """Transcribe float32 samples. language is an ISO 639-1 hint; None auto-detects."""
        self._ensure_loaded()
        if sample_rate <= 0:
            raise InvalidInputError(f'Invalid sample rate: {sample_rate}')

        audio = np.asarray(samples, dtype=np.float32)
        if audio.ndim == 2:
            audio = audio.mean(axis=1, dtype=np.float32)
        elif audio.ndim != 1:
            raise InvalidInputError(f'Expected 1-D or (frames, channels) audio, got shape {audio.shape}')
        if audio.size == 0:
            raise InvalidInputError('Cannot transcribe empty audio')

        audio = resample(audio, sample_rate)
        return await self._run(_transcribe, audio, language)

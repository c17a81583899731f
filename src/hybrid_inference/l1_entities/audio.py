"""L1 entity: audio container formats and decoded sample buffers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

SAMPLE_RATE = 16000


class AudioFormat(enum.Enum):
    WAV = 'wav'
    MP3 = 'mp3'
    M4A = 'm4a'
    WEBM = 'webm'


@dataclass(frozen=True)
class DecodedAudio:
    """Mono float32 samples in [-1, 1] plus what the container declared."""

    samples: np.ndarray
    sample_rate: int
    channels: int
    bits_per_sample: int

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate if self.sample_rate else 0.0

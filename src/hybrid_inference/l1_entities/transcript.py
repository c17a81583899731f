"""Transcription segment entity."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


def format_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS.mmm."""
    millis = int(round(seconds * 1000))
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return f'{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}'


class TranscriptionSegment(BaseModel):
    """A timed span of recognized text."""

    model_config = ConfigDict(frozen=True)

    text: str
    start: float = Field(ge=0.0, description='Offset in seconds from the start of the audio')
    end: float = Field(ge=0.0, description='Offset in seconds from the start of the audio')

    @model_validator(mode='after')
    def _validate_order(self) -> TranscriptionSegment:
        if self.start > self.end:
            raise ValueError(f'Segment start ({self.start}) is after its end ({self.end})')
        return self

"""Use case: transcribe encoded audio through the active STT provider, pinning the language."""

from __future__ import annotations

import logging

from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.audio import AudioFormat
from hybrid_inference.l1_entities.transcript import TranscriptionSegment
from hybrid_inference.l2_use_cases.language_detector import LanguageDetector
from hybrid_inference.l2_use_cases.ports.providers import STTProvider

log = logging.getLogger('hinf.transcribe')


class TranscribeAudioUseCase:
    """Feeds successive recordings to an STT provider.

    With ``AppLanguage.AUTO`` the first call lets the backend guess; the
    language of the first non-empty transcript is then detected and used as
    the hint for every later call. Does no I/O itself.
    """

    def __init__(
        self,
        provider: STTProvider,
        detector: LanguageDetector,
        language: AppLanguage = AppLanguage.AUTO,
    ) -> None:
        self._provider = provider
        self._detector = detector
        self._language = language
        self._pinned: AppLanguage | None = None if language is AppLanguage.AUTO else language

    @property
    def language(self) -> AppLanguage | None:
        """Hint sent with the next call; None while still auto-detecting."""
        return self._pinned

    def reset(self) -> None:
        """Forget a detected language (e.g. for a new session)."""
        self._pinned = None if self._language is AppLanguage.AUTO else self._language

    async def transcribe(self, audio_data: bytes, fmt: AudioFormat) -> list[TranscriptionSegment]:
        segments = await self._provider.transcribe(audio_data, fmt, self._pinned)

        if self._pinned is None:
            text = ' '.join(seg.text.strip() for seg in segments).strip()
            detected = self._detector.detect(text) if text else None
            if detected is not None:
                self._pinned = detected
                log.info('Detected transcript language %s; pinning it for later calls', detected.iso_code)

        return segments

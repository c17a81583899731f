"""Heuristic language detection over the supported AppLanguage variants.

Pure and synchronous: no model, no I/O. Script share splits the probability
mass between Russian (Cyrillic) and the Latin-script languages; within the
Latin share, stop words, Spanish diacritics and letter patterns decide
between English and Spanish.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from hybrid_inference.l1_entities.app_language import AppLanguage

DEFAULT_MIN_TEXT_LENGTH = 5

# Tie-break order for equal confidences.
_PRIORITY = (AppLanguage.ENGLISH, AppLanguage.SPANISH, AppLanguage.RUSSIAN)

_ENGLISH_STOP_WORDS = frozenset({
    'the', 'and', 'is', 'are', 'was', 'were', 'be', 'been', 'you', 'your', 'of', 'to', 'in', 'it',
    'that', 'this', 'with', 'for', 'how', 'what', 'when', 'where', 'who', 'have', 'has', 'do',
    'does', 'doing', 'not', 'on', 'at', 'i', 'my', 'we', 'they', 'he', 'she', 'will', 'can',
    'today', 'hello', 'from', 'but', 'or', 'an', 'there', 'their', 'would', 'about',
})
_SPANISH_STOP_WORDS = frozenset({
    'el', 'la', 'los', 'las', 'de', 'que', 'y', 'en', 'un', 'una', 'es', 'por', 'con', 'para',
    'como', 'cómo', 'qué', 'está', 'estás', 'están', 'estoy', 'hola', 'pero', 'muy', 'hoy',
    'del', 'al', 'se', 'lo', 'su', 'tu', 'yo', 'mi', 'más', 'también', 'sí', 'hay', 'este',
    'esta', 'ser', 'son', 'fue', 'usted', 'nosotros', 'gracias', 'bien', 'dónde', 'cuando',
})
_SPANISH_MARKS = frozenset('áéíóúüñ¿¡')
_ENGLISH_PATTERNS = (re.compile('th'), re.compile('w'), re.compile('sh'), re.compile(r'ing\b'))
_SPANISH_PATTERNS = (re.compile('ñ'), re.compile('ll'), re.compile('rr'))

_WORD_RE = re.compile(r'[^\W\d_]+')


class LanguageHypothesis(NamedTuple):
    language: AppLanguage
    confidence: float


def _is_cyrillic(ch: str) -> bool:
    return '\u0400' <= ch <= '\u04ff'


def _is_latin(ch: str) -> bool:
    return ch.isalpha() and ch <= '\u024f'


class LanguageDetector:
    def __init__(self, min_text_length: int = DEFAULT_MIN_TEXT_LENGTH) -> None:
        self._min_text_length = min_text_length

    def detect(self, text: str) -> AppLanguage | None:
        """Best-guess language, or None when the text is too short or has no letters."""
        hypotheses = self.detect_with_confidence(text, max_hypotheses=1)
        return hypotheses[0].language if hypotheses else None

    def detect_with_confidence(self, text: str, max_hypotheses: int = 5) -> list[LanguageHypothesis]:
        """Up to max_hypotheses languages, most likely first. Confidences sum to 1."""
        scores = self._score(text)
        if not scores:
            return []
        total = sum(scores.values())
        ranked = sorted(
            (LanguageHypothesis(lang, score / total) for lang, score in scores.items() if score > 0),
            key=lambda h: (-h.confidence, _PRIORITY.index(h.language)),
        )
        return ranked[:max(0, max_hypotheses)]

    def _score(self, text: str) -> dict[AppLanguage, float]:
        stripped = text.strip()
        if len(stripped) < self._min_text_length:
            return {}

        lowered = stripped.lower()
        cyrillic = sum(1 for ch in lowered if _is_cyrillic(ch))
        latin = sum(1 for ch in lowered if _is_latin(ch))
        letters = cyrillic + latin
        if letters == 0:
            return {}

        latin_share = latin / letters
        english_share = 0.0
        if latin:
            words = _WORD_RE.findall(lowered)
            english = 2.0 * sum(1 for w in words if w in _ENGLISH_STOP_WORDS)
            spanish = 2.0 * sum(1 for w in words if w in _SPANISH_STOP_WORDS)
            spanish += sum(1 for ch in lowered if ch in _SPANISH_MARKS)
            english += 0.5 * sum(len(p.findall(lowered)) for p in _ENGLISH_PATTERNS)
            spanish += 0.5 * sum(len(p.findall(lowered)) for p in _SPANISH_PATTERNS)
            english_share = (english + 1.0) / (english + spanish + 2.0)

        return {
            AppLanguage.ENGLISH: latin_share * english_share,
            AppLanguage.SPANISH: latin_share * (1.0 - english_share),
            AppLanguage.RUSSIAN: cyrillic / letters,
        }

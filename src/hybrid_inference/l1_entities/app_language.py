"""L1 entity: languages the app can transcribe and detect."""

from __future__ import annotations

import enum


class AppLanguage(enum.Enum):
    AUTO = 'auto'
    ENGLISH = 'english'
    SPANISH = 'spanish'
    RUSSIAN = 'russian'

    @property
    def iso_code(self) -> str | None:
        """ISO 639-1 code, or None for AUTO."""
        return _ISO_CODES[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_iso_code(cls, code: str) -> AppLanguage | None:
        prefix = code.lower().split('-')[0]
        for lang, iso in _ISO_CODES.items():
            if iso == prefix:
                return lang
        return None


_ISO_CODES: dict[AppLanguage, str | None] = {
    AppLanguage.AUTO: None,
    AppLanguage.ENGLISH: 'en',
    AppLanguage.SPANISH: 'es',
    AppLanguage.RUSSIAN: 'ru',
}

_DISPLAY_NAMES: dict[AppLanguage, str] = {
    AppLanguage.AUTO: 'Auto-detect',
    AppLanguage.ENGLISH: 'English',
    AppLanguage.SPANISH: 'Spanish',
    AppLanguage.RUSSIAN: 'Russian',
}

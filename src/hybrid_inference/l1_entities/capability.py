"""L1 entity: AI capabilities and the per-capability provider choice."""

from __future__ import annotations

import enum


class Capability(enum.Enum):
    EMBEDDING = 'embedding'
    TRANSCRIPTION = 'transcription'
    TEXT_GENERATION = 'text-generation'
    VISION = 'vision'


class ProviderChoice(enum.Enum):
    LOCAL = 'local'
    CLOUD = 'cloud'

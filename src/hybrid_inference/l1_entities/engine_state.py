"""L1 entity: lifecycle state of a capability engine."""

from __future__ import annotations

import enum


class EngineState(enum.Enum):
    UNLOADED = 'unloaded'
    LOADING = 'loading'
    LOADED = 'loaded'
    UNLOADING = 'unloading'

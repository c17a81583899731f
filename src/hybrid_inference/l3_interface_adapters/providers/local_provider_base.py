"""Shared adapter logic for providers backed by a local capability engine."""

from __future__ import annotations

import contextlib
import logging
from typing import Generic, TypeVar

from hybrid_inference.l1_entities.errors import (
    EngineError,
    ModelLoadError,
    ModelNotLoadedError,
    ModelUnavailableError,
    ProviderNotConfiguredError,
    ProviderRequestError,
)
from hybrid_inference.l2_use_cases.engines.base import CapabilityEngine

log = logging.getLogger('hinf.provider')

E = TypeVar('E', bound=CapabilityEngine)


class LocalProvider(Generic[E]):
    """Maps engine errors to provider errors at the adapter boundary.

    With ``auto_load`` the engine is loaded on first use; otherwise an
    unloaded engine means the provider is not configured.
    """

    def __init__(self, engine: E, auto_load: bool = False) -> None:
        self._engine = engine
        self._auto_load = auto_load

    @property
    def engine(self) -> E:
        return self._engine

    async def _ensure_ready(self) -> None:
        if self._engine.is_loaded:
            return
        capability = self._engine.capability.value
        if not self._auto_load:
            raise ProviderNotConfiguredError(f'Local {capability} model is not loaded')
        log.info('Loading local %s model on first use', capability)
        try:
            await self._engine.load()
        except ModelLoadError as e:
            raise ModelUnavailableError(f'Local {capability} model unavailable: {e}') from e

    @contextlib.contextmanager
    def _translate_errors(self):
        try:
            yield
        except ModelNotLoadedError as e:
            raise ProviderNotConfiguredError(f'Local {self._engine.capability.value} model is not loaded') from e
        except EngineError as e:
            raise ProviderRequestError(f'Local {self._engine.capability.value} request failed: {e}') from e

"""Capability engine base: the load/unload state machine around one backend."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.engine_state import EngineState
from hybrid_inference.l1_entities.errors import (
    EngineError,
    InferenceError,
    ModelLoadError,
    ModelNotLoadedError,
    NoModelAvailableError,
)
from hybrid_inference.l1_entities.model_definition import ModelDefinition
from hybrid_inference.l2_use_cases.ports.backends import BackendLoader
from hybrid_inference.l2_use_cases.ports.model_registry import ModelRegistry

log = logging.getLogger('hinf.engine')

B = TypeVar('B')
T = TypeVar('T')


def _close_quietly(backend: Any, model_id: str) -> None:
    try:
        backend.close()
    except Exception:
        log.warning('Error while closing %s backend; resources may not be fully released', model_id, exc_info=True)


async def _drain(future: asyncio.Future) -> None:
    """Wait until a worker thread returns, even if the awaiting task is cancelled meanwhile."""
    cancelled = False
    while not future.done():
        try:
            await asyncio.wait({future})
        except asyncio.CancelledError:
            cancelled = True
    if cancelled:
        if not future.cancelled():
            future.exception()  # mark retrieved; the caller is gone
        raise asyncio.CancelledError


class CapabilityEngine(Generic[B]):
    """Owns the lifecycle of exactly one local inference backend.

    ``_state_lock`` serialises transitions, so concurrent ``load()`` calls never
    initialise two backends: the second one observes LOADED and returns.
    ``_inference_lock`` serialises backend calls; native runtimes are not
    assumed to be thread-safe. Inference never waits on a transition: outside
    LOADED it raises ModelNotLoadedError immediately.
    """

    capability: Capability

    def __init__(
        self,
        registry: ModelRegistry,
        loader: BackendLoader[B],
        preferred_model_id: str | None = None,
    ) -> None:
        self._registry = registry
        self._loader = loader
        self._preferred_model_id = preferred_model_id
        self._backend: B | None = None
        self._model: ModelDefinition | None = None
        self._state = EngineState.UNLOADED
        self._state_lock = asyncio.Lock()
        self._inference_lock = asyncio.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is EngineState.LOADED

    @property
    def model(self) -> ModelDefinition | None:
        """Definition of the loaded model, or None."""
        return self._model

    async def load(self, model_id: str | None = None) -> None:
        """Load the backend. No-op when already loaded with the same model.

        Raises ModelLoadError (cause chained) when the model is unknown, its
        artifacts are missing or the backend fails to initialise; the engine
        is then back in UNLOADED.
        """
        async with self._state_lock:
            if self._state is EngineState.LOADED:
                assert self._model is not None
                if model_id is None or model_id == self._model.id:
                    log.debug('%s engine already loaded with %s', self.capability.value, self._model.id)
                    return
                raise ModelLoadError(
                    f'{self._model.id} is loaded; call unload() before loading {model_id}'
                )

            model = self._resolve_model(model_id)
            path = self._registry.download_path(model)
            if not self._registry.is_downloaded(model):
                raise ModelLoadError(f'Model artifacts for {model.id} not found at {path}')

            self._state = EngineState.LOADING
            log.info('Loading %s model %s from %s', self.capability.value, model.id, path)
            future = asyncio.get_running_loop().run_in_executor(None, self._loader, model, path)
            try:
                backend = await asyncio.shield(future)
            except asyncio.CancelledError:
                self._state = EngineState.UNLOADED
                future.add_done_callback(lambda f: self._close_abandoned(f, model.id))
                log.warning('Load of %s abandoned; backend will be closed when initialisation ends', model.id)
                raise
            except Exception as e:
                self._state = EngineState.UNLOADED
                log.error('Failed to load %s model %s', self.capability.value, model.id, exc_info=True)
                raise ModelLoadError(f'Failed to load {model.id}: {e}') from e

            try:
                self._on_loaded(backend)
            except Exception as e:
                self._state = EngineState.UNLOADED
                log.error('%s backend for %s is unusable', self.capability.value, model.id, exc_info=True)
                await asyncio.to_thread(_close_quietly, backend, model.id)
                raise ModelLoadError(f'Failed to load {model.id}: {e}') from e

            self._backend = backend
            self._model = model
            self._state = EngineState.LOADED
            log.info('%s engine loaded %s', self.capability.value, model.id)

    async def unload(self) -> None:
        """Release the backend. Never fails; no-op when already unloaded.

        In-flight inference finishes first. Calls still queued behind it fail
        with ModelNotLoadedError.
        """
        async with self._state_lock:
            if self._state is EngineState.UNLOADED:
                return
            self._state = EngineState.UNLOADING
            try:
                async with self._inference_lock:
                    backend, self._backend = self._backend, None
            except asyncio.CancelledError:
                self._state = EngineState.LOADED
                raise
            model, self._model = self._model, None
            try:
                if backend is not None:
                    await asyncio.to_thread(_close_quietly, backend, model.id if model else '?')
            finally:
                self._state = EngineState.UNLOADED
            log.info('%s engine unloaded', self.capability.value)

    def _on_loaded(self, backend: B) -> None:
        """Hook for subclasses to read backend properties right after loading."""

    def _resolve_model(self, model_id: str | None) -> ModelDefinition:
        models = self._registry.available_models(self.capability)
        if not models:
            raise NoModelAvailableError(f'No {self.capability.value} model in the registry')

        if model_id is not None:
            for model in models:
                if model.id == model_id:
                    return model
            raise ModelLoadError(f'Unknown {self.capability.value} model: {model_id}')

        preferred = [m for m in models if m.id == self._preferred_model_id]
        downloaded = [m for m in preferred + models if self._registry.is_downloaded(m)]
        if downloaded:
            return downloaded[0]
        return preferred[0] if preferred else models[0]

    def _close_abandoned(self, future: asyncio.Future, model_id: str) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        log.info('Closing backend of abandoned load (%s)', model_id)
        _close_quietly(future.result(), model_id)

    def _ensure_loaded(self) -> None:
        if self._state is not EngineState.LOADED or self._backend is None:
            raise ModelNotLoadedError(self.capability)

    @asynccontextmanager
    async def _acquire_backend(self) -> AsyncIterator[B]:
        self._ensure_loaded()
        async with self._inference_lock:
            # The state may have moved on while this call was queued.
            self._ensure_loaded()
            assert self._backend is not None
            yield self._backend

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        """Call ``fn(backend, *args)`` in a worker thread under the inference lock."""
        async with self._acquire_backend() as backend:
            future = asyncio.get_running_loop().run_in_executor(None, fn, backend, *args)
            await _drain(future)
            try:
                return future.result()
            except EngineError:
                raise
            except Exception as e:
                raise InferenceError(f'{self.capability.value} inference failed: {e}') from e

    async def _stream(self, fn: Callable[..., Iterator[str]], *args: Any) -> AsyncIterator[str]:
        """Iterate ``fn(backend, *args)`` in a worker thread, yielding chunks on the loop.

        The inference lock is held until the worker returns, including when the
        consumer stops early.
        """
        async with self._acquire_backend() as backend:
            loop = asyncio.get_running_loop()
            queue: asyncio.Queue[tuple[str | None, Exception | None]] = asyncio.Queue()
            stop = threading.Event()

            def pump() -> None:
                try:
                    for chunk in fn(backend, *args):
                        if stop.is_set():
                            return
                        loop.call_soon_threadsafe(queue.put_nowait, (chunk, None))
                except Exception as e:
                    loop.call_soon_threadsafe(queue.put_nowait, (None, e))
                else:
                    loop.call_soon_threadsafe(queue.put_nowait, (None, None))

            worker = loop.run_in_executor(None, pump)
            try:
                while True:
                    chunk, error = await queue.get()
                    if error is not None:
                        raise InferenceError(f'{self.capability.value} inference failed: {error}') from error
                    if chunk is None:
                        break
                    yield chunk
            finally:
                stop.set()
                await _drain(worker)

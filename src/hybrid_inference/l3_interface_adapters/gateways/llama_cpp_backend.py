"""Gateway: llama.cpp backends — implement TextGenerationBackend and VisionBackend ports."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from llama_cpp import Llama

from hybrid_inference.l1_entities.chat_message import ChatMessage
from hybrid_inference.l1_entities.model_definition import ModelDefinition
from hybrid_inference.l3_interface_adapters.gateways.image_inspector import image_data_url

log = logging.getLogger('hinf.backend.llama')

DEFAULT_CONTEXT_TOKENS = 4096


def _thread_counts() -> tuple[int, int]:
    """(prompt threads, batch threads): physical-core estimate and all logical cores."""
    logical = os.cpu_count() or 4
    return max(1, logical // 2), logical


def find_gguf_files(model_dir: Path) -> tuple[Path, Path | None]:
    """Return (weights, multimodal projector) from a model directory.

    The projector is the ``*mmproj*.gguf`` file, if any; weights are the
    first other ``*.gguf`` file.
    """
    files = sorted(model_dir.glob('*.gguf'))
    projectors = [f for f in files if 'mmproj' in f.name.lower()]
    weights = [f for f in files if f not in projectors]
    if not weights:
        raise FileNotFoundError(f'No GGUF weights in {model_dir}')
    return weights[0], (projectors[0] if projectors else None)


def _stream_content(chunks) -> Iterator[str]:
    for chunk in chunks:
        choices = chunk.get('choices') or []
        if not choices:
            continue
        content = choices[0].get('delta', {}).get('content')
        if content:
            yield content


class LlamaTextBackend:
    """Chat completion over a local GGUF model."""

    def __init__(self, model_path: Path, n_ctx: int = DEFAULT_CONTEXT_TOKENS) -> None:
        n_threads, n_threads_batch = _thread_counts()
        self._llm: Llama | None = Llama(
            model_path=str(model_path),
            n_ctx=n_ctx,
            n_threads=n_threads,
            n_threads_batch=n_threads_batch,
            n_batch=512,
            verbose=False,
        )
        log.info('Loaded GGUF model %s (n_ctx=%d, threads=%d/%d)', model_path.name, n_ctx, n_threads, n_threads_batch)

    def generate(self, messages: list[ChatMessage], max_tokens: int, temperature: float) -> Iterator[str]:
        if self._llm is None:
            raise RuntimeError('Model has been closed')
        chunks = self._llm.create_chat_completion(
            messages=[m.model_dump() for m in messages],
            max_tokens=max_tokens,
            temperature=temperature,
            stream=True,
        )
        yield from _stream_content(chunks)

    def close(self) -> None:
        if self._llm is not None:
            self._llm.close()
            self._llm = None


class LlavaVisionBackend:
    """LLaVA-style multimodal model: GGUF weights plus a CLIP projector."""

    def __init__(self, model_path: Path, projector_path: Path, n_ctx: int = DEFAULT_CONTEXT_TOKENS) -> None:
        from llama_cpp.llama_chat_format import Llava15ChatHandler  # noqa: PLC0415 -- deferred: only vision needs it

        n_threads, n_threads_batch = _thread_counts()
        self._llm: Llama | None = Llama(
            model_path=str(model_path),
            chat_handler=Llava15ChatHandler(clip_model_path=str(projector_path), verbose=False),
            n_ctx=n_ctx,
            n_threads=n_threads,
            n_threads_batch=n_threads_batch,
            verbose=False,
        )
        log.info('Loaded vision model %s with projector %s', model_path.name, projector_path.name)

    def describe(self, image: bytes, prompt: str, max_tokens: int, temperature: float) -> Iterator[str]:
        if self._llm is None:
            raise RuntimeError('Model has been closed')
        chunks = self._llm.create_chat_completion(
            messages=[
                {
                    'role': 'user',
                    'content': [
                        {'type': 'image_url', 'image_url': {'url': image_data_url(image)}},
                        {'type': 'text', 'text': prompt},
                    ],
                }
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            stream=True,
        )
        yield from _stream_content(chunks)

    def close(self) -> None:
        if self._llm is not None:
            self._llm.close()
            self._llm = None


def load_llama_text_backend(model: ModelDefinition, path: Path) -> LlamaTextBackend:
    weights, _ = find_gguf_files(path)
    return LlamaTextBackend(weights)


def load_llava_vision_backend(model: ModelDefinition, path: Path) -> LlavaVisionBackend:
    weights, projector = find_gguf_files(path)
    if projector is None:
        raise FileNotFoundError(f'No *mmproj*.gguf projector in {path} for {model.id}')
    return LlavaVisionBackend(weights, projector)

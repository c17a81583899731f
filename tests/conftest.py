"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import io
import struct
import threading
from collections.abc import Iterator
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.audio import AudioFormat
from hybrid_inference.l1_entities.capability import Capability, ProviderChoice
from hybrid_inference.l1_entities.chat_message import ChatMessage
from hybrid_inference.l1_entities.config import AppConfig
from hybrid_inference.l1_entities.model_definition import ModelDefinition
from hybrid_inference.l1_entities.transcript import TranscriptionSegment
from hybrid_inference.l4_frameworks_and_drivers.infra_config import build_app_config

EMBEDDING_MODEL = ModelDefinition(
    id='emb-small', name='Embedding small', capability=Capability.EMBEDDING, remote_id='org/emb-small'
)
EMBEDDING_MODEL_ALT = ModelDefinition(
    id='emb-large', name='Embedding large', capability=Capability.EMBEDDING, remote_id='org/emb-large'
)
TRANSCRIPTION_MODEL = ModelDefinition(
    id='stt-base', name='STT base', capability=Capability.TRANSCRIPTION, remote_id='org/stt-base'
)
TEXT_MODEL = ModelDefinition(
    id='llm-small', name='LLM small', capability=Capability.TEXT_GENERATION, remote_id='org/llm-small'
)
VISION_MODEL = ModelDefinition(
    id='vlm-small', name='VLM small', capability=Capability.VISION, remote_id='org/vlm-small'
)
ALL_MODELS = (EMBEDDING_MODEL, EMBEDDING_MODEL_ALT, TRANSCRIPTION_MODEL, TEXT_MODEL, VISION_MODEL)


def make_png_bytes(size: tuple[int, int] = (4, 4)) -> bytes:
    buf = io.BytesIO()
    Image.new('RGB', size, color=(255, 255, 255)).save(buf, format='PNG')
    return buf.getvalue()


def make_wav_bytes(
    samples: np.ndarray,
    sample_rate: int = 16000,
    channels: int = 1,
    bits: int = 16,
    audio_format: int = 1,
) -> bytes:
    """Build a RIFF/WAVE container from float samples in [-1, 1] (interleaved if multi-channel)."""
    samples = np.asarray(samples, dtype=np.float64)
    if audio_format == 3:
        payload = samples.astype('<f4').tobytes()
        bits = 32
    elif bits == 8:
        payload = np.clip(samples * 128 + 128, 0, 255).astype(np.uint8).tobytes()
    elif bits == 16:
        payload = np.clip(samples * 32768, -32768, 32767).astype('<i2').tobytes()
    elif bits == 24:
        ints = np.clip(samples * 8388608, -8388608, 8388607).astype(np.int32)
        payload = b''.join(int(v).to_bytes(3, 'little', signed=True) for v in ints)
    elif bits == 32:
        payload = np.clip(samples * 2147483648, -2147483648, 2147483647).astype('<i4').tobytes()
    else:
        raise ValueError(bits)
    block_align = channels * bits // 8
    fmt_chunk = struct.pack('<HHIIHH', audio_format, channels, sample_rate, sample_rate * block_align, block_align, bits)
    body = b'WAVE' + b'fmt ' + struct.pack('<I', len(fmt_chunk)) + fmt_chunk
    body += b'data' + struct.pack('<I', len(payload)) + payload
    return b'RIFF' + struct.pack('<I', len(body)) + body


# --- Protocol-conforming Fakes ---


class FakeModelRegistry:
    """Fake model registry: in-memory catalog, presence set by id."""

    def __init__(
        self,
        models: tuple[ModelDefinition, ...] = ALL_MODELS,
        downloaded: set[str] | None = None,
        base_dir: Path = Path('/fake/models'),
    ) -> None:
        self._models = models
        self.downloaded = {m.id for m in models} if downloaded is None else set(downloaded)
        self._base_dir = base_dir

    def available_models(self, capability: Capability | None = None) -> list[ModelDefinition]:
        return [m for m in self._models if capability is None or m.capability is capability]

    def download_path(self, model: ModelDefinition) -> Path:
        return self._base_dir / model.id

    def is_downloaded(self, model: ModelDefinition) -> bool:
        return model.id in self.downloaded


class FakeEmbeddingBackend:
    """Deterministic fake: vector derived from character codes."""

    def __init__(self, dim: int = 4) -> None:
        self._dim = dim
        self.embed_calls: list[list[str]] = []
        self.close_calls = 0
        self.fail_with: Exception | None = None
        self.override: np.ndarray | None = None

    @property
    def dimensions(self) -> int:
        return self._dim

    def embed(self, texts: list[str]) -> np.ndarray:
        self.embed_calls.append(list(texts))
        if self.fail_with is not None:
            raise self.fail_with
        if self.override is not None:
            return self.override
        rows = []
        for text in texts:
            codes = np.array([ord(c) for c in text], dtype=np.float64)
            row = np.array([codes.sum() * (i + 1) % 97 + len(text) for i in range(self._dim)], dtype=np.float64)
            rows.append(row / np.linalg.norm(row))
        return np.vstack(rows).astype(np.float32)

    def close(self) -> None:
        self.close_calls += 1


class FakeTranscriptionBackend:
    def __init__(self, segments: list[TranscriptionSegment] | None = None) -> None:
        self._segments = segments or []
        self.transcribe_calls: list[tuple[np.ndarray, str | None]] = []
        self.close_calls = 0
        self.gate: threading.Event | None = None
        self.started = threading.Event()

    def transcribe(self, audio: np.ndarray, language: str | None) -> list[TranscriptionSegment]:
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self.transcribe_calls.append((audio, language))
        return list(self._segments)

    def close(self) -> None:
        self.close_calls += 1


class FakeTextBackend:
    def __init__(self, chunks: list[str] | None = None) -> None:
        self._chunks = chunks if chunks is not None else ['Hello', ', ', 'world']
        self.generate_calls: list[tuple[list[ChatMessage], int, float]] = []
        self.yielded = 0
        self.close_calls = 0
        self.fail_after: int | None = None

    def generate(self, messages: list[ChatMessage], max_tokens: int, temperature: float) -> Iterator[str]:
        self.generate_calls.append((list(messages), max_tokens, temperature))
        for i, chunk in enumerate(self._chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise RuntimeError('decoder exploded')
            self.yielded += 1
            yield chunk

    def close(self) -> None:
        self.close_calls += 1


class FakeVisionBackend:
    def __init__(self, chunks: list[str] | None = None) -> None:
        self._chunks = chunks if chunks is not None else ['  Invoice ', '#42\n']
        self.describe_calls: list[tuple[bytes, str, int, float]] = []
        self.close_calls = 0

    def describe(self, image: bytes, prompt: str, max_tokens: int, temperature: float) -> Iterator[str]:
        self.describe_calls.append((image, prompt, max_tokens, temperature))
        yield from self._chunks

    def close(self) -> None:
        self.close_calls += 1


class FakeLoader:
    """Backend loader recording calls. Optionally fails or blocks until released."""

    def __init__(self, factory, fail_with: Exception | None = None) -> None:
        self._factory = factory
        self.fail_with = fail_with
        self.calls: list[tuple[ModelDefinition, Path]] = []
        self.backends: list = []
        self.gate: threading.Event | None = None
        self.started = threading.Event()

    def __call__(self, model: ModelDefinition, path: Path):
        self.calls.append((model, path))
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail_with is not None:
            raise self.fail_with
        backend = self._factory()
        self.backends.append(backend)
        return backend


class FakeProviderSettings:
    def __init__(self, choices: dict[Capability, ProviderChoice] | None = None) -> None:
        self.choices = dict(choices or {})
        self.set_calls: list[tuple[Capability, ProviderChoice]] = []

    def choice_for(self, capability: Capability) -> ProviderChoice:
        return self.choices.get(capability, ProviderChoice.LOCAL)

    def set_choice(self, capability: Capability, choice: ProviderChoice) -> None:
        self.set_calls.append((capability, choice))
        self.choices[capability] = choice


class FakeSTTProvider:
    """Fake STT provider for use case tests."""

    def __init__(self, segments: list[TranscriptionSegment] | None = None) -> None:
        self._segments = segments or []
        self.calls: list[tuple[bytes, AudioFormat, AppLanguage | None]] = []

    async def transcribe(
        self,
        audio_data: bytes,
        fmt: AudioFormat,
        language: AppLanguage | None = None,
    ) -> list[TranscriptionSegment]:
        self.calls.append((audio_data, fmt, language))
        return list(self._segments)

    def set_segments(self, segments: list[TranscriptionSegment]) -> None:
        self._segments = segments


# --- Standard Fixtures ---


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def fake_registry() -> FakeModelRegistry:
    return FakeModelRegistry()


@pytest.fixture
def fake_settings() -> FakeProviderSettings:
    return FakeProviderSettings()


@pytest.fixture
def wav_bytes() -> bytes:
    t = np.arange(1600) / 16000
    return make_wav_bytes(0.5 * np.sin(2 * np.pi * 440 * t))


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
models:
  embedding: "emb-small"
transcription:
  language: "spanish"
generation:
  max_tokens: 256
  temperature: 0.2
auto_load: false
cloud_provider: "ollama"
ollama:
  host: "http://ollama.local:11434"
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p

"""Tests for local providers — real engines over fake backends."""

from __future__ import annotations

import numpy as np
import pytest
import pytest_asyncio

from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.audio import AudioFormat, DecodedAudio
from hybrid_inference.l1_entities.errors import (
    AudioDecodeError,
    ImageDecodeError,
    ModelUnavailableError,
    ProviderNotConfiguredError,
    ProviderRequestError,
)
from hybrid_inference.l1_entities.transcript import TranscriptionSegment
from hybrid_inference.l2_use_cases.engines.embedding_engine import EmbeddingEngine
from hybrid_inference.l2_use_cases.engines.text_generation_engine import TextGenerationEngine
from hybrid_inference.l2_use_cases.engines.transcription_engine import TranscriptionEngine
from hybrid_inference.l2_use_cases.engines.vision_engine import VisionEngine
from hybrid_inference.l3_interface_adapters.providers.local_embedding_provider import LocalEmbeddingProvider
from hybrid_inference.l3_interface_adapters.providers.local_stt_provider import LocalSTTProvider
from hybrid_inference.l3_interface_adapters.providers.local_text_generation_provider import (
    LocalTextGenerationProvider,
)
from hybrid_inference.l3_interface_adapters.providers.local_vision_provider import LocalVisionProvider
from tests.conftest import (
    FakeEmbeddingBackend,
    FakeLoader,
    FakeModelRegistry,
    FakeTextBackend,
    FakeTranscriptionBackend,
    FakeVisionBackend,
    make_png_bytes,
)

SEGMENTS = [TranscriptionSegment(text='Hola a todos.', start=0.0, end=1.4)]


class TestLocalEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_not_loaded_is_not_configured(self):
        provider = LocalEmbeddingProvider(EmbeddingEngine(FakeModelRegistry(), FakeLoader(FakeEmbeddingBackend)))
        with pytest.raises(ProviderNotConfiguredError):
            await provider.embed('hello')
        with pytest.raises(ProviderNotConfiguredError):
            _ = provider.dimensions

    @pytest.mark.asyncio
    async def test_auto_load_on_first_use(self):
        loader = FakeLoader(lambda: FakeEmbeddingBackend(dim=3))
        provider = LocalEmbeddingProvider(EmbeddingEngine(FakeModelRegistry(), loader), auto_load=True)

        vector = await provider.embed('hello')

        assert len(vector) == 3
        assert provider.dimensions == 3
        assert len(loader.calls) == 1

    @pytest.mark.asyncio
    async def test_auto_load_failure_is_model_unavailable(self):
        registry = FakeModelRegistry(downloaded=set())
        provider = LocalEmbeddingProvider(
            EmbeddingEngine(registry, FakeLoader(FakeEmbeddingBackend)), auto_load=True
        )
        with pytest.raises(ModelUnavailableError):
            await provider.embed('hello')

    @pytest.mark.asyncio
    async def test_invalid_input_is_request_error(self):
        engine = EmbeddingEngine(FakeModelRegistry(), FakeLoader(FakeEmbeddingBackend))
        await engine.load()
        with pytest.raises(ProviderRequestError):
            await LocalEmbeddingProvider(engine).embed_batch(['ok', ''])


class TestLocalSTTProvider:
    @pytest_asyncio.fixture
    async def engine(self) -> TranscriptionEngine:
        eng = TranscriptionEngine(FakeModelRegistry(), FakeLoader(lambda: FakeTranscriptionBackend(SEGMENTS)))
        await eng.load()
        return eng

    @pytest.mark.asyncio
    async def test_transcribes_wav(self, engine, wav_bytes):
        provider = LocalSTTProvider(engine)
        assert await provider.transcribe(wav_bytes, AudioFormat.WAV, AppLanguage.SPANISH) == SEGMENTS
        backend = engine._backend  # noqa: SLF001 -- inspecting the fake
        audio, language = backend.transcribe_calls[0]
        assert language == 'es'
        assert len(audio) == 1600

    @pytest.mark.asyncio
    async def test_auto_language_sends_no_hint(self, engine, wav_bytes):
        await LocalSTTProvider(engine).transcribe(wav_bytes, AudioFormat.WAV, AppLanguage.AUTO)
        assert engine._backend.transcribe_calls[0][1] is None  # noqa: SLF001

    @pytest.mark.asyncio
    async def test_malformed_audio_reported_before_load_state(self):
        unloaded = TranscriptionEngine(FakeModelRegistry(), FakeLoader(FakeTranscriptionBackend))
        with pytest.raises(AudioDecodeError):
            await LocalSTTProvider(unloaded).transcribe(b'not a wav', AudioFormat.WAV)

    @pytest.mark.asyncio
    async def test_valid_audio_unloaded_is_not_configured(self, wav_bytes):
        unloaded = TranscriptionEngine(FakeModelRegistry(), FakeLoader(FakeTranscriptionBackend))
        with pytest.raises(ProviderNotConfiguredError):
            await LocalSTTProvider(unloaded).transcribe(wav_bytes, AudioFormat.WAV)

    @pytest.mark.asyncio
    async def test_injected_decoder(self, engine):
        seen = []

        def decoder(data: bytes, fmt: AudioFormat) -> DecodedAudio:
            seen.append(fmt)
            return DecodedAudio(samples=np.zeros(800, dtype=np.float32), sample_rate=8000, channels=1)

        await LocalSTTProvider(engine, decoder=decoder).transcribe(b'\x1a\x45\xdf\xa3', AudioFormat.WEBM)

        assert seen == [AudioFormat.WEBM]
        assert len(engine._backend.transcribe_calls[0][0]) == 1600  # noqa: SLF001


class TestLocalTextGenerationProvider:
    @pytest.mark.asyncio
    async def test_streams(self):
        engine = TextGenerationEngine(FakeModelRegistry(), FakeLoader(FakeTextBackend))
        provider = LocalTextGenerationProvider(engine, auto_load=True)

        assert [c async for c in provider.generate('hi')] == ['Hello', ', ', 'world']

    @pytest.mark.asyncio
    async def test_not_configured(self):
        engine = TextGenerationEngine(FakeModelRegistry(), FakeLoader(FakeTextBackend))
        with pytest.raises(ProviderNotConfiguredError):
            async for _ in LocalTextGenerationProvider(engine).generate('hi'):
                pass

    @pytest.mark.asyncio
    async def test_backend_failure_is_request_error(self):
        def failing() -> FakeTextBackend:
            backend = FakeTextBackend()
            backend.fail_after = 0
            return backend

        engine = TextGenerationEngine(FakeModelRegistry(), FakeLoader(failing))
        with pytest.raises(ProviderRequestError):
            async for _ in LocalTextGenerationProvider(engine, auto_load=True).generate('hi'):
                pass


class TestLocalVisionProvider:
    @pytest.mark.asyncio
    async def test_extract_text(self):
        engine = VisionEngine(FakeModelRegistry(), FakeLoader(FakeVisionBackend))
        provider = LocalVisionProvider(engine, auto_load=True)

        assert await provider.extract_text(make_png_bytes()) == 'Invoice #42'

    @pytest.mark.asyncio
    async def test_garbage_image_rejected_without_loading(self):
        loader = FakeLoader(FakeVisionBackend)
        provider = LocalVisionProvider(VisionEngine(FakeModelRegistry(), loader), auto_load=True)

        with pytest.raises(ImageDecodeError):
            await provider.extract_text(b'nope')
        assert loader.calls == []

    @pytest.mark.asyncio
    async def test_analyze_image_streams(self):
        engine = VisionEngine(FakeModelRegistry(), FakeLoader(FakeVisionBackend))
        chunks = [c async for c in LocalVisionProvider(engine, auto_load=True).analyze_image(make_png_bytes(), 'What?')]
        assert ''.join(chunks).strip() == 'Invoice #42'

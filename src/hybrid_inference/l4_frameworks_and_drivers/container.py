"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.config import AppConfig
from hybrid_inference.l1_entities.model_definition import ModelDefinition
from hybrid_inference.l2_use_cases.engines.embedding_engine import EmbeddingEngine
from hybrid_inference.l2_use_cases.engines.text_generation_engine import TextGenerationEngine
from hybrid_inference.l2_use_cases.engines.transcription_engine import TranscriptionEngine
from hybrid_inference.l2_use_cases.engines.vision_engine import VisionEngine
from hybrid_inference.l2_use_cases.language_detector import LanguageDetector
from hybrid_inference.l2_use_cases.ports.backends import BackendLoader
from hybrid_inference.l2_use_cases.ports.model_registry import ModelRegistry
from hybrid_inference.l2_use_cases.ports.provider_settings import ProviderSettings
from hybrid_inference.l2_use_cases.ports.storage import StorageLocations
from hybrid_inference.l2_use_cases.transcribe_audio_use_case import TranscribeAudioUseCase
from hybrid_inference.l3_interface_adapters.controllers.provider_registry import ProviderRegistry
from hybrid_inference.l3_interface_adapters.gateways.app_storage import AppStorage
from hybrid_inference.l3_interface_adapters.gateways.local_model_registry import LocalModelRegistry
from hybrid_inference.l3_interface_adapters.gateways.paths import PROVIDER_SETTINGS_PATH
from hybrid_inference.l3_interface_adapters.gateways.yaml_provider_settings import YamlProviderSettings
from hybrid_inference.l3_interface_adapters.providers.local_embedding_provider import LocalEmbeddingProvider
from hybrid_inference.l3_interface_adapters.providers.local_stt_provider import LocalSTTProvider
from hybrid_inference.l3_interface_adapters.providers.local_text_generation_provider import (
    LocalTextGenerationProvider,
)
from hybrid_inference.l3_interface_adapters.providers.local_vision_provider import LocalVisionProvider
from hybrid_inference.l4_frameworks_and_drivers.infra_config import InfraConfig


def _load_embedding(model: ModelDefinition, path: Path):
    from hybrid_inference.l3_interface_adapters.gateways.sentence_transformer_backend import (  # noqa: PLC0415 -- deferred: torch imported on first load
        load_sentence_transformer_backend,
    )

    return load_sentence_transformer_backend(model, path)


def _load_transcription(model: ModelDefinition, path: Path):
    from hybrid_inference.l3_interface_adapters.gateways.whisper_backend import (  # noqa: PLC0415 -- deferred: native runtime imported on first load
        load_whisper_backend,
    )

    return load_whisper_backend(model, path)


def _load_text_generation(model: ModelDefinition, path: Path):
    from hybrid_inference.l3_interface_adapters.gateways.llama_cpp_backend import (  # noqa: PLC0415 -- deferred: native runtime imported on first load
        load_llama_text_backend,
    )

    return load_llama_text_backend(model, path)


def _load_vision(model: ModelDefinition, path: Path):
    from hybrid_inference.l3_interface_adapters.gateways.llama_cpp_backend import (  # noqa: PLC0415 -- deferred: native runtime imported on first load
        load_llava_vision_backend,
    )

    return load_llava_vision_backend(model, path)


DEFAULT_LOADERS: dict[Capability, BackendLoader] = {
    Capability.EMBEDDING: _load_embedding,
    Capability.TRANSCRIPTION: _load_transcription,
    Capability.TEXT_GENERATION: _load_text_generation,
    Capability.VISION: _load_vision,
}


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(
        self,
        config: AppConfig,
        infra: InfraConfig | None = None,
        storage: StorageLocations | None = None,
        model_registry: ModelRegistry | None = None,
        settings: ProviderSettings | None = None,
        loaders: dict[Capability, BackendLoader] | None = None,
    ) -> None:
        self.config = config
        self.infra = infra or InfraConfig()

        base_dir = Path(config.storage.base_dir).expanduser() if config.storage.base_dir else None
        self.storage: StorageLocations = storage or AppStorage(base_dir)
        self.model_registry: ModelRegistry = model_registry or LocalModelRegistry(self.storage.models_dir)
        self.settings: ProviderSettings = settings or YamlProviderSettings(PROVIDER_SETTINGS_PATH)
        _loaders = {**DEFAULT_LOADERS, **(loaders or {})}

        models = config.models
        self.embedding_engine = EmbeddingEngine(
            self.model_registry, _loaders[Capability.EMBEDDING], models.embedding
        )
        self.transcription_engine = TranscriptionEngine(
            self.model_registry, _loaders[Capability.TRANSCRIPTION], models.transcription
        )
        self.text_generation_engine = TextGenerationEngine(
            self.model_registry, _loaders[Capability.TEXT_GENERATION], models.text_generation
        )
        self.vision_engine = VisionEngine(self.model_registry, _loaders[Capability.VISION], models.vision)

        self.language_detector = LanguageDetector(config.language_detection.min_text_length)

        auto_load = config.auto_load
        local = {
            Capability.EMBEDDING: LocalEmbeddingProvider(self.embedding_engine, auto_load),
            Capability.TRANSCRIPTION: LocalSTTProvider(self.transcription_engine, auto_load),
            Capability.TEXT_GENERATION: LocalTextGenerationProvider(self.text_generation_engine, auto_load),
            Capability.VISION: LocalVisionProvider(self.vision_engine, auto_load),
        }
        self.cloud_provider = self._build_cloud_provider(self.infra)
        self.provider_registry = ProviderRegistry(self.settings, local, self._cloud_table(self.cloud_provider))

    @staticmethod
    def _build_cloud_provider(infra: InfraConfig) -> Any:
        if infra.cloud_provider == 'openai':
            from hybrid_inference.l3_interface_adapters.gateways.openai_provider import (  # noqa: PLC0415 -- deferred: openai SDK only when configured
                OpenAICompatProvider,
            )

            cfg = infra.openai
            return OpenAICompatProvider(
                api_key=cfg.api_key,
                base_url=cfg.base_url,
                embedding_model=cfg.embedding_model,
                embedding_dimensions=cfg.embedding_dimensions,
                transcription_model=cfg.transcription_model,
                chat_model=cfg.chat_model,
                vision_model=cfg.vision_model,
            )
        if infra.cloud_provider == 'ollama':
            from hybrid_inference.l3_interface_adapters.gateways.ollama_provider import (  # noqa: PLC0415 -- deferred: ollama SDK only when configured
                OllamaProvider,
            )

            cfg = infra.ollama
            return OllamaProvider(
                host=cfg.host,
                embedding_model=cfg.embedding_model,
                embedding_dimensions=cfg.embedding_dimensions,
                chat_model=cfg.chat_model,
                vision_model=cfg.vision_model,
            )
        return None

    @staticmethod
    def _cloud_table(provider: Any) -> dict[Capability, Any]:
        if provider is None:
            return {}
        return {cap: provider for cap in Capability if cap in provider.capabilities}

    def transcribe_use_case(self) -> TranscribeAudioUseCase:
        return TranscribeAudioUseCase(
            provider=self.provider_registry.stt_provider(),
            detector=self.language_detector,
            language=self.config.transcription.language,
        )

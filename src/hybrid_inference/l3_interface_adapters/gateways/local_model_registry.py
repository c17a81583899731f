"""Gateway: curated local model catalog — implements ModelRegistry port."""

from __future__ import annotations

from pathlib import Path

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.model_definition import ModelDefinition

DEFAULT_CATALOG: tuple[ModelDefinition, ...] = (
    ModelDefinition(
        id='all-minilm-l6-v2',
        name='all-MiniLM-L6-v2',
        capability=Capability.EMBEDDING,
        remote_id='sentence-transformers/all-MiniLM-L6-v2',
        approximate_size_gb=0.09,
        memory_usage_gb=0.2,
    ),
    ModelDefinition(
        id='whisper-large-v3-turbo-q8',
        name='Whisper large-v3-turbo (q8_0)',
        capability=Capability.TRANSCRIPTION,
        remote_id='ggerganov/whisper.cpp',
        approximate_size_gb=0.87,
        memory_usage_gb=1.0,
    ),
    ModelDefinition(
        id='whisper-base',
        name='Whisper base',
        capability=Capability.TRANSCRIPTION,
        remote_id='ggerganov/whisper.cpp',
        approximate_size_gb=0.15,
        memory_usage_gb=0.3,
    ),
    ModelDefinition(
        id='qwen2.5-7b-instruct-q4',
        name='Qwen2.5 7B Instruct (Q4_K_M)',
        capability=Capability.TEXT_GENERATION,
        remote_id='Qwen/Qwen2.5-7B-Instruct-GGUF',
        approximate_size_gb=4.7,
        memory_usage_gb=5.5,
    ),
    ModelDefinition(
        id='llava-v1.5-7b-q4',
        name='LLaVA 1.5 7B (Q4_K)',
        capability=Capability.VISION,
        remote_id='mys/ggml_llava-v1.5-7b',
        approximate_size_gb=4.4,
        memory_usage_gb=5.0,
    ),
)


class LocalModelRegistry:
    """Resolves artifacts under ``<models_dir>/<model id>/``.

    A model counts as downloaded when its directory holds at least one
    non-hidden entry. Never downloads anything.
    """

    def __init__(self, models_dir: Path, catalog: tuple[ModelDefinition, ...] = DEFAULT_CATALOG) -> None:
        self._models_dir = models_dir
        self._catalog = catalog

    def available_models(self, capability: Capability | None = None) -> list[ModelDefinition]:
        return [m for m in self._catalog if capability is None or m.capability is capability]

    def get(self, model_id: str) -> ModelDefinition | None:
        return next((m for m in self._catalog if m.id == model_id), None)

    def download_path(self, model: ModelDefinition) -> Path:
        return self._models_dir / model.id

    def is_downloaded(self, model: ModelDefinition) -> bool:
        path = self.download_path(model)
        if not path.is_dir():
            return False
        try:
            return any(not entry.name.startswith('.') for entry in path.iterdir())
        except OSError:
            return False

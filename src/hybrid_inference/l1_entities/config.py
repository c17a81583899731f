"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.capability import Capability


class ModelsConfig(BaseModel):
    """Preferred catalog model id per capability."""

    embedding: str
    transcription: str
    text_generation: str
    vision: str

    def preferred_for(self, capability: Capability) -> str:
        return {
            Capability.EMBEDDING: self.embedding,
            Capability.TRANSCRIPTION: self.transcription,
            Capability.TEXT_GENERATION: self.text_generation,
            Capability.VISION: self.vision,
        }[capability]


class TranscriptionConfig(BaseModel):
    language: AppLanguage


class GenerationConfig(BaseModel):
    max_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0, le=2.0)


class LanguageDetectionConfig(BaseModel):
    min_text_length: int = Field(ge=1)
    max_hypotheses: int = Field(ge=1)


class StorageConfig(BaseModel):
    base_dir: str | None = None  # None → platform user data dir


class AppConfig(BaseModel):
    models: ModelsConfig
    transcription: TranscriptionConfig
    generation: GenerationConfig
    language_detection: LanguageDetectionConfig
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auto_load: bool = True

"""Infrastructure provider configs — lives in L4, not domain."""

from __future__ import annotations

import copy
from typing import Literal

from pydantic import BaseModel, Field

from hybrid_inference.l1_entities.config import AppConfig
from hybrid_inference.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'models': {
        'embedding': 'all-minilm-l6-v2',
        'transcription': 'whisper-large-v3-turbo-q8',
        'text_generation': 'qwen2.5-7b-instruct-q4',
        'vision': 'llava-v1.5-7b-q4',
    },
    'transcription': {
        'language': 'auto',
    },
    'generation': {
        'max_tokens': 512,
        'temperature': 0.7,
    },
    'language_detection': {
        'min_text_length': 5,
        'max_hypotheses': 5,
    },
    'storage': {
        'base_dir': None,
    },
    'auto_load': True,
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)


class OllamaProviderConfig(BaseModel):
    host: str = 'http://localhost:11434'
    embedding_model: str = 'nomic-embed-text'
    embedding_dimensions: int = Field(default=768, gt=0)
    chat_model: str = 'llama3.1'
    vision_model: str = 'llava'


class OpenAIProviderConfig(BaseModel):
    api_key: str | None = None  # None → SDK reads OPENAI_API_KEY env
    base_url: str = 'https://api.openai.com/v1'
    embedding_model: str = 'text-embedding-3-small'
    embedding_dimensions: int = Field(default=1536, gt=0)
    transcription_model: str = 'whisper-1'
    chat_model: str = 'gpt-4o-mini'
    vision_model: str = 'gpt-4o-mini'


class InfraConfig(BaseModel):
    """Groups all provider-specific settings outside the domain layer."""

    cloud_provider: Literal['openai', 'ollama'] | None = None  # None → local only
    ollama: OllamaProviderConfig = Field(default_factory=OllamaProviderConfig)
    openai: OpenAIProviderConfig = Field(default_factory=OpenAIProviderConfig)

"""Gateway: Ollama cloud/server provider — implements embedding, generation and vision ports."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import ollama as ollama_sync

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.errors import (
    ModelUnavailableError,
    ProviderError,
    ProviderNetworkError,
    ProviderRequestError,
    ProviderServerError,
    RateLimitedError,
)
from hybrid_inference.l2_use_cases.engines.vision_engine import OCR_PROMPT
from hybrid_inference.l3_interface_adapters.gateways.image_inspector import image_mime_type

log = logging.getLogger('hinf.cloud')


def map_ollama_error(exc: Exception) -> ProviderError:
    if isinstance(exc, ollama_sync.ResponseError):
        if exc.status_code == 404:
            return ModelUnavailableError(f'Model not available on Ollama: {exc.error}')
        if exc.status_code == 429:
            return RateLimitedError(f'Rate limited by Ollama: {exc.error}')
        if exc.status_code >= 500:
            return ProviderServerError(exc.status_code, exc.error)
        return ProviderRequestError(f'HTTP {exc.status_code}: {exc.error}')
    if isinstance(exc, ConnectionError):
        return ProviderNetworkError(f'Cannot connect to Ollama: {exc}')
    return ProviderRequestError(str(exc))


class OllamaProvider:
    """Wraps ollama.AsyncClient. Ollama serves no speech-to-text, so there is no transcribe()."""

    capabilities: frozenset[Capability] = frozenset({Capability.EMBEDDING, Capability.TEXT_GENERATION, Capability.VISION})

    def __init__(
        self,
        host: str = 'http://localhost:11434',
        embedding_model: str = 'nomic-embed-text',
        embedding_dimensions: int = 768,
        chat_model: str = 'llama3.1',
        vision_model: str = 'llava',
    ) -> None:
        self._host = host
        self._embedding_model = embedding_model
        self._embedding_dimensions = embedding_dimensions
        self._chat_model = chat_model
        self._vision_model = vision_model

    @property
    def dimensions(self) -> int:
        return self._embedding_dimensions

    async def embed(self, text: str) -> list[float]:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        client = ollama_sync.AsyncClient(host=self._host)
        try:
            resp = await client.embed(model=self._embedding_model, input=texts)
        except (ollama_sync.ResponseError, ConnectionError) as e:
            raise map_ollama_error(e) from e
        vectors = [list(v) for v in resp.embeddings]
        if len(vectors) != len(texts):
            raise ProviderRequestError(f'Expected {len(texts)} embeddings, got {len(vectors)}')
        return vectors

    async def generate(
        self,
        prompt: str,
        system_prompt: str = '',
        max_tokens: int = 512,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        messages = []
        if system_prompt:
            messages.append({'role': 'system', 'content': system_prompt})
        messages.append({'role': 'user', 'content': prompt})
        async for chunk in self._stream_chat(self._chat_model, messages, max_tokens, temperature):
            yield chunk

    async def extract_text(self, image_data: bytes, prompt: str = '') -> str:
        chunks = [c async for c in self._analyze(image_data, prompt or OCR_PROMPT, 2048, 0.0)]
        return ''.join(chunks).strip()

    async def analyze_image(self, image_data: bytes, prompt: str) -> AsyncIterator[str]:
        async for chunk in self._analyze(image_data, prompt, 1024, 0.2):
            yield chunk

    async def _analyze(self, image_data: bytes, prompt: str, max_tokens: int, temperature: float) -> AsyncIterator[str]:
        image_mime_type(image_data)  # validate before going to the network
        messages = [{'role': 'user', 'content': prompt, 'images': [image_data]}]
        async for chunk in self._stream_chat(self._vision_model, messages, max_tokens, temperature):
            yield chunk

    async def _stream_chat(
        self,
        model: str,
        messages: list[dict],
        max_tokens: int,
        temperature: float,
    ) -> AsyncIterator[str]:
        client = ollama_sync.AsyncClient(host=self._host)
        try:
            stream = await client.chat(
                model=model,
                messages=messages,
                stream=True,
                options={'temperature': temperature, 'num_predict': max_tokens},
            )
            async for part in stream:
                content = part.message.content
                if content:
                    yield content
        except (ollama_sync.ResponseError, ConnectionError) as e:
            raise map_ollama_error(e) from e

    def check_connectivity(self) -> tuple[bool, str]:
        try:
            client = ollama_sync.Client(host=self._host)
            client.list()
            return True, ''
        except Exception as e:
            return False, f'Cannot connect to Ollama: {e}'

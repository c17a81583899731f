"""Gateway: OpenAI-compatible cloud provider — implements all four provider ports.

Works with any OpenAI-compatible API: OpenAI, Groq, Together, vLLM, etc.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import openai

from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.audio import AudioFormat
from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.errors import (
    InvalidAPIKeyError,
    ModelUnavailableError,
    ProviderError,
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderRequestError,
    ProviderServerError,
    RateLimitedError,
)
from hybrid_inference.l1_entities.transcript import TranscriptionSegment
from hybrid_inference.l2_use_cases.engines.vision_engine import OCR_PROMPT
from hybrid_inference.l3_interface_adapters.gateways.image_inspector import image_data_url

log = logging.getLogger('hinf.cloud')


def _retry_after(exc: openai.APIStatusError) -> float:
    raw = exc.response.headers.get('retry-after') if exc.response is not None else None
    try:
        return max(0.0, float(raw)) if raw is not None else 1.0
    except ValueError:
        return 1.0


def map_openai_error(exc: openai.OpenAIError) -> ProviderError:
    """Translate an openai SDK exception into the provider error taxonomy."""
    if isinstance(exc, openai.AuthenticationError):
        return InvalidAPIKeyError(f'Authentication failed: {exc}')
    if isinstance(exc, openai.RateLimitError):
        return RateLimitedError(f'Rate limited: {exc}', retry_after=_retry_after(exc))
    if isinstance(exc, openai.NotFoundError):
        return ModelUnavailableError(f'Model not available: {exc}')
    if isinstance(exc, openai.APIConnectionError):
        return ProviderNetworkError(f'Cannot reach OpenAI-compatible API: {exc}')
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code >= 500:
            return ProviderServerError(exc.status_code, exc.message)
        return ProviderRequestError(f'HTTP {exc.status_code}: {exc.message}')
    return ProviderRequestError(str(exc))


class OpenAICompatProvider:
    """Wraps openai.AsyncOpenAI for embeddings, transcription, chat and vision."""

    capabilities: frozenset[Capability] = frozenset(Capability)

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = 'https://api.openai.com/v1',
        embedding_model: str = 'text-embedding-3-small',
        embedding_dimensions: int = 1536,
        transcription_model: str = 'whisper-1',
        chat_model: str = 'gpt-4o-mini',
        vision_model: str = 'gpt-4o-mini',
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._embedding_model = embedding_model
        self._embedding_dimensions = embedding_dimensions
        self._transcription_model = transcription_model
        self._chat_model = chat_model
        self._vision_model = vision_model

    def _client(self) -> openai.AsyncOpenAI:
        try:
            return openai.AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        except openai.OpenAIError as e:
            raise ProviderNotConfiguredError(f'OpenAI-compatible provider is not configured: {e}') from e

    @property
    def dimensions(self) -> int:
        return self._embedding_dimensions

    async def embed(self, text: str) -> list[float]:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        client = self._client()
        try:
            resp = await client.embeddings.create(model=self._embedding_model, input=texts)
        except openai.OpenAIError as e:
            raise map_openai_error(e) from e
        vectors = [d.embedding for d in sorted(resp.data, key=lambda d: d.index)]
        if len(vectors) != len(texts):
            raise ProviderRequestError(f'Expected {len(texts)} embeddings, got {len(vectors)}')
        return vectors

    async def transcribe(
        self,
        audio_data: bytes,
        fmt: AudioFormat,
        language: AppLanguage | None = None,
    ) -> list[TranscriptionSegment]:
        kwargs: dict = {}
        if language is not None and language.iso_code is not None:
            kwargs['language'] = language.iso_code
        client = self._client()
        try:
            resp = await client.audio.transcriptions.create(
                model=self._transcription_model,
                file=(f'audio.{fmt.value}', audio_data),
                response_format='verbose_json',
                **kwargs,
            )
        except openai.OpenAIError as e:
            raise map_openai_error(e) from e

        segments = getattr(resp, 'segments', None)
        if segments:
            return [
                TranscriptionSegment(text=s.text.strip(), start=s.start, end=max(s.start, s.end))
                for s in segments
                if s.text.strip()
            ]
        text = (getattr(resp, 'text', '') or '').strip()
        if not text:
            return []
        return [TranscriptionSegment(text=text, start=0.0, end=float(getattr(resp, 'duration', 0.0) or 0.0))]

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
        messages = [
            {
                'role': 'user',
                'content': [
                    {'type': 'text', 'text': prompt},
                    {'type': 'image_url', 'image_url': {'url': image_data_url(image_data)}},
                ],
            }
        ]
        async for chunk in self._stream_chat(self._vision_model, messages, max_tokens, temperature):
            yield chunk

    async def _stream_chat(
        self,
        model: str,
        messages: list[dict],
        max_tokens: int,
        temperature: float,
    ) -> AsyncIterator[str]:
        client = self._client()
        try:
            stream = await client.chat.completions.create(
                model=model,
                messages=messages,  # ty: ignore[invalid-argument-type] -- dict satisfies ChatCompletionMessageParam at runtime
                max_tokens=max_tokens,
                temperature=temperature,
                stream=True,
            )
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except openai.OpenAIError as e:
            raise map_openai_error(e) from e

    def check_connectivity(self) -> tuple[bool, str]:
        try:
            client = openai.OpenAI(api_key=self._api_key, base_url=self._base_url)
            client.models.list()
            return True, ''
        except openai.AuthenticationError as e:
            return False, f'Authentication failed: {e}'
        except Exception as e:
            return False, f'Cannot connect to OpenAI-compatible API: {e}'

"""Text generation engine: chat prompt → streamed completion chunks."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import aclosing

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.chat_message import ChatMessage
from hybrid_inference.l1_entities.errors import InvalidInputError
from hybrid_inference.l2_use_cases.engines.base import CapabilityEngine
from hybrid_inference.l2_use_cases.ports.backends import TextGenerationBackend


def _generate(
    backend: TextGenerationBackend,
    messages: list[ChatMessage],
    max_tokens: int,
    temperature: float,
) -> Iterator[str]:
    return backend.generate(messages, max_tokens, temperature)


def build_messages(prompt: str, system_prompt: str = '') -> list[ChatMessage]:
    messages = []
    if system_prompt:
        messages.append(ChatMessage(role='system', content=system_prompt))
    messages.append(ChatMessage(role='user', content=prompt))
    return messages


class TextGenerationEngine(CapabilityEngine[TextGenerationBackend]):
    capability = Capability.TEXT_GENERATION

    async def generate(
        self,
        prompt: str,
        system_prompt: str = '',
        max_tokens: int = 512,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        self._ensure_loaded()
        if not prompt:
            raise InvalidInputError('Prompt must not be empty')
        if max_tokens <= 0:
            raise InvalidInputError(f'max_tokens must be positive, got {max_tokens}')

        messages = build_messages(prompt, system_prompt)
        async with aclosing(self._stream(_generate, messages, max_tokens, temperature)) as chunks:
            async for chunk in chunks:
                if chunk:
                    yield chunk

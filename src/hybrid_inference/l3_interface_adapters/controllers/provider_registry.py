"""Controller: resolves the active provider per capability from the persisted choice."""

from __future__ import annotations

import logging
from typing import Any, cast

from hybrid_inference.l1_entities.capability import Capability, ProviderChoice
from hybrid_inference.l2_use_cases.engines.base import CapabilityEngine
from hybrid_inference.l2_use_cases.ports.provider_settings import ProviderSettings
from hybrid_inference.l2_use_cases.ports.providers import (
    EmbeddingProvider,
    STTProvider,
    TextGenerationProvider,
    VisionProvider,
)
from hybrid_inference.l3_interface_adapters.providers.local_provider_base import LocalProvider

log = logging.getLogger('hinf.registry')


class ProviderRegistry:
    """Table of (capability, choice) → provider.

    The choice is read from settings on every lookup, so a change made by
    the settings layer applies to the next call. Choosing ``cloud`` for a
    capability without a cloud provider falls back to local with a warning.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        local: dict[Capability, LocalProvider],
        cloud: dict[Capability, Any] | None = None,
    ) -> None:
        missing = [cap.value for cap in Capability if cap not in local]
        if missing:
            raise ValueError(f'No local provider for: {", ".join(missing)}')
        self._settings = settings
        self._local = dict(local)
        self._table: dict[tuple[Capability, ProviderChoice], Any] = {
            (cap, ProviderChoice.LOCAL): provider for cap, provider in local.items()
        }
        for cap, provider in (cloud or {}).items():
            self._table[(cap, ProviderChoice.CLOUD)] = provider

    def effective_choice(self, capability: Capability) -> ProviderChoice:
        choice = self._settings.choice_for(capability)
        if (capability, choice) not in self._table:
            log.warning('No %s provider configured for %s; falling back to local', choice.value, capability.value)
            return ProviderChoice.LOCAL
        return choice

    def has_cloud(self, capability: Capability) -> bool:
        return (capability, ProviderChoice.CLOUD) in self._table

    def provider(self, capability: Capability) -> Any:
        return self._table[(capability, self.effective_choice(capability))]

    def embedding_provider(self) -> EmbeddingProvider:
        return cast(EmbeddingProvider, self.provider(Capability.EMBEDDING))

    def stt_provider(self) -> STTProvider:
        return cast(STTProvider, self.provider(Capability.TRANSCRIPTION))

    def text_generation_provider(self) -> TextGenerationProvider:
        return cast(TextGenerationProvider, self.provider(Capability.TEXT_GENERATION))

    def vision_provider(self) -> VisionProvider:
        return cast(VisionProvider, self.provider(Capability.VISION))

    def engine(self, capability: Capability) -> CapabilityEngine:
        """The local engine behind a capability, for explicit load/unload."""
        return self._local[capability].engine

    async def unload_all(self) -> None:
        for capability in Capability:
            await self.engine(capability).unload()

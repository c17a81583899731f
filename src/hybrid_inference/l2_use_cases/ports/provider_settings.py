"""Port: persisted per-capability provider choice."""

from __future__ import annotations

from typing import Protocol

from hybrid_inference.l1_entities.capability import Capability, ProviderChoice


class ProviderSettings(Protocol):
    """Key-value record of which provider backs each capability."""

    def choice_for(self, capability: Capability) -> ProviderChoice:
        """Return the persisted choice; LOCAL when nothing was recorded."""
        ...

    def set_choice(self, capability: Capability, choice: ProviderChoice) -> None:
        """Persist a choice. Called by the settings layer only."""
        ...

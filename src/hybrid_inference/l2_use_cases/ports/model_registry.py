"""Port: model catalog and local artifact lookup."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from hybrid_inference.l1_entities.capability import Capability
from hybrid_inference.l1_entities.model_definition import ModelDefinition


class ModelRegistry(Protocol):
    """Read-only view of installable models. Never downloads anything."""

    def available_models(self, capability: Capability | None = None) -> list[ModelDefinition]:
        """List catalog models, optionally restricted to one capability."""
        ...

    def download_path(self, model: ModelDefinition) -> Path:
        """Where the model's local artifacts live (whether or not they exist yet)."""
        ...

    def is_downloaded(self, model: ModelDefinition) -> bool:
        """True when the model's artifacts are present locally."""
        ...

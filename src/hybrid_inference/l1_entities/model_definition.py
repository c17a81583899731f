"""L1 entity: metadata describing an installable inference model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from hybrid_inference.l1_entities.capability import Capability


class ModelDefinition(BaseModel):
    """Catalog entry for a local model. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    capability: Capability
    remote_id: str = Field(description='Identifier of the upstream repository the artifacts come from')
    approximate_size_gb: float | None = None
    memory_usage_gb: float | None = None

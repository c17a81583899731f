"""Port: well-known storage directories."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class StorageLocations(Protocol):  # pragma: no cover -- abstract Protocol; never instantiated directly
    """Directories guaranteed to exist before first use."""

    @property
    def models_dir(self) -> Path: ...

    @property
    def data_dir(self) -> Path: ...

    @property
    def logs_dir(self) -> Path: ...

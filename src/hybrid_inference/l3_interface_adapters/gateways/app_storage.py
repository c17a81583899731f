"""Gateway: on-disk storage layout — implements StorageLocations port."""

from __future__ import annotations

import logging
from pathlib import Path

from platformdirs import user_data_path

from hybrid_inference.l3_interface_adapters.gateways.paths import APP_NAME

log = logging.getLogger('hinf.storage')


class AppStorage:
    """Provisions ``models/``, ``data/`` and ``logs/`` under a base directory.

    The base defaults to the platform user data dir. Directories are created
    on construction.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir if base_dir is not None else user_data_path(APP_NAME)
        for directory in (self.models_dir, self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)
        log.debug('Storage base directory: %s', self._base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def models_dir(self) -> Path:
        return self._base_dir / 'models'

    @property
    def data_dir(self) -> Path:
        return self._base_dir / 'data'

    @property
    def logs_dir(self) -> Path:
        return self._base_dir / 'logs'

"""File-based debug logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FILE_NAME = 'hybrid_inference.log'


def setup_file_logging(logs_dir: Path) -> Path:
    """Configure file-based debug logging into the storage logs directory."""
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / LOG_FILE_NAME
    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
    root = logging.getLogger('hinf')
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    root.info('Debug logging started → %s', log_path)
    return log_path

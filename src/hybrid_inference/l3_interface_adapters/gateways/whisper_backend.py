"""Gateway: whisper.cpp transcription backend — implements TranscriptionBackend port."""

from __future__ import annotations

import contextlib
import os
from pathlib import Path

import numpy as np
from pywhispercpp.model import Model

from hybrid_inference.l1_entities.model_definition import ModelDefinition
from hybrid_inference.l1_entities.transcript import TranscriptionSegment


@contextlib.contextmanager
def _suppress_c_stdout():
    """Redirect C-level stdout and stderr to /dev/null.

    whisper.cpp prints init/progress messages directly via C fprintf,
    bypassing Python's sys.stdout and the logging setup.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    old_stdout = os.dup(1)
    old_stderr = os.dup(2)
    try:
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
        yield
    finally:
        os.dup2(old_stdout, 1)
        os.dup2(old_stderr, 2)
        os.close(devnull)
        os.close(old_stdout)
        os.close(old_stderr)


def find_ggml_file(model_dir: Path) -> Path:
    """Return the first ggml ``*.bin`` weight file in a model directory."""
    candidates = sorted(model_dir.glob('*.bin'))
    if not candidates:
        raise FileNotFoundError(f'No ggml *.bin weights in {model_dir}')
    return candidates[0]


class WhisperBackend:
    """pywhispercpp adapter. Handles C stdout suppression and
    centisecond-to-seconds conversion."""

    def __init__(self, model_path: Path) -> None:
        with _suppress_c_stdout():
            self._model: Model | None = Model(str(model_path), print_progress=False, print_realtime=False)

    def close(self) -> None:
        """Explicitly release the model, suppressing C-level teardown noise."""
        if self._model is not None:
            with _suppress_c_stdout():
                del self._model
                self._model = None

    def transcribe(self, audio: np.ndarray, language: str | None) -> list[TranscriptionSegment]:
        if self._model is None:
            raise RuntimeError('Whisper model has been closed')

        with _suppress_c_stdout():
            raw_segments = self._model.transcribe(audio, language=language or 'auto')

        result: list[TranscriptionSegment] = []
        for seg in raw_segments:
            text = seg.text.strip()
            if text:
                start = seg.t0 / 100.0
                result.append(TranscriptionSegment(text=text, start=start, end=max(start, seg.t1 / 100.0)))
        return result


def load_whisper_backend(model: ModelDefinition, path: Path) -> WhisperBackend:
    return WhisperBackend(find_ggml_file(path))

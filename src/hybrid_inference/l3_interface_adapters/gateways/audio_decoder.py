"""Gateway: audio container decoding — WAV parsed in-process, other formats via ffmpeg."""

from __future__ import annotations

import shutil
import struct
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True

import numpy as np

from hybrid_inference.l1_entities.audio import SAMPLE_RATE, AudioFormat, DecodedAudio
from hybrid_inference.l1_entities.errors import AudioDecodeError

_FFMPEG_TIMEOUT = 300  # seconds

_WAVE_FORMAT_PCM = 0x0001
_WAVE_FORMAT_IEEE_FLOAT = 0x0003
_WAVE_FORMAT_EXTENSIBLE = 0xFFFE


def decode_audio(data: bytes, fmt: AudioFormat) -> DecodedAudio:
    """Decode *data* to mono float32. Raises AudioDecodeError for anything unusable."""
    if not data:
        raise AudioDecodeError('Audio data is empty')
    if fmt is AudioFormat.WAV:
        return decode_wav(data)
    return decode_with_ffmpeg(data, fmt)


def decode_wav(data: bytes) -> DecodedAudio:
    """Parse a RIFF/WAVE container holding integer PCM or IEEE float samples."""
    if len(data) < 12 or data[:4] != b'RIFF' or data[8:12] != b'WAVE':
        raise AudioDecodeError('Not a RIFF/WAVE container')

    fmt_chunk: bytes | None = None
    payload: bytes | None = None
    pos = 12
    while pos + 8 <= len(data):
        chunk_id = data[pos : pos + 4]
        (size,) = struct.unpack_from('<I', data, pos + 4)
        body = data[pos + 8 : pos + 8 + size]
        if chunk_id == b'fmt ':
            fmt_chunk = body
        elif chunk_id == b'data':
            payload = body  # may be truncated by streaming writers
        pos += 8 + size + (size & 1)

    if fmt_chunk is None or len(fmt_chunk) < 16:
        raise AudioDecodeError('WAV header has no valid fmt chunk')
    if payload is None:
        raise AudioDecodeError('WAV container has no data chunk')

    audio_format, channels, sample_rate, _, _, bits = struct.unpack_from('<HHIIHH', fmt_chunk)
    if audio_format == _WAVE_FORMAT_EXTENSIBLE and len(fmt_chunk) >= 26:
        (audio_format,) = struct.unpack_from('<H', fmt_chunk, 24)
    if channels == 0 or sample_rate == 0:
        raise AudioDecodeError(f'Invalid WAV header: {channels} channels at {sample_rate} Hz')

    frame_bytes = channels * bits // 8
    if frame_bytes == 0:
        raise AudioDecodeError(f'Invalid WAV bit depth: {bits}')
    n_frames = len(payload) // frame_bytes
    if n_frames == 0:
        raise AudioDecodeError('WAV container holds no samples')
    raw = payload[: n_frames * frame_bytes]

    samples = _pcm_to_float(raw, audio_format, bits)
    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1, dtype=np.float32)
    return DecodedAudio(samples=samples, sample_rate=sample_rate, channels=channels, bits_per_sample=bits)


def _pcm_to_float(raw: bytes, audio_format: int, bits: int) -> np.ndarray:
    if audio_format == _WAVE_FORMAT_PCM:
        if bits == 8:
            return (np.frombuffer(raw, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
        if bits == 16:
            return np.frombuffer(raw, dtype='<i2').astype(np.float32) / 32768.0
        if bits == 24:
            b = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
            ints = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
            ints = np.where(ints & 0x800000, ints - 0x1000000, ints)
            return ints.astype(np.float32) / 8388608.0
        if bits == 32:
            return (np.frombuffer(raw, dtype='<i4').astype(np.float64) / 2147483648.0).astype(np.float32)
    elif audio_format == _WAVE_FORMAT_IEEE_FLOAT and bits in (32, 64):
        dtype = '<f4' if bits == 32 else '<f8'
        return np.clip(np.frombuffer(raw, dtype=dtype), -1.0, 1.0).astype(np.float32)
    raise AudioDecodeError(f'Unsupported WAV encoding: format 0x{audio_format:04x}, {bits}-bit')


def decode_with_ffmpeg(data: bytes, fmt: AudioFormat) -> DecodedAudio:
    """Pipe *data* through ffmpeg, returning float32 mono PCM at 16 kHz."""
    if shutil.which('ffmpeg') is None:
        raise AudioDecodeError(
            f'ffmpeg is required to decode {fmt.value} audio but was not found on PATH.\n'
            '  macOS:  brew install ffmpeg\n  Debian: apt install ffmpeg'
        )

    cmd = [
        'ffmpeg',
        '-i',
        'pipe:0',
        '-ar',
        str(SAMPLE_RATE),
        '-ac',
        '1',
        '-f',
        'f32le',
        '-v',
        'quiet',
        'pipe:1',
    ]

    try:
        result = subprocess.run(cmd, input=data, capture_output=True, timeout=_FFMPEG_TIMEOUT)  # noqa: S603
    except subprocess.TimeoutExpired as exc:
        raise AudioDecodeError(f'ffmpeg timed out after {_FFMPEG_TIMEOUT}s decoding {fmt.value} audio') from exc
    except OSError as exc:
        raise AudioDecodeError(f'Failed to launch ffmpeg: {exc}') from exc

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        raise AudioDecodeError(f'ffmpeg exited with code {result.returncode} decoding {fmt.value} audio\n{stderr}')

    samples = np.frombuffer(result.stdout, dtype=np.float32)
    if len(samples) == 0:
        raise AudioDecodeError(f'ffmpeg produced no audio from the {fmt.value} input')

    return DecodedAudio(samples=samples, sample_rate=SAMPLE_RATE, channels=1, bits_per_sample=32)

"""Tests for audio container decoding — WAV in-process, ffmpeg patched."""

from __future__ import annotations

import struct
import subprocess
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from hybrid_inference.l1_entities.audio import AudioFormat
from hybrid_inference.l1_entities.errors import AudioDecodeError
from hybrid_inference.l3_interface_adapters.gateways.audio_decoder import decode_audio, decode_wav
from tests.conftest import make_wav_bytes

MODULE = 'hybrid_inference.l3_interface_adapters.gateways.audio_decoder'

RAMP = np.array([0.0, 0.25, -0.25, 0.5, -0.5, 0.75])


class TestDecodeWav:
    @pytest.mark.parametrize('bits, atol', [(8, 1 / 64), (16, 1e-4), (24, 1e-6), (32, 1e-8)])
    def test_integer_pcm(self, bits, atol):
        decoded = decode_wav(make_wav_bytes(RAMP, bits=bits))
        assert decoded.sample_rate == 16000
        assert decoded.channels == 1
        assert decoded.bits_per_sample == bits
        assert decoded.samples.dtype == np.float32
        np.testing.assert_allclose(decoded.samples, RAMP, atol=atol)

    def test_ieee_float(self):
        decoded = decode_wav(make_wav_bytes(RAMP, audio_format=3))
        np.testing.assert_allclose(decoded.samples, RAMP, atol=1e-7)

    def test_stereo_downmixed(self):
        interleaved = np.array([0.5, -0.5, 0.25, 0.25, 1.0, 0.0])
        decoded = decode_wav(make_wav_bytes(interleaved, channels=2))
        assert decoded.channels == 2
        np.testing.assert_allclose(decoded.samples, [0.0, 0.25, 0.5], atol=1e-4)

    def test_keeps_source_sample_rate(self):
        decoded = decode_wav(make_wav_bytes(RAMP, sample_rate=44100))
        assert decoded.sample_rate == 44100

    def test_skips_unknown_chunks(self):
        wav = make_wav_bytes(RAMP)
        extra = b'LIST' + struct.pack('<I', 3) + b'abc\x00'
        patched = wav[:12] + extra + wav[12:]
        patched = patched[:4] + struct.pack('<I', len(patched) - 8) + patched[8:]
        np.testing.assert_allclose(decode_wav(patched).samples, RAMP, atol=1e-4)

    def test_not_riff(self):
        with pytest.raises(AudioDecodeError, match='RIFF'):
            decode_wav(b'ID3\x03' + b'\x00' * 40)

    def test_missing_data_chunk(self):
        wav = make_wav_bytes(RAMP)
        data_at = wav.index(b'data')
        with pytest.raises(AudioDecodeError, match='no data chunk'):
            decode_wav(wav[:data_at])

    def test_empty_data_chunk(self):
        with pytest.raises(AudioDecodeError, match='no samples'):
            decode_wav(make_wav_bytes(np.array([])))

    def test_unsupported_encoding(self):
        wav = bytearray(make_wav_bytes(RAMP))
        fmt_at = wav.index(b'fmt ') + 8
        wav[fmt_at : fmt_at + 2] = struct.pack('<H', 0x0055)  # MPEG layer 3
        with pytest.raises(AudioDecodeError, match='Unsupported'):
            decode_wav(bytes(wav))


class TestDecodeAudio:
    def test_empty_input(self):
        with pytest.raises(AudioDecodeError, match='empty'):
            decode_audio(b'', AudioFormat.WAV)

    def test_wav_dispatch(self, wav_bytes):
        decoded = decode_audio(wav_bytes, AudioFormat.WAV)
        assert len(decoded.samples) == 1600

    @patch(f'{MODULE}.shutil.which', return_value=None)
    def test_ffmpeg_missing(self, _which):
        with pytest.raises(AudioDecodeError, match='ffmpeg is required'):
            decode_audio(b'\xff\xfb\x90', AudioFormat.MP3)

    @patch(f'{MODULE}.subprocess.run')
    @patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg')
    def test_ffmpeg_output_parsed(self, _which, mock_run):
        pcm = np.array([0.1, -0.2, 0.3], dtype=np.float32)
        mock_run.return_value = MagicMock(returncode=0, stdout=pcm.tobytes(), stderr=b'')

        decoded = decode_audio(b'webm-bytes', AudioFormat.WEBM)

        np.testing.assert_array_equal(decoded.samples, pcm)
        assert decoded.sample_rate == 16000
        cmd = mock_run.call_args[0][0]
        assert cmd[0] == 'ffmpeg'
        assert 'f32le' in cmd
        assert mock_run.call_args.kwargs['input'] == b'webm-bytes'

    @patch(f'{MODULE}.subprocess.run')
    @patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg')
    def test_ffmpeg_failure(self, _which, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout=b'', stderr=b'Invalid data found')
        with pytest.raises(AudioDecodeError, match='Invalid data found'):
            decode_audio(b'junk', AudioFormat.M4A)

    @patch(f'{MODULE}.subprocess.run', side_effect=subprocess.TimeoutExpired('ffmpeg', 300))
    @patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg')
    def test_ffmpeg_timeout(self, _which, _run):
        with pytest.raises(AudioDecodeError, match='timed out'):
            decode_audio(b'junk', AudioFormat.MP3)

    @patch(f'{MODULE}.subprocess.run')
    @patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg')
    def test_ffmpeg_no_output(self, _which, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=b'', stderr=b'')
        with pytest.raises(AudioDecodeError, match='no audio'):
            decode_audio(b'junk', AudioFormat.MP3)

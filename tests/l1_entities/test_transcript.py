"""Tests for TranscriptionSegment entity."""

import pytest
from pydantic import ValidationError

from hybrid_inference.l1_entities.transcript import TranscriptionSegment, format_timestamp


class TestTranscriptionSegment:
    def test_creation(self):
        seg = TranscriptionSegment(text='Hello', start=1.0, end=2.0)
        assert seg.text == 'Hello'
        assert seg.start == 1.0
        assert seg.end == 2.0

    def test_zero_length_allowed(self):
        seg = TranscriptionSegment(text='', start=3.0, end=3.0)
        assert seg.start == seg.end

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            TranscriptionSegment(text='x', start=2.0, end=1.0)

    def test_negative_start_rejected(self):
        with pytest.raises(ValidationError):
            TranscriptionSegment(text='x', start=-0.1, end=1.0)

    def test_immutable(self):
        seg = TranscriptionSegment(text='x', start=0.0, end=1.0)
        with pytest.raises(ValidationError):
            seg.text = 'y'  # type: ignore[misc]


class TestFormatTimestamp:
    def test_zero(self):
        assert format_timestamp(0.0) == '00:00:00.000'

    def test_hours_minutes_millis(self):
        assert format_timestamp(3723.5) == '01:02:03.500'

"""Unit tests for the Framer"""

import numpy as np
import pytest

from avatar_engine.analysis.framing import Framer, make_window
from avatar_engine.errors import InvalidInputError


class TestFramer:
    """Tests for frame slicing"""

    def test_frame_offsets(self):
        """Test frames start every hop and have full length"""
        framer = Framer(window_size=4, hop_size=2)
        frames = framer.frames(np.arange(10, dtype=float), 8000)

        assert [f.start_offset_samples for f in frames] == [0, 2, 4, 6]
        assert all(len(f.samples) == 4 for f in frames)
        np.testing.assert_array_equal(frames[1].samples, [2, 3, 4, 5])

    def test_partial_frame_dropped_by_default(self):
        """Test the trailing partial frame is dropped"""
        framer = Framer(window_size=4, hop_size=4)

        assert framer.frame_count(10) == 2
        assert len(framer.frames(np.ones(10), 8000)) == 2

    def test_partial_frame_padded_when_enabled(self):
        """Test the trailing partial frame is zero-padded on request"""
        framer = Framer(window_size=4, hop_size=4, pad_partial=True)
        frames = framer.frames(np.ones(10), 8000)

        assert len(frames) == 3
        np.testing.assert_array_equal(frames[-1].samples, [1, 1, 0, 0])

    def test_short_buffer(self):
        """Test a buffer shorter than one window"""
        assert Framer(1024, 512).frame_count(100) == 0
        assert Framer(1024, 512, pad_partial=True).frame_count(100) == 1

    def test_frame_count_is_deterministic(self):
        """Test frame_count agrees with iteration for many lengths"""
        framer = Framer(window_size=256, hop_size=100)
        for n in (256, 300, 356, 1000, 4096):
            assert framer.frame_count(n) == len(framer.frames(np.ones(n), 8000))

    def test_empty_buffer(self):
        """Test framing an empty buffer is invalid input"""
        with pytest.raises(InvalidInputError):
            Framer(4, 2).frames(np.array([]), 8000)

    @pytest.mark.parametrize("window_size,hop_size", [(0, 1), (4, 0), (-4, 2), (4, 8)])
    def test_invalid_sizes(self, window_size, hop_size):
        """Test non-positive sizes and hop > window are rejected"""
        with pytest.raises(InvalidInputError):
            Framer(window_size, hop_size)

    def test_iteration_is_lazy(self):
        """Test frames can be consumed one at a time"""
        iterator = Framer(4, 2).iter_frames(np.ones(1000), 8000)

        first = next(iterator)
        assert first.start_offset_samples == 0


class TestWindows:
    """Tests for window construction"""

    def test_window_shapes(self):
        """Test the supported window functions"""
        np.testing.assert_allclose(make_window("hann", 8), np.hanning(8))
        np.testing.assert_allclose(make_window("hamming", 8), np.hamming(8))
        np.testing.assert_allclose(make_window("rectangular", 8), np.ones(8))

    def test_unknown_window(self):
        """Test an unknown window name is rejected"""
        with pytest.raises(InvalidInputError):
            make_window("kaiser", 8)

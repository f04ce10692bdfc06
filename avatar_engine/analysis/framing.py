"""Framer: slices a PCM buffer into overlapping, windowed analysis frames"""

import logging
import math
from typing import Iterator, List

import numpy as np

from avatar_engine.errors import InvalidInputError
from avatar_engine.models.enums import WindowFunction
from avatar_engine.models.frames import AudioFrame

logger = logging.getLogger(__name__)


def make_window(window_function: str, size: int) -> np.ndarray:
    """Build a window array of the given length

    Raises:
        InvalidInputError: If the window function name is unknown
    """
    try:
        kind = WindowFunction(window_function)
    except ValueError:
        raise InvalidInputError(f"Unknown window function: {window_function}")

    if kind is WindowFunction.HANN:
        return np.hanning(size)
    if kind is WindowFunction.HAMMING:
        return np.hamming(size)
    return np.ones(size)


class Framer:
    """Cuts buffers into frames of ``window_size`` samples every ``hop_size``

    Frames start at offsets 0, H, 2H, ... A trailing frame that would run
    past the end of the buffer is dropped unless ``pad_partial`` is set, in
    which case it is zero-padded to full length. Frames carry raw samples;
    the window array is exposed separately for spectral analysis.
    """

    def __init__(
        self,
        window_size: int,
        hop_size: int,
        window_function: str = WindowFunction.HANN.value,
        pad_partial: bool = False,
    ):
        if window_size is None or window_size <= 0:
            raise InvalidInputError(f"Window size must be positive, got {window_size}")
        if hop_size is None or hop_size <= 0:
            raise InvalidInputError(f"Hop size must be positive, got {hop_size}")
        if hop_size > window_size:
            raise InvalidInputError(
                f"Hop size {hop_size} must not exceed window size {window_size}"
            )

        self.window_size = int(window_size)
        self.hop_size = int(hop_size)
        self.window_function = window_function
        self.pad_partial = pad_partial
        self.window = make_window(window_function, self.window_size)

    def frame_count(self, num_samples: int) -> int:
        """Number of frames a buffer of ``num_samples`` yields"""
        if num_samples <= 0:
            return 0
        if self.pad_partial:
            overflow = max(0, num_samples - self.window_size)
            return 1 + math.ceil(overflow / self.hop_size)
        if num_samples < self.window_size:
            return 0
        return 1 + (num_samples - self.window_size) // self.hop_size

    def iter_frames(self, samples: np.ndarray, sample_rate: int) -> Iterator[AudioFrame]:
        """Yield frames lazily so callers can stop early

        Raises:
            InvalidInputError: If the buffer is empty
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.size == 0:
            raise InvalidInputError("Cannot frame an empty buffer")

        for index in range(self.frame_count(len(samples))):
            start = index * self.hop_size
            chunk = samples[start:start + self.window_size]
            if len(chunk) < self.window_size:
                chunk = np.pad(chunk, (0, self.window_size - len(chunk)))
            yield AudioFrame(samples=chunk, sample_rate=sample_rate, start_offset_samples=start)

    def frames(self, samples: np.ndarray, sample_rate: int) -> List[AudioFrame]:
        """Slice the whole buffer into a list of frames"""
        frames = list(self.iter_frames(samples, sample_rate))
        logger.debug(f"Framed {len(samples)} samples into {len(frames)} frames")
        return frames

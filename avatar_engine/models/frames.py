"""Data models for audio buffers, frames and spectra"""

from dataclasses import dataclass
from typing import Any, Dict

import numpy as np

from avatar_engine.errors import InvalidInputError


@dataclass
class AudioBufferDescriptor:
    """Mono PCM buffer handed to the pipeline by an audio source

    Attributes:
        samples: PCM samples as a one-dimensional float64 numpy array
        sample_rate: Sample rate in Hz (e.g., 22050)
        channels: Channel count, must be 1 (callers downmix beforehand)
    """
    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    def __post_init__(self):
        """Normalize samples and reject malformed buffers.

        Unlike the internal frame models this is the public input type, so
        violations raise InvalidInputError rather than AssertionError.

        Raises:
            InvalidInputError: If the buffer is multi-channel, not 1-D, empty,
                contains NaN/inf, or the sample rate is not positive
        """
        if self.channels != 1:
            raise InvalidInputError(
                f"Only mono buffers are supported, got {self.channels} channels"
            )
        if self.sample_rate is None or self.sample_rate <= 0:
            raise InvalidInputError(f"Sample rate must be positive, got {self.sample_rate}")

        samples = np.asarray(self.samples, dtype=np.float64)
        if samples.ndim != 1:
            raise InvalidInputError(
                f"Samples must be one-dimensional, got shape {samples.shape}"
            )
        if samples.size == 0:
            raise InvalidInputError("Audio buffer is empty")
        if not np.all(np.isfinite(samples)):
            raise InvalidInputError("Audio buffer contains NaN or infinite samples")

        self.samples = samples
        self.sample_rate = int(self.sample_rate)

    @property
    def duration_ms(self) -> float:
        """Buffer duration in milliseconds"""
        return len(self.samples) / self.sample_rate * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "samples": self.samples.tolist(),
            "sample_rate": self.sample_rate,
            "channels": self.channels,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AudioBufferDescriptor":
        return cls(
            samples=np.asarray(data["samples"], dtype=np.float64),
            sample_rate=data["sample_rate"],
            channels=data.get("channels", 1),
        )


@dataclass
class AudioFrame:
    """Fixed-length window of samples cut from a buffer by the Framer

    Attributes:
        samples: Frame samples (unwindowed)
        sample_rate: Sample rate in Hz
        start_offset_samples: Offset of the first sample within the buffer
    """
    samples: np.ndarray
    sample_rate: int
    start_offset_samples: int = 0

    def __post_init__(self):
        """Validate frame data integrity"""
        assert self.sample_rate > 0, "Sample rate must be positive"
        assert self.start_offset_samples >= 0, "Start offset must be non-negative"
        assert isinstance(self.samples, np.ndarray), "Samples must be numpy array"

    @property
    def timestamp(self) -> float:
        """Seconds from the start of the buffer"""
        return self.start_offset_samples / self.sample_rate

    @property
    def duration(self) -> float:
        """Frame duration in seconds"""
        return len(self.samples) / self.sample_rate


@dataclass
class SpectrumFrame:
    """Magnitude spectrum of one frame (or an average over frames)

    Attributes:
        magnitudes: Magnitudes of the one-sided spectrum, length fft_size // 2 + 1
        sample_rate: Sample rate of the analysed audio in Hz
        fft_size: FFT size the magnitudes were computed with
        start_offset_samples: Offset of the source frame within the buffer
    """
    magnitudes: np.ndarray
    sample_rate: int
    fft_size: int
    start_offset_samples: int = 0

    def __post_init__(self):
        """Validate spectrum shape"""
        assert self.sample_rate > 0, "Sample rate must be positive"
        assert self.fft_size > 0, "FFT size must be positive"
        assert len(self.magnitudes) == self.fft_size // 2 + 1, \
            "Magnitude array must hold fft_size // 2 + 1 bins"

    @property
    def frequencies(self) -> np.ndarray:
        """Centre frequency in Hz of every bin"""
        return np.arange(len(self.magnitudes)) * self.sample_rate / self.fft_size

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0

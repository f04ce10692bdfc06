"""SpectralEngine: FFT magnitude spectra and band energies"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from avatar_engine.errors import ComputationError, InvalidInputError, UnsupportedConfigError
from avatar_engine.models.features import FrequencyBand
from avatar_engine.models.frames import SpectrumFrame

logger = logging.getLogger(__name__)


# (name, lower edge Hz, upper edge Hz); upper edges are capped at Nyquist
FREQUENCY_BANDS: Tuple[Tuple[str, float, float], ...] = (
    ("sub_bass", 0.0, 60.0),
    ("bass", 60.0, 250.0),
    ("low_mid", 250.0, 500.0),
    ("mid", 500.0, 2000.0),
    ("high_mid", 2000.0, 4000.0),
    ("presence", 4000.0, 6000.0),
    ("brilliance", 6000.0, 11025.0),
)


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)"""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


class SpectralEngine:
    """Fixed-size FFT over frames

    The FFT size must be a power of two. Frames shorter than the size are
    zero-padded; longer frames are rejected rather than truncated.
    """

    def __init__(self, fft_size: int):
        if not is_power_of_two(int(fft_size)):
            raise UnsupportedConfigError(f"FFT size must be a power of two, got {fft_size}")
        self.fft_size = int(fft_size)

    def magnitude_spectrum(
        self,
        samples: np.ndarray,
        sample_rate: int,
        window: Optional[np.ndarray] = None,
        fft_size: Optional[int] = None,
        start_offset_samples: int = 0,
    ) -> SpectrumFrame:
        """Compute the one-sided magnitude spectrum of a frame

        Args:
            samples: Frame samples
            sample_rate: Sample rate in Hz
            window: Optional window, same length as samples, applied before padding
            fft_size: Override of the engine FFT size, must be a power of two
            start_offset_samples: Offset of the frame within its buffer

        Returns:
            SpectrumFrame with fft_size // 2 + 1 magnitudes

        Raises:
            UnsupportedConfigError: If fft_size is not a power of two
            InvalidInputError: If the frame is empty or longer than fft_size
            ComputationError: If the transform produced NaN or inf
        """
        size = self.fft_size if fft_size is None else int(fft_size)
        if not is_power_of_two(size):
            raise UnsupportedConfigError(f"FFT size must be a power of two, got {size}")

        x = np.asarray(samples, dtype=np.float64)
        if x.size == 0:
            raise InvalidInputError("Cannot transform an empty frame")
        if x.size > size:
            raise InvalidInputError(f"Frame of {x.size} samples exceeds FFT size {size}")
        if window is not None:
            if len(window) != x.size:
                raise InvalidInputError(
                    f"Window length {len(window)} does not match frame length {x.size}"
                )
            x = x * window

        magnitudes = np.abs(np.fft.rfft(x, n=size))
        if not np.all(np.isfinite(magnitudes)):
            logger.error(f"Non-finite FFT output for frame at offset {start_offset_samples}")
            raise ComputationError("FFT produced non-finite magnitudes")

        return SpectrumFrame(
            magnitudes=magnitudes,
            sample_rate=sample_rate,
            fft_size=size,
            start_offset_samples=start_offset_samples,
        )

    @staticmethod
    def average(spectra: Sequence[SpectrumFrame]) -> SpectrumFrame:
        """Mean magnitude spectrum over frames of equal size"""
        if not spectra:
            raise InvalidInputError("Cannot average an empty list of spectra")
        first = spectra[0]
        stacked = np.vstack([s.magnitudes for s in spectra])
        return SpectrumFrame(
            magnitudes=stacked.mean(axis=0),
            sample_rate=first.sample_rate,
            fft_size=first.fft_size,
            start_offset_samples=first.start_offset_samples,
        )

    @staticmethod
    def band_energies(
        spectrum: SpectrumFrame,
        bands: Sequence[Tuple[str, float, float]] = FREQUENCY_BANDS,
    ) -> List[FrequencyBand]:
        """Sum of squared magnitudes inside each band

        Bin ranges are floor(f * N / sr) inclusive at both edges. Edges above
        Nyquist are clamped to it.
        """
        power = spectrum.magnitudes ** 2
        last_bin = len(power) - 1
        result = []
        for name, low, high in bands:
            high = min(high, spectrum.nyquist)
            low = min(low, high)
            lo_bin = min(last_bin, int(np.floor(low * spectrum.fft_size / spectrum.sample_rate)))
            hi_bin = min(last_bin, int(np.floor(high * spectrum.fft_size / spectrum.sample_rate)))
            energy = float(power[lo_bin:hi_bin + 1].sum())
            result.append(FrequencyBand(name=name, min_freq=low, max_freq=high, energy=energy))
        return result

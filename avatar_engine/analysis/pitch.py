"""PitchTracker: autocorrelation F0 estimation"""

import logging
import math

import numpy as np

from avatar_engine.analysis.spectral import next_power_of_two

logger = logging.getLogger(__name__)


def frequency_to_pitch(f0: float) -> float:
    """Semitone value of a frequency (MIDI scale, A4 = 69); 0.0 for f0 <= 0"""
    if f0 <= 0:
        return 0.0
    return 69.0 + 12.0 * math.log2(f0 / 440.0)


class PitchTracker:
    """Estimates fundamental frequency from the autocorrelation of a frame

    The autocorrelation is normalised to the mean product per lag so long
    lags are not penalised for having fewer overlapping samples. Searched
    lags cover ``min_frequency``..``max_frequency``.

    A periodic signal produces near-equal peaks at every multiple of its
    period. The tracker therefore takes the earliest local peak whose value
    is within ``peak_tolerance`` (relative) of the best one, which keeps the
    estimate on the true period instead of a sub-octave.
    """

    def __init__(
        self,
        min_frequency: float = 50.0,
        max_frequency: float = 800.0,
        peak_tolerance: float = 0.05,
    ):
        assert 0 < min_frequency < max_frequency, "Frequency range must be increasing and positive"
        assert 0.0 <= peak_tolerance < 1.0, "Peak tolerance must be in [0, 1)"
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency
        self.peak_tolerance = peak_tolerance

    def autocorrelation(self, samples: np.ndarray, max_lag: int) -> np.ndarray:
        """Mean-product autocorrelation for lags 0..max_lag"""
        x = np.asarray(samples, dtype=np.float64)
        n = len(x)
        size = next_power_of_two(2 * n)
        spectrum = np.fft.rfft(x, n=size)
        raw = np.fft.irfft(spectrum * np.conj(spectrum), n=size)[:max_lag + 1]
        return raw / (n - np.arange(max_lag + 1))

    def estimate_f0(self, samples: np.ndarray, sample_rate: int) -> float:
        """Estimate F0 in Hz, 0.0 for silence, unvoiced or too-short input"""
        x = np.asarray(samples, dtype=np.float64)
        n = len(x)
        min_period = max(1, int(sample_rate / self.max_frequency))
        # Long lags overlap too few samples for a stable mean product
        max_period = min(int(sample_rate / self.min_frequency), n // 2)
        if n < 2 or max_period < min_period:
            return 0.0

        corr = self.autocorrelation(x, max_period)[min_period:max_period + 1]
        best = float(corr.max())
        if not best > 0.0:
            return 0.0

        threshold = best * (1.0 - self.peak_tolerance)
        lag_index = int(np.argmax(corr))
        for i in range(len(corr)):
            if corr[i] < threshold:
                continue
            left = corr[i - 1] if i > 0 else -np.inf
            right = corr[i + 1] if i + 1 < len(corr) else -np.inf
            if corr[i] >= left and corr[i] >= right:
                lag_index = i
                break

        return sample_rate / (min_period + lag_index)

    def f0_track(self, samples: np.ndarray, sample_rate: int, frame_ms: float = 25.0) -> np.ndarray:
        """F0 of consecutive non-overlapping frames of ``frame_ms``"""
        x = np.asarray(samples, dtype=np.float64)
        frame_size = max(1, int(sample_rate * frame_ms / 1000.0))
        starts = range(0, len(x) - frame_size + 1, frame_size)
        track = np.array([self.estimate_f0(x[s:s + frame_size], sample_rate) for s in starts])
        logger.debug(f"Pitch track: {len(track)} frames, {int(np.sum(track > 0))} voiced")
        return track

"""FeatureExtractor: energy, ZCR, spectral shape, formants, MFCC and voicing"""

import logging
from functools import lru_cache
from typing import List

import librosa
import numpy as np
from scipy.fft import dct

from avatar_engine.errors import InvalidInputError, UnsupportedConfigError
from avatar_engine.models.frames import SpectrumFrame

logger = logging.getLogger(__name__)

LOG_FLOOR = 1e-10
SILENCE_ENERGY = 0.005


@lru_cache(maxsize=32)
def mel_filterbank(sample_rate: int, fft_size: int, n_mels: int) -> np.ndarray:
    """Triangular mel filterbank of shape (n_mels, fft_size // 2 + 1)

    Filters are unnormalised (peak 1.0) and span 0 Hz to Nyquist.
    """
    return librosa.filters.mel(
        sr=sample_rate,
        n_fft=fft_size,
        n_mels=n_mels,
        fmin=0.0,
        fmax=sample_rate / 2.0,
        norm=None,
    )


class FeatureExtractor:
    """Frame-level feature computations

    Time-domain features take raw samples; spectral features take a
    SpectrumFrame, so the same extractor serves frames of any FFT size.
    """

    def __init__(
        self,
        mel_filter_count: int = 26,
        mfcc_coefficient_count: int = 13,
        rolloff_fraction: float = 0.85,
        formant_range: tuple = (200.0, 4000.0),
        max_formants: int = 3,
        voiced_f0_range: tuple = (80.0, 400.0),
        voiced_energy_floor: float = 0.01,
        voiced_zcr_ceiling: float = 0.1,
        silence_energy: float = SILENCE_ENERGY,
    ):
        if mel_filter_count <= 0 or mfcc_coefficient_count <= 0:
            raise UnsupportedConfigError("Mel filter and MFCC counts must be positive")
        if mfcc_coefficient_count > mel_filter_count:
            raise UnsupportedConfigError(
                f"Cannot keep {mfcc_coefficient_count} coefficients from "
                f"{mel_filter_count} mel filters"
            )
        self.mel_filter_count = mel_filter_count
        self.mfcc_coefficient_count = mfcc_coefficient_count
        self.rolloff_fraction = rolloff_fraction
        self.formant_range = formant_range
        self.max_formants = max_formants
        self.voiced_f0_range = voiced_f0_range
        self.voiced_energy_floor = voiced_energy_floor
        self.voiced_zcr_ceiling = voiced_zcr_ceiling
        self.silence_energy = silence_energy

    @staticmethod
    def energy(samples: np.ndarray) -> float:
        """RMS of the samples"""
        x = np.asarray(samples, dtype=np.float64)
        if x.size == 0:
            raise InvalidInputError("Cannot compute energy of an empty frame")
        return float(np.sqrt(np.mean(x * x)))

    @staticmethod
    def zero_crossing_rate(samples: np.ndarray) -> float:
        """Sign changes divided by N - 1; zeros count as positive"""
        x = np.asarray(samples, dtype=np.float64)
        if x.size < 2:
            return 0.0
        signs = np.sign(x)
        signs[signs == 0] = 1
        crossings = np.count_nonzero(signs[1:] != signs[:-1])
        return crossings / (x.size - 1)

    @staticmethod
    def spectral_centroid(spectrum: SpectrumFrame) -> float:
        """Magnitude-weighted mean frequency in Hz, 0.0 for an empty spectrum"""
        total = float(spectrum.magnitudes.sum())
        if total <= 0.0:
            return 0.0
        return float(np.dot(spectrum.frequencies, spectrum.magnitudes) / total)

    def spectral_rolloff(self, spectrum: SpectrumFrame) -> float:
        """Frequency below which ``rolloff_fraction`` of the energy lies"""
        power = spectrum.magnitudes ** 2
        cumulative = np.cumsum(power)
        threshold = self.rolloff_fraction * cumulative[-1]
        index = int(np.searchsorted(cumulative, threshold, side="left"))
        if index >= len(power):
            return spectrum.nyquist
        return float(min(spectrum.frequencies[index], spectrum.nyquist))

    def formants(self, spectrum: SpectrumFrame) -> List[float]:
        """Frequencies of strict local maxima inside the formant range"""
        mags = spectrum.magnitudes
        if len(mags) < 3:
            return []
        freqs = spectrum.frequencies
        low, high = self.formant_range
        interior = np.arange(1, len(mags) - 1)
        peaks = interior[(mags[1:-1] > mags[:-2]) & (mags[1:-1] > mags[2:])]
        peaks = peaks[(freqs[peaks] > low) & (freqs[peaks] < high)]
        return [float(f) for f in freqs[peaks][:self.max_formants]]

    def mfcc(self, spectrum: SpectrumFrame) -> List[float]:
        """Cepstral coefficients of the magnitude spectrum"""
        filterbank = mel_filterbank(spectrum.sample_rate, spectrum.fft_size, self.mel_filter_count)
        mel_energies = filterbank @ spectrum.magnitudes
        log_energies = np.log(np.maximum(mel_energies, LOG_FLOOR))
        coefficients = dct(log_energies, type=2, norm="ortho")
        return [float(c) for c in coefficients[:self.mfcc_coefficient_count]]

    def voiced_probability(self, f0: float, energy: float, zero_crossing_rate: float) -> float:
        """Weighted voicing score in [0, 1]

        F0 inside the speech range adds 0.4, energy above the floor adds 0.3,
        and a low ZCR adds 0.3 when the frame is not silent.
        """
        low, high = self.voiced_f0_range
        score = 0.0
        if low < f0 < high:
            score += 0.4
        if energy > self.voiced_energy_floor:
            score += 0.3
        if energy > self.silence_energy and zero_crossing_rate < self.voiced_zcr_ceiling:
            score += 0.3
        return float(min(1.0, max(0.0, score)))

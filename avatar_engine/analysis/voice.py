"""VoiceCharacterizer: aggregates frame features into VoiceCharacteristics"""

import logging
import threading
from typing import Iterator, Optional

import numpy as np

from avatar_engine.analysis.features import FeatureExtractor
from avatar_engine.analysis.framing import Framer, make_window
from avatar_engine.analysis.pitch import PitchTracker, frequency_to_pitch
from avatar_engine.analysis.spectral import SpectralEngine, next_power_of_two
from avatar_engine.config.analysis_config import AnalysisConfig
from avatar_engine.errors import ComputationError, raise_if_cancelled
from avatar_engine.models.features import VoiceCharacteristics
from avatar_engine.models.frames import AudioBufferDescriptor, AudioFrame, SpectrumFrame

logger = logging.getLogger(__name__)


class VoiceCharacterizer:
    """Builds VoiceCharacteristics for whole buffers or single frames

    Buffer-level analysis takes time-domain features (F0, energy, ZCR) over
    the whole buffer and spectral features from the mean magnitude spectrum
    of its frames. Buffers shorter than one window are analysed as a single
    zero-padded frame.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = (config or AnalysisConfig()).validate()
        self.framer = Framer(
            window_size=self.config.window_size,
            hop_size=self.config.hop_size,
            window_function=self.config.window_function,
            pad_partial=self.config.pad_partial_frames,
        )
        self.spectral = SpectralEngine(self.config.window_size)
        self.pitch_tracker = PitchTracker()
        self.extractor = FeatureExtractor(
            mel_filter_count=self.config.mel_filter_count,
            mfcc_coefficient_count=self.config.mfcc_coefficient_count,
        )
        logger.info(
            f"VoiceCharacterizer initialized: window={self.config.window_size}, "
            f"hop={self.config.hop_size}, mfcc={self.config.mfcc_coefficient_count}"
        )

    def average_spectrum(
        self,
        buffer: AudioBufferDescriptor,
        cancel_event: Optional[threading.Event] = None,
    ) -> SpectrumFrame:
        """Mean windowed magnitude spectrum of every frame in the buffer"""
        total = None
        count = 0
        for frame in self.framer.iter_frames(buffer.samples, buffer.sample_rate):
            raise_if_cancelled(cancel_event, "voice analysis")
            spectrum = self.spectral.magnitude_spectrum(
                frame.samples,
                buffer.sample_rate,
                window=self.framer.window,
                start_offset_samples=frame.start_offset_samples,
            )
            total = spectrum.magnitudes.copy() if total is None else total + spectrum.magnitudes
            count += 1

        if count == 0:
            # Shorter than one window: one zero-padded frame
            window = make_window(self.config.window_function, len(buffer.samples))
            return self.spectral.magnitude_spectrum(buffer.samples, buffer.sample_rate, window=window)

        return SpectrumFrame(
            magnitudes=total / count,
            sample_rate=buffer.sample_rate,
            fft_size=self.spectral.fft_size,
        )

    def characterize(
        self,
        buffer: AudioBufferDescriptor,
        cancel_event: Optional[threading.Event] = None,
    ) -> VoiceCharacteristics:
        """Voice characteristics of a whole buffer

        Args:
            buffer: Mono PCM buffer
            cancel_event: Set by the caller to abandon the analysis

        Raises:
            AnalysisCancelledError: If cancel_event was set mid-way
            ComputationError: If any output feature is NaN or infinite
        """
        spectrum = self.average_spectrum(buffer, cancel_event)
        raise_if_cancelled(cancel_event, "voice analysis")
        return self.characterize_from_spectrum(buffer.samples, spectrum)

    def characterize_from_spectrum(self, samples: np.ndarray, spectrum: SpectrumFrame) -> VoiceCharacteristics:
        """Combine time-domain features of ``samples`` with a precomputed spectrum"""
        sample_rate = spectrum.sample_rate
        f0 = self.pitch_tracker.estimate_f0(samples, sample_rate)
        energy = self.extractor.energy(samples)
        zcr = self.extractor.zero_crossing_rate(samples)

        values = dict(
            f0=float(f0),
            pitch=frequency_to_pitch(f0),
            formants=self.extractor.formants(spectrum),
            spectral_centroid=self.extractor.spectral_centroid(spectrum),
            spectral_rolloff=self.extractor.spectral_rolloff(spectrum),
            zero_crossing_rate=float(zcr),
            mfcc=self.extractor.mfcc(spectrum),
            energy=energy,
            voiced_probability=self.extractor.voiced_probability(f0, energy, zcr),
        )
        self._ensure_finite(values)
        characteristics = VoiceCharacteristics(**values)
        logger.debug(
            f"Voice characteristics: f0={characteristics.f0:.1f}Hz, "
            f"energy={characteristics.energy:.4f}, voiced={characteristics.voiced_probability:.2f}"
        )
        return characteristics

    def characterize_frame(
        self,
        samples: np.ndarray,
        sample_rate: int,
        windowed: bool = True,
    ) -> VoiceCharacteristics:
        """Voice characteristics of a single frame of arbitrary length

        The FFT size is the configured window size or the next power of two
        above the frame length, whichever is larger.
        """
        x = np.asarray(samples, dtype=np.float64)
        fft_size = max(self.spectral.fft_size, next_power_of_two(len(x)))
        window = make_window(self.config.window_function, len(x)) if windowed else None
        spectrum = self.spectral.magnitude_spectrum(x, sample_rate, window=window, fft_size=fft_size)
        return self.characterize_from_spectrum(x, spectrum)

    def iter_frames(
        self,
        buffer: AudioBufferDescriptor,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[VoiceCharacteristics]:
        """Per-frame characteristics, yielded as each frame is processed"""
        for frame in self.framer.iter_frames(buffer.samples, buffer.sample_rate):
            raise_if_cancelled(cancel_event, "voice analysis")
            yield self._characterize_audio_frame(frame)

    def _characterize_audio_frame(self, frame: AudioFrame) -> VoiceCharacteristics:
        spectrum = self.spectral.magnitude_spectrum(
            frame.samples,
            frame.sample_rate,
            window=self.framer.window,
            start_offset_samples=frame.start_offset_samples,
        )
        return self.characterize_from_spectrum(frame.samples, spectrum)

    @staticmethod
    def _ensure_finite(values: dict) -> None:
        flat = []
        for value in values.values():
            if isinstance(value, list):
                flat.extend(value)
            else:
                flat.append(value)
        if not np.all(np.isfinite(np.asarray(flat, dtype=np.float64))):
            bad = [name for name, value in values.items()
                   if not np.all(np.isfinite(np.asarray(value, dtype=np.float64)))]
            logger.error(f"Non-finite voice characteristics: {bad}")
            raise ComputationError(f"Voice analysis produced NaN or infinite values in {bad}")

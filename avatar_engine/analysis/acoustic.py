"""Acoustic Analysis Module

This module extracts the prosodic cues that carry emotion in the voice and
turns them into an emotional reading of an audio buffer. It works on whole
buffers and produces:

* pitch variance over 25 ms frames and tempo variance over 100 ms frames,
* jitter and shimmer over the voiced 25 ms frames,
* energy in seven fixed frequency bands,
* arousal and valence on a [-1, 1] scale.

Classification itself is delegated to an EmotionClassifierStrategy so the
rule set can be swapped without touching feature extraction.
"""

import logging
import math
import threading
from typing import List, Optional, Tuple

import numpy as np

from avatar_engine.analysis.pitch import PitchTracker
from avatar_engine.analysis.spectral import SpectralEngine
from avatar_engine.analysis.voice import VoiceCharacterizer
from avatar_engine.errors import ComputationError, raise_if_cancelled
from avatar_engine.models.features import (
    AcousticEmotionFeatures,
    EmotionFeatures,
    FrequencyBand,
    VoiceCharacteristics,
)
from avatar_engine.models.frames import AudioBufferDescriptor
from avatar_engine.models.interfaces import EmotionClassifierStrategy
from avatar_engine.models.results import AudioEmotionAnalysis


logger = logging.getLogger(__name__)


def _clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class AcousticAnalyzer:
    """Extracts emotion-bearing acoustic features from audio buffers.

    This class implements the acoustic side of emotion analysis:
    1. Computes buffer-level voice characteristics through the VoiceCharacterizer
    2. Tracks F0 over short frames for pitch variance and jitter
    3. Tracks frame energy for tempo variance and shimmer
    4. Decomposes the mean spectrum into seven frequency bands
    5. Maps the features onto arousal and valence

    Attributes:
        characterizer: Buffer-level voice analysis
        pitch_frame_ms: Frame length for the F0 track
        tempo_frame_ms: Frame length for the energy track
    """

    def __init__(
        self,
        characterizer: Optional[VoiceCharacterizer] = None,
        pitch_frame_ms: float = 25.0,
        tempo_frame_ms: float = 100.0,
    ):
        """Initialize the acoustic analyzer.

        Args:
            characterizer: Shared VoiceCharacterizer, a default one is built if omitted
            pitch_frame_ms: Frame length in ms for pitch variance, jitter and shimmer
            tempo_frame_ms: Frame length in ms for tempo variance
        """
        self.characterizer = characterizer or VoiceCharacterizer()
        self.pitch_tracker: PitchTracker = self.characterizer.pitch_tracker
        self.pitch_frame_ms = pitch_frame_ms
        self.tempo_frame_ms = tempo_frame_ms

        logger.info(
            f"AcousticAnalyzer initialized with pitch_frame={pitch_frame_ms}ms, "
            f"tempo_frame={tempo_frame_ms}ms"
        )

    @staticmethod
    def _frame_energies(samples: np.ndarray, frame_size: int) -> np.ndarray:
        count = len(samples) // frame_size
        if count == 0:
            return np.zeros(0)
        frames = samples[:count * frame_size].reshape(count, frame_size)
        return np.sqrt(np.mean(frames * frames, axis=1))

    def _pitch_track(self, buffer: AudioBufferDescriptor) -> np.ndarray:
        return self.pitch_tracker.f0_track(buffer.samples, buffer.sample_rate, self.pitch_frame_ms)

    @staticmethod
    def _pitch_variance(track: np.ndarray) -> float:
        """Population standard deviation of voiced F0 values"""
        voiced = track[track > 0]
        if len(voiced) < 2:
            return 0.0
        return float(np.std(voiced))

    def _tempo_variance(self, buffer: AudioBufferDescriptor) -> float:
        """Mean absolute change of energy between consecutive tempo frames"""
        frame_size = max(1, int(buffer.sample_rate * self.tempo_frame_ms / 1000.0))
        energies = self._frame_energies(buffer.samples, frame_size)
        if len(energies) < 2:
            return 0.0
        return float(np.mean(np.abs(np.diff(energies))))

    @staticmethod
    def _jitter(track: np.ndarray) -> float:
        """Mean absolute period difference relative to the mean period"""
        voiced = track[track > 0]
        if len(voiced) < 2:
            return 0.0
        periods = 1.0 / voiced
        return float(np.mean(np.abs(np.diff(periods))) / np.mean(periods))

    def _shimmer(self, buffer: AudioBufferDescriptor, track: np.ndarray) -> float:
        """Mean absolute amplitude difference relative to the mean amplitude"""
        frame_size = max(1, int(buffer.sample_rate * self.pitch_frame_ms / 1000.0))
        amplitudes = self._frame_energies(buffer.samples, frame_size)[:len(track)]
        voiced = amplitudes[track[:len(amplitudes)] > 0]
        if len(voiced) < 2 or np.mean(voiced) <= 0:
            return 0.0
        return float(np.mean(np.abs(np.diff(voiced))) / np.mean(voiced))

    @staticmethod
    def arousal(features: AcousticEmotionFeatures) -> float:
        """Activation in [-1, 1] from pitch variance, tempo and energy"""
        raw = (features.pitch_variance / 200.0 + features.tempo * 10.0 + features.energy * 5.0) / 3.0
        return _clamp(raw * 2.0 - 1.0)

    @staticmethod
    def valence(features: AcousticEmotionFeatures, bands: List[FrequencyBand]) -> float:
        """Positivity in [-1, 1] from brightness and mid/low band balance

        The band balance is ln(mid / low); it contributes nothing when either
        side has no energy.
        """
        brightness = features.spectral_centroid / 2000.0
        low = sum(band.energy for band in bands[0:2])
        mid = sum(band.energy for band in bands[2:4])
        balance = math.log(mid / low) if low > 0 and mid > 0 else 0.0
        return _clamp(((brightness + balance) / 2.0) * 2.0 - 1.0)

    @staticmethod
    def from_voice(characteristics: VoiceCharacteristics) -> AcousticEmotionFeatures:
        """Acoustic emotion features from voice characteristics alone

        Variance-based features need the raw buffer and are left at 0.
        """
        return AcousticEmotionFeatures(
            pitch=characteristics.f0,
            energy=characteristics.energy,
            voice_quality=characteristics.voiced_probability,
            spectral_centroid=characteristics.spectral_centroid,
        )

    def extract(
        self,
        buffer: AudioBufferDescriptor,
        cancel_event: Optional[threading.Event] = None,
    ) -> Tuple[VoiceCharacteristics, AcousticEmotionFeatures, List[FrequencyBand]]:
        """Extract voice characteristics, acoustic emotion features and band energies.

        Args:
            buffer: Mono PCM buffer
            cancel_event: Set by the caller to abandon the analysis

        Returns:
            Tuple of (VoiceCharacteristics, AcousticEmotionFeatures, band energies)

        Raises:
            AnalysisCancelledError: If cancel_event was set mid-way
            ComputationError: If any feature is NaN or infinite
        """
        spectrum = self.characterizer.average_spectrum(buffer, cancel_event)
        raise_if_cancelled(cancel_event, "acoustic analysis")
        characteristics = self.characterizer.characterize_from_spectrum(buffer.samples, spectrum)
        bands = SpectralEngine.band_energies(spectrum)

        raise_if_cancelled(cancel_event, "acoustic analysis")
        track = self._pitch_track(buffer)
        raise_if_cancelled(cancel_event, "acoustic analysis")

        features = AcousticEmotionFeatures(
            pitch=characteristics.f0,
            pitch_variance=self._pitch_variance(track),
            energy=characteristics.energy,
            tempo=self._tempo_variance(buffer),
            voice_quality=characteristics.voiced_probability,
            spectral_centroid=characteristics.spectral_centroid,
            jitter=self._jitter(track),
            shimmer=self._shimmer(buffer, track),
        )

        values = list(features.to_dict().values()) + [band.energy for band in bands]
        if not np.all(np.isfinite(values)):
            logger.error(f"Non-finite acoustic features: {features}")
            raise ComputationError("Acoustic analysis produced NaN or infinite values")

        logger.debug(
            f"Acoustic features: pitch={features.pitch:.1f}Hz, "
            f"pitch_var={features.pitch_variance:.1f}, tempo={features.tempo:.4f}, "
            f"jitter={features.jitter:.4f}, shimmer={features.shimmer:.4f}"
        )
        return characteristics, features, bands

    def analyze(
        self,
        buffer: AudioBufferDescriptor,
        classifier: EmotionClassifierStrategy,
        cancel_event: Optional[threading.Event] = None,
    ) -> AudioEmotionAnalysis:
        """Emotional reading of a buffer.

        The classifier's strongest candidate becomes the reading's emotion;
        arousal and valence are computed from the same features.

        Args:
            buffer: Mono PCM buffer
            classifier: Audio emotion classifier strategy
            cancel_event: Set by the caller to abandon the analysis

        Returns:
            AudioEmotionAnalysis with emotion, arousal, valence and band energies
        """
        _, features, bands = self.extract(buffer, cancel_event)
        candidates = classifier.candidates(EmotionFeatures(acoustic=features))
        best = max(candidates, key=lambda c: c.confidence)

        result = AudioEmotionAnalysis(
            emotion=best.emotion,
            confidence=best.confidence,
            intensity=best.intensity,
            arousal=self.arousal(features),
            valence=self.valence(features, bands),
            features=features,
            band_energies=bands,
        )
        logger.debug(
            f"Audio emotion: {result.emotion.value} ({result.confidence:.2f}), "
            f"arousal={result.arousal:.2f}, valence={result.valence:.2f}"
        )
        return result

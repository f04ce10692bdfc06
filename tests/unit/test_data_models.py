"""Unit tests for data models"""

import json

import numpy as np
import pytest

from avatar_engine.errors import InvalidInputError
from avatar_engine.models import (
    AudioBufferDescriptor,
    AudioFrame,
    SpectrumFrame,
    VoiceCharacteristics,
    Viseme,
    EmotionCandidate,
    DetectedEmotion,
    EmotionTransition,
    EmotionFeatures,
    TextualFeatures,
    AcousticEmotionFeatures,
    ContextualFeatures,
    AudioEmotionAnalysis,
    EmotionAnalysisSummary,
    EmotionType,
    EmotionIntensity,
    EmotionSource,
    NEUTRAL_DEFAULT,
)


class TestAudioBufferDescriptor:
    """Tests for AudioBufferDescriptor model"""

    def test_create_valid_buffer(self):
        """Test creating a valid mono buffer"""
        buffer = AudioBufferDescriptor(samples=[0.0, 0.5, -0.5, 0.25], sample_rate=16000)

        assert buffer.samples.dtype == np.float64
        assert buffer.channels == 1
        assert buffer.duration_ms == pytest.approx(0.25)

    def test_rejects_multichannel(self):
        """Test that only mono buffers are accepted"""
        with pytest.raises(InvalidInputError):
            AudioBufferDescriptor(samples=np.zeros(100), sample_rate=16000, channels=2)

    def test_rejects_two_dimensional_samples(self):
        """Test that interleaved or stacked arrays are rejected"""
        with pytest.raises(InvalidInputError):
            AudioBufferDescriptor(samples=np.zeros((2, 100)), sample_rate=16000)

    def test_rejects_empty_buffer(self):
        """Test that an empty buffer is rejected"""
        with pytest.raises(InvalidInputError):
            AudioBufferDescriptor(samples=np.array([]), sample_rate=16000)

    def test_rejects_non_finite_samples(self):
        """Test that NaN and inf samples are rejected"""
        with pytest.raises(InvalidInputError):
            AudioBufferDescriptor(samples=np.array([0.0, np.nan]), sample_rate=16000)
        with pytest.raises(InvalidInputError):
            AudioBufferDescriptor(samples=np.array([0.0, np.inf]), sample_rate=16000)

    def test_rejects_bad_sample_rate(self):
        """Test that the sample rate must be positive"""
        with pytest.raises(InvalidInputError):
            AudioBufferDescriptor(samples=np.zeros(10), sample_rate=0)

    def test_dict_round_trip(self):
        """Test to_dict/from_dict preserve samples and rate"""
        buffer = AudioBufferDescriptor(samples=np.linspace(-1, 1, 8), sample_rate=8000)
        restored = AudioBufferDescriptor.from_dict(json.loads(json.dumps(buffer.to_dict())))

        assert restored.sample_rate == 8000
        np.testing.assert_allclose(restored.samples, buffer.samples)


class TestFrames:
    """Tests for AudioFrame and SpectrumFrame models"""

    def test_audio_frame_timing(self):
        """Test timestamp and duration derive from offsets"""
        frame = AudioFrame(samples=np.zeros(512), sample_rate=16000, start_offset_samples=1600)

        assert frame.timestamp == pytest.approx(0.1)
        assert frame.duration == pytest.approx(0.032)

    def test_audio_frame_validation(self):
        """Test audio frame validation"""
        with pytest.raises(AssertionError):
            AudioFrame(samples=np.zeros(10), sample_rate=-1)
        with pytest.raises(AssertionError):
            AudioFrame(samples=np.zeros(10), sample_rate=16000, start_offset_samples=-1)

    def test_spectrum_frame_bins(self):
        """Test frequency axis and Nyquist"""
        spectrum = SpectrumFrame(magnitudes=np.zeros(513), sample_rate=22050, fft_size=1024)

        assert spectrum.nyquist == 11025.0
        assert spectrum.frequencies[-1] == pytest.approx(11025.0)
        assert spectrum.frequencies[1] == pytest.approx(22050 / 1024)

    def test_spectrum_frame_shape_validation(self):
        """Test that the bin count must match the FFT size"""
        with pytest.raises(AssertionError):
            SpectrumFrame(magnitudes=np.zeros(512), sample_rate=22050, fft_size=1024)


class TestVoiceCharacteristics:
    """Tests for VoiceCharacteristics model"""

    def _make(self, **overrides):
        values = dict(
            f0=220.0, pitch=57.0, formants=[700.0, 1200.0], spectral_centroid=1500.0,
            spectral_rolloff=3000.0, zero_crossing_rate=0.02, mfcc=[0.0] * 13,
            energy=0.3, voiced_probability=1.0,
        )
        values.update(overrides)
        return VoiceCharacteristics(**values)

    def test_validation(self):
        """Test range checks on construction"""
        with pytest.raises(AssertionError):
            self._make(energy=-0.1)
        with pytest.raises(AssertionError):
            self._make(voiced_probability=1.5)
        with pytest.raises(AssertionError):
            self._make(zero_crossing_rate=2.0)
        with pytest.raises(AssertionError):
            self._make(formants=[1.0, 2.0, 3.0, 4.0])

    def test_serialization(self):
        """Test to_dict/from_dict keep every field"""
        voice = self._make()
        restored = VoiceCharacteristics.from_dict(json.loads(json.dumps(voice.to_dict())))

        assert restored == voice


class TestViseme:
    """Tests for Viseme model"""

    def test_validation(self):
        """Test confidence, intensity and duration ranges"""
        with pytest.raises(AssertionError):
            Viseme(label="aa", confidence=1.2, duration_ms=50.0, intensity=0.5)
        with pytest.raises(AssertionError):
            Viseme(label="aa", confidence=0.5, duration_ms=50.0, intensity=-0.1)
        with pytest.raises(AssertionError):
            Viseme(label="aa", confidence=0.5, duration_ms=-1.0, intensity=0.5)

    def test_round_trip(self):
        """Test to_dict/from_dict"""
        viseme = Viseme(label="sh", confidence=0.3, duration_ms=50.0, intensity=0.6)

        assert Viseme.from_dict(viseme.to_dict()) == viseme


class TestEmotionModels:
    """Tests for emotion result models"""

    def test_intensity_levels(self):
        """Test intensity ordinal levels and clamping"""
        assert EmotionIntensity.VERY_LOW.level == 0
        assert EmotionIntensity.VERY_HIGH.level == 4
        assert EmotionIntensity.from_level(2) == EmotionIntensity.MODERATE
        assert EmotionIntensity.from_level(9) == EmotionIntensity.VERY_HIGH
        assert EmotionIntensity.from_level(-3) == EmotionIntensity.VERY_LOW

    def test_neutral_default(self):
        """Test the neutral fallback candidate"""
        assert NEUTRAL_DEFAULT == EmotionCandidate(EmotionType.NEUTRAL, EmotionIntensity.MODERATE, 0.5)

    def test_candidate_confidence_range(self):
        """Test candidate confidence must lie in [0, 1]"""
        with pytest.raises(AssertionError):
            EmotionCandidate(EmotionType.HAPPY, EmotionIntensity.HIGH, 1.5)

    def test_detected_emotion_round_trip(self):
        """Test a detection with every feature part survives JSON"""
        features = EmotionFeatures(
            textual=TextualFeatures(sentiment=0.5, keywords=["happy"], exclamation_count=1),
            acoustic=AcousticEmotionFeatures(pitch=200.0, energy=0.2),
            contextual=ContextualFeatures(topics=["work"], time_of_day="morning"),
        )
        detected = DetectedEmotion(
            emotion=EmotionType.HAPPY,
            intensity=EmotionIntensity.HIGH,
            confidence=0.8,
            timestamp=1000.0,
            source=EmotionSource.COMBINED,
            features=features,
            duration_ms=500.0,
        )

        restored = DetectedEmotion.from_dict(json.loads(json.dumps(detected.to_dict())))

        assert restored == detected

    def test_detected_emotion_validation(self):
        """Test confidence range on detections"""
        with pytest.raises(AssertionError):
            DetectedEmotion(EmotionType.SAD, EmotionIntensity.LOW, 1.1, 0.0, EmotionSource.TEXT)

    def test_transition_round_trip(self):
        """Test EmotionTransition to_dict/from_dict"""
        transition = EmotionTransition(
            from_emotion=EmotionType.NEUTRAL,
            to_emotion=EmotionType.HAPPY,
            transition_speed=0.72,
            blend_factor=0.3,
            reason="Emotion change detected: neutral -> happy",
            timestamp=12.0,
        )

        assert EmotionTransition.from_dict(transition.to_dict()) == transition

    def test_transition_validation(self):
        """Test speed and blend ranges"""
        with pytest.raises(AssertionError):
            EmotionTransition(EmotionType.SAD, EmotionType.HAPPY, 1.5, 0.5, "", 0.0)

    def test_audio_emotion_analysis_ranges(self):
        """Test arousal and valence must lie in [-1, 1]"""
        with pytest.raises(AssertionError):
            AudioEmotionAnalysis(
                emotion=EmotionType.NEUTRAL,
                confidence=0.5,
                intensity=EmotionIntensity.MODERATE,
                arousal=1.5,
                valence=0.0,
                features=AcousticEmotionFeatures(),
            )

    def test_summary_stability_range(self):
        """Test stability must lie in [0, 1]"""
        with pytest.raises(AssertionError):
            EmotionAnalysisSummary(emotions=[], transitions=[], patterns=[], stability=1.2)

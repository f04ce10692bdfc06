"""Data models and interfaces"""

from avatar_engine.models.frames import AudioBufferDescriptor, AudioFrame, SpectrumFrame
from avatar_engine.models.features import (
    VoiceCharacteristics,
    FrequencyBand,
    TextualFeatures,
    AcousticEmotionFeatures,
    ContextualFeatures,
    EmotionFeatures,
)
from avatar_engine.models.results import (
    Viseme,
    EmotionCandidate,
    NEUTRAL_DEFAULT,
    FusionResult,
    DetectedEmotion,
    EmotionTransition,
    EmotionDetectionResult,
    AudioEmotionAnalysis,
    EmotionPattern,
    EmotionAnalysisSummary,
)
from avatar_engine.models.enums import (
    EmotionType,
    EmotionIntensity,
    EmotionSource,
    WindowFunction,
)
from avatar_engine.models.interfaces import (
    PhonemeClassifierStrategy,
    EmotionClassifierStrategy,
)

__all__ = [
    # Frames
    "AudioBufferDescriptor",
    "AudioFrame",
    "SpectrumFrame",
    # Features
    "VoiceCharacteristics",
    "FrequencyBand",
    "TextualFeatures",
    "AcousticEmotionFeatures",
    "ContextualFeatures",
    "EmotionFeatures",
    # Results
    "Viseme",
    "EmotionCandidate",
    "NEUTRAL_DEFAULT",
    "FusionResult",
    "DetectedEmotion",
    "EmotionTransition",
    "EmotionDetectionResult",
    "AudioEmotionAnalysis",
    "EmotionPattern",
    "EmotionAnalysisSummary",
    # Enums
    "EmotionType",
    "EmotionIntensity",
    "EmotionSource",
    "WindowFunction",
    # Interfaces
    "PhonemeClassifierStrategy",
    "EmotionClassifierStrategy",
]

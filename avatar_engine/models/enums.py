"""Enumerations for emotion categories, intensity levels and sources"""

from enum import Enum


class EmotionType(Enum):
    """Emotion categories the classifiers can emit"""
    NEUTRAL = "neutral"
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    FEARFUL = "fearful"
    DISGUSTED = "disgusted"
    EXCITED = "excited"
    CALM = "calm"
    FRUSTRATED = "frustrated"
    CONFUSED = "confused"
    CONFIDENT = "confident"
    ANXIOUS = "anxious"
    ENTHUSIASTIC = "enthusiastic"
    BORED = "bored"
    CURIOUS = "curious"
    SYMPATHETIC = "sympathetic"
    PROUD = "proud"
    EMBARRASSED = "embarrassed"
    CONCERNED = "concerned"


class EmotionIntensity(Enum):
    """Five-level ordinal intensity scale"""
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def level(self) -> int:
        """Ordinal position, 0 for very_low up to 4 for very_high"""
        return _INTENSITY_ORDER.index(self)

    @classmethod
    def from_level(cls, level: int) -> "EmotionIntensity":
        """Map an ordinal back to a level, clamping out-of-range values"""
        level = max(0, min(len(_INTENSITY_ORDER) - 1, int(level)))
        return _INTENSITY_ORDER[level]


_INTENSITY_ORDER = [
    EmotionIntensity.VERY_LOW,
    EmotionIntensity.LOW,
    EmotionIntensity.MODERATE,
    EmotionIntensity.HIGH,
    EmotionIntensity.VERY_HIGH,
]


class EmotionSource(Enum):
    """Modality a detection was derived from"""
    TEXT = "text"
    AUDIO = "audio"
    CONTEXT = "context"
    COMBINED = "combined"


class WindowFunction(Enum):
    """Analysis window applied to each frame before the FFT"""
    HANN = "hann"
    HAMMING = "hamming"
    RECTANGULAR = "rectangular"

"""Data models for analysis results"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from avatar_engine.models.enums import EmotionIntensity, EmotionSource, EmotionType
from avatar_engine.models.features import (
    AcousticEmotionFeatures,
    EmotionFeatures,
    FrequencyBand,
)


@dataclass
class Viseme:
    """One mouth shape in a lip-sync sequence

    Attributes:
        label: Viseme label (e.g., "aa", "sil")
        confidence: Classification confidence [0, 1]
        duration_ms: Time the shape is held, in milliseconds
        intensity: Mouth opening strength [0, 1]
    """
    label: str
    confidence: float
    duration_ms: float
    intensity: float

    def __post_init__(self):
        """Validate viseme data"""
        assert 0.0 <= self.confidence <= 1.0, "Confidence must be in [0, 1]"
        assert 0.0 <= self.intensity <= 1.0, "Intensity must be in [0, 1]"
        assert self.duration_ms >= 0, "Duration must be non-negative"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "confidence": self.confidence,
            "duration_ms": self.duration_ms,
            "intensity": self.intensity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Viseme":
        return cls(
            label=data["label"],
            confidence=data["confidence"],
            duration_ms=data["duration_ms"],
            intensity=data["intensity"],
        )


@dataclass(frozen=True)
class EmotionCandidate:
    """A single scored vote produced by a per-modality classifier"""
    emotion: EmotionType
    intensity: EmotionIntensity
    confidence: float

    def __post_init__(self):
        assert 0.0 <= self.confidence <= 1.0, "Confidence must be in [0, 1]"


NEUTRAL_DEFAULT = EmotionCandidate(
    emotion=EmotionType.NEUTRAL,
    intensity=EmotionIntensity.MODERATE,
    confidence=0.5,
)


@dataclass
class FusionResult:
    """Outcome of weighted multi-modal fusion

    Attributes:
        candidate: Winning emotion with fused intensity and confidence
        emotion_scores: Accumulated weighted score per emotion
        modality_contributions: Weighted score each modality added in total
    """
    candidate: EmotionCandidate
    emotion_scores: Dict[EmotionType, float] = field(default_factory=dict)
    modality_contributions: Dict[EmotionSource, float] = field(default_factory=dict)


@dataclass
class DetectedEmotion:
    """Emotion estimate emitted by the detection entry points

    Attributes:
        emotion: Detected emotion category
        intensity: Five-level intensity
        confidence: Confidence in this detection [0, 1]
        timestamp: Unix time of the detection in seconds
        source: Modality the detection came from
        features: Features the classifiers saw
        duration_ms: Length of the analysed audio, for audio-based detections
    """
    emotion: EmotionType
    intensity: EmotionIntensity
    confidence: float
    timestamp: float
    source: EmotionSource
    features: EmotionFeatures = field(default_factory=EmotionFeatures)
    duration_ms: Optional[float] = None

    def __post_init__(self):
        """Validate detection data"""
        assert 0.0 <= self.confidence <= 1.0, "Confidence must be in [0, 1]"
        assert self.timestamp >= 0, "Timestamp must be non-negative"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emotion": self.emotion.value,
            "intensity": self.intensity.value,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "source": self.source.value,
            "features": self.features.to_dict(),
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectedEmotion":
        return cls(
            emotion=EmotionType(data["emotion"]),
            intensity=EmotionIntensity(data["intensity"]),
            confidence=data["confidence"],
            timestamp=data["timestamp"],
            source=EmotionSource(data["source"]),
            features=EmotionFeatures.from_dict(data.get("features") or {}),
            duration_ms=data.get("duration_ms"),
        )


@dataclass
class EmotionTransition:
    """Record of a change between two consecutive detected emotions

    Attributes:
        from_emotion: Emotion before the change
        to_emotion: Emotion after the change
        transition_speed: How quickly animation should move to the new state [0, 1]
        blend_factor: How much of the old state to blend in [0, 1]
        reason: Human-readable cause of the transition
        timestamp: Unix time of the detection that caused it
    """
    from_emotion: EmotionType
    to_emotion: EmotionType
    transition_speed: float
    blend_factor: float
    reason: str
    timestamp: float

    def __post_init__(self):
        """Validate transition data"""
        assert 0.0 <= self.transition_speed <= 1.0, "Transition speed must be in [0, 1]"
        assert 0.0 <= self.blend_factor <= 1.0, "Blend factor must be in [0, 1]"
        assert self.timestamp >= 0, "Timestamp must be non-negative"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_emotion": self.from_emotion.value,
            "to_emotion": self.to_emotion.value,
            "transition_speed": self.transition_speed,
            "blend_factor": self.blend_factor,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmotionTransition":
        return cls(
            from_emotion=EmotionType(data["from_emotion"]),
            to_emotion=EmotionType(data["to_emotion"]),
            transition_speed=data["transition_speed"],
            blend_factor=data["blend_factor"],
            reason=data["reason"],
            timestamp=data["timestamp"],
        )


@dataclass
class EmotionDetectionResult:
    """A detection together with the transition it caused, if any"""
    detected: DetectedEmotion
    transition: Optional[EmotionTransition] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected": self.detected.to_dict(),
            "transition": self.transition.to_dict() if self.transition else None,
        }


@dataclass
class AudioEmotionAnalysis:
    """Emotional reading of an audio buffer on its own

    Attributes:
        emotion: Most likely emotion
        confidence: Confidence of that emotion [0, 1]
        intensity: Five-level intensity
        arousal: Activation axis [-1, 1]
        valence: Positivity axis [-1, 1]
        features: Prosodic features the reading is based on
        band_energies: Energy in each of the seven frequency bands
    """
    emotion: EmotionType
    confidence: float
    intensity: EmotionIntensity
    arousal: float
    valence: float
    features: AcousticEmotionFeatures
    band_energies: List[FrequencyBand] = field(default_factory=list)

    def __post_init__(self):
        assert 0.0 <= self.confidence <= 1.0, "Confidence must be in [0, 1]"
        assert -1.0 <= self.arousal <= 1.0, "Arousal must be in [-1, 1]"
        assert -1.0 <= self.valence <= 1.0, "Valence must be in [-1, 1]"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emotion": self.emotion.value,
            "confidence": self.confidence,
            "intensity": self.intensity.value,
            "arousal": self.arousal,
            "valence": self.valence,
            "features": self.features.to_dict(),
            "band_energies": [band.to_dict() for band in self.band_energies],
        }


@dataclass
class EmotionPattern:
    """Share of a window's detections that were this emotion, and how strong they were"""
    emotion: EmotionType
    frequency: float
    average_intensity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emotion": self.emotion.value,
            "frequency": self.frequency,
            "average_intensity": self.average_intensity,
        }


@dataclass
class EmotionAnalysisSummary:
    """Detections, transitions and derived metrics for a trailing window"""
    emotions: List[DetectedEmotion]
    transitions: List[EmotionTransition]
    patterns: List[EmotionPattern]
    stability: float

    def __post_init__(self):
        assert 0.0 <= self.stability <= 1.0, "Stability must be in [0, 1]"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emotions": [emotion.to_dict() for emotion in self.emotions],
            "transitions": [transition.to_dict() for transition in self.transitions],
            "patterns": [pattern.to_dict() for pattern in self.patterns],
            "stability": self.stability,
        }

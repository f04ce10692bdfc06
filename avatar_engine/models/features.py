"""Data models for extracted voice and emotion features"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class VoiceCharacteristics:
    """Acoustic description of a buffer or a single frame

    Attributes:
        f0: Fundamental frequency in Hz, 0.0 for silent/unvoiced audio
        pitch: Semitone value 69 + 12*log2(f0/440), 0.0 when f0 is 0
        formants: Up to three spectral peaks between 200 and 4000 Hz, ascending
        spectral_centroid: Magnitude-weighted mean frequency in Hz
        spectral_rolloff: Frequency in Hz below which 85% of spectral energy lies
        zero_crossing_rate: Sign changes per sample pair, in [0, 1]
        mfcc: Mel-frequency cepstral coefficients
        energy: RMS energy of the samples
        voiced_probability: Heuristic voicing score in [0, 1]
    """
    f0: float
    pitch: float
    formants: List[float]
    spectral_centroid: float
    spectral_rolloff: float
    zero_crossing_rate: float
    mfcc: List[float]
    energy: float
    voiced_probability: float

    def __post_init__(self):
        """Validate feature ranges"""
        assert self.f0 >= 0, "F0 must be non-negative"
        assert self.energy >= 0, "Energy must be non-negative"
        assert 0.0 <= self.voiced_probability <= 1.0, "Voiced probability must be in [0, 1]"
        assert 0.0 <= self.zero_crossing_rate <= 1.0, "Zero-crossing rate must be in [0, 1]"
        assert len(self.formants) <= 3, "At most three formants are kept"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "f0": self.f0,
            "pitch": self.pitch,
            "formants": list(self.formants),
            "spectral_centroid": self.spectral_centroid,
            "spectral_rolloff": self.spectral_rolloff,
            "zero_crossing_rate": self.zero_crossing_rate,
            "mfcc": list(self.mfcc),
            "energy": self.energy,
            "voiced_probability": self.voiced_probability,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VoiceCharacteristics":
        return cls(
            f0=data["f0"],
            pitch=data["pitch"],
            formants=list(data["formants"]),
            spectral_centroid=data["spectral_centroid"],
            spectral_rolloff=data["spectral_rolloff"],
            zero_crossing_rate=data["zero_crossing_rate"],
            mfcc=list(data["mfcc"]),
            energy=data["energy"],
            voiced_probability=data["voiced_probability"],
        )


@dataclass
class FrequencyBand:
    """Energy held in one named frequency band

    Attributes:
        name: Band name (e.g., "sub_bass")
        min_freq: Lower edge in Hz
        max_freq: Upper edge in Hz
        energy: Sum of squared magnitudes of the bins inside the band
    """
    name: str
    min_freq: float
    max_freq: float
    energy: float = 0.0

    def __post_init__(self):
        assert self.min_freq >= 0, "Band lower edge must be non-negative"
        assert self.max_freq >= self.min_freq, "Band upper edge must not be below lower edge"
        assert self.energy >= 0, "Band energy must be non-negative"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "min_freq": self.min_freq,
            "max_freq": self.max_freq,
            "energy": self.energy,
        }


@dataclass
class TextualFeatures:
    """Emotion cues extracted from text

    Attributes:
        sentiment: (positive - negative) / emotional words, in [-1, 1]
        subjectivity: Bounded count of subjective markers, in [0, 1]
        keywords: Emotion keywords found in the text
        punctuation_intensity: Weighted punctuation density
        caps_usage: Share of uppercase characters, in [0, 1]
        emoticons: Emoticons found in the text
        exclamation_count: Number of '!' characters
        question_count: Number of '?' characters
        pattern_matches: Matched pattern count per emotion name
        intensity: Intensity level implied by intensifiers, punctuation and caps
    """
    sentiment: float = 0.0
    subjectivity: float = 0.0
    keywords: List[str] = field(default_factory=list)
    punctuation_intensity: float = 0.0
    caps_usage: float = 0.0
    emoticons: List[str] = field(default_factory=list)
    exclamation_count: int = 0
    question_count: int = 0
    pattern_matches: Dict[str, int] = field(default_factory=dict)
    intensity: str = "moderate"

    def __post_init__(self):
        assert -1.0 <= self.sentiment <= 1.0, "Sentiment must be in [-1, 1]"
        assert 0.0 <= self.subjectivity <= 1.0, "Subjectivity must be in [0, 1]"
        assert 0.0 <= self.caps_usage <= 1.0, "Caps usage must be in [0, 1]"
        assert self.exclamation_count >= 0 and self.question_count >= 0, \
            "Punctuation counts must be non-negative"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "subjectivity": self.subjectivity,
            "keywords": list(self.keywords),
            "punctuation_intensity": self.punctuation_intensity,
            "caps_usage": self.caps_usage,
            "emoticons": list(self.emoticons),
            "exclamation_count": self.exclamation_count,
            "question_count": self.question_count,
            "pattern_matches": dict(self.pattern_matches),
            "intensity": self.intensity,
        }


@dataclass
class AcousticEmotionFeatures:
    """Prosodic cues used by the audio emotion classifier

    Attributes:
        pitch: Mean fundamental frequency in Hz
        pitch_variance: Standard deviation of F0 across 25 ms frames
        energy: RMS energy of the buffer
        tempo: Mean absolute change of 100 ms frame energy
        voice_quality: Voicing score in [0, 1]
        spectral_centroid: Spectral centroid in Hz
        jitter: Relative cycle-to-cycle period perturbation
        shimmer: Relative cycle-to-cycle amplitude perturbation
    """
    pitch: float = 0.0
    pitch_variance: float = 0.0
    energy: float = 0.0
    tempo: float = 0.0
    voice_quality: float = 0.0
    spectral_centroid: float = 0.0
    jitter: float = 0.0
    shimmer: float = 0.0

    def __post_init__(self):
        assert self.energy >= 0, "Energy must be non-negative"
        assert self.pitch_variance >= 0, "Pitch variance must be non-negative"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pitch": self.pitch,
            "pitch_variance": self.pitch_variance,
            "energy": self.energy,
            "tempo": self.tempo,
            "voice_quality": self.voice_quality,
            "spectral_centroid": self.spectral_centroid,
            "jitter": self.jitter,
            "shimmer": self.shimmer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AcousticEmotionFeatures":
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: float(v) for k, v in data.items() if k in known})


@dataclass
class ContextualFeatures:
    """Conversation context supplied alongside text or audio

    Attributes:
        topics: Topic labels of the current conversation
        history: Prior utterances or emotion labels, most recent last
        time_of_day: Free-form period label (e.g., "morning")
        interaction_length: Elapsed interaction time in milliseconds
        user_profile: Optional caller-supplied profile data
    """
    topics: List[str] = field(default_factory=list)
    history: List[str] = field(default_factory=list)
    time_of_day: str = ""
    interaction_length: float = 0.0
    user_profile: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        assert self.interaction_length >= 0, "Interaction length must be non-negative"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topics": list(self.topics),
            "history": list(self.history),
            "time_of_day": self.time_of_day,
            "interaction_length": self.interaction_length,
            "user_profile": dict(self.user_profile),
        }


@dataclass
class EmotionFeatures:
    """Per-modality features behind a detection; every part is optional"""
    textual: Optional[TextualFeatures] = None
    acoustic: Optional[AcousticEmotionFeatures] = None
    contextual: Optional[ContextualFeatures] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "textual": self.textual.to_dict() if self.textual else None,
            "acoustic": self.acoustic.to_dict() if self.acoustic else None,
            "contextual": self.contextual.to_dict() if self.contextual else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmotionFeatures":
        textual = data.get("textual")
        acoustic = data.get("acoustic")
        contextual = data.get("contextual")
        return cls(
            textual=TextualFeatures(**textual) if textual else None,
            acoustic=AcousticEmotionFeatures.from_dict(acoustic) if acoustic else None,
            contextual=ContextualFeatures(**contextual) if contextual else None,
        )

"""Typed analysis settings built from the YAML configuration"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from avatar_engine.errors import InvalidInputError, UnsupportedConfigError
from avatar_engine.models.enums import WindowFunction


# YAML key for every AnalysisConfig field
_CONFIG_KEYS = {
    "sample_rate": "analysis.sample_rate",
    "window_size": "analysis.window_size",
    "hop_size": "analysis.hop_size",
    "window_function": "analysis.window_function",
    "pad_partial_frames": "analysis.pad_partial_frames",
    "mel_filter_count": "analysis.mel_filter_count",
    "mfcc_coefficient_count": "analysis.mfcc_coefficient_count",
    "minimum_confidence": "emotion.minimum_confidence",
    "text_weight": "emotion.weights.text",
    "audio_weight": "emotion.weights.audio",
    "context_weight": "emotion.weights.context",
    "smoothing_window_ms": "emotion.smoothing_window_ms",
    "history_capacity": "emotion.history_capacity",
    "audio_history_capacity": "emotion.audio_history_capacity",
    "analysis_window_ms": "emotion.analysis_window_ms",
    "enable_emotion_history": "emotion.enable_history",
    "enable_transition_smoothing": "emotion.enable_transition_smoothing",
    "viseme_granularity_ms": "lipsync.granularity_ms",
    "viseme_smoothing_threshold": "lipsync.smoothing_threshold",
}


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings shared by every stage of the pipeline

    Attributes:
        sample_rate: Default sample rate in Hz for raw sample arrays
        window_size: Analysis frame length in samples, must be a power of two
        hop_size: Distance between frame starts in samples
        window_function: Window applied before the FFT
        pad_partial_frames: Zero-pad the trailing partial frame instead of dropping it
        mel_filter_count: Number of triangular mel filters
        mfcc_coefficient_count: Number of cepstral coefficients kept
        minimum_confidence: Candidates below this confidence are discarded
        text_weight: Fusion weight of text candidates
        audio_weight: Fusion weight of audio candidates
        context_weight: Fusion weight of context candidates
        smoothing_window_ms: Trailing window for dominant emotion and stability
        history_capacity: Bound on stored detections and transitions per session
        audio_history_capacity: Bound on stored audio emotion readings per audio id
        analysis_window_ms: Default window for emotion analysis summaries
        enable_emotion_history: Keep detections in the bounded history
        enable_transition_smoothing: Record transitions between detections
        viseme_granularity_ms: Lip-sync frame length in milliseconds
        viseme_smoothing_threshold: Confidence below which isolated visemes are replaced
    """
    sample_rate: int = 22050
    window_size: int = 1024
    hop_size: int = 512
    window_function: str = WindowFunction.HANN.value
    pad_partial_frames: bool = False
    mel_filter_count: int = 26
    mfcc_coefficient_count: int = 13
    minimum_confidence: float = 0.3
    text_weight: float = 0.4
    audio_weight: float = 0.4
    context_weight: float = 0.2
    smoothing_window_ms: float = 2000.0
    history_capacity: int = 100
    audio_history_capacity: int = 10
    analysis_window_ms: float = 30000.0
    enable_emotion_history: bool = True
    enable_transition_smoothing: bool = True
    viseme_granularity_ms: float = 50.0
    viseme_smoothing_threshold: float = 0.6

    @property
    def analysis_frame_rate(self) -> float:
        """Frames produced per second of audio"""
        return self.sample_rate / self.hop_size

    def validate(self) -> "AnalysisConfig":
        """Check that the settings describe a runnable pipeline

        Returns:
            self, so calls can be chained

        Raises:
            InvalidInputError: For non-positive sizes or rates
            UnsupportedConfigError: For settings the pipeline cannot honour
        """
        if self.sample_rate <= 0:
            raise InvalidInputError(f"Sample rate must be positive, got {self.sample_rate}")
        if self.window_size <= 0 or self.hop_size <= 0:
            raise InvalidInputError(
                f"Window and hop sizes must be positive, got {self.window_size}/{self.hop_size}"
            )
        if self.hop_size > self.window_size:
            raise InvalidInputError(
                f"Hop size {self.hop_size} exceeds window size {self.window_size}"
            )
        if self.window_size & (self.window_size - 1):
            raise UnsupportedConfigError(
                f"Window size must be a power of two, got {self.window_size}"
            )
        if self.window_function not in {w.value for w in WindowFunction}:
            raise UnsupportedConfigError(f"Unknown window function: {self.window_function}")
        if self.mel_filter_count <= 0 or self.mfcc_coefficient_count <= 0:
            raise UnsupportedConfigError("Mel filter and MFCC counts must be positive")
        if self.mfcc_coefficient_count > self.mel_filter_count:
            raise UnsupportedConfigError(
                f"MFCC count {self.mfcc_coefficient_count} exceeds "
                f"mel filter count {self.mel_filter_count}"
            )
        if not 0.0 <= self.minimum_confidence <= 1.0:
            raise UnsupportedConfigError(
                f"Minimum confidence must be in [0, 1], got {self.minimum_confidence}"
            )
        for name in ("text_weight", "audio_weight", "context_weight"):
            if getattr(self, name) < 0:
                raise UnsupportedConfigError(f"{name} must be non-negative")
        if self.history_capacity < 1 or self.audio_history_capacity < 1:
            raise UnsupportedConfigError("History capacities must be at least 1")
        if self.smoothing_window_ms <= 0 or self.analysis_window_ms <= 0:
            raise UnsupportedConfigError("Analysis windows must be positive")
        if self.viseme_granularity_ms <= 0:
            raise InvalidInputError(
                f"Viseme granularity must be positive, got {self.viseme_granularity_ms}"
            )
        if not 0.0 <= self.viseme_smoothing_threshold <= 1.0:
            raise UnsupportedConfigError("Viseme smoothing threshold must be in [0, 1]")
        return self

    def with_overrides(self, **overrides: Any) -> "AnalysisConfig":
        """Copy with some fields replaced, validated"""
        return replace(self, **overrides).validate()

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_config(cls, source: Optional[Any] = None) -> "AnalysisConfig":
        """Build settings from a Config instance (the global one by default)

        Keys missing from the YAML fall back to the dataclass defaults.
        """
        if source is None:
            from avatar_engine.config.config_loader import config as source

        defaults = cls()
        values = {}
        for name, key in _CONFIG_KEYS.items():
            default = getattr(defaults, name)
            value = source.get(key, default)
            values[name] = type(default)(value)
        return cls(**values)

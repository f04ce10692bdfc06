"""Emotion classification, fusion and state tracking"""

from avatar_engine.fusion.classifiers import (
    TextEmotionClassifier,
    AudioEmotionClassifier,
    AudioEmotionThresholds,
    ContextEmotionClassifier,
)
from avatar_engine.fusion.fusion_engine import EmotionFusionEngine
from avatar_engine.fusion.state_tracker import EmotionStateTracker

__all__ = [
    "TextEmotionClassifier",
    "AudioEmotionClassifier",
    "AudioEmotionThresholds",
    "ContextEmotionClassifier",
    "EmotionFusionEngine",
    "EmotionStateTracker",
]

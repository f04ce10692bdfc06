"""Signal analysis and feature extraction modules"""

from avatar_engine.analysis.framing import Framer
from avatar_engine.analysis.spectral import SpectralEngine
from avatar_engine.analysis.pitch import PitchTracker
from avatar_engine.analysis.features import FeatureExtractor
from avatar_engine.analysis.voice import VoiceCharacterizer
from avatar_engine.analysis.phoneme import PhonemeThresholds, RuleBasedPhonemeClassifier
from avatar_engine.analysis.viseme import VisemeMapper
from avatar_engine.analysis.acoustic import AcousticAnalyzer
from avatar_engine.analysis.linguistic import TextualFeatureExtractor
from avatar_engine.analysis.contextual import ContextualFeatureExtractor
from avatar_engine.analysis.emotion_features import EmotionFeatureExtractor

__all__ = [
    "Framer",
    "SpectralEngine",
    "PitchTracker",
    "FeatureExtractor",
    "VoiceCharacterizer",
    "PhonemeThresholds",
    "RuleBasedPhonemeClassifier",
    "VisemeMapper",
    "AcousticAnalyzer",
    "TextualFeatureExtractor",
    "ContextualFeatureExtractor",
    "EmotionFeatureExtractor",
]

"""Base interfaces for swappable classification strategies"""

from abc import ABC, abstractmethod
from typing import List

from avatar_engine.models.features import EmotionFeatures, VoiceCharacteristics
from avatar_engine.models.results import EmotionCandidate


class PhonemeClassifierStrategy(ABC):
    """Interface for per-frame phoneme classification"""

    @abstractmethod
    def classify(self, characteristics: VoiceCharacteristics) -> str:
        """Classify one frame

        Args:
            characteristics: Voice characteristics of a single frame

        Returns:
            Phoneme label, "silence" for silent frames
        """
        pass


class EmotionClassifierStrategy(ABC):
    """Interface for a per-modality emotion classifier"""

    @abstractmethod
    def candidates(self, features: EmotionFeatures) -> List[EmotionCandidate]:
        """Score emotion candidates for one modality

        Args:
            features: Extracted features; the classifier reads its own part

        Returns:
            Candidates at or above the minimum confidence, or the neutral
            default when none survive
        """
        pass

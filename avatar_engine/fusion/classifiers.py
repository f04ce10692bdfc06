"""Per-modality emotion classifiers

Each classifier reads its own part of EmotionFeatures and returns scored
(emotion, intensity, confidence) candidates. Candidates below the minimum
confidence are discarded; a classifier with nothing left votes for the
neutral default instead of failing the fused result.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from avatar_engine.analysis.contextual import DEFAULT_CONTEXT_RULES, ContextRule
from avatar_engine.analysis.linguistic import EMOTION_KEYWORDS, EMOTION_PATTERNS
from avatar_engine.models.enums import EmotionIntensity, EmotionType
from avatar_engine.models.features import EmotionFeatures
from avatar_engine.models.interfaces import EmotionClassifierStrategy
from avatar_engine.models.results import NEUTRAL_DEFAULT, EmotionCandidate

logger = logging.getLogger(__name__)


class ThresholdClassifier(EmotionClassifierStrategy):
    """Shared minimum-confidence filtering and neutral fallback"""

    def __init__(self, minimum_confidence: float = 0.3):
        self.minimum_confidence = minimum_confidence

    @abstractmethod
    def _raw_candidates(self, features: EmotionFeatures) -> List[EmotionCandidate]:
        """All candidates before minimum-confidence filtering"""
        pass

    def candidates(self, features: EmotionFeatures) -> List[EmotionCandidate]:
        raw = self._raw_candidates(features)
        surviving = [c for c in raw if c.confidence >= self.minimum_confidence]
        if not surviving:
            return [NEUTRAL_DEFAULT]
        return surviving


class TextEmotionClassifier(ThresholdClassifier):
    """Keyword, pattern and sentiment votes from textual features

    Attributes:
        keyword_weight: Confidence added per matched keyword, capped at 1
        pattern_weight: Multiplier on the matched share of an emotion's patterns
        sentiment_threshold: |sentiment| above which sentiment votes happy or sad
    """

    def __init__(
        self,
        minimum_confidence: float = 0.3,
        keywords: Optional[Dict[EmotionType, List[str]]] = None,
        pattern_counts: Optional[Dict[EmotionType, int]] = None,
        keyword_weight: float = 0.5,
        pattern_weight: float = 1.5,
        sentiment_threshold: float = 0.3,
    ):
        super().__init__(minimum_confidence)
        self.keywords = keywords if keywords is not None else EMOTION_KEYWORDS
        if pattern_counts is None:
            pattern_counts = {emotion: len(p) for emotion, p in EMOTION_PATTERNS.items()}
        self.pattern_counts = pattern_counts
        self.keyword_weight = keyword_weight
        self.pattern_weight = pattern_weight
        self.sentiment_threshold = sentiment_threshold

    def _raw_candidates(self, features: EmotionFeatures) -> List[EmotionCandidate]:
        textual = features.textual
        if textual is None:
            return []

        intensity = EmotionIntensity(textual.intensity)
        found = set(textual.keywords)
        result = []

        for emotion, words in self.keywords.items():
            matches = sum(1 for word in words if word in found)
            if matches:
                confidence = min(1.0, matches * self.keyword_weight)
                result.append(EmotionCandidate(emotion, intensity, confidence))

        for name, matched in textual.pattern_matches.items():
            emotion = EmotionType(name)
            total = self.pattern_counts.get(emotion, matched)
            if matched and total:
                confidence = min(1.0, matched / total * self.pattern_weight)
                result.append(EmotionCandidate(emotion, intensity, confidence))

        if textual.sentiment > self.sentiment_threshold:
            result.append(EmotionCandidate(EmotionType.HAPPY, intensity, textual.sentiment))
        elif textual.sentiment < -self.sentiment_threshold:
            result.append(EmotionCandidate(EmotionType.SAD, intensity, abs(textual.sentiment)))

        return result


@dataclass(frozen=True)
class AudioEmotionThresholds:
    """Thresholds of the ordered audio rules

    Rules are checked in order and the first match wins:
    excited, sad, angry, happy, anxious.
    """
    excited_energy: float = 0.1
    excited_pitch_variance: float = 50.0
    sad_energy: float = 0.05
    sad_pitch: float = 120.0
    angry_energy: float = 0.15
    angry_pitch: float = 200.0
    angry_centroid: float = 2000.0
    happy_pitch_variance: float = 100.0
    happy_energy: float = 0.05
    anxious_jitter: float = 0.05
    anxious_shimmer: float = 0.1


class AudioEmotionClassifier(ThresholdClassifier):
    """Energy, pitch and voice-perturbation rules over acoustic features"""

    def __init__(self, minimum_confidence: float = 0.3, thresholds: Optional[AudioEmotionThresholds] = None):
        super().__init__(minimum_confidence)
        self.thresholds = thresholds or AudioEmotionThresholds()

    def _raw_candidates(self, features: EmotionFeatures) -> List[EmotionCandidate]:
        a = features.acoustic
        if a is None:
            return []
        t = self.thresholds

        if a.energy > t.excited_energy and a.pitch_variance > t.excited_pitch_variance:
            return [EmotionCandidate(EmotionType.EXCITED, EmotionIntensity.HIGH, 0.7)]
        # Silence has pitch 0 and must stay neutral
        if 0 < a.pitch < t.sad_pitch and a.energy < t.sad_energy:
            return [EmotionCandidate(EmotionType.SAD, EmotionIntensity.MODERATE, 0.6)]
        if a.energy > t.angry_energy and a.pitch > t.angry_pitch and a.spectral_centroid > t.angry_centroid:
            return [EmotionCandidate(EmotionType.ANGRY, EmotionIntensity.HIGH, 0.8)]
        if a.pitch_variance > t.happy_pitch_variance and a.energy > t.happy_energy:
            return [EmotionCandidate(EmotionType.HAPPY, EmotionIntensity.MODERATE, 0.75)]
        if a.jitter > t.anxious_jitter and a.shimmer > t.anxious_shimmer:
            return [EmotionCandidate(EmotionType.ANXIOUS, EmotionIntensity.MODERATE, 0.6)]
        return []


class ContextEmotionClassifier(ThresholdClassifier):
    """One moderate-intensity vote per satisfied context rule"""

    def __init__(self, minimum_confidence: float = 0.3, rules: Sequence[ContextRule] = None):
        super().__init__(minimum_confidence)
        self.rules = list(rules) if rules is not None else list(DEFAULT_CONTEXT_RULES)

    def _raw_candidates(self, features: EmotionFeatures) -> List[EmotionCandidate]:
        contextual = features.contextual
        if contextual is None:
            return []
        votes = []
        for rule in self.rules:
            if rule.predicate(contextual):
                logger.debug(f"Context rule '{rule.name}' voted {rule.emotion.value}")
                votes.append(EmotionCandidate(rule.emotion, EmotionIntensity.MODERATE, rule.confidence))
        return votes

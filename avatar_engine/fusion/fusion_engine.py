"""Fusion Engine

This module combines per-modality emotion candidates (text, audio, context)
into a single fused emotion. Each modality contributes its candidates'
confidences scaled by a configurable weight; the highest-scoring emotion wins.

The core fusion logic is implemented as small pure functions over data model
inputs so the algorithm is easy to test and reason about.
"""

import logging
import math
from typing import Dict, List, Mapping, Optional

from avatar_engine.models.enums import EmotionIntensity, EmotionSource, EmotionType
from avatar_engine.models.results import NEUTRAL_DEFAULT, EmotionCandidate, FusionResult


logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: Dict[EmotionSource, float] = {
    EmotionSource.TEXT: 0.4,
    EmotionSource.AUDIO: 0.4,
    EmotionSource.CONTEXT: 0.2,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class EmotionFusionEngine:
    """Weighted fusion of per-modality emotion candidates.

    This class implements the fusion step that:
    1. Collects candidates from every modality that was supplied
    2. Accumulates score[emotion] += confidence * modality weight
    3. Selects the highest-scoring emotion (first seen wins ties)
    4. Averages the intensity levels of the winning emotion's candidates
    5. Caps the fused confidence at 1.0

    Weights need not sum to 1. When every candidate is the neutral default
    the result is exactly the neutral default.

    Attributes:
        weights: Weight per modality
    """

    def __init__(self, weights: Optional[Mapping[EmotionSource, float]] = None):
        """Initialize the fusion engine.

        Args:
            weights: Weight per modality; missing modalities fall back to the defaults
        """
        self.weights: Dict[EmotionSource, float] = dict(DEFAULT_WEIGHTS)
        if weights:
            self.weights.update(weights)

        logger.info(
            "EmotionFusionEngine initialized with weights "
            + ", ".join(f"{source.value}={weight}" for source, weight in self.weights.items())
        )

    def _collect_available(
        self,
        candidates: Mapping[EmotionSource, List[EmotionCandidate]],
    ) -> Dict[EmotionSource, List[EmotionCandidate]]:
        """Drop modalities that supplied no candidates."""
        return {source: list(c) for source, c in candidates.items() if c}

    def _accumulate_scores(
        self,
        available: Dict[EmotionSource, List[EmotionCandidate]],
        weights: Mapping[EmotionSource, float],
    ) -> Dict[EmotionType, float]:
        """Weighted score per emotion, in first-seen order."""
        scores: Dict[EmotionType, float] = {}
        for source, candidates in available.items():
            weight = weights.get(source, 0.0)
            for candidate in candidates:
                scores[candidate.emotion] = scores.get(candidate.emotion, 0.0) + candidate.confidence * weight
        return scores

    def _modality_contributions(
        self,
        available: Dict[EmotionSource, List[EmotionCandidate]],
        weights: Mapping[EmotionSource, float],
    ) -> Dict[EmotionSource, float]:
        return {
            source: sum(c.confidence for c in candidates) * weights.get(source, 0.0)
            for source, candidates in available.items()
        }

    @staticmethod
    def _select_best(scores: Dict[EmotionType, float]) -> Optional[EmotionType]:
        best_emotion = None
        best_score = 0.0
        for emotion, score in scores.items():
            if score > best_score:
                best_emotion, best_score = emotion, score
        return best_emotion

    @staticmethod
    def _combine_intensity(
        emotion: EmotionType,
        available: Dict[EmotionSource, List[EmotionCandidate]],
    ) -> EmotionIntensity:
        """Rounded mean ordinal intensity of the candidates for ``emotion``."""
        levels = [c.intensity.level for cs in available.values() for c in cs if c.emotion == emotion]
        if not levels:
            return EmotionIntensity.MODERATE
        return EmotionIntensity.from_level(round_half_up(sum(levels) / len(levels)))

    def fuse(
        self,
        candidates: Mapping[EmotionSource, List[EmotionCandidate]],
        weights: Optional[Mapping[EmotionSource, float]] = None,
    ) -> FusionResult:
        """Fuse per-modality candidates into one emotion.

        Args:
            candidates: Candidates per modality, as returned by the classifiers
            weights: Optional per-call weights overriding the engine weights

        Returns:
            FusionResult with the winning candidate, per-emotion scores and
            per-modality contributions. The neutral default is returned when
            nothing but neutral defaults (or nothing at all) was supplied, or
            when every score is zero.
        """
        weights = {**self.weights, **(weights or {})}
        available = self._collect_available(candidates)

        all_default = all(c == NEUTRAL_DEFAULT for cs in available.values() for c in cs)
        if not available or all_default:
            logger.debug("Fusion: no signal beyond neutral defaults")
            return FusionResult(
                candidate=NEUTRAL_DEFAULT,
                emotion_scores={EmotionType.NEUTRAL: NEUTRAL_DEFAULT.confidence},
                modality_contributions=self._modality_contributions(available, weights),
            )

        scores = self._accumulate_scores(available, weights)
        best = self._select_best(scores)
        if best is None:
            logger.warning("Fusion: all weighted scores are zero, falling back to neutral")
            return FusionResult(candidate=NEUTRAL_DEFAULT, emotion_scores=scores)

        fused = EmotionCandidate(
            emotion=best,
            intensity=self._combine_intensity(best, available),
            confidence=min(1.0, scores[best]),
        )

        logger.debug(
            f"Fusion complete: emotion={fused.emotion.value}, "
            f"intensity={fused.intensity.value}, confidence={fused.confidence:.3f}, "
            f"modalities={[s.value for s in available]}"
        )
        return FusionResult(
            candidate=fused,
            emotion_scores=scores,
            modality_contributions=self._modality_contributions(available, weights),
        )

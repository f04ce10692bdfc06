"""Contextual features and the rule list that turns context into emotion votes"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Union

from avatar_engine.errors import InvalidInputError
from avatar_engine.models.enums import EmotionType
from avatar_engine.models.features import ContextualFeatures

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextRule:
    """A predicate over context that votes for one emotion when satisfied"""
    name: str
    predicate: Callable[[ContextualFeatures], bool]
    emotion: EmotionType
    confidence: float


def _has_topic(features: ContextualFeatures, *words: str) -> bool:
    topics = {topic.strip().lower() for topic in features.topics}
    return any(word in topics for word in words)


DEFAULT_CONTEXT_RULES: List[ContextRule] = [
    ContextRule(
        name="fresh_morning_greeting",
        predicate=lambda c: c.time_of_day.lower() == "morning" and c.interaction_length < 60000,
        emotion=EmotionType.HAPPY,
        confidence=0.3,
    ),
    ContextRule(
        name="problem_topic",
        predicate=lambda c: _has_topic(c, "problem", "issue"),
        emotion=EmotionType.CONCERNED,
        confidence=0.4,
    ),
    ContextRule(
        name="celebration_topic",
        predicate=lambda c: _has_topic(c, "celebration", "achievement"),
        emotion=EmotionType.PROUD,
        confidence=0.6,
    ),
]


class ContextualFeatureExtractor:
    """Normalizes caller-supplied context into ContextualFeatures

    Accepts either ContextualFeatures or a mapping with the keys
    ``topics``, ``history``, ``time_of_day`` (or ``timeOfDay``),
    ``interaction_length`` (or ``interactionLength``) and ``user_profile``.
    """

    def extract(self, context: Optional[Union[ContextualFeatures, Mapping[str, Any]]]) -> ContextualFeatures:
        if context is None:
            return ContextualFeatures()
        if isinstance(context, ContextualFeatures):
            return context
        if not isinstance(context, Mapping):
            raise InvalidInputError(f"Context must be a mapping, got {type(context).__name__}")

        try:
            features = ContextualFeatures(
                topics=[str(t) for t in context.get("topics") or []],
                history=[str(h) for h in context.get("history") or []],
                time_of_day=str(context.get("time_of_day", context.get("timeOfDay")) or ""),
                interaction_length=float(
                    context.get("interaction_length", context.get("interactionLength")) or 0.0
                ),
                user_profile=dict(context.get("user_profile") or {}),
            )
        except (TypeError, ValueError, AssertionError) as e:
            raise InvalidInputError(f"Malformed context: {e}")

        logger.debug(f"Contextual features: topics={features.topics}, time={features.time_of_day}")
        return features

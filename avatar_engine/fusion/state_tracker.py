"""EmotionStateTracker: current emotion, bounded histories and derived metrics"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from avatar_engine.models.enums import EmotionType
from avatar_engine.models.results import (
    DetectedEmotion,
    EmotionAnalysisSummary,
    EmotionPattern,
    EmotionTransition,
)

logger = logging.getLogger(__name__)

TransitionKey = Tuple[EmotionType, EmotionType]

# (speed, blend) for known transitions; every other pair uses the default
DEFAULT_TRANSITIONS: Dict[TransitionKey, Tuple[float, float]] = {
    (EmotionType.NEUTRAL, EmotionType.HAPPY): (0.8, 0.3),
    (EmotionType.NEUTRAL, EmotionType.SAD): (0.6, 0.4),
    (EmotionType.HAPPY, EmotionType.EXCITED): (0.9, 0.2),
    (EmotionType.HAPPY, EmotionType.SAD): (0.4, 0.6),
    (EmotionType.SAD, EmotionType.ANGRY): (0.7, 0.3),
    (EmotionType.ANGRY, EmotionType.CALM): (0.3, 0.7),
}
DEFAULT_TRANSITION: Tuple[float, float] = (0.5, 0.5)


class EmotionStateTracker:
    """Owns one session's emotional state

    Every new detection replaces the current emotion. When it differs from
    the previous one a transition is recorded. Both histories are FIFO
    ring buffers of ``capacity`` entries. All access goes through a lock so
    several threads may submit detections for the same session.

    Attributes:
        capacity: Maximum entries kept in each history
        smoothing_window_ms: Default trailing window for dominant emotion and stability
        transitions_table: (speed, blend) per known (from, to) pair
        default_transition: (speed, blend) for pairs not in the table
    """

    def __init__(
        self,
        capacity: int = 100,
        smoothing_window_ms: float = 2000.0,
        transitions_table: Optional[Mapping[TransitionKey, Tuple[float, float]]] = None,
        default_transition: Tuple[float, float] = DEFAULT_TRANSITION,
        history_enabled: bool = True,
        transitions_enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        assert capacity >= 1, "History capacity must be at least 1"
        self.capacity = capacity
        self.smoothing_window_ms = smoothing_window_ms
        self.transitions_table = dict(DEFAULT_TRANSITIONS if transitions_table is None else transitions_table)
        self.default_transition = default_transition
        self.history_enabled = history_enabled
        self.transitions_enabled = transitions_enabled
        self.clock = clock

        self._lock = threading.RLock()
        self._current: Optional[DetectedEmotion] = None
        self._history: deque = deque(maxlen=capacity)
        self._transitions: deque = deque(maxlen=capacity)

    def predict_transition(
        self,
        from_emotion: EmotionType,
        to_emotion: EmotionType,
        confidence: float,
        timestamp: Optional[float] = None,
    ) -> Optional[EmotionTransition]:
        """Transition record for a change, None when the emotion is unchanged"""
        if from_emotion == to_emotion:
            return None
        speed, blend = self.transitions_table.get((from_emotion, to_emotion), self.default_transition)
        return EmotionTransition(
            from_emotion=from_emotion,
            to_emotion=to_emotion,
            transition_speed=max(0.0, min(1.0, speed * confidence)),
            blend_factor=blend,
            reason=f"Emotion change detected: {from_emotion.value} -> {to_emotion.value}",
            timestamp=self.clock() if timestamp is None else timestamp,
        )

    def record(self, detection: DetectedEmotion) -> Optional[EmotionTransition]:
        """Make ``detection`` current and return the transition it caused, if any"""
        with self._lock:
            transition = None
            if self._current is not None and self.transitions_enabled:
                transition = self.predict_transition(
                    self._current.emotion,
                    detection.emotion,
                    detection.confidence,
                    timestamp=detection.timestamp,
                )
                if transition is not None:
                    self._transitions.append(transition)
                    logger.debug(
                        f"Transition {transition.from_emotion.value} -> {transition.to_emotion.value} "
                        f"(speed={transition.transition_speed:.2f})"
                    )

            self._current = detection
            if self.history_enabled:
                self._history.append(detection)
            return transition

    @property
    def current_emotion(self) -> Optional[DetectedEmotion]:
        with self._lock:
            return self._current

    @property
    def history(self) -> List[DetectedEmotion]:
        with self._lock:
            return list(self._history)

    @property
    def transitions(self) -> List[EmotionTransition]:
        with self._lock:
            return list(self._transitions)

    def _window(
        self,
        window_ms: Optional[float],
        now: Optional[float],
    ) -> Tuple[List[DetectedEmotion], List[EmotionTransition]]:
        if window_ms is None:
            window_ms = self.smoothing_window_ms
        now = self.clock() if now is None else now
        cutoff = now - window_ms / 1000.0
        with self._lock:
            emotions = [e for e in self._history if e.timestamp >= cutoff]
            transitions = [t for t in self._transitions if t.timestamp >= cutoff]
        return emotions, transitions

    def recent_emotions(self, window_ms: Optional[float] = None, now: Optional[float] = None) -> List[DetectedEmotion]:
        emotions, _ = self._window(window_ms, now)
        return emotions

    def dominant_emotion(self, window_ms: Optional[float] = None, now: Optional[float] = None) -> Optional[EmotionType]:
        """Emotion with the highest summed confidence in the window, None if empty"""
        emotions, _ = self._window(window_ms, now)
        totals: Dict[EmotionType, float] = {}
        for detection in emotions:
            totals[detection.emotion] = totals.get(detection.emotion, 0.0) + detection.confidence
        if not totals:
            return None
        return max(totals, key=totals.get)

    def stability(self, window_ms: Optional[float] = None, now: Optional[float] = None) -> float:
        """1 - transitions / detections in the window; 1.0 for an empty window"""
        emotions, transitions = self._window(window_ms, now)
        if not emotions:
            return 1.0
        return max(0.0, 1.0 - len(transitions) / len(emotions))

    def analysis(self, window_ms: float = 30000.0, now: Optional[float] = None) -> EmotionAnalysisSummary:
        """Detections, transitions, per-emotion patterns and stability for a window"""
        emotions, transitions = self._window(window_ms, now)

        grouped: Dict[EmotionType, List[int]] = {}
        for detection in emotions:
            grouped.setdefault(detection.emotion, []).append(detection.intensity.level)
        patterns = [
            EmotionPattern(
                emotion=emotion,
                frequency=len(levels) / len(emotions),
                average_intensity=sum(levels) / len(levels),
            )
            for emotion, levels in grouped.items()
        ]

        stability = 1.0 if not emotions else max(0.0, 1.0 - len(transitions) / len(emotions))
        return EmotionAnalysisSummary(
            emotions=emotions,
            transitions=transitions,
            patterns=patterns,
            stability=stability,
        )

    def clear(self) -> None:
        """Forget the current emotion and both histories"""
        with self._lock:
            self._current = None
            self._history.clear()
            self._transitions.clear()
        logger.info("Emotion history cleared")

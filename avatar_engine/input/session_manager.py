"""Session registry for per-caller analysis state"""

import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from avatar_engine.config.analysis_config import AnalysisConfig
from avatar_engine.errors import InvalidInputError, SessionNotFoundError
from avatar_engine.fusion.state_tracker import EmotionStateTracker
from avatar_engine.models.features import VoiceCharacteristics
from avatar_engine.models.results import AudioEmotionAnalysis


logger = logging.getLogger(__name__)


class Session:
    """State owned by one avatar session

    Holds the voice-characteristics cache, the per-audio emotion readings
    and the emotion state tracker. Mutation goes through ``lock``; the
    engine commits results only after an analysis has fully completed.

    Attributes:
        session_id: Caller-chosen identifier
        config: Settings the session was created with
        voice_cache: Latest VoiceCharacteristics per audio id
        audio_emotion_history: Last readings per audio id, oldest first
        tracker: Emotion state for this session
        lock: Serializes updates to the stores above
    """

    def __init__(self, session_id: str, config: AnalysisConfig):
        self.session_id = session_id
        self.config = config
        self.voice_cache: Dict[str, VoiceCharacteristics] = {}
        self.audio_emotion_history: Dict[str, Deque[AudioEmotionAnalysis]] = {}
        self.tracker = EmotionStateTracker(
            capacity=config.history_capacity,
            smoothing_window_ms=config.smoothing_window_ms,
            history_enabled=config.enable_emotion_history,
            transitions_enabled=config.enable_transition_smoothing,
        )
        self.lock = threading.RLock()

    def cache_voice(self, audio_id: str, characteristics: VoiceCharacteristics) -> None:
        """Store characteristics for ``audio_id``, replacing any earlier entry"""
        with self.lock:
            self.voice_cache[audio_id] = characteristics

    def record_audio_emotion(self, audio_id: str, analysis: AudioEmotionAnalysis) -> None:
        with self.lock:
            history = self.audio_emotion_history.get(audio_id)
            if history is None:
                history = deque(maxlen=self.config.audio_history_capacity)
                self.audio_emotion_history[audio_id] = history
            history.append(analysis)

    def audio_emotions(self, audio_id: str) -> List[AudioEmotionAnalysis]:
        with self.lock:
            return list(self.audio_emotion_history.get(audio_id, ()))

    def clear(self) -> None:
        """Drop the caches and the emotion history"""
        with self.lock:
            self.voice_cache.clear()
            self.audio_emotion_history.clear()
            self.tracker.clear()


class SessionRegistry:
    """Keyed store of live sessions

    Sessions are created explicitly and destroyed on close; nothing is
    shared between them.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(self, session_id: str, config: Optional[AnalysisConfig] = None) -> Session:
        """Register a new session

        Raises:
            InvalidInputError: If the id is empty or already in use
        """
        if not session_id:
            raise InvalidInputError("Session id must be a non-empty string")
        with self._lock:
            if session_id in self._sessions:
                raise InvalidInputError(f"Session already exists: {session_id}")
            session = Session(session_id, config or self.config)
            self._sessions[session_id] = session
        logger.info(f"Session created: {session_id}")
        return session

    def get_session(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")
        return session

    def close_session(self, session_id: str) -> None:
        """Remove a session and everything it stores

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")
        session.clear()
        logger.info(f"Session closed: {session_id}")

    @property
    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

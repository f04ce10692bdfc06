"""Main Application Entry Point

This module wires the analysis pipeline together behind a single
AvatarAnalysisEngine: voice analysis, lip sync, audio emotion analysis,
multi-modal emotion detection and per-session emotional state.

The engine is synchronous; each entry point runs to completion on the
calling thread. Async variants hand the work to a worker thread so an
event loop driving several avatars is never blocked.
"""

import argparse
import asyncio
import json
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import librosa
import numpy as np

from avatar_engine.analysis.acoustic import AcousticAnalyzer
from avatar_engine.analysis.emotion_features import AudioInput, ContextInput, EmotionFeatureExtractor
from avatar_engine.analysis.spectral import SpectralEngine
from avatar_engine.analysis.viseme import VisemeMapper
from avatar_engine.analysis.voice import VoiceCharacterizer
from avatar_engine.config.analysis_config import AnalysisConfig
from avatar_engine.config.config_loader import Config
from avatar_engine.errors import AnalysisCancelledError, AnalysisError, InvalidInputError
from avatar_engine.fusion.classifiers import (
    AudioEmotionClassifier,
    ContextEmotionClassifier,
    TextEmotionClassifier,
)
from avatar_engine.fusion.fusion_engine import EmotionFusionEngine
from avatar_engine.input.session_manager import Session, SessionRegistry
from avatar_engine.models.enums import EmotionSource, EmotionType
from avatar_engine.models.features import EmotionFeatures, FrequencyBand, VoiceCharacteristics
from avatar_engine.models.frames import AudioBufferDescriptor
from avatar_engine.models.results import (
    AudioEmotionAnalysis,
    DetectedEmotion,
    EmotionAnalysisSummary,
    EmotionDetectionResult,
    Viseme,
)


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

BufferInput = Union[AudioBufferDescriptor, np.ndarray, List[float]]


class AvatarAnalysisEngine:
    """Main orchestrator for the avatar analysis pipeline.

    This class coordinates all components of the system:
    1. VoiceCharacterizer (framing, FFT, pitch, spectral features, MFCC)
    2. VisemeMapper (phoneme classification, viseme mapping, smoothing)
    3. AcousticAnalyzer (emotion-bearing acoustic features, arousal, valence)
    4. EmotionFeatureExtractor (textual, acoustic and contextual features)
    5. Per-modality emotion classifiers and the fusion engine
    6. SessionRegistry (per-session caches and emotion state)

    Operations that take a ``session_id`` commit their result to that
    session only after the analysis completes; without a session id
    nothing is stored. Operations that take a ``cancel_event`` stop with
    AnalysisCancelledError as soon as the event is set.

    Attributes:
        config: Active analysis settings
        sessions: Live sessions keyed by id
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """Initialize the engine with all components.

        Args:
            config: Analysis settings; read from the YAML configuration if omitted
        """
        logger.info("Initializing AvatarAnalysisEngine...")
        self._build(config or AnalysisConfig.from_config())
        self.sessions = SessionRegistry(self.config)
        logger.info("AvatarAnalysisEngine initialized successfully")

    def _build(self, config: AnalysisConfig) -> None:
        self.config = config.validate()
        self.characterizer = VoiceCharacterizer(self.config)
        self.viseme_mapper = VisemeMapper(characterizer=self.characterizer)
        self.acoustic_analyzer = AcousticAnalyzer(characterizer=self.characterizer)
        self.feature_extractor = EmotionFeatureExtractor(acoustic=self.acoustic_analyzer)

        self.text_classifier = TextEmotionClassifier(self.config.minimum_confidence)
        self.audio_classifier = AudioEmotionClassifier(self.config.minimum_confidence)
        self.context_classifier = ContextEmotionClassifier(self.config.minimum_confidence)
        self.fusion_engine = EmotionFusionEngine(weights={
            EmotionSource.TEXT: self.config.text_weight,
            EmotionSource.AUDIO: self.config.audio_weight,
            EmotionSource.CONTEXT: self.config.context_weight,
        })

    # Sessions

    def create_session(self, session_id: str, config: Optional[AnalysisConfig] = None) -> Session:
        """Open a session with its own caches and emotion state"""
        return self.sessions.create_session(session_id, config.validate() if config else self.config)

    def close_session(self, session_id: str) -> None:
        self.sessions.close_session(session_id)

    def configure(self, config: Optional[AnalysisConfig] = None, **overrides: Any) -> AnalysisConfig:
        """Replace the analysis settings

        Sessions opened afterwards use the new settings; open sessions keep
        the ones they were created with.

        Args:
            config: Complete new settings; the current ones are used if omitted
            **overrides: Individual fields to change

        Returns:
            The validated settings now in effect

        Raises:
            InvalidInputError: If a setting is out of range
            UnsupportedConfigError: If the pipeline cannot honour a setting
        """
        base = config or self.config
        new_config = base.with_overrides(**overrides) if overrides else base.validate()
        self._build(new_config)
        self.sessions.config = new_config
        logger.info(f"Engine reconfigured: {overrides or 'full replacement'}")
        return new_config

    def _session(self, session_id: Optional[str]) -> Optional[Session]:
        if session_id is None:
            return None
        return self.sessions.get_session(session_id)

    def _as_buffer(self, audio: BufferInput) -> AudioBufferDescriptor:
        if isinstance(audio, AudioBufferDescriptor):
            return audio
        return AudioBufferDescriptor(samples=np.asarray(audio, dtype=np.float64), sample_rate=self.config.sample_rate)

    # Voice and lip sync

    def analyze_voice(
        self,
        audio: BufferInput,
        session_id: Optional[str] = None,
        audio_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> VoiceCharacteristics:
        """Voice characteristics of a whole buffer.

        Args:
            audio: Mono PCM buffer (raw arrays use the configured sample rate)
            session_id: Session whose cache receives the result
            audio_id: Cache key; caching needs both ids
            cancel_event: Set by the caller to abandon the analysis

        Returns:
            VoiceCharacteristics for the buffer
        """
        session = self._session(session_id)
        buffer = self._as_buffer(audio)
        try:
            characteristics = self.characterizer.characterize(buffer, cancel_event)
        except AnalysisCancelledError:
            logger.info(f"Voice analysis cancelled (session={session_id})")
            raise
        except AnalysisError as e:
            logger.error(f"Voice analysis failed: {e}")
            raise

        if session is not None and audio_id is not None:
            session.cache_voice(audio_id, characteristics)
        return characteristics

    def iter_voice_frames(
        self,
        audio: BufferInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[VoiceCharacteristics]:
        """Per-frame voice characteristics, produced as the buffer is walked"""
        return self.characterizer.iter_frames(self._as_buffer(audio), cancel_event)

    def get_cached_voice(self, session_id: str, audio_id: str) -> Optional[VoiceCharacteristics]:
        session = self.sessions.get_session(session_id)
        with session.lock:
            return session.voice_cache.get(audio_id)

    def generate_lip_sync(
        self,
        audio: BufferInput,
        granularity_ms: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Viseme]:
        """Smoothed viseme sequence covering the whole buffer"""
        try:
            return self.viseme_mapper.generate(self._as_buffer(audio), granularity_ms, cancel_event)
        except AnalysisCancelledError:
            logger.info("Lip sync cancelled")
            raise
        except AnalysisError as e:
            logger.error(f"Lip sync failed: {e}")
            raise

    def stream_lip_sync(
        self,
        audio: BufferInput,
        granularity_ms: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[Viseme]:
        """Smoothed visemes yielded one frame behind the analysis cursor"""
        return self.viseme_mapper.stream(self._as_buffer(audio), granularity_ms, cancel_event)

    # Audio emotion

    def analyze_frequency_bands(
        self,
        audio: BufferInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[FrequencyBand]:
        """Energy in each of the seven fixed frequency bands"""
        spectrum = self.characterizer.average_spectrum(self._as_buffer(audio), cancel_event)
        return SpectralEngine.band_energies(spectrum)

    def analyze_audio_emotion(
        self,
        audio: BufferInput,
        session_id: Optional[str] = None,
        audio_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AudioEmotionAnalysis:
        """Emotion, arousal and valence of a buffer.

        With a session and audio id the reading is appended to that audio's
        history, which keeps the most recent readings only.
        """
        session = self._session(session_id)
        buffer = self._as_buffer(audio)
        try:
            analysis = self.acoustic_analyzer.analyze(buffer, self.audio_classifier, cancel_event)
        except AnalysisCancelledError:
            logger.info(f"Audio emotion analysis cancelled (session={session_id})")
            raise
        except AnalysisError as e:
            logger.error(f"Audio emotion analysis failed: {e}")
            raise

        if session is not None and audio_id is not None:
            session.record_audio_emotion(audio_id, analysis)
        return analysis

    def get_audio_emotion_history(self, session_id: str, audio_id: str) -> List[AudioEmotionAnalysis]:
        return self.sessions.get_session(session_id).audio_emotions(audio_id)

    # Emotion detection

    def _detect(
        self,
        features: EmotionFeatures,
        source: EmotionSource,
        weights: Optional[Mapping[EmotionSource, float]],
        session: Optional[Session],
        duration_ms: Optional[float] = None,
    ) -> EmotionDetectionResult:
        candidates = {}
        if features.textual is not None:
            candidates[EmotionSource.TEXT] = self.text_classifier.candidates(features)
        if features.acoustic is not None:
            candidates[EmotionSource.AUDIO] = self.audio_classifier.candidates(features)
        if features.contextual is not None:
            candidates[EmotionSource.CONTEXT] = self.context_classifier.candidates(features)

        fused = self.fusion_engine.fuse(candidates, weights).candidate
        detected = DetectedEmotion(
            emotion=fused.emotion,
            intensity=fused.intensity,
            confidence=fused.confidence,
            timestamp=time.time(),
            source=source,
            features=features,
            duration_ms=duration_ms,
        )

        transition = None
        if session is not None:
            with session.lock:
                transition = session.tracker.record(detected)

        logger.debug(
            f"Detected {detected.emotion.value} ({detected.intensity.value}, "
            f"{detected.confidence:.2f}) from {source.value}"
        )
        return EmotionDetectionResult(detected=detected, transition=transition)

    def detect_from_text(self, text: str, session_id: Optional[str] = None) -> EmotionDetectionResult:
        """Emotion from text alone; the text modality gets the full weight"""
        if not isinstance(text, str):
            raise InvalidInputError(f"Text must be a string, got {type(text).__name__}")
        session = self._session(session_id)
        features = EmotionFeatures(textual=self.feature_extractor.extract_textual(text))
        return self._detect(features, EmotionSource.TEXT, {EmotionSource.TEXT: 1.0}, session)

    def detect_from_audio(
        self,
        audio: Union[BufferInput, AudioInput],
        session_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> EmotionDetectionResult:
        """Emotion from audio alone; the audio modality gets the full weight

        ``audio`` may be a buffer, a raw sample array, VoiceCharacteristics,
        AcousticEmotionFeatures or a mapping of acoustic feature values.
        """
        session = self._session(session_id)
        if isinstance(audio, (np.ndarray, list)):
            audio = self._as_buffer(audio)
        try:
            acoustic = self.feature_extractor.extract_acoustic(audio, cancel_event)
        except AnalysisCancelledError:
            logger.info(f"Audio emotion detection cancelled (session={session_id})")
            raise
        except AnalysisError as e:
            logger.error(f"Audio emotion detection failed: {e}")
            raise

        duration_ms = audio.duration_ms if isinstance(audio, AudioBufferDescriptor) else None
        return self._detect(
            EmotionFeatures(acoustic=acoustic),
            EmotionSource.AUDIO,
            {EmotionSource.AUDIO: 1.0},
            session,
            duration_ms,
        )

    def detect_from_multimodal(
        self,
        text: Optional[str] = None,
        audio: Optional[Union[BufferInput, AudioInput]] = None,
        context: Optional[ContextInput] = None,
        session_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> EmotionDetectionResult:
        """Fused emotion from any combination of text, audio and context.

        Each supplied modality is classified on its own and the candidates
        are fused with the configured weights.

        Args:
            text: Utterance text
            audio: Buffer or precomputed acoustic features
            context: Conversational context mapping or ContextualFeatures
            session_id: Session whose emotion state receives the detection
            cancel_event: Set by the caller to abandon the analysis

        Returns:
            EmotionDetectionResult with the detection and, for a session whose
            emotion changed, the transition

        Raises:
            InvalidInputError: If no modality is supplied or one is malformed
            AnalysisCancelledError: If cancel_event was set mid-way
        """
        if text is None and audio is None and context is None:
            raise InvalidInputError("At least one of text, audio or context is required")

        session = self._session(session_id)
        if isinstance(audio, (np.ndarray, list)):
            audio = self._as_buffer(audio)
        try:
            features = self.feature_extractor.extract(text, audio, context, cancel_event)
        except AnalysisCancelledError:
            logger.info(f"Multimodal detection cancelled (session={session_id})")
            raise
        except AnalysisError as e:
            logger.error(f"Multimodal detection failed: {e}")
            raise

        supplied = [s for s, part in (
            (EmotionSource.TEXT, features.textual),
            (EmotionSource.AUDIO, features.acoustic),
            (EmotionSource.CONTEXT, features.contextual),
        ) if part is not None]
        source = supplied[0] if len(supplied) == 1 else EmotionSource.COMBINED
        duration_ms = audio.duration_ms if isinstance(audio, AudioBufferDescriptor) else None
        return self._detect(features, source, None, session, duration_ms)

    # Emotion state

    def current_emotion(self, session_id: str) -> Optional[DetectedEmotion]:
        return self.sessions.get_session(session_id).tracker.current_emotion

    def dominant_emotion(self, session_id: str, window_ms: Optional[float] = None) -> Optional[EmotionType]:
        return self.sessions.get_session(session_id).tracker.dominant_emotion(window_ms)

    def get_emotion_analysis(self, session_id: str, window_ms: Optional[float] = None) -> EmotionAnalysisSummary:
        """Detections, transitions, patterns and stability over a trailing window"""
        session = self.sessions.get_session(session_id)
        if window_ms is None:
            window_ms = session.config.analysis_window_ms
        return session.tracker.analysis(window_ms)

    def clear_history(self, session_id: str) -> None:
        self.sessions.get_session(session_id).clear()

    # Async facade

    async def analyze_voice_async(self, audio: BufferInput, **kwargs: Any) -> VoiceCharacteristics:
        return await asyncio.to_thread(self.analyze_voice, audio, **kwargs)

    async def generate_lip_sync_async(self, audio: BufferInput, **kwargs: Any) -> List[Viseme]:
        return await asyncio.to_thread(self.generate_lip_sync, audio, **kwargs)

    async def detect_from_multimodal_async(self, **kwargs: Any) -> EmotionDetectionResult:
        return await asyncio.to_thread(self.detect_from_multimodal, **kwargs)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging for command-line use.

    Records go to stderr so that stdout carries only the JSON report.

    Args:
        level: Logging level name
        log_file: Optional file that receives a copy of every record
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT, handlers=handlers)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="avatar-engine",
        description="Analyze a speech recording for voice features, lip sync and emotion",
    )
    parser.add_argument("audio", help="Path to an audio file")
    parser.add_argument("--text", help="Transcript or utterance text for emotion fusion")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--granularity", type=float, help="Viseme frame length in milliseconds")
    return parser


async def analyze_file(engine: AvatarAnalysisEngine, audio_path: str, text: Optional[str] = None) -> Dict[str, Any]:
    """Run every analysis on one file and collect the JSON-ready report"""
    samples, sample_rate = await asyncio.to_thread(
        librosa.load, audio_path, sr=engine.config.sample_rate, mono=True
    )
    buffer = AudioBufferDescriptor(samples=samples, sample_rate=int(sample_rate))
    logger.info(f"Loaded {audio_path}: {buffer.duration_ms:.0f}ms at {sample_rate}Hz")

    voice = await engine.analyze_voice_async(buffer)
    visemes = await engine.generate_lip_sync_async(buffer)
    audio_emotion = await asyncio.to_thread(engine.analyze_audio_emotion, buffer)
    detection = await engine.detect_from_multimodal_async(text=text, audio=buffer)

    return {
        "voice": voice.to_dict(),
        "visemes": [v.to_dict() for v in visemes],
        "audio_emotion": audio_emotion.to_dict(),
        "emotion": detection.detected.to_dict(),
    }


async def main_async(argv: Optional[List[str]] = None) -> int:
    """Async main entry point."""
    args = build_parser().parse_args(argv)

    file_config = Config(args.config) if args.config else Config()
    setup_logging(file_config.get('logging.level', 'INFO'), file_config.get('logging.file'))

    if not Path(args.audio).exists():
        logger.error(f"Audio file not found: {args.audio}")
        return 1

    analysis_config = AnalysisConfig.from_config(file_config)
    if args.granularity is not None:
        analysis_config = analysis_config.with_overrides(viseme_granularity_ms=args.granularity)

    engine = AvatarAnalysisEngine(analysis_config)
    report = await analyze_file(engine, args.audio, args.text)
    print(json.dumps(report, indent=2))
    return 0


def main() -> None:
    """Main entry point."""
    try:
        sys.exit(asyncio.run(main_async()))
    except KeyboardInterrupt:
        logger.info("Analysis terminated by user")
    except (AnalysisError, FileNotFoundError) as e:
        logger.error(f"Analysis failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

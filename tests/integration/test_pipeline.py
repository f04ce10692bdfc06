"""
Integration tests for the end-to-end avatar analysis pipeline.

Covers:
- Voice analysis, lip sync and audio emotion through the engine
- Text, audio and multi-modal emotion detection with session state
- Session isolation and cancellation leaving state untouched
- The async facade and the command-line entry point
"""

import json
import threading

import pytest
import soundfile as sf

from avatar_engine.config.analysis_config import AnalysisConfig
from avatar_engine.errors import AnalysisCancelledError, InvalidInputError, SessionNotFoundError
from avatar_engine.main import AvatarAnalysisEngine, main_async
from avatar_engine.models.enums import EmotionIntensity, EmotionSource, EmotionType
from avatar_engine.models.results import NEUTRAL_DEFAULT


@pytest.fixture
def engine():
    """Engine with built-in defaults, independent of any YAML file"""
    return AvatarAnalysisEngine(AnalysisConfig())


@pytest.fixture
def cancelled():
    event = threading.Event()
    event.set()
    return event


class TestVoiceAndLipSync:
    """Voice analysis and lip sync through the engine"""

    def test_analyze_voice_caches_per_session(self, engine, sine_buffer):
        """Test voice results are cached only when a session and audio id are given"""
        engine.create_session("s1")

        voice = engine.analyze_voice(sine_buffer, session_id="s1", audio_id="clip")

        assert abs(voice.f0 - 220.0) <= 5.0
        assert engine.get_cached_voice("s1", "clip") == voice
        assert engine.get_cached_voice("s1", "other") is None

    def test_raw_samples_use_configured_rate(self, engine, sine_buffer):
        """Test plain sample lists are analysed at the configured sample rate"""
        samples = list(sine_buffer.samples)

        voice = engine.analyze_voice(samples)

        assert abs(voice.f0 - 220.0) <= 5.0

    def test_lip_sync_covers_buffer(self, engine, sine_buffer):
        """Test the viseme sequence spans the whole buffer"""
        visemes = engine.generate_lip_sync(sine_buffer)

        assert len(visemes) == 21
        assert sum(v.duration_ms for v in visemes) == pytest.approx(sine_buffer.duration_ms)
        assert list(engine.stream_lip_sync(sine_buffer)) == visemes

    def test_configure_changes_granularity(self, engine, silence_buffer):
        """Test reconfiguring the engine changes later lip-sync output"""
        engine.configure(viseme_granularity_ms=100.0)

        visemes = engine.generate_lip_sync(silence_buffer)

        assert len(visemes) == 10
        assert engine.config.viseme_granularity_ms == 100.0

    def test_frequency_bands(self, engine, sine_buffer):
        """Test seven bands with the tone's energy in bass"""
        bands = engine.analyze_frequency_bands(sine_buffer)

        assert [b.name for b in bands][:2] == ["sub_bass", "bass"]
        assert len(bands) == 7
        assert max(bands, key=lambda b: b.energy).name == "bass"


class TestEmotionDetection:
    """Emotion detection and per-session emotion state"""

    def test_shouted_happy_text(self, engine):
        """Test text alone gets the full weight"""
        result = engine.detect_from_text("I am SO HAPPY!!!")

        detected = result.detected
        assert detected.emotion == EmotionType.HAPPY
        assert detected.intensity.level >= EmotionIntensity.HIGH.level
        assert detected.confidence == 1.0
        assert detected.source == EmotionSource.TEXT
        assert result.transition is None

    def test_multimodal_weights(self, engine):
        """Test text with the configured weight competes with other modalities"""
        result = engine.detect_from_multimodal(text="I am SO HAPPY!!!", context={})

        assert result.detected.emotion == EmotionType.HAPPY
        assert result.detected.confidence == pytest.approx(0.6)
        assert result.detected.source == EmotionSource.COMBINED

    def test_all_neutral_inputs(self, engine, silence_buffer):
        """Test neutral text, silence and empty context give the neutral default"""
        result = engine.detect_from_multimodal(
            text="the meeting is at noon",
            audio=silence_buffer,
            context={},
        )

        detected = result.detected
        assert (detected.emotion, detected.intensity, detected.confidence) == (
            NEUTRAL_DEFAULT.emotion, NEUTRAL_DEFAULT.intensity, NEUTRAL_DEFAULT.confidence
        )
        assert detected.duration_ms == pytest.approx(1000.0)

    def test_audio_features_mapping(self, engine):
        """Test precomputed acoustic features are classified directly"""
        result = engine.detect_from_audio({"energy": 0.2, "pitch_variance": 60.0})

        assert result.detected.emotion == EmotionType.EXCITED
        assert result.detected.confidence == pytest.approx(0.7)
        assert result.detected.duration_ms is None

    def test_context_only(self, engine):
        """Test a single modality names itself as the source"""
        result = engine.detect_from_multimodal(context={"topics": ["billing", "problem"]})

        assert result.detected.emotion == EmotionType.CONCERNED
        assert result.detected.source == EmotionSource.CONTEXT

    def test_invalid_inputs(self, engine):
        """Test malformed requests are rejected"""
        with pytest.raises(InvalidInputError):
            engine.detect_from_multimodal()
        with pytest.raises(InvalidInputError):
            engine.detect_from_text(42)
        with pytest.raises(SessionNotFoundError):
            engine.detect_from_text("hello", session_id="missing")

    def test_session_state_and_transitions(self, engine):
        """Test detections update the session state and record transitions"""
        engine.create_session("s1")

        engine.detect_from_text("I am SO HAPPY!!!", session_id="s1")
        second = engine.detect_from_text("this is terrible and awful", session_id="s1")

        assert second.detected.emotion == EmotionType.SAD
        assert second.transition.from_emotion == EmotionType.HAPPY
        assert second.transition.to_emotion == EmotionType.SAD
        assert second.transition.blend_factor == 0.6
        assert engine.current_emotion("s1").emotion == EmotionType.SAD

        summary = engine.get_emotion_analysis("s1")
        assert len(summary.emotions) == 2
        assert len(summary.transitions) == 1
        assert summary.stability == pytest.approx(0.5)

        engine.clear_history("s1")
        assert engine.current_emotion("s1") is None
        assert engine.dominant_emotion("s1") is None

    def test_sessions_isolated(self, engine, sine_buffer):
        """Test one session's detections never reach another"""
        engine.create_session("a")
        engine.create_session("b")

        engine.detect_from_text("I am SO HAPPY!!!", session_id="a")
        engine.analyze_audio_emotion(sine_buffer, session_id="a", audio_id="clip")

        assert engine.current_emotion("a").emotion == EmotionType.HAPPY
        assert engine.current_emotion("b") is None
        assert len(engine.get_audio_emotion_history("a", "clip")) == 1
        assert engine.get_audio_emotion_history("b", "clip") == []

    def test_audio_history_bounded(self, engine, silence_factory):
        """Test per-audio emotion history keeps the ten most recent readings"""
        engine.create_session("s1")
        buffer = silence_factory(duration=0.1)

        for _ in range(12):
            engine.analyze_audio_emotion(buffer, session_id="s1", audio_id="clip")

        assert len(engine.get_audio_emotion_history("s1", "clip")) == 10

    def test_closed_session(self, engine):
        """Test a closed session can no longer be used"""
        engine.create_session("s1")
        engine.close_session("s1")

        with pytest.raises(SessionNotFoundError):
            engine.current_emotion("s1")

    def test_results_are_json_serializable(self, engine, sine_buffer):
        """Test detection and audio results convert to plain JSON"""
        detection = engine.detect_from_multimodal(
            text="wow, great news :)", audio=sine_buffer, context={"time_of_day": "morning"},
        )
        audio = engine.analyze_audio_emotion(sine_buffer)

        decoded = json.loads(json.dumps({"detection": detection.to_dict(), "audio": audio.to_dict()}))

        assert decoded["detection"]["detected"]["source"] == "combined"
        assert len(decoded["audio"]["band_energies"]) == 7


class TestCancellation:
    """Cancelled analyses leave session state untouched"""

    def test_cancelled_voice_analysis(self, engine, cancelled, sine_buffer):
        engine.create_session("s1")

        with pytest.raises(AnalysisCancelledError):
            engine.analyze_voice(sine_buffer, session_id="s1", audio_id="clip", cancel_event=cancelled)

        assert engine.get_cached_voice("s1", "clip") is None

    def test_cancelled_audio_emotion(self, engine, cancelled, sine_buffer):
        engine.create_session("s1")

        with pytest.raises(AnalysisCancelledError):
            engine.analyze_audio_emotion(sine_buffer, session_id="s1", audio_id="clip", cancel_event=cancelled)

        assert engine.get_audio_emotion_history("s1", "clip") == []

    def test_cancelled_detection(self, engine, cancelled, sine_buffer):
        engine.create_session("s1")

        with pytest.raises(AnalysisCancelledError):
            engine.detect_from_multimodal(text="hello", audio=sine_buffer, session_id="s1", cancel_event=cancelled)

        assert engine.current_emotion("s1") is None

    def test_cancelled_lip_sync(self, engine, cancelled, sine_buffer):
        with pytest.raises(AnalysisCancelledError):
            engine.generate_lip_sync(sine_buffer, cancel_event=cancelled)


@pytest.mark.asyncio
async def test_async_facade(engine, sine_buffer):
    """Test the async variants return the same results as the sync calls"""
    voice = await engine.analyze_voice_async(sine_buffer)
    visemes = await engine.generate_lip_sync_async(sine_buffer)
    result = await engine.detect_from_multimodal_async(text="I am SO HAPPY!!!")

    assert voice == engine.analyze_voice(sine_buffer)
    assert visemes == engine.generate_lip_sync(sine_buffer)
    assert result.detected.emotion == EmotionType.HAPPY


@pytest.mark.asyncio
async def test_cli_report(tmp_path, capsys, sine_buffer):
    """Test the command-line entry point prints a JSON report"""
    audio_path = tmp_path / "tone.wav"
    sf.write(str(audio_path), sine_buffer.samples, sine_buffer.sample_rate)

    exit_code = await main_async([str(audio_path), "--text", "I am SO HAPPY!!!"])

    assert exit_code == 0
    report = json.loads(capsys.readouterr().out)
    assert set(report) == {"voice", "visemes", "audio_emotion", "emotion"}
    assert report["emotion"]["emotion"] == "happy"
    assert sum(v["duration_ms"] for v in report["visemes"]) == pytest.approx(1000.0, abs=0.1)


@pytest.mark.asyncio
async def test_cli_missing_file(tmp_path):
    """Test a missing audio file exits with status 1"""
    assert await main_async([str(tmp_path / "missing.wav")]) == 1

"""Unit tests for configuration loading and AnalysisConfig"""

import pytest

from avatar_engine.config import AnalysisConfig, Config
from avatar_engine.errors import InvalidInputError, UnsupportedConfigError


@pytest.fixture
def config_file(tmp_path):
    """YAML file overriding a few settings"""
    path = tmp_path / "config.yaml"
    path.write_text(
        "analysis:\n"
        "  window_size: 2048\n"
        "  hop_size: 256\n"
        "emotion:\n"
        "  weights:\n"
        "    text: 0.7\n"
        "  history_capacity: 5\n"
        "lipsync:\n"
        "  granularity_ms: 20\n"
        "logging:\n"
        "  level: DEBUG\n"
    )
    return path


class TestConfig:
    """Tests for the YAML Config loader"""

    def test_dotted_get(self, config_file):
        """Test dot-notation lookups and defaults"""
        config = Config(str(config_file))

        assert config.get('analysis.window_size') == 2048
        assert config['emotion.weights.text'] == 0.7
        assert config.get('analysis.missing', 'fallback') == 'fallback'
        assert config.get('analysis.window_size.deeper', 7) == 7

    def test_missing_explicit_file_raises(self, tmp_path):
        """Test an explicit path that does not exist is an error"""
        with pytest.raises(FileNotFoundError):
            Config(str(tmp_path / "absent.yaml"))

    def test_validate_accepts_valid_file(self, config_file):
        """Test validation of a consistent file"""
        Config(str(config_file)).validate()

    def test_validate_rejects_bad_logging_level(self, tmp_path):
        """Test validation of the logging level"""
        path = tmp_path / "bad.yaml"
        path.write_text("logging:\n  level: LOUD\n")

        with pytest.raises(ValueError):
            Config(str(path)).validate()

    def test_validate_rejects_bad_window(self, tmp_path):
        """Test validation of the analysis section"""
        path = tmp_path / "bad.yaml"
        path.write_text("analysis:\n  window_size: 1000\n  hop_size: 500\n")

        with pytest.raises(UnsupportedConfigError):
            Config(str(path)).validate()


class TestAnalysisConfig:
    """Tests for AnalysisConfig"""

    def test_defaults(self):
        """Test the documented defaults"""
        config = AnalysisConfig()

        assert config.sample_rate == 22050
        assert config.window_size == 1024
        assert config.hop_size == 512
        assert config.mel_filter_count == 26
        assert config.mfcc_coefficient_count == 13
        assert config.minimum_confidence == 0.3
        assert (config.text_weight, config.audio_weight, config.context_weight) == (0.4, 0.4, 0.2)
        assert config.smoothing_window_ms == 2000.0
        assert config.history_capacity == 100
        assert config.viseme_granularity_ms == 50.0
        assert config.validate() is config

    def test_from_config(self, config_file):
        """Test YAML values override defaults and missing keys fall back"""
        config = AnalysisConfig.from_config(Config(str(config_file)))

        assert config.window_size == 2048
        assert config.hop_size == 256
        assert config.text_weight == 0.7
        assert config.audio_weight == 0.4
        assert config.history_capacity == 5
        assert config.viseme_granularity_ms == 20.0
        assert config.sample_rate == 22050

    def test_with_overrides(self):
        """Test overrides produce a validated copy"""
        base = AnalysisConfig()
        changed = base.with_overrides(history_capacity=3)

        assert changed.history_capacity == 3
        assert base.history_capacity == 100

    def test_frame_rate(self):
        """Test frames per second"""
        assert AnalysisConfig(sample_rate=16000, hop_size=512).analysis_frame_rate == pytest.approx(31.25)

    @pytest.mark.parametrize("overrides", [
        {"sample_rate": 0},
        {"window_size": 0},
        {"hop_size": -1},
        {"hop_size": 2048},
        {"viseme_granularity_ms": 0},
    ])
    def test_invalid_input(self, overrides):
        """Test non-positive sizes and rates are invalid input"""
        with pytest.raises(InvalidInputError):
            AnalysisConfig(**overrides).validate()

    @pytest.mark.parametrize("overrides", [
        {"window_size": 1000, "hop_size": 500},
        {"window_function": "blackman"},
        {"mfcc_coefficient_count": 30},
        {"minimum_confidence": 1.5},
        {"text_weight": -0.1},
        {"history_capacity": 0},
    ])
    def test_unsupported(self, overrides):
        """Test settings the pipeline cannot honour"""
        with pytest.raises(UnsupportedConfigError):
            AnalysisConfig(**overrides).validate()

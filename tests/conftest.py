"""Pytest configuration and fixtures"""

import numpy as np
import pytest
from hypothesis import settings, Verbosity

from avatar_engine.config.analysis_config import AnalysisConfig
from avatar_engine.models.frames import AudioBufferDescriptor

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20, verbosity=Verbosity.normal)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose)

# Use CI profile by default
settings.load_profile("ci")


def make_sine(frequency: float = 220.0, duration: float = 1.0, sample_rate: int = 22050,
              amplitude: float = 0.5) -> AudioBufferDescriptor:
    """Mono sine buffer"""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    samples = amplitude * np.sin(2 * np.pi * frequency * t)
    return AudioBufferDescriptor(samples=samples, sample_rate=sample_rate)


def make_silence(duration: float = 1.0, sample_rate: int = 22050) -> AudioBufferDescriptor:
    """All-zero buffer"""
    return AudioBufferDescriptor(samples=np.zeros(int(sample_rate * duration)), sample_rate=sample_rate)


@pytest.fixture
def analysis_config():
    """Default analysis settings, independent of any YAML file"""
    return AnalysisConfig()


@pytest.fixture
def sine_buffer():
    """1 s, 220 Hz sine at 22050 Hz"""
    return make_sine()


@pytest.fixture
def silence_buffer():
    """1 s of silence at 22050 Hz"""
    return make_silence()


@pytest.fixture
def sine_factory():
    """Builds sine buffers with custom frequency, duration and rate"""
    return make_sine


@pytest.fixture
def silence_factory():
    """Builds silent buffers with custom duration and rate"""
    return make_silence

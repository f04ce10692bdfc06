"""Configuration loading"""

from avatar_engine.config.analysis_config import AnalysisConfig
from avatar_engine.config.config_loader import Config

__all__ = ["AnalysisConfig", "Config"]

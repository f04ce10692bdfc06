"""Configuration loader for the avatar analysis engine"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Config:
    """Configuration manager backed by a YAML file

    Resolution order when no path is given: ``config/config.{env}.yaml`` then
    ``config/config.yaml``, looked up in the working directory first and the
    project root second, where ``env`` comes from ``AVATAR_ENGINE_ENV``.
    """

    def __init__(self, config_path: Optional[str] = None):
        self._explicit = config_path is not None
        if config_path is None:
            config_path = self._resolve_default_path()

        self.config_path = Path(config_path)
        self._config = self._load_config()

    @staticmethod
    def _resolve_default_path() -> str:
        env = os.getenv('AVATAR_ENGINE_ENV', 'development')
        names = [f"config.{env}.yaml", "config.yaml"]
        for base in (Path.cwd(), PROJECT_ROOT):
            for name in names:
                candidate = base / "config" / name
                if candidate.exists():
                    return str(candidate)
        return str(Path("config") / "config.yaml")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            if self._explicit:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")
            logger.warning(
                f"Config file not found: {self.config_path}, using built-in defaults"
            )
            return {}

        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation

        Args:
            key: Configuration key in dot notation (e.g., 'analysis.window_size')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access"""
        return self.get(key)

    def validate(self) -> None:
        """Validate configuration values

        Raises:
            ValueError: If a logging level is unknown
            UnsupportedConfigError / InvalidInputError: If the analysis section
                describes a pipeline that cannot run
        """
        level = self.get('logging.level')
        if level is not None and not isinstance(logging.getLevelName(str(level).upper()), int):
            raise ValueError(f"Invalid logging level: {level}")

        from avatar_engine.config.analysis_config import AnalysisConfig
        AnalysisConfig.from_config(self).validate()


# Global config instance
config = Config()

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    buffer_capacity: int = 1000
    default_window_size: int = 24
    default_readings_limit: int = 100
    max_readings_limit: int = 1000
    low_battery_level: float = 20
    poor_signal_strength: float = 30
    history_limit: int = 50

    def validate(self) -> None:
        for name in ("buffer_capacity", "default_window_size", "default_readings_limit",
                     "max_readings_limit", "history_limit"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        for name in ("low_battery_level", "poor_signal_strength"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value!r}")


class ConfigLoader:
    """Loads the engine configuration from a JSON file, falling back to defaults."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self._config_path = Path(config_path) if config_path else self.get_default_config_path()
        self._config = EngineConfig()
        self.load_config()

    @staticmethod
    def get_default_config_path() -> Path:
        """Get the path to config/engine_config.json at the project root."""
        return Path(__file__).parent.parent.parent / "config" / "engine_config.json"

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def config(self) -> EngineConfig:
        return self._config

    def load_config(self) -> EngineConfig:
        """Load configuration from JSON file. Never raises for a bad file."""
        self._config = EngineConfig()

        if not self._config_path.exists():
            logger.warning(f"Configuration file not found: {self._config_path}, using defaults")
            return self._config

        try:
            with open(self._config_path, 'r') as f:
                json_data = json.load(f)
            known = {f.name for f in fields(EngineConfig)}
            for key in json_data:
                if key not in known:
                    logger.warning(f"Ignoring unknown configuration key: {key}")
            config = EngineConfig(**{k: v for k, v in json_data.items() if k in known})
            config.validate()
            self._config = config
            logger.info(f"Configuration loaded from {self._config_path}")

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse configuration file: {e}")
            self._config = EngineConfig()

        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Invalid configuration in {self._config_path}: {e}")
            self._config = EngineConfig()

        return self._config

    def reload_config(self) -> EngineConfig:
        """Reload configuration from file."""
        config = self.load_config()
        logger.info("Configuration reloaded")
        return config

"""Configuration file management."""
import json
import logging
from pathlib import Path
from typing import Any, Optional

from music.voice_graph import Timbre

_LOGGER = logging.getLogger("profelofono.config")


class ConfigManager:
    """Manages application configuration (audio settings and last instrument)."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else Path(__file__).parent / "config.json"
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file, filling in any missing defaults."""
        config = self._default_config()
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    stored = json.load(f)
                if isinstance(stored, dict):
                    config.update(stored)
            except Exception as e:
                _LOGGER.warning("Could not read %s, using defaults: %s", self.config_file, e)
                return self._default_config()
        return config

    def _default_config(self) -> dict:
        """Return default configuration."""
        return {
            "sample_rate": 44100,
            "buffer_size": 256,
            "analysis_frame_size": 2048,
            "tuner_refresh_rate": 60.0,
            "master_gain": 0.5,
            "strum_interval": 0.05,
            "strum_jitter": 0.01,
            "instrument": Timbre.METALLOPHONE.value,
            "output_device": None,
            "input_device": None,
        }

    def save_config(self):
        """Save configuration to file."""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except Exception as e:
            _LOGGER.error("Error saving config: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    # ── Audio ────────────────────────────────────────────────────

    def get_sample_rate(self) -> int:
        return int(self.config.get("sample_rate", 44100))

    def get_buffer_size(self) -> int:
        return int(self.config.get("buffer_size", 256))

    def get_frame_size(self) -> int:
        """Samples per tuner analysis frame."""
        return int(self.config.get("analysis_frame_size", 2048))

    def get_refresh_rate(self) -> float:
        return float(self.config.get("tuner_refresh_rate", 60.0))

    def get_master_gain(self) -> float:
        return float(self.config.get("master_gain", 0.5))

    def set_master_gain(self, gain: float):
        """Persist the bus gain. Clamped to [0.0, 1.0]."""
        self.config["master_gain"] = float(max(0.0, min(1.0, gain)))
        self.save_config()

    def get_strum_timing(self) -> tuple:
        """(interval, jitter) in seconds."""
        return (float(self.config.get("strum_interval", 0.05)),
                float(self.config.get("strum_jitter", 0.01)))

    # ── Devices ──────────────────────────────────────────────────

    def get_output_device(self) -> Optional[int]:
        return self.config.get("output_device")

    def set_output_device(self, index: Optional[int]):
        self.config["output_device"] = index
        self.save_config()

    def get_input_device(self) -> Optional[int]:
        return self.config.get("input_device")

    def set_input_device(self, index: Optional[int]):
        self.config["input_device"] = index
        self.save_config()

    # ── Instrument selection ─────────────────────────────────────

    def get_instrument(self) -> Timbre:
        """Return the last selected instrument (metallophone by default)."""
        return Timbre.parse(self.config.get("instrument"))

    def set_instrument(self, timbre):
        self.config["instrument"] = Timbre.parse(timbre).value
        self.save_config()

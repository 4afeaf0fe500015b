"""ABOUTME: Config manager tests - defaults, persistence and corrupt-file recovery."""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from config_manager import ConfigManager
from music.voice_graph import Timbre


def test_defaults_when_file_missing(tmp_path):
    config = ConfigManager(tmp_path / "config.json")
    assert config.get_sample_rate() == 44100
    assert config.get_buffer_size() == 256
    assert config.get_frame_size() == 2048
    assert config.get_refresh_rate() == 60.0
    assert config.get_master_gain() == 0.5
    assert config.get_strum_timing() == (0.05, 0.01)
    assert config.get_instrument() is Timbre.METALLOPHONE
    assert config.get_output_device() is None
    assert config.get_input_device() is None


def test_settings_round_trip(tmp_path):
    path = tmp_path / "config.json"
    config = ConfigManager(path)
    config.set_instrument("guitar")
    config.set_master_gain(3.0)
    config.set_input_device(2)

    reloaded = ConfigManager(path)
    assert reloaded.get_instrument() is Timbre.GUITAR
    assert reloaded.get_master_gain() == 1.0
    assert reloaded.get_input_device() == 2
    assert json.loads(path.read_text())["instrument"] == "guitar"


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"sample_rate": 48000}))
    config = ConfigManager(path)
    assert config.get_sample_rate() == 48000
    assert config.get_buffer_size() == 256


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    config = ConfigManager(path)
    assert config.get_sample_rate() == 44100
    assert config.get_instrument() is Timbre.METALLOPHONE


def test_unknown_instrument_name_reads_as_metallophone(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"instrument": "bagpipes"}))
    assert ConfigManager(path).get_instrument() is Timbre.METALLOPHONE

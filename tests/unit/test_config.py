import pytest
from pathlib import Path
from pydantic import ValidationError
from fflite.config.loader import load_config
from fflite.config.models import (
    AppConfig, CropConfig, DEFAULT_ERROR_PATTERNS, GeneralConfig, PatternConfig, SyncConfig,
)


def test_defaults():
    config = AppConfig()
    assert config.general.ffmpeg_binary == "ffmpeg"
    assert config.general.hide_banner is True
    assert config.general.logs is True
    assert config.general.speed_window == 30
    assert config.general.warning_limit == 10
    assert config.crop.count == 5
    assert config.crop.limit == pytest.approx(0.10625)
    assert config.sync.sample_rate == 48000
    assert r"^@crf(\d+)$" in config.presets


def test_error_catalogue_keeps_broad_entry_last():
    assert DEFAULT_ERROR_PATTERNS[-1] == r"(?i)\berror\b"
    assert PatternConfig().errors == DEFAULT_ERROR_PATTERNS


def test_pattern_config_is_immutable():
    patterns = PatternConfig()
    with pytest.raises(ValidationError):
        patterns.errors = []


def test_invalid_pattern_rejected():
    with pytest.raises(ValidationError, match="Invalid pattern"):
        PatternConfig(errors=["(unclosed"])


def test_invalid_preset_key_rejected():
    with pytest.raises(ValidationError):
        AppConfig(presets={"[bad": "-c copy"})


@pytest.mark.parametrize("model,field,value", [
    (GeneralConfig, "speed_window", 0),
    (GeneralConfig, "warning_limit", -1),
    (CropConfig, "count", 0),
    (CropConfig, "limit", 1.5),
    (SyncConfig, "sample_rate", 0),
])
def test_out_of_range_values_rejected(model, field, value):
    with pytest.raises(ValidationError):
        model(**{field: value})


def test_load_config_from_yaml(fflite_yaml):
    config = load_config(fflite_yaml)
    assert config.general.ffmpeg_binary == "/opt/ffmpeg/bin/ffmpeg"
    assert config.general.mute is True
    assert config.general.warning_limit == 3
    assert config.crop.count == 3
    # Unset sections keep their defaults.
    assert config.sync.codec == "flac"
    assert config.presets == {r"^@fast$": "-preset veryfast"}


def test_load_config_missing_file_uses_defaults(tmp_path):
    config = load_config(tmp_path / "nope.yaml")
    assert config == AppConfig()


def test_load_config_empty_file(tmp_path):
    conf = tmp_path / "empty.yaml"
    conf.write_text("")
    assert load_config(conf) == AppConfig()


def test_load_config_rejects_non_mapping(tmp_path):
    conf = tmp_path / "list.yaml"
    conf.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="must contain a mapping"):
        load_config(conf)


def test_bundled_config_is_valid():
    bundled = Path(__file__).resolve().parents[2] / "conf" / "fflite.yaml"
    config = load_config(bundled)
    assert config.presets == AppConfig().presets

import json

import pytest

from clickslib.config import (
    ConfigError,
    default_config,
    load_preset,
    merge_configs,
    save_preset,
    validate_config,
    validate_config_fields,
)


class TestValidation:

    def test_defaults_are_valid(self):
        validate_config(default_config())
        assert default_config()["sample_rate"] == 48000
        assert default_config()["peak_bucket_size"] == 256

    @pytest.mark.parametrize("key, value", [
        ("sample_rate", 0),
        ("sample_rate", 44100.0),
        ("base_beat_width", 0.0),
        ("base_beat_width", True),
        ("proportional_beat_length", "yes"),
        ("reference_beat_length", 0),
        ("peak_bucket_size", None),
        ("import_workers", 0),
        ("media_folder", 3),
        ("sample_rate", 1_000_000),
        ("import_workers", 65),
    ])
    def test_invalid_values(self, key, value):
        errors = validate_config_fields({key: value})
        assert [e.key for e in errors] == [key]
        with pytest.raises(ConfigError):
            validate_config({**default_config(), key: value})

    def test_nullable_and_unknown_keys(self):
        assert validate_config_fields({"import_workers": None, "_show_dir": "/tmp"}) == []

    def test_upper_bounds_are_inclusive(self):
        assert validate_config_fields({"sample_rate": 768_000, "import_workers": 64}) == []
        errors = validate_config_fields({"sample_rate": 768_001})
        assert errors[0].message == "Sample rate (Hz) must be at most 768000."

    def test_int_accepted_for_float_width(self):
        assert validate_config_fields({"base_beat_width": 4}) == []

    def test_error_lists_every_field(self):
        with pytest.raises(ConfigError) as exc:
            validate_config({"sample_rate": -1, "peak_bucket_size": 0})
        assert "Sample rate" in str(exc.value)
        assert "Peak bucket size" in str(exc.value)


class TestPresets:

    def test_merge_later_wins(self):
        merged = merge_configs({"a": 1, "b": 2}, {"b": 3}, {"c": 4})
        assert merged == {"a": 1, "b": 3, "c": 4}

    def test_save_only_changed_values(self, tmp_path):
        config = {**default_config(), "base_beat_width": 24.0, "_show_dir": "/x", "cue": 2}
        path = tmp_path / "presets" / "wide.json"
        save_preset(config, str(path), description="wide beats")
        data = json.loads(path.read_text())
        assert data == {"schema_version": "1.0", "_description": "wide beats", "base_beat_width": 24.0}
        assert load_preset(str(path)) == {"base_beat_width": 24.0}

    def test_missing_preset(self, tmp_path):
        with pytest.raises(ConfigError):
            load_preset(str(tmp_path / "none.json"))

    def test_preset_must_be_object(self, tmp_path):
        path = tmp_path / "p.json"
        path.write_text("[1]")
        with pytest.raises(ConfigError):
            load_preset(str(path))

    def test_preset_invalid_json(self, tmp_path):
        path = tmp_path / "p.json"
        path.write_text("{")
        with pytest.raises(ConfigError):
            load_preset(str(path))

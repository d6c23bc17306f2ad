from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

PRESET_SCHEMA_VERSION = "1.0"

# CLI-only keys that never go into a preset
_INTERNAL_KEYS = {"json", "cue", "clips_only", "_show_dir"}


class ClicksError(Exception):
    """Base class for errors raised by clickslib."""


class ConfigError(ClicksError):
    """Raised when configuration validation fails."""


@dataclass
class ConfigFieldError:
    """A single validation error for one configuration field.

    Attributes:
        key:     The config key that failed validation.
        value:   The offending value.
        message: Human-readable explanation of what is wrong.
    """
    key: str
    value: Any
    message: str


@dataclass(frozen=True)
class ParamSpec:
    """Declarative specification for a single configuration parameter.

    Describes type, default and valid range so the same
    table drives validation, preset writing and CLI help.
    """
    key: str
    type: type | tuple              # expected Python type(s)
    default: Any
    label: str                       # short UI label
    description: str = ""            # longer help text
    min: float | int | None = None   # inclusive lower bound (unless min_exclusive)
    max: float | int | None = None   # inclusive upper bound
    min_exclusive: bool = False
    nullable: bool = False           # True if None is valid


# ---------------------------------------------------------------------------
# Parameter sections
# ---------------------------------------------------------------------------

TIMELINE_PARAMS: list[ParamSpec] = [
    ParamSpec(
        key="sample_rate", type=int, default=48000, min=1, max=768_000,
        label="Sample rate (Hz)",
        description="Rate used to convert beat ticks into clip sample positions.",
    ),
    ParamSpec(
        key="ticks_per_second", type=int, default=1_000_000, min=1,
        label="Ticks per second",
        description="Resolution of the fixed-point beat length unit.",
    ),
    ParamSpec(
        key="base_beat_width", type=(int, float), default=10.0,
        min=0.0, min_exclusive=True,
        label="Beat width (px)",
        description="Horizontal size of one beat at 1.0 zoom.",
    ),
    ParamSpec(
        key="proportional_beat_length", type=bool, default=False,
        label="Proportional beat scaling",
        description=(
            "Scale each beat's width by its length instead of drawing "
            "every beat with the same width."
        ),
    ),
    ParamSpec(
        key="reference_beat_length", type=int, default=500_000,
        min=0, min_exclusive=True,
        label="Reference beat length (ticks)",
        description=(
            "Beat length that maps to exactly one beat width under "
            "proportional scaling. 500000 ticks is one beat at 120 BPM."
        ),
    ),
    ParamSpec(
        key="default_tempo", type=int, default=120, min=1,
        label="Default tempo (BPM)",
        description="Tempo assumed before the first tempo change of a cue.",
    ),
]

IMPORT_PARAMS: list[ParamSpec] = [
    ParamSpec(
        key="peak_bucket_size", type=int, default=256, min=1,
        label="Peak bucket size (samples)",
        description="Number of samples summarized into one waveform value.",
    ),
    ParamSpec(
        key="media_folder", type=str, default="playback_media",
        label="Media folder",
        description="Sub-folder of the show directory holding per-channel clip folders.",
    ),
    ParamSpec(
        key="import_workers", type=int, default=None, min=1, max=64, nullable=True,
        label="Import workers",
        description="Thread count for clip decoding. Empty picks a value from the CPU count.",
    ),
]


def all_param_specs() -> list[ParamSpec]:
    return TIMELINE_PARAMS + IMPORT_PARAMS


def default_config() -> dict[str, Any]:
    """Returns the built-in default configuration."""
    return {p.key: p.default for p in all_param_specs()}


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge config dicts left-to-right; later values override earlier ones."""
    result: dict[str, Any] = {}
    for cfg in configs:
        result.update(cfg)
    return result


def load_preset(path: str) -> dict[str, Any]:
    """
    Load a JSON preset file. Returns a partial config dict.
    Raises ConfigError if the file cannot be read or parsed.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Preset file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in preset file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read preset file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Preset file must contain a JSON object, got {type(data).__name__}")

    return {k: v for k, v in data.items() if k not in ("schema_version", "_description")}


def save_preset(config: dict[str, Any], path: str, *, description: str | None = None) -> None:
    """
    Save a config dict as a JSON preset file.
    Only values that differ from the defaults are written.
    """
    preset: dict[str, Any] = {"schema_version": PRESET_SCHEMA_VERSION}
    if description:
        preset["_description"] = description

    defaults = default_config()
    for k, v in config.items():
        if k in _INTERNAL_KEYS or k.startswith("_"):
            continue
        if k in defaults and defaults[k] == v:
            continue
        preset[k] = v

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(preset, f, indent=4, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Validation  (ParamSpec-driven)
# ---------------------------------------------------------------------------

def validate_param_values(
    params: list[ParamSpec],
    values: dict[str, Any],
) -> list[ConfigFieldError]:
    """Validate *values* against a list of :class:`ParamSpec` definitions.

    Returns a (possibly empty) list of :class:`ConfigFieldError` objects.
    Missing keys are not errors; they fall back to their default.
    """
    errors: list[ConfigFieldError] = []

    for spec in params:
        if spec.key not in values:
            continue

        value = values[spec.key]

        if value is None:
            if spec.nullable:
                continue
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must not be empty.",
            ))
            continue

        # bool is an int subclass; only accept it where bool is expected
        expected = spec.type
        if expected is not bool and isinstance(value, bool):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, got boolean.",
            ))
            continue
        if not isinstance(value, expected):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, "
                f"got {type(value).__name__}.",
            ))
            continue

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if spec.min is not None:
                if spec.min_exclusive and value <= spec.min:
                    errors.append(ConfigFieldError(
                        spec.key, value,
                        f"{spec.label} must be greater than {spec.min}.",
                    ))
                    continue
                if not spec.min_exclusive and value < spec.min:
                    errors.append(ConfigFieldError(
                        spec.key, value,
                        f"{spec.label} must be at least {spec.min}.",
                    ))
                    continue
            if spec.max is not None and value > spec.max:
                errors.append(ConfigFieldError(
                    spec.key, value,
                    f"{spec.label} must be at most {spec.max}.",
                ))
                continue

    return errors


def validate_config_fields(config: dict[str, Any]) -> list[ConfigFieldError]:
    """Validate a flat config dict against every known :class:`ParamSpec`.

    Returns structured errors.  Never raises.
    """
    return validate_param_values(all_param_specs(), config)


def validate_config(config: dict[str, Any]) -> None:
    """Validate a flat config dict.

    Raises :class:`ConfigError` listing every invalid field.
    """
    errors = validate_config_fields(config)
    if errors:
        lines = [e.message for e in errors]
        raise ConfigError(
            "Configuration has invalid values:\n  • " + "\n  • ".join(lines)
        )


def _type_label(t) -> str:
    """Human-readable label for an expected type or tuple of types."""
    if isinstance(t, tuple):
        return " or ".join(x.__name__ for x in t)
    return t.__name__

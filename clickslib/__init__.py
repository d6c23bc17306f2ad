from ._version import __version__
from .models import (
    Beat,
    Event,
    TempoChange,
    GradualTempoChange,
    RehearsalMark,
    Timecode,
    TimecodeInstant,
    TimecodeStop,
    Jump,
    JumpRequirement,
    JumpModeChange,
    JumpSymbol,
    PlaybackStart,
    PlaybackStop,
    Pause,
    PauseBehaviour,
    Clip,
    RunningClip,
    ChannelSlice,
    CueTimeline,
)
from .config import (
    default_config,
    merge_configs,
    validate_config,
    validate_config_fields,
    validate_param_values,
    load_preset,
    save_preset,
    ClicksError,
    ConfigError,
    ConfigFieldError,
    ParamSpec,
    TIMELINE_PARAMS,
    IMPORT_PARAMS,
)
from .peaks import summarize_peaks, PEAK_BUCKET_SIZE
from .cursor import EventCursor
from .jumps import classify_jump, classify_event
from .scale import TimeScale
from .playback import PlaybackTracker
from .clips import ClipRegistry, ImportReport
from .show import Cue, Show, ShowFormatError, load_show_json, save_show_json
from .timeline import resolve_cue
from .events import EventBus

__all__ = [
    "__version__",
    "Beat",
    "Event",
    "TempoChange",
    "GradualTempoChange",
    "RehearsalMark",
    "Timecode",
    "TimecodeInstant",
    "TimecodeStop",
    "Jump",
    "JumpRequirement",
    "JumpModeChange",
    "JumpSymbol",
    "PlaybackStart",
    "PlaybackStop",
    "Pause",
    "PauseBehaviour",
    "Clip",
    "RunningClip",
    "ChannelSlice",
    "CueTimeline",
    "default_config",
    "merge_configs",
    "validate_config",
    "validate_config_fields",
    "validate_param_values",
    "load_preset",
    "save_preset",
    "ClicksError",
    "ConfigError",
    "ConfigFieldError",
    "ParamSpec",
    "TIMELINE_PARAMS",
    "IMPORT_PARAMS",
    "summarize_peaks",
    "PEAK_BUCKET_SIZE",
    "EventCursor",
    "classify_jump",
    "classify_event",
    "TimeScale",
    "PlaybackTracker",
    "ClipRegistry",
    "ImportReport",
    "Cue",
    "Show",
    "ShowFormatError",
    "load_show_json",
    "save_show_json",
    "resolve_cue",
    "EventBus",
]

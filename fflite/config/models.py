import re
from pathlib import Path
from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Ordered catalogues: first match wins, so broad entries stay at the end.
DEFAULT_ERROR_PATTERNS = [
    r"No such file",
    r"Invalid data",
    r"At least one output file must be specified",
    r"Unrecognized option",
    r"Option not found",
    r"matches no streams",
    r"not supported",
    r"Invalid argument",
    r"Permission denied",
    r"Conversion failed!",
    r"not exist",
    r"-vf/-af/-filter",
    r"No such filter",
    r"does not contain",
    r"Not overwriting - exiting",
    r"\[y/N\]",
    r"[Ii]ncompatible",
    r"mismatch",
    r"(?i)\berror\b",
]

DEFAULT_WARNING_PATTERNS = [
    r"(Warning:.*)",
    r"(Past duration .* too large)",
    r"(.*bitrate.* too low.*)",
    r"(.*too low.*bitrate.*)",
    r"(fontselect:.*)",
    r"(Using font provider.*)",
    r"(Guessed Channel Layout.*)",
    r"(deprecated pixel format used.*)",
    r"(More than \d+ frames duplicated)",
    r"(Application provided invalid, non monotonically increasing dts.*)",
    r"(Thread message queue blocking.*)",
]

DEFAULT_HIDE_PATTERNS = [
    r"Press \[q\] to stop",
    r"Last message repeated",
    r"^\s*$",
]

DEFAULT_PRESETS = {
    r"^@crf(\d+)$": r"-c:v libx264 -preset slow -crf \1 -pix_fmt yuv420p",
    r"^@x265crf(\d+)$": r"-c:v libx265 -preset slow -crf \1 -pix_fmt yuv420p10le",
    r"^@aac(\d+)$": r"-c:a aac -b:a \1k",
    r"^@ac3(\d+)$": r"-c:a ac3 -b:a \1k",
    r"^@flac$": r"-c:a flac -compression_level 8",
    r"^@copy$": r"-c copy",
    r"^@nometa$": r"-map_metadata -1 -map_chapters -1",
    r"^@scale(\d+)$": r"-vf scale=-2:\1",
    r"^@null$": r"-f null -",
}


def _check_patterns(patterns: List[str]) -> List[str]:
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Invalid pattern {pattern!r}: {e}")
    return patterns


class GeneralConfig(BaseModel):
    ffmpeg_binary: str = "ffmpeg"
    hide_banner: bool = True
    passthrough: bool = False
    mute: bool = False
    logs: bool = True
    cwd_logs: bool = False
    debug: bool = False
    log_file: Optional[Path] = None
    speed_window: int = Field(default=30, gt=0)
    warning_limit: int = Field(default=10, gt=0)


class PatternConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    errors: List[str] = Field(default_factory=lambda: list(DEFAULT_ERROR_PATTERNS))
    warnings: List[str] = Field(default_factory=lambda: list(DEFAULT_WARNING_PATTERNS))
    hide: List[str] = Field(default_factory=lambda: list(DEFAULT_HIDE_PATTERNS))

    @field_validator('errors', 'warnings', 'hide')
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        return _check_patterns(v)


class CropConfig(BaseModel):
    count: int = Field(default=5, gt=0)
    limit: float = Field(default=0.10625, ge=0.0, lt=1.0)
    sample_seconds: float = Field(default=2.0, gt=0.0)


class SyncConfig(BaseModel):
    sample_rate: int = Field(default=48000, gt=0)
    codec: str = "flac"
    suffix: str = "_SYNC"


class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    presets: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PRESETS))
    crop: CropConfig = Field(default_factory=CropConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    @field_validator('presets')
    @classmethod
    def validate_presets(cls, v: Dict[str, str]) -> Dict[str, str]:
        _check_patterns(list(v.keys()))
        return v

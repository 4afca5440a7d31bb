from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field


class Phase(str, Enum):
    IDLE = "IDLE"
    MAPPING_STREAMS = "MAPPING_STREAMS"
    ENCODING = "ENCODING"
    FINISHED = "FINISHED"
    INTERRUPTED = "INTERRUPTED"

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.FINISHED, Phase.INTERRUPTED)


class LineKind(str, Enum):
    STREAM_MAPPING_HEADER = "STREAM_MAPPING_HEADER"
    STREAM_MAPPING_ENTRY = "STREAM_MAPPING_ENTRY"
    INPUT_HEADER = "INPUT_HEADER"
    OUTPUT_HEADER = "OUTPUT_HEADER"
    DURATION_HEADER = "DURATION_HEADER"
    STREAM_HEADER = "STREAM_HEADER"
    ERROR = "ERROR"
    WARNING = "WARNING"
    PROGRESS_WITH_SPEED = "PROGRESS_WITH_SPEED"
    PROGRESS_NO_SPEED = "PROGRESS_NO_SPEED"
    SUPPRESSIBLE = "SUPPRESSIBLE"
    FINISH_MARKER = "FINISH_MARKER"
    UNCLASSIFIED = "UNCLASSIFIED"

    @property
    def is_progress(self) -> bool:
        return self in (LineKind.PROGRESS_WITH_SPEED, LineKind.PROGRESS_NO_SPEED)


class ClassifiedLine(BaseModel):
    """One stderr line tagged with its category and captured fields."""
    kind: LineKind
    raw: str
    index: Optional[int] = None
    path: Optional[str] = None
    stream_id: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None
    duration_text: Optional[str] = None
    duration: Optional[float] = None
    time_text: Optional[str] = None
    elapsed: Optional[float] = None
    bitrate: Optional[str] = None
    drop: Optional[int] = None
    dup: Optional[int] = None
    speed: Optional[float] = None
    message: Optional[str] = None
    # Unclassified output seen while encoding is treated as encoder error context.
    encoder_error: bool = False


class ProgressSample(BaseModel):
    media_seconds: float
    wall_seconds: float
    speed: float


class CropWindow(BaseModel):
    width: int
    height: int
    x: int
    y: int

    @property
    def filter_value(self) -> str:
        return f"{self.width}:{self.height}:{self.x}:{self.y}"


class EncodeResult(BaseModel):
    input: Optional[str] = None
    command: List[str] = Field(default_factory=list)
    transcript: List[str] = Field(default_factory=list)
    return_code: Optional[int] = None
    success: bool = False
    finished: bool = False
    interrupted: bool = False
    elapsed_seconds: float = 0.0
    spawn_error: Optional[str] = None

    @property
    def failed(self) -> bool:
        """ffmpeg could not be started or exited with a non-zero status."""
        return not self.success or self.spawn_error is not None

    @property
    def has_errors(self) -> bool:
        # Recorded lines are reported even when ffmpeg itself succeeded.
        return self.failed or bool(self.transcript)


class BatchReport(BaseModel):
    results: List[EncodeResult] = Field(default_factory=list)
    batch: bool = False
    interrupted: bool = False

    @property
    def success(self) -> bool:
        return not any(r.failed for r in self.results)

    def failed_sections(self) -> List[Tuple[str, List[str]]]:
        """Returns (input, transcript) for every input that reported errors, in order."""
        sections = []
        for result in self.results:
            if not result.has_errors:
                continue
            lines = list(result.transcript)
            if not lines and result.spawn_error:
                lines = [f"{result.spawn_error}\n"]
            if not lines and result.return_code is not None:
                lines = [f"ffmpeg exited with code {result.return_code}\n"]
            sections.append((result.input or "", lines))
        return sections

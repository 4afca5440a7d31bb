from typing import List
from pydantic import BaseModel, Field
from .models import EncodeResult


class Event(BaseModel):
    """Base class for all domain events."""
    pass


class InterruptRequested(Event):
    """Emitted when SIGINT/SIGTERM reaches fflite."""
    signal_number: int


class EncodeStarted(Event):
    input: str = ""
    command: List[str] = Field(default_factory=list)


class EncodeFinished(Event):
    result: EncodeResult


class BatchFinished(Event):
    inputs: int
    failed: int
    interrupted: bool = False

"""Core types and constants for LoopLifter."""

from .audio import AudioBuffer, StemType
from .sample import ExtractedSample, NudgeGrid, SampleCategory, TimeRange
from .exceptions import DecodeError
from .constants import (
    PITCH_NAMES,
    DEFAULT_SR,
    DEFAULT_TEMPO,
)

__all__ = [
    "AudioBuffer",
    "StemType",
    "ExtractedSample",
    "NudgeGrid",
    "SampleCategory",
    "TimeRange",
    "DecodeError",
    "PITCH_NAMES",
    "DEFAULT_SR",
    "DEFAULT_TEMPO",
]

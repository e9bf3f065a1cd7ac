"""Extracted sample - the unit handed to export and editing."""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from .audio import StemType
from .constants import BEATS_PER_BAR, DEFAULT_TEMPO


@dataclass(frozen=True)
class TimeRange:
    """Half-open span of a source signal in seconds."""

    start: float
    end: float

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"TimeRange start must be >= 0, got {self.start}")
        if self.end <= self.start:
            raise ValueError(
                f"TimeRange end must be after start, got [{self.start}, {self.end})"
            )

    @property
    def duration(self) -> float:
        return self.end - self.start

    def overlap(self, other: "TimeRange") -> float:
        """Length in seconds shared with ``other``."""
        return max(0.0, min(self.end, other.end) - max(self.start, other.start))

    def clipped(self, duration: float) -> Optional["TimeRange"]:
        """Clip to ``[0, duration]``; None when nothing remains."""
        end = min(self.end, duration)
        if end <= self.start:
            return None
        return TimeRange(self.start, end)


class SampleCategory(Enum):
    """Categories of extracted samples."""

    LOOP = "Loop"
    FILL = "Fill"
    ROLL = "Roll"
    HIT = "Hit"
    PHRASE = "Phrase"
    HOOK = "Hook"
    ADLIB = "Ad-lib"
    CHOP = "Chop"
    CHORD = "Chord"
    RIFF = "Riff"
    NOTE = "Note"
    FX = "FX"


class NudgeGrid(Enum):
    """Grid resolution for nudging sample start times."""

    QUARTER = "1/4"
    EIGHTH = "1/8"
    SIXTEENTH = "1/16"
    THIRTY_SECOND = "1/32"

    @property
    def divisor(self) -> int:
        return {
            NudgeGrid.QUARTER: 1,
            NudgeGrid.EIGHTH: 2,
            NudgeGrid.SIXTEENTH: 4,
            NudgeGrid.THIRTY_SECOND: 8,
        }[self]


@dataclass
class ExtractedSample:
    """A region of a stem proposed as a loop, hit or fill."""

    name: str
    category: SampleCategory
    stem_type: StemType
    start_time: float
    end_time: float
    confidence: float
    tempo: float = DEFAULT_TEMPO
    bar_length: Optional[int] = None  # loops: 1, 2 or 4 bars
    source: Optional[str] = None  # path of the stem audio
    note_name: Optional[str] = None
    nudge_offset: float = 0.0
    is_selected: bool = True
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def effective_start_time(self) -> float:
        return self.start_time + self.nudge_offset

    @property
    def effective_end_time(self) -> float:
        return self.end_time + self.nudge_offset

    def duplicate(self) -> "ExtractedSample":
        """Copy with a fresh id and a " Copy" suffix."""
        return replace(self, name=f"{self.name} Copy", id=uuid.uuid4().hex)

    def nudge_step(self, grid: NudgeGrid) -> float:
        """Seconds moved by one nudge at ``grid`` resolution."""
        return (60.0 / self.tempo) / grid.divisor

    def nudge(self, steps: int, grid: NudgeGrid = NudgeGrid.SIXTEENTH) -> None:
        self.nudge_offset += steps * self.nudge_step(grid)

    def position_string(self, time: float) -> str:
        """Format a time as ``bars:beats`` (both 1-based)."""
        total_beats = time / (60.0 / self.tempo)
        bars = int(total_beats / BEATS_PER_BAR) + 1
        beats = int(total_beats % BEATS_PER_BAR) + 1
        return f"{bars}:{beats}"

    @property
    def duration_string(self) -> str:
        if self.duration < 1.0:
            return f"{self.duration * 1000:.0f}ms"
        return f"{self.duration:.1f}s"

    @property
    def bar_description(self) -> Optional[str]:
        if self.bar_length is None:
            return None
        return "1 bar" if self.bar_length == 1 else f"{self.bar_length} bars"

    @property
    def confidence_percent(self) -> int:
        return int(self.confidence * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "stem": self.stem_type.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "bar_length": self.bar_length,
            "confidence": self.confidence,
            "tempo": self.tempo,
            "note": self.note_name,
            "nudge_offset": self.nudge_offset,
            "source": self.source,
        }

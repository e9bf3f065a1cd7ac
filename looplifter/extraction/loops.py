"""Loop candidates: onset-density heuristic and ranked merging."""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..analysis.tempo import normalize_onsets
from ..core import TimeRange
from ..core.constants import BEATS_PER_BAR, MIN_ONSETS_FOR_LOOP

HEURISTIC_LOOP_CONFIDENCE = 0.85
MAIN_LOOP_MIN_CONFIDENCE = 0.9


@dataclass(frozen=True)
class LoopCandidate:
    """A proposed loop region before it becomes an ExtractedSample."""

    time_range: TimeRange
    bars: int
    confidence: float
    is_main_loop: bool = False
    source: str = "onsets"  # "onsets" or "similarity"


def quantize_to_beat(time: float, bpm: float) -> float:
    """Snap ``time`` to the nearest beat at ``bpm``."""
    if bpm <= 0:
        raise ValueError(f"Tempo must be positive, got {bpm}")
    seconds_per_beat = 60.0 / bpm
    # Half beats round up
    return math.floor(time / seconds_per_beat + 0.5) * seconds_per_beat


def onset_density_loop(
    onsets: Sequence[float],
    duration: float,
    bpm: float,
    energy_onset: float = 0.0,
    bars: int = 2,
    min_onsets: int = MIN_ONSETS_FOR_LOOP,
) -> Optional[LoopCandidate]:
    """
    A single ``bars``-long loop starting at the beat-quantized energy onset.

    Requires more than ``min_onsets`` onsets at or after ``energy_onset``
    and enough remaining track for the whole loop.
    """
    ordered = normalize_onsets(onsets)
    if np.count_nonzero(ordered >= energy_onset) <= min_onsets:
        return None

    start = quantize_to_beat(energy_onset, bpm)
    length = bars * BEATS_PER_BAR * 60.0 / bpm
    if duration < start + length:
        return None

    return LoopCandidate(
        time_range=TimeRange(start, start + length),
        bars=bars,
        confidence=HEURISTIC_LOOP_CONFIDENCE,
    )


def _rank_key(candidate: LoopCandidate):
    return (not candidate.is_main_loop, -candidate.confidence, candidate.time_range.start)


def merge_loop_candidates(
    candidates: Iterable[LoopCandidate],
    max_loops: int = 4,
    max_overlap: float = 0.5,
) -> List[LoopCandidate]:
    """
    Combine loops from every strategy into one ranked list.

    Candidates are ranked main loops first, then by confidence, then by
    start time. A candidate sharing more than ``max_overlap`` of the
    shorter span with an accepted loop is dropped.
    """
    accepted: List[LoopCandidate] = []
    for candidate in sorted(candidates, key=_rank_key):
        if len(accepted) >= max_loops:
            break
        span = candidate.time_range
        duplicate = any(
            span.overlap(kept.time_range)
            > max_overlap * min(span.duration, kept.time_range.duration)
            for kept in accepted
        )
        if not duplicate:
            accepted.append(candidate)
    return accepted

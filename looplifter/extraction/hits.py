"""Isolated hit detection from onset gaps."""

from dataclasses import dataclass
from typing import List, Sequence

from ..analysis.tempo import normalize_onsets
from ..core import TimeRange
from ..core.constants import (
    MAX_HIT_DURATION,
    MAX_HITS_PER_STEM,
    MIN_GAP_AFTER,
    MIN_GAP_BEFORE,
)


@dataclass(frozen=True)
class IsolatedHit:
    """An onset surrounded by enough silence to be cut as a one-shot."""

    start_time: float
    duration: float
    gap_before: float
    gap_after: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)


class HitIsolator:
    """Turns an onset list into hit time ranges."""

    def __init__(
        self,
        min_gap_before: float = MIN_GAP_BEFORE,
        min_gap_after: float = MIN_GAP_AFTER,
        max_hit_duration: float = MAX_HIT_DURATION,
        max_hits: int = MAX_HITS_PER_STEM,
    ):
        """
        Initialize HitIsolator.

        Args:
            min_gap_before: Minimum silence before a hit (seconds)
            min_gap_after: Minimum silence after a hit (seconds)
            max_hit_duration: Hits are cut to at most this length (seconds)
            max_hits: Cap on hits emitted per stem by ``hits_from_onsets``
        """
        self.min_gap_before = min_gap_before
        self.min_gap_after = min_gap_after
        self.max_hit_duration = max_hit_duration
        self.max_hits = max_hits

    def find_isolated_hits(
        self,
        onsets: Sequence[float],
        duration: float,
    ) -> List[IsolatedHit]:
        """
        Onsets with at least ``min_gap_before`` silence before them and
        ``min_gap_after`` after them.

        The first onset's gap is measured from 0, the last onset's gap to
        ``duration``. Fewer than two onsets give no hits.

        Args:
            onsets: Onset times in seconds (any order)
            duration: Total audio duration in seconds

        Returns:
            Isolated hits in time order
        """
        ordered = normalize_onsets(onsets)
        if len(ordered) < 2:
            return []

        hits = []
        last = len(ordered) - 1
        for i, onset in enumerate(ordered):
            gap_before = onset if i == 0 else onset - ordered[i - 1]
            gap_after = duration - onset if i == last else ordered[i + 1] - onset

            if gap_before >= self.min_gap_before and gap_after >= self.min_gap_after:
                hits.append(
                    IsolatedHit(
                        start_time=float(onset),
                        duration=float(min(gap_after, self.max_hit_duration)),
                        gap_before=float(gap_before),
                        gap_after=float(gap_after),
                    )
                )

        return hits

    def hits_from_onsets(
        self,
        onsets: Sequence[float],
        duration: float,
        energy_onset: float = 0.0,
    ) -> List[IsolatedHit]:
        """
        Up to ``max_hits`` hits from the earliest onsets at or after
        ``energy_onset``.

        Each hit lasts until the next onset, capped at ``max_hit_duration``;
        the last onset runs to ``duration``, under the same cap.
        """
        ordered = normalize_onsets(onsets)
        ordered = ordered[ordered >= energy_onset]

        hits = []
        for i, onset in enumerate(ordered[:self.max_hits]):
            gap_after = ordered[i + 1] - onset if i + 1 < len(ordered) else duration - onset
            hit_duration = min(gap_after, self.max_hit_duration, duration - onset)
            if hit_duration <= 0:
                continue

            gap_before = onset - ordered[i - 1] if i > 0 else onset
            hits.append(
                IsolatedHit(
                    start_time=float(onset),
                    duration=float(hit_duration),
                    gap_before=float(gap_before),
                    gap_after=float(gap_after),
                )
            )

        return hits

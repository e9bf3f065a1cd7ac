"""Tests for loop candidates and their merging."""

import pytest

from looplifter.core import TimeRange
from looplifter.extraction import (
    LoopCandidate,
    merge_loop_candidates,
    onset_density_loop,
    quantize_to_beat,
)


def candidate(start, end, confidence=0.9, main=False, bars=2):
    return LoopCandidate(
        time_range=TimeRange(start, end),
        bars=bars,
        confidence=confidence,
        is_main_loop=main,
    )


class TestQuantizeToBeat:
    def test_nearest_beat(self):
        assert quantize_to_beat(1.3, 120.0) == pytest.approx(1.5)
        assert quantize_to_beat(1.2, 120.0) == pytest.approx(1.0)
        assert quantize_to_beat(0.0, 95.0) == 0.0

    def test_half_beat_rounds_up(self):
        assert quantize_to_beat(0.25, 120.0) == pytest.approx(0.5)
        assert quantize_to_beat(1.25, 120.0) == pytest.approx(1.5)
        assert quantize_to_beat(2.25, 120.0) == pytest.approx(2.5)

    def test_invalid_tempo(self):
        with pytest.raises(ValueError):
            quantize_to_beat(1.0, 0.0)


class TestOnsetDensityLoop:
    """Test the two-bar heuristic loop."""

    def test_loop_from_energy_onset(self):
        onsets = [1.5, 2.0, 2.5, 3.0, 3.5, 4.0]
        loop = onset_density_loop(onsets, duration=10.0, bpm=120.0, energy_onset=1.3)

        assert loop is not None
        assert loop.time_range.start == pytest.approx(1.5)
        assert loop.time_range.end == pytest.approx(5.5)
        assert loop.bars == 2
        assert loop.confidence == 0.85
        assert not loop.is_main_loop

    def test_energy_onset_on_half_beat(self):
        onsets = [1.5, 2.0, 2.5, 3.0, 3.5, 4.0]
        loop = onset_density_loop(onsets, duration=10.0, bpm=120.0, energy_onset=1.25)
        assert loop.time_range.start == pytest.approx(1.5)

    def test_needs_more_than_four_onsets(self):
        onsets = [1.0, 2.0, 3.0, 4.0]
        assert onset_density_loop(onsets, duration=10.0, bpm=120.0) is None

    def test_onsets_before_energy_not_counted(self):
        onsets = [0.1, 0.2, 0.3, 5.0, 5.5, 6.0, 6.5]
        assert onset_density_loop(onsets, duration=20.0, bpm=120.0, energy_onset=5.0) is None

    def test_track_too_short(self):
        onsets = [0.0, 0.5, 1.0, 1.5, 2.0]
        assert onset_density_loop(onsets, duration=3.0, bpm=120.0) is None

    def test_bar_count(self):
        onsets = [0.0, 0.5, 1.0, 1.5, 2.0]
        loop = onset_density_loop(onsets, duration=30.0, bpm=60.0, bars=4)
        assert loop.time_range.duration == pytest.approx(16.0)


class TestMergeLoopCandidates:
    """Test ranking and overlap removal."""

    def test_main_loop_ranked_first(self):
        merged = merge_loop_candidates([
            candidate(0.0, 4.0, confidence=0.95),
            candidate(8.0, 12.0, confidence=0.9, main=True),
        ])
        assert merged[0].is_main_loop
        assert merged[1].time_range.start == 0.0

    def test_confidence_then_start(self):
        merged = merge_loop_candidates([
            candidate(8.0, 12.0, confidence=0.9),
            candidate(4.0, 8.0, confidence=0.9),
            candidate(0.0, 4.0, confidence=0.8),
        ])
        assert [c.time_range.start for c in merged] == [4.0, 8.0, 0.0]

    def test_overlapping_candidate_dropped(self):
        heuristic = candidate(4.0, 8.0, confidence=0.85)
        similar = candidate(4.0, 12.0, confidence=1.0, main=True, bars=4)
        merged = merge_loop_candidates([heuristic, similar])
        assert merged == [similar]

    def test_small_overlap_kept(self):
        merged = merge_loop_candidates([
            candidate(0.0, 4.0),
            candidate(3.0, 7.0, confidence=0.8),
        ])
        assert len(merged) == 2

    def test_max_loops(self):
        candidates = [candidate(i * 4.0, i * 4.0 + 4.0) for i in range(10)]
        assert len(merge_loop_candidates(candidates, max_loops=3)) == 3

    def test_empty(self):
        assert merge_loop_candidates([]) == []

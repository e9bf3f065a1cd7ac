"""Tests for hit isolation and the per-stem hit emission policy."""

import numpy as np
import pytest

from looplifter.extraction import HitIsolator


class TestIsolatedHits:
    """Test gap-based isolated hit detection."""

    @pytest.fixture
    def isolator(self):
        return HitIsolator()

    def test_fewer_than_two_onsets(self, isolator):
        assert isolator.find_isolated_hits([], 10.0) == []
        assert isolator.find_isolated_hits([1.0], 10.0) == []

    def test_two_spaced_onsets(self, isolator):
        hits = isolator.find_isolated_hits([1.0, 2.0], 3.0)

        assert [h.start_time for h in hits] == [1.0, 2.0]
        assert hits[0].gap_before == pytest.approx(1.0)
        assert hits[0].gap_after == pytest.approx(1.0)
        assert hits[0].duration == pytest.approx(0.5)
        # Last gap is measured to the end of the audio
        assert hits[1].gap_after == pytest.approx(1.0)

    def test_crowded_onsets_excluded(self, isolator):
        hits = isolator.find_isolated_hits([1.0, 1.1, 2.0, 3.0], 4.0)
        starts = [h.start_time for h in hits]

        assert 1.0 not in starts  # only 0.1s after
        assert 1.1 not in starts  # only 0.1s before
        assert starts == [2.0, 3.0]

    def test_short_gap_caps_duration(self, isolator):
        hits = isolator.find_isolated_hits([0.5, 0.75], 1.0)
        # 0.75 follows too closely to count
        assert [h.start_time for h in hits] == [0.5]
        assert hits[0].duration == pytest.approx(0.25)

    def test_unsorted_and_duplicate_input(self, isolator):
        hits = isolator.find_isolated_hits([3.0, 1.0, 1.0, 2.0], 4.0)
        assert [h.start_time for h in hits] == [1.0, 2.0, 3.0]

    def test_invariants_on_random_onsets(self, isolator):
        rng = np.random.default_rng(7)
        for _ in range(50):
            duration = float(rng.uniform(2.0, 20.0))
            onsets = np.sort(rng.uniform(0.0, duration, rng.integers(2, 30)))
            for hit in isolator.find_isolated_hits(onsets, duration):
                assert hit.duration <= 0.5
                assert hit.gap_before >= 0.3
                assert hit.gap_after >= 0.2
                assert hit.duration <= hit.gap_after

    def test_custom_gaps(self):
        isolator = HitIsolator(min_gap_before=0.05, min_gap_after=0.05, max_hit_duration=0.1)
        hits = isolator.find_isolated_hits([1.0, 1.1], 2.0)
        assert len(hits) == 2
        assert all(h.duration <= 0.1 for h in hits)


class TestHitsFromOnsets:
    """Test the earliest-onsets-after-energy policy."""

    @pytest.fixture
    def isolator(self):
        return HitIsolator()

    def test_skips_onsets_before_energy_point(self, isolator):
        hits = isolator.hits_from_onsets([0.1, 0.5, 1.0, 1.2, 2.0], 10.0, energy_onset=1.0)
        assert [h.start_time for h in hits] == [1.0, 1.2, 2.0]
        assert hits[0].duration == pytest.approx(0.2)
        assert hits[1].duration == pytest.approx(0.5)

    def test_capped_at_eight(self, isolator):
        onsets = np.arange(0.0, 10.0, 0.25)
        hits = isolator.hits_from_onsets(onsets, 10.0)
        assert len(hits) == 8
        assert hits[0].start_time == 0.0

    def test_last_hit_clipped_to_audio(self, isolator):
        hits = isolator.hits_from_onsets([1.0, 2.8], 3.0)
        assert hits[-1].start_time == pytest.approx(2.8)
        assert hits[-1].duration == pytest.approx(0.2)

    def test_last_gap_measured_to_end(self, isolator):
        hits = isolator.hits_from_onsets([1.0, 2.0], 2.3)
        assert hits[0].gap_after == pytest.approx(1.0)
        assert hits[-1].gap_after == pytest.approx(0.3)
        assert hits[-1].duration == pytest.approx(0.3)

    def test_onset_at_end_dropped(self, isolator):
        hits = isolator.hits_from_onsets([1.0, 3.0], 3.0)
        assert [h.start_time for h in hits] == [1.0]

    def test_time_range(self, isolator):
        hit = isolator.hits_from_onsets([1.0, 1.25], 5.0)[0]
        assert hit.time_range.start == 1.0
        assert hit.time_range.end == pytest.approx(1.25)
        assert hit.end_time == pytest.approx(1.25)

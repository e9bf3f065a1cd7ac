"""Tests for YIN pitch detection and note naming."""

import numpy as np
import pytest

from looplifter.analysis import PitchDetector
from looplifter.analysis.pitch import (
    cents_offset,
    freq_to_note_index,
    note_index_to_freq,
    note_name,
)

from generate_test_audio import generate_sine_wave


class TestNoteHelpers:
    """Test frequency/note conversions."""

    def test_a4_is_69(self):
        assert freq_to_note_index(440.0) == 69
        assert note_name(69) == "A4"

    def test_middle_c(self):
        assert note_name(60) == "C4"
        assert freq_to_note_index(261.63) == 60

    def test_sharps_and_low_octaves(self):
        assert note_name(61) == "C#4"
        assert note_name(45) == "A2"
        assert note_name(0) == "C-1"

    def test_index_clamped(self):
        assert freq_to_note_index(1.0) == 0
        assert freq_to_note_index(100000.0) == 127

    def test_round_trip_frequency(self):
        assert note_index_to_freq(69) == pytest.approx(440.0)
        assert note_index_to_freq(81) == pytest.approx(880.0)

    def test_cents_offset(self):
        sharp = 440.0 * 2 ** (20 / 1200)
        assert cents_offset(sharp, 69) == pytest.approx(20.0, abs=1e-6)
        assert cents_offset(440.0, 69) == pytest.approx(0.0, abs=1e-9)


class TestPitchDetector:
    """Test the YIN estimator on synthetic windows."""

    @pytest.fixture
    def detector(self):
        return PitchDetector()

    def test_a440_detected(self, detector):
        sr = 44100
        window = generate_sine_wave(440.0, 4096 / sr, sr)
        result = detector.detect(window, sr)

        assert result is not None
        assert result.note_name == "A4"
        assert result.note_index == 69
        assert abs(result.frequency - 440.0) / 440.0 < 0.01
        assert result.confidence >= 0.4
        assert abs(result.cents_offset) < 50

    def test_low_bass_note(self, detector):
        sr = 22050
        window = generate_sine_wave(110.0, 0.3, sr)
        result = detector.detect(window, sr)

        assert result is not None
        assert result.note_name == "A2"
        assert abs(result.frequency - 110.0) / 110.0 < 0.01

    @pytest.mark.parametrize("freq,expected", [(82.41, "E2"), (261.63, "C4"), (987.77, "B5")])
    def test_various_notes(self, detector, freq, expected):
        sr = 44100
        result = detector.detect(generate_sine_wave(freq, 0.1, sr), sr)
        assert result is not None
        assert result.note_name == expected

    def test_rejects_white_noise(self, detector):
        sr = 44100
        rng = np.random.default_rng(1234)
        rejected = 0
        trials = 40
        for _ in range(trials):
            noise = rng.uniform(-1.0, 1.0, 4096)
            if detector.detect(noise, sr) is None:
                rejected += 1
        assert rejected >= int(0.95 * trials)

    def test_too_short_window(self, detector):
        sr = 44100
        window = generate_sine_wave(440.0, 0.01, sr)[:255]
        assert len(window) == 255
        assert detector.detect(window, sr) is None

    def test_minimum_window_analysed(self, detector, monkeypatch):
        sr = 44100
        window = generate_sine_wave(440.0, 0.01, sr)[:256]
        assert len(window) == 256

        calls = []
        original = detector.lag_range

        def spy(n_samples, sample_rate):
            calls.append(n_samples)
            return original(n_samples, sample_rate)

        monkeypatch.setattr(detector, "lag_range", spy)
        detector.detect(window, sr)
        assert calls == [256]

    def test_silence_rejected(self, detector):
        assert detector.detect(np.zeros(4096), 44100) is None

    def test_only_first_samples_analysed(self, detector):
        sr = 44100
        a4 = generate_sine_wave(440.0, 4096 / sr, sr)
        tail = np.random.default_rng(0).uniform(-1, 1, 8192).astype(np.float32)
        result = detector.detect(np.concatenate([a4, tail]), sr)
        assert result is not None
        assert result.note_name == "A4"

    def test_lag_range(self, detector):
        tau_min, tau_max = detector.lag_range(4096, 44100)
        assert tau_min == 22
        assert tau_max == 882

        # Short buffers limit the lag to half their length
        assert detector.lag_range(512, 44100) == (22, 256)

    def test_lag_range_rounds_half_up(self):
        # 45000 / 2000 is exactly 22.5
        assert PitchDetector(fmax=2000.0).lag_range(4096, 45000) == (23, 900)

    def test_cmndf_starts_at_one(self):
        d = PitchDetector.difference(np.random.default_rng(3).standard_normal(1024), 200)
        cmndf = PitchDetector.cumulative_mean_normalized(d)
        assert cmndf[0] == 1.0
        assert len(cmndf) == 200
        assert np.all(cmndf >= 0)

    def test_detect_file(self, tmp_path):
        import soundfile as sf

        sr = 22050
        path = tmp_path / "tone.wav"
        audio = np.concatenate([np.zeros(sr), generate_sine_wave(220.0, 1.0, sr)])
        sf.write(str(path), audio, sr)

        result = PitchDetector().detect_file(path, start=1.0, duration=0.5)
        assert result is not None
        assert result.note_name == "A3"

    def test_detect_file_unreadable_warns(self, tmp_path):
        path = tmp_path / "broken.wav"
        path.write_bytes(b"not really audio")

        with pytest.warns(UserWarning):
            assert PitchDetector().detect_file(path, 0.0, 0.5) is None

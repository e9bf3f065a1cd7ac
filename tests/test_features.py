"""Tests for spectral helpers and per-beat feature vectors."""

import numpy as np
import pytest

from looplifter.analysis import FeatureExtractor
from looplifter.analysis.dsp import (
    cosine_similarity,
    euclidean_distance,
    fit_to_length,
    l2_normalize,
    log_band_energies,
    parabolic_interpolation,
)
from looplifter.core import AudioBuffer

from generate_test_audio import generate_sine_wave


class TestDsp:
    """Test the small numeric building blocks."""

    def test_fit_to_length(self):
        assert len(fit_to_length(np.ones(10), 16)) == 16
        assert fit_to_length(np.ones(10), 16)[10:].sum() == 0
        assert len(fit_to_length(np.ones(20), 16)) == 16

    def test_l2_normalize(self):
        v = l2_normalize(np.array([3.0, 4.0]))
        assert np.linalg.norm(v) == pytest.approx(1.0)

    def test_l2_normalize_tiny_vector_unchanged(self):
        v = np.array([1e-10, 0.0])
        assert np.array_equal(l2_normalize(v), v)

    def test_parabolic_interpolation(self):
        x = np.arange(5, dtype=np.float64)
        values = (x - 2.3) ** 2
        assert parabolic_interpolation(values, 2) == pytest.approx(2.3)

    def test_parabolic_interpolation_edges(self):
        values = np.array([0.0, 1.0, 2.0])
        assert parabolic_interpolation(values, 0) == 0
        assert parabolic_interpolation(values, 2) == 2

    def test_parabolic_interpolation_flat(self):
        assert parabolic_interpolation(np.array([1.0, 2.0, 3.0]), 1) == 1

    def test_cosine_similarity(self):
        a = np.array([1.0, 0.0])
        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, np.array([0.0, 1.0])) == pytest.approx(0.0)
        assert cosine_similarity(a, np.zeros(2)) == 0.0

    def test_euclidean_distance(self):
        assert euclidean_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == pytest.approx(5.0)

    def test_log_band_energies(self):
        sr, n_fft = 8000, 1024
        power = np.zeros(n_fft // 2 + 1)
        # Bin 64 is 500 Hz
        power[64] = 1.0
        bands = log_band_energies(power, sr, n_fft, [20, 250, 1000, 4000])
        assert bands.tolist() == [0.0, 1.0, 0.0]


class TestFeatureExtractor:
    """Test per-beat band vectors."""

    @pytest.fixture
    def extractor(self):
        return FeatureExtractor()

    def test_shape_and_norm(self, extractor):
        sr = 22050
        buffer = AudioBuffer(generate_sine_wave(440.0, 3.0, sr), sr)
        feats = extractor.beat_features(buffer, [0.0, 0.5, 1.0, 1.5])

        assert feats.shape == (4, 8)
        assert np.allclose(np.linalg.norm(feats, axis=1), 1.0)

    def test_dominant_band(self, extractor):
        sr = 22050
        buffer = AudioBuffer(generate_sine_wave(100.0, 1.0, sr), sr)
        feats = extractor.beat_features(buffer, [0.0])
        # 100 Hz sits in the 63-200 Hz band
        assert int(np.argmax(feats[0])) == 1

    def test_window_past_end_is_zero(self, extractor):
        sr = 22050
        buffer = AudioBuffer(generate_sine_wave(440.0, 1.0, sr), sr)
        feats = extractor.beat_features(buffer, [0.0, 5.0])
        assert np.linalg.norm(feats[0]) == pytest.approx(1.0)
        assert np.all(feats[1] == 0)

    def test_silent_window_is_zero(self, extractor):
        sr = 22050
        audio = np.concatenate([np.zeros(sr), generate_sine_wave(440.0, 1.0, sr)])
        feats = extractor.beat_features(AudioBuffer(audio, sr), [0.0, 1.0])
        assert np.all(feats[0] == 0)
        assert np.linalg.norm(feats[1]) == pytest.approx(1.0)

    def test_no_onsets(self, extractor):
        sr = 22050
        feats = extractor.beat_features(AudioBuffer(np.zeros(sr), sr), [])
        assert feats.shape == (0, 8)

    def test_stereo_input(self, extractor):
        sr = 22050
        tone = generate_sine_wave(1500.0, 1.0, sr)
        feats = extractor.beat_features(AudioBuffer(np.stack([tone, tone]), sr), [0.0])
        # 1500 Hz sits in the 1000-2000 Hz band
        assert int(np.argmax(feats[0])) == 4

    def test_beat_features_file(self, extractor, tmp_path):
        import soundfile as sf

        sr = 22050
        path = tmp_path / "tone.wav"
        sf.write(str(path), generate_sine_wave(440.0, 2.0, sr), sr)
        feats = extractor.beat_features_file(path, [0.0, 1.0])
        assert feats.shape == (2, 8)
        assert np.allclose(np.linalg.norm(feats, axis=1), 1.0)

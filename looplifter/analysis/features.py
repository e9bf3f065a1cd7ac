"""Per-beat spectral feature vectors for structure analysis."""

import numpy as np
from pathlib import Path
from typing import Optional, Sequence, Union

from ..core import AudioBuffer
from ..core.constants import (
    DEFAULT_TEMPO,
    FEATURE_BAND_EDGES,
    FEATURE_N_FFT,
    NORM_EPSILON,
)
from .context import AnalysisContext
from .dsp import l2_normalize, log_band_energies, magnitude_spectrum


class FeatureExtractor:
    """Extracts log-spaced band energy vectors, one per beat window."""

    def __init__(
        self,
        n_fft: int = FEATURE_N_FFT,
        band_edges: Sequence[float] = FEATURE_BAND_EDGES,
        fallback_tempo: float = DEFAULT_TEMPO,
        context: Optional[AnalysisContext] = None,
    ):
        """
        Initialize FeatureExtractor.

        Args:
            n_fft: FFT window size
            band_edges: Band boundaries in Hz (len(band_edges) - 1 bands)
            fallback_tempo: Tempo used to size the window after the last onset
            context: Analysis context providing windows and decoded audio
        """
        self.n_fft = n_fft
        self.band_edges = list(band_edges)
        self.fallback_tempo = fallback_tempo
        self.context = context or AnalysisContext()

    @property
    def n_bands(self) -> int:
        return len(self.band_edges) - 1

    def band_vector(self, samples: np.ndarray, sample_rate: int) -> np.ndarray:
        """
        Un-normalised band energies of one window.

        Args:
            samples: Mono window (padded or truncated to ``n_fft``)
            sample_rate: Sample rate

        Returns:
            Band energies [n_bands]
        """
        magnitudes = magnitude_spectrum(samples, self.n_fft, self.context.window(self.n_fft))
        power = magnitudes ** 2
        return log_band_energies(power, sample_rate, self.n_fft, self.band_edges)

    def beat_features(
        self,
        buffer: AudioBuffer,
        beat_onsets: Sequence[float],
    ) -> np.ndarray:
        """
        One L2-normalised feature vector per beat onset.

        ``features[i]`` describes ``[beat_onsets[i], beat_onsets[i + 1])``;
        the final window spans one beat at ``fallback_tempo``. Windows that
        start beyond the buffer come back as zero vectors.

        Args:
            buffer: Decoded audio
            beat_onsets: Sorted onset times in seconds

        Returns:
            Feature series [n_onsets, n_bands]
        """
        features = np.zeros((len(beat_onsets), self.n_bands), dtype=np.float64)
        if len(beat_onsets) == 0:
            return features

        mono = buffer.to_mono()
        sr = buffer.sample_rate
        fallback = 60.0 / self.fallback_tempo

        for i, onset in enumerate(beat_onsets):
            next_onset = beat_onsets[i + 1] if i + 1 < len(beat_onsets) else onset + fallback

            start = int(onset * sr)
            end = min(len(mono), int(next_onset * sr))
            if start < 0 or start >= len(mono) or end <= start:
                continue

            vector = self.band_vector(mono[start:end], sr)
            features[i] = l2_normalize(vector, NORM_EPSILON)

        return features

    def beat_features_file(
        self,
        path: Union[str, Path],
        beat_onsets: Sequence[float],
    ) -> np.ndarray:
        """Decode ``path`` once through the context and extract features."""
        if len(beat_onsets) == 0:
            return np.zeros((0, self.n_bands))
        return self.beat_features(self.context.buffer(path), beat_onsets)

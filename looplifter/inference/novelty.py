"""Novelty curves for fill and transition detection."""

import numpy as np
from typing import List

from ..analysis.dsp import euclidean_distance
from ..core.constants import (
    NOVELTY_KERNEL_SIZE,
    NOVELTY_MIN_DISTANCE,
    NOVELTY_THRESHOLD,
)


class NoveltyDetector:
    """Scores how much each segment differs from its neighbours."""

    def __init__(
        self,
        kernel_size: int = NOVELTY_KERNEL_SIZE,
        threshold: float = NOVELTY_THRESHOLD,
        min_distance: int = NOVELTY_MIN_DISTANCE,
    ):
        self.kernel_size = kernel_size
        self.threshold = threshold
        self.min_distance = min_distance

    def novelty_curve(self, features: np.ndarray) -> np.ndarray:
        """
        Mean distance from each segment to the ``kernel_size`` segments on
        either side.

        The first and last ``kernel_size`` segments stay at 0. A series of
        ``2 * kernel_size`` segments or fewer yields an empty curve.

        Args:
            features: Feature series [n_segments, n_features]

        Returns:
            Novelty per segment [n_segments]
        """
        features = np.asarray(features, dtype=np.float64)
        n = len(features)
        k = self.kernel_size
        if n <= 2 * k:
            return np.zeros(0)

        novelty = np.zeros(n, dtype=np.float64)
        for i in range(k, n - k):
            before = sum(euclidean_distance(features[i], features[i - j - 1]) for j in range(k))
            after = sum(euclidean_distance(features[i], features[i + j + 1]) for j in range(k))
            novelty[i] = (before + after) / (2 * k)
        return novelty

    def find_peaks(self, curve: np.ndarray) -> List[int]:
        """
        Local maxima above ``threshold``, at least ``min_distance`` apart.

        When a new peak falls within ``min_distance`` of the last accepted
        one, the higher of the two is kept.
        """
        peaks: List[int] = []
        for i in range(1, len(curve) - 1):
            value = curve[i]
            if not (value > self.threshold and value > curve[i - 1] and value > curve[i + 1]):
                continue

            if peaks and i - peaks[-1] < self.min_distance:
                if value > curve[peaks[-1]]:
                    peaks[-1] = i
                continue
            peaks.append(i)
        return peaks

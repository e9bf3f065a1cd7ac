"""Self-similarity matrices and repeating pattern detection."""

import numpy as np
from dataclasses import dataclass
from typing import List, Sequence

from ..analysis.dsp import cosine_similarity
from ..core.constants import PATTERN_LENGTHS, PATTERN_THRESHOLD


@dataclass(frozen=True)
class DetectedPattern:
    """A block of segments that repeats back to back."""

    start_segment: int
    length_segments: int
    repeat_count: int
    average_similarity: float

    @property
    def is_main_loop(self) -> bool:
        return self.repeat_count >= 4 and self.length_segments >= 2

    @property
    def end_segment(self) -> int:
        """Exclusive index after the first occurrence."""
        return self.start_segment + self.length_segments


class SelfSimilarityAnalyzer:
    """Finds repetition in a per-segment feature series."""

    def __init__(
        self,
        threshold: float = PATTERN_THRESHOLD,
        pattern_lengths: Sequence[int] = PATTERN_LENGTHS,
        min_length: int = 2,
    ):
        """
        Initialize SelfSimilarityAnalyzer.

        Args:
            threshold: Mean block similarity that counts as a repeat
            pattern_lengths: Block sizes to try, largest first
            min_length: Series must be longer than this to be searched
        """
        self.threshold = threshold
        self.pattern_lengths = list(pattern_lengths)
        self.min_length = min_length

    @staticmethod
    def similarity_matrix(features: np.ndarray) -> np.ndarray:
        """
        Cosine similarity between every pair of feature vectors.

        Args:
            features: Feature series [n_segments, n_features]

        Returns:
            Symmetric matrix [n_segments, n_segments]; pairs involving a
            zero vector are 0
        """
        features = np.asarray(features, dtype=np.float64)
        n = len(features)
        matrix = np.zeros((n, n), dtype=np.float64)
        for i in range(n):
            for j in range(i, n):
                value = cosine_similarity(features[i], features[j])
                matrix[i, j] = value
                matrix[j, i] = value
        return matrix

    def _block_similarity(self, matrix: np.ndarray, a: int, b: int, length: int) -> float:
        return float(np.mean([matrix[a + k, b + k] for k in range(length)]))

    def find_repeating_patterns(self, matrix: np.ndarray) -> List[DetectedPattern]:
        """
        Runs of identical consecutive blocks.

        For each block length, blocks starting at multiples of the length
        are compared with the blocks that follow them; the run ends at the
        first mismatch. Runs of two or more are kept. The result is sorted
        by repeat count, highest first; ties keep discovery order (longer
        blocks, then earlier starts).

        Args:
            matrix: Self-similarity matrix

        Returns:
            Detected patterns
        """
        n = len(matrix)
        if n <= self.min_length:
            return []

        patterns = []
        for length in self.pattern_lengths:
            if length > n // 2:
                continue

            for start in range(0, n - length, length):
                repeat_count = 1
                scores = []
                current = start + length

                while current + length <= n:
                    score = self._block_similarity(matrix, start, current, length)
                    if score < self.threshold:
                        break
                    scores.append(score)
                    repeat_count += 1
                    current += length

                if repeat_count >= 2:
                    patterns.append(
                        DetectedPattern(
                            start_segment=start,
                            length_segments=length,
                            repeat_count=repeat_count,
                            average_similarity=float(np.mean(scores)),
                        )
                    )

        patterns.sort(key=lambda p: p.repeat_count, reverse=True)
        return patterns

    def analyze(self, features: np.ndarray) -> List[DetectedPattern]:
        """Similarity matrix and pattern search in one call."""
        return self.find_repeating_patterns(self.similarity_matrix(features))

"""Onset quantization - Snap onset times to a rhythmic grid."""

import numpy as np
from enum import Enum
from typing import Sequence


class GridDivision(Enum):
    """Musical grid division for quantization."""

    QUARTER = "1/4"
    EIGHTH = "1/8"
    SIXTEENTH = "1/16"
    THIRTY_SECOND = "1/32"

    @property
    def divisions_per_beat(self) -> int:
        return {
            GridDivision.QUARTER: 1,
            GridDivision.EIGHTH: 2,
            GridDivision.SIXTEENTH: 4,
            GridDivision.THIRTY_SECOND: 8,
        }[self]


class Quantizer:
    """Quantize onset times to a tempo grid."""

    def __init__(
        self,
        tempo: float = 120.0,
        division: GridDivision = GridDivision.EIGHTH,
        strength: float = 1.0,
        enabled: bool = True,
    ):
        """
        Initialize Quantizer.

        Args:
            tempo: Tempo in BPM
            division: Grid resolution
            strength: 0.0 leaves onsets alone, 1.0 snaps fully
            enabled: Pass onsets through unchanged when False
        """
        self.tempo = tempo
        self.division = division
        self.strength = float(np.clip(strength, 0.0, 1.0))
        self.enabled = enabled

    @property
    def beat_duration(self) -> float:
        """Duration of one beat in seconds."""
        return 60.0 / self.tempo

    @property
    def grid_duration(self) -> float:
        """Duration of one grid unit in seconds."""
        return self.beat_duration / self.division.divisions_per_beat

    @property
    def is_active(self) -> bool:
        return self.enabled and self.tempo > 0 and self.strength > 0

    def grid_positions(self, duration: float) -> np.ndarray:
        """All grid positions from 0 up to and including ``duration``."""
        if self.tempo <= 0:
            return np.zeros(0)
        count = int(np.floor(duration / self.grid_duration + 1e-9)) + 1
        return np.arange(count) * self.grid_duration

    def quantize_onset(self, onset: float, duration: float) -> float:
        """Move ``onset`` toward the nearest grid position by ``strength``."""
        if not self.is_active:
            return onset
        grid = self.grid_positions(duration)
        if len(grid) == 0:
            return onset
        nearest = grid[int(np.argmin(np.abs(grid - onset)))]
        return float(onset + (nearest - onset) * self.strength)

    def quantize(self, onsets: Sequence[float], duration: float) -> np.ndarray:
        """
        Quantize a list of onsets.

        Args:
            onsets: Onset times in seconds
            duration: Track duration; grid positions stop here

        Returns:
            Quantized onset times
        """
        return np.array([self.quantize_onset(t, duration) for t in onsets], dtype=np.float64)

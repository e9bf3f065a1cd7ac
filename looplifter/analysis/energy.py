"""Locate where a stem's main energetic section begins."""

import warnings
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..core import AudioBuffer, DecodeError
from ..core.constants import ENERGY_CHUNK_DURATION, ENERGY_WINDOW_DURATION
from .context import AnalysisContext


class EnergyOnsetLocator:
    """Finds the loudest sustained window in a full track."""

    def __init__(
        self,
        window_duration: float = ENERGY_WINDOW_DURATION,
        chunk_duration: float = ENERGY_CHUNK_DURATION,
    ):
        """
        Initialize EnergyOnsetLocator.

        Args:
            window_duration: Length of the span being searched for (seconds)
            chunk_duration: Resolution of the peak envelope (seconds)
        """
        if chunk_duration <= 0 or window_duration <= 0:
            raise ValueError("window_duration and chunk_duration must be positive")
        self.window_duration = window_duration
        self.chunk_duration = chunk_duration

    @property
    def chunks_per_window(self) -> int:
        return max(1, int(round(self.window_duration / self.chunk_duration)))

    def chunk_peaks(self, buffer: AudioBuffer) -> np.ndarray:
        """Max absolute sample per chunk, taken across all channels."""
        samples = np.abs(np.atleast_2d(buffer.samples))
        chunk_size = max(1, int(self.chunk_duration * buffer.sample_rate))
        n = samples.shape[-1]
        if n == 0:
            return np.zeros(0)

        per_sample = samples.max(axis=0)
        starts = np.arange(0, n, chunk_size)
        return np.maximum.reduceat(per_sample, starts)

    def locate(self, buffer: AudioBuffer) -> float:
        """
        Start time of the window with the highest mean chunk peak.

        Windows start at every chunk index. When the track is shorter than
        one window, the single window covers whatever chunks exist.

        Args:
            buffer: Decoded stem, mono or multi-channel

        Returns:
            Window start time in seconds
        """
        peaks = self.chunk_peaks(buffer)
        if len(peaks) == 0:
            return 0.0

        width = min(self.chunks_per_window, len(peaks))
        window_count = max(1, len(peaks) - width + 1)

        # Running sum gives every window mean in one pass
        cumulative = np.concatenate(([0.0], np.cumsum(peaks, dtype=np.float64)))
        means = (cumulative[width:width + window_count] - cumulative[:window_count]) / width

        best = int(np.argmax(means))
        chunk_size = max(1, int(self.chunk_duration * buffer.sample_rate))
        return best * chunk_size / buffer.sample_rate

    def locate_file(
        self,
        path: Union[str, Path],
        context: Optional[AnalysisContext] = None,
    ) -> float:
        """
        Locate the energy onset of an audio file.

        A file that cannot be decoded yields 0.0 and a warning rather than
        an exception.
        """
        context = context or AnalysisContext()
        try:
            buffer = context.buffer(path)
        except (DecodeError, FileNotFoundError, ValueError) as e:
            warnings.warn(f"Energy onset analysis failed for {path}: {e}; using 0.0")
            return 0.0
        return self.locate(buffer)

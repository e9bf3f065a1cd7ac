"""Monophonic pitch detection with YIN (de Cheveigné & Kawahara, 2002)."""

import math
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..core import DecodeError
from ..core.constants import (
    MIDI_MAX,
    MIDI_MIN,
    PITCH_MAX_FREQ,
    PITCH_MIN_CONFIDENCE,
    PITCH_MIN_FREQ,
    PITCH_NAMES,
    YIN_FMAX,
    YIN_FMIN,
    YIN_MAX_SAMPLES,
    YIN_MIN_SAMPLES,
    YIN_THRESHOLD,
)
from .context import AnalysisContext
from .dsp import parabolic_interpolation


@dataclass(frozen=True)
class PitchResult:
    """Pitch of a single window."""

    frequency: float  # Hz
    note_index: int  # 0-127, A4 = 69
    note_name: str  # e.g. "A4", "D#3"
    cents_offset: float  # -50 to +50
    confidence: float  # 0.0 to 1.0


def freq_to_note_index(freq: float) -> int:
    """Nearest semitone index (A4 = 440 Hz = 69), clamped to 0-127."""
    note = 69.0 + 12.0 * np.log2(freq / 440.0)
    return int(max(MIDI_MIN, min(MIDI_MAX, math.floor(note + 0.5))))


def note_index_to_freq(index: int) -> float:
    return 440.0 * (2.0 ** ((index - 69) / 12.0))


def note_name(index: int) -> str:
    """Get note name with octave (e.g., 'C4', 'A#3')."""
    octave = (index // 12) - 1
    return f"{PITCH_NAMES[index % 12]}{octave}"


def cents_offset(freq: float, index: int) -> float:
    """Deviation of ``freq`` from the exact pitch of ``index`` in cents."""
    return float(1200.0 * np.log2(freq / note_index_to_freq(index)))


class PitchDetector:
    """YIN estimator for the fundamental of a bounded window."""

    def __init__(
        self,
        threshold: float = YIN_THRESHOLD,
        min_confidence: float = PITCH_MIN_CONFIDENCE,
        fmin: float = YIN_FMIN,
        fmax: float = YIN_FMAX,
        max_samples: int = YIN_MAX_SAMPLES,
        context: Optional[AnalysisContext] = None,
    ):
        """
        Initialize PitchDetector.

        Args:
            threshold: CMNDF dip that counts as periodic
            min_confidence: Results below this are treated as atonal
            fmin: Lowest detectable frequency, sets tau_max
            fmax: Highest detectable frequency, sets tau_min
            max_samples: Only the first max_samples of a window are analysed
            context: Analysis context used for file reads
        """
        self.threshold = threshold
        self.min_confidence = min_confidence
        self.fmin = fmin
        self.fmax = fmax
        self.max_samples = max_samples
        self.context = context or AnalysisContext()

    def lag_range(self, n_samples: int, sample_rate: int):
        """(tau_min, tau_max) for a buffer of ``n_samples``."""
        tau_min = math.floor(sample_rate / self.fmax + 0.5)
        tau_max = min(n_samples // 2, math.floor(sample_rate / self.fmin + 0.5))
        return tau_min, tau_max

    @staticmethod
    def difference(buf: np.ndarray, tau_max: int) -> np.ndarray:
        """
        YIN difference function d(tau) for tau in [0, tau_max).

        Every lag compares the same ``len(buf) - tau_max`` leading samples.
        """
        d = np.zeros(tau_max, dtype=np.float64)
        width = len(buf) - tau_max
        if width <= 0:
            return d
        head = buf[:width]
        for tau in range(1, tau_max):
            diff = buf[tau:tau + width] - head
            d[tau] = np.dot(diff, diff)
        return d

    @staticmethod
    def cumulative_mean_normalized(d: np.ndarray) -> np.ndarray:
        """
        d'(tau) = d(tau) * tau / sum_{j=1..tau} d(j), with d'(0) = 1.

        Lags whose running sum is still zero are set to 1.
        """
        cmndf = np.ones_like(d)
        if len(d) < 2:
            return cmndf
        running = np.cumsum(d[1:])
        taus = np.arange(1, len(d), dtype=np.float64)
        nonzero = running > 0
        values = np.ones_like(running)
        values[nonzero] = d[1:][nonzero] * taus[nonzero] / running[nonzero]
        cmndf[1:] = values
        return cmndf

    def _pick_lag(self, cmndf: np.ndarray, tau_min: int, tau_max: int) -> int:
        for tau in range(tau_min, tau_max):
            if cmndf[tau] < self.threshold:
                while tau + 1 < tau_max and cmndf[tau + 1] < cmndf[tau]:
                    tau += 1
                return tau
        return tau_min + int(np.argmin(cmndf[tau_min:tau_max]))

    def detect(self, samples: np.ndarray, sample_rate: int) -> Optional[PitchResult]:
        """
        Estimate the pitch of a mono window.

        Args:
            samples: Mono samples (at least 256)
            sample_rate: Sample rate

        Returns:
            PitchResult, or None when the window is too short, atonal, or
            outside 20-4000 Hz
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim > 1:
            samples = samples.mean(axis=0)
        if len(samples) < YIN_MIN_SAMPLES:
            return None

        buf = samples[:self.max_samples]
        tau_min, tau_max = self.lag_range(len(buf), sample_rate)
        if tau_max <= tau_min:
            return None

        cmndf = self.cumulative_mean_normalized(self.difference(buf, tau_max))
        best_tau = self._pick_lag(cmndf, tau_min, tau_max)

        # Refine within the searched lags only
        search = cmndf[tau_min:tau_max]
        tau_interp = tau_min + parabolic_interpolation(search, best_tau - tau_min)

        confidence = float(np.clip(1.0 - cmndf[best_tau], 0.0, 1.0))
        if confidence < self.min_confidence or tau_interp <= 0:
            return None

        frequency = sample_rate / tau_interp
        if not PITCH_MIN_FREQ <= frequency <= PITCH_MAX_FREQ:
            return None

        index = freq_to_note_index(frequency)
        return PitchResult(
            frequency=float(frequency),
            note_index=index,
            note_name=note_name(index),
            cents_offset=cents_offset(frequency, index),
            confidence=confidence,
        )

    def detect_file(
        self,
        path: Union[str, Path],
        start: float,
        duration: float,
    ) -> Optional[PitchResult]:
        """
        Pitch of ``[start, start + duration)`` in an audio file.

        Only the requested range is decoded. A decode failure is reported
        as a warning and treated as "no pitch".
        """
        try:
            window = self.context.read_window(path, start, duration)
        except (DecodeError, FileNotFoundError, ValueError) as e:
            warnings.warn(f"Pitch detection skipped for {path} @ {start:.2f}s: {e}")
            return None
        return self.detect(window.to_mono(), window.sample_rate)

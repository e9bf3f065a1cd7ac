"""Tempo and onset tracking.

The extraction core only needs a BPM estimate and a list of onset times;
this module provides a librosa-backed tracker for when the caller has none.
"""

import numpy as np
import librosa
from dataclasses import dataclass, field
from typing import Sequence

from ..core import AudioBuffer
from ..core.constants import BEATS_PER_BAR, DEFAULT_TEMPO


@dataclass
class TempoInfo:
    """Container for tempo analysis results."""

    bpm: float
    onset_times: np.ndarray  # Onset positions in seconds, sorted and unique
    beat_times: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        if self.bpm <= 0:
            raise ValueError(f"Tempo must be positive, got {self.bpm}")
        self.onset_times = normalize_onsets(self.onset_times)

    @property
    def seconds_per_beat(self) -> float:
        return 60.0 / self.bpm

    @property
    def seconds_per_bar(self) -> float:
        return BEATS_PER_BAR * self.seconds_per_beat


def normalize_onsets(onsets: Sequence[float]) -> np.ndarray:
    """Sort and de-duplicate onset times, dropping negatives and NaNs."""
    arr = np.asarray(onsets, dtype=np.float64).ravel()
    arr = arr[np.isfinite(arr) & (arr >= 0)]
    return np.unique(arr)


class TempoAnalyzer:
    """Detect tempo, beats and onsets from audio."""

    def __init__(self, hop_length: int = 512, backtrack: bool = True):
        self.hop_length = hop_length
        self.backtrack = backtrack

    def detect(self, audio: np.ndarray, sr: int):
        """
        Detect tempo and beat positions.

        Args:
            audio: Mono audio array
            sr: Sample rate

        Returns:
            Tuple of (tempo in BPM, beat times in seconds)
        """
        tempo, beats = librosa.beat.beat_track(
            y=audio,
            sr=sr,
            hop_length=self.hop_length,
        )

        beat_times = librosa.frames_to_time(beats, sr=sr, hop_length=self.hop_length)

        # Handle tempo as array (newer librosa versions)
        if isinstance(tempo, np.ndarray):
            tempo = float(tempo[0]) if len(tempo) > 0 else DEFAULT_TEMPO
        if not tempo or tempo <= 0:
            tempo = DEFAULT_TEMPO

        return float(tempo), beat_times

    def detect_onsets(self, audio: np.ndarray, sr: int) -> np.ndarray:
        """Onset times in seconds from spectral flux."""
        onset_env = librosa.onset.onset_strength(
            y=audio, sr=sr, hop_length=self.hop_length
        )
        onset_frames = librosa.onset.onset_detect(
            onset_envelope=onset_env,
            sr=sr,
            hop_length=self.hop_length,
            backtrack=self.backtrack,
        )
        return librosa.frames_to_time(onset_frames, sr=sr, hop_length=self.hop_length)

    def analyze(self, buffer: AudioBuffer) -> TempoInfo:
        """
        Perform full tempo and onset analysis.

        Args:
            buffer: Decoded stem

        Returns:
            TempoInfo with BPM, onsets and beats
        """
        mono = np.asarray(buffer.to_mono(), dtype=np.float32)
        tempo, beat_times = self.detect(mono, buffer.sample_rate)
        onsets = self.detect_onsets(mono, buffer.sample_rate)

        return TempoInfo(
            bpm=tempo,
            onset_times=onsets,
            beat_times=beat_times,
        )

"""Decoded audio container and stem types."""

from dataclasses import dataclass
from enum import Enum
from typing import List

import numpy as np


class StemType(Enum):
    """Stems produced by source separation."""

    DRUMS = "drums"
    BASS = "bass"
    VOCALS = "vocals"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def short_code(self) -> str:
        """Three-letter code used in file names."""
        return {
            StemType.DRUMS: "DRM",
            StemType.BASS: "BAS",
            StemType.VOCALS: "VOX",
            StemType.OTHER: "OTH",
        }[self]

    @property
    def is_percussive(self) -> bool:
        return self is StemType.DRUMS

    @classmethod
    def melodic_stems(cls) -> List["StemType"]:
        """Return stems that typically contain pitched content."""
        return [cls.BASS, cls.VOCALS, cls.OTHER]


@dataclass(frozen=True)
class AudioBuffer:
    """Fully decoded audio held in memory.

    ``samples`` is either mono ``(n,)`` or multi-channel ``(channels, n)``,
    the same shape convention ``librosa.load(mono=False)`` returns.
    """

    samples: np.ndarray
    sample_rate: int

    @property
    def n_samples(self) -> int:
        return int(self.samples.shape[-1])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.n_samples / self.sample_rate

    @property
    def channels(self) -> int:
        return 1 if self.samples.ndim == 1 else int(self.samples.shape[0])

    @property
    def is_stereo(self) -> bool:
        return self.channels == 2

    def to_mono(self) -> np.ndarray:
        """Downmix to mono by averaging channels."""
        if self.samples.ndim == 1:
            return self.samples
        return np.mean(self.samples, axis=0)

    def mono(self) -> "AudioBuffer":
        return AudioBuffer(self.to_mono(), self.sample_rate)

    def time_to_sample(self, time: float) -> int:
        return int(time * self.sample_rate)

    def slice(self, start: float, end: float) -> np.ndarray:
        """Mono samples in ``[start, end)`` seconds, clipped to the buffer."""
        mono = self.to_mono()
        lo = max(0, self.time_to_sample(start))
        hi = min(len(mono), self.time_to_sample(end))
        if hi <= lo:
            return mono[:0]
        return mono[lo:hi]

    def peaks(self, target: int = 500) -> np.ndarray:
        """Downsampled absolute peaks for waveform previews."""
        mono = np.abs(self.to_mono())
        if len(mono) == 0:
            return mono
        stride = max(1, len(mono) // target)
        starts = np.arange(0, len(mono), stride)
        return np.maximum.reduceat(mono, starts)

    @property
    def rms_energy(self) -> float:
        mono = self.to_mono()
        if len(mono) == 0:
            return 0.0
        return float(np.sqrt(np.mean(mono ** 2)))

    def is_silent(self, threshold: float = 0.001) -> bool:
        """Check if the buffer is effectively silent."""
        return self.rms_energy < threshold

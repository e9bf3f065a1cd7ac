"""Rule-based drum hit classification from spectral features.

Each hit gets a 2048-point spectrum split into low/mid/high bands, a
spectral centroid and an attack time. A fixed decision list, ordered from
most to least specific, maps those features to a drum type. Overlapping
rules are resolved by order, so the list must not be re-sorted.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Sequence, Union

import numpy as np

from ..analysis.context import AnalysisContext
from ..analysis.dsp import band_energy, bin_frequencies, magnitude_spectrum
from ..core import AudioBuffer
from ..core.constants import (
    ATTACK_PEAK_FRACTION,
    CLASSIFIER_N_FFT,
    HIGH_BAND,
    LOW_BAND,
    MID_BAND,
    MIN_HIT_SAMPLES,
)
from .hits import IsolatedHit


class DrumType(Enum):
    """Types of drum hits."""

    KICK = "Kick"
    SNARE = "Snare"
    HIHAT = "HiHat"
    TOM = "Tom"
    CLAP = "Clap"
    RIM = "Rim"
    CYMBAL = "Cymbal"
    PERCUSSION = "Percussion"


@dataclass(frozen=True)
class ClassifiedHit:
    """A hit with its drum type."""

    hit: IsolatedHit
    drum_type: DrumType
    confidence: float


@dataclass(frozen=True)
class HitFeatures:
    """Spectral summary of a single hit."""

    low_ratio: float
    mid_ratio: float
    high_ratio: float
    centroid: float  # Hz
    attack_time: float  # seconds
    duration: float  # seconds


class DrumRule(NamedTuple):
    predicate: Callable[[HitFeatures], bool]
    drum_type: DrumType
    confidence: Callable[[HitFeatures], float]


DRUM_RULES: List[DrumRule] = [
    DrumRule(
        lambda f: f.centroid < 250 and f.low_ratio > 0.45,
        DrumType.KICK,
        lambda f: min(1.0, f.low_ratio * 1.6),
    ),
    DrumRule(
        lambda f: f.centroid < 600 and f.low_ratio > 0.28 and f.duration > 0.12,
        DrumType.TOM,
        lambda f: min(1.0, (f.low_ratio + f.mid_ratio) * 0.9),
    ),
    DrumRule(
        lambda f: 800 < f.centroid < 3500 and f.attack_time < 0.004 and f.duration < 0.12,
        DrumType.CLAP,
        lambda f: 0.75,
    ),
    DrumRule(
        lambda f: 500 < f.centroid < 2000 and f.duration < 0.09,
        DrumType.RIM,
        lambda f: 0.65,
    ),
    DrumRule(
        lambda f: 200 <= f.centroid < 2000 and f.mid_ratio > 0.30,
        DrumType.SNARE,
        lambda f: min(1.0, f.mid_ratio * 1.5),
    ),
    DrumRule(
        lambda f: f.centroid > 3000 and f.duration > 0.18,
        DrumType.CYMBAL,
        lambda f: min(1.0, f.high_ratio * 1.6),
    ),
    DrumRule(
        lambda f: f.high_ratio > 0.40 or f.centroid > 4000,
        DrumType.HIHAT,
        lambda f: min(1.0, f.high_ratio * 1.5 + 0.2),
    ),
]

FALLBACK_CONFIDENCE = 0.4
INSUFFICIENT_SIGNAL_CONFIDENCE = 0.3


def apply_rules(features: HitFeatures, rules: Sequence[DrumRule] = DRUM_RULES):
    """First matching rule wins; Percussion when none match."""
    for rule in rules:
        if rule.predicate(features):
            return rule.drum_type, float(rule.confidence(features))
    return DrumType.PERCUSSION, FALLBACK_CONFIDENCE


def attack_time(samples: np.ndarray, sample_rate: int, fraction: float = ATTACK_PEAK_FRACTION) -> float:
    """Seconds until the signal first reaches ``fraction`` of its peak."""
    magnitude = np.abs(samples)
    if len(magnitude) == 0:
        return 0.0
    peak = magnitude.max()
    if peak <= 0:
        return 0.0
    index = int(np.argmax(magnitude >= fraction * peak))
    return index / sample_rate


class DrumClassifier:
    """Classify isolated drum hits by spectral shape."""

    def __init__(
        self,
        n_fft: int = CLASSIFIER_N_FFT,
        min_samples: int = MIN_HIT_SAMPLES,
        rules: Sequence[DrumRule] = DRUM_RULES,
        context: Optional[AnalysisContext] = None,
    ):
        """
        Initialize DrumClassifier.

        Args:
            n_fft: FFT size for the per-hit spectrum
            min_samples: Hits shorter than this are not analysed
            rules: Ordered decision list
            context: Analysis context providing windows and decoded audio
        """
        self.n_fft = n_fft
        self.min_samples = min_samples
        self.rules = list(rules)
        self.context = context or AnalysisContext()

    def extract_features(
        self,
        samples: np.ndarray,
        sample_rate: int,
        duration: float,
    ) -> Optional[HitFeatures]:
        """
        Spectral features of one hit, or None when its bands hold no energy.
        """
        magnitudes = magnitude_spectrum(samples, self.n_fft, self.context.window(self.n_fft))
        power = magnitudes ** 2
        freqs = bin_frequencies(self.n_fft, sample_rate)

        low = band_energy(power, freqs, LOW_BAND)
        mid = band_energy(power, freqs, MID_BAND)
        high = band_energy(power, freqs, HIGH_BAND)
        total = low + mid + high
        if total <= 0:
            return None

        in_range = (freqs >= LOW_BAND[0]) & (freqs <= HIGH_BAND[1])
        weights = magnitudes[in_range]
        weight_sum = float(np.sum(weights))
        centroid = float(np.sum(freqs[in_range] * weights) / weight_sum) if weight_sum > 0 else 0.0

        return HitFeatures(
            low_ratio=low / total,
            mid_ratio=mid / total,
            high_ratio=high / total,
            centroid=centroid,
            attack_time=attack_time(samples, sample_rate),
            duration=duration,
        )

    def classify_samples(
        self,
        samples: np.ndarray,
        sample_rate: int,
        duration: float,
    ):
        """
        Drum type and confidence for one hit's samples.

        Returns:
            Tuple of (DrumType, confidence)
        """
        if len(samples) < self.min_samples:
            return DrumType.PERCUSSION, INSUFFICIENT_SIGNAL_CONFIDENCE

        features = self.extract_features(samples, sample_rate, duration)
        if features is None:
            return DrumType.PERCUSSION, INSUFFICIENT_SIGNAL_CONFIDENCE

        return apply_rules(features, self.rules)

    def classify(
        self,
        buffer: AudioBuffer,
        hits: Sequence[IsolatedHit],
    ) -> List[ClassifiedHit]:
        """
        Classify every hit against one decoded stem.

        Args:
            buffer: Full decoded stem
            hits: Hit boundaries

        Returns:
            One ClassifiedHit per input hit, in input order
        """
        results = []
        for hit in hits:
            samples = buffer.slice(hit.start_time, hit.start_time + hit.duration)
            drum_type, confidence = self.classify_samples(
                samples, buffer.sample_rate, hit.duration
            )
            results.append(ClassifiedHit(hit=hit, drum_type=drum_type, confidence=confidence))
        return results

    def classify_file(
        self,
        path: Union[str, Path],
        hits: Sequence[IsolatedHit],
    ) -> List[ClassifiedHit]:
        """Decode ``path`` once through the context and classify all hits."""
        if not hits:
            return []
        return self.classify(self.context.buffer(path), hits)

"""Stem structure analysis - repeating loops and fills.

Bar-aligned feature vectors feed a self-similarity matrix (for loops that
repeat back to back) and a novelty curve (for fills and transitions).
"""

import numpy as np
from typing import List, Dict, Optional
from dataclasses import dataclass, field
from enum import Enum

from ..analysis.features import FeatureExtractor
from ..core import AudioBuffer, TimeRange
from ..core.constants import BEATS_PER_BAR
from .novelty import NoveltyDetector
from .similarity import DetectedPattern, SelfSimilarityAnalyzer


class SectionType(Enum):
    """Kinds of structural regions."""

    LOOP = "loop"
    FILL = "fill"


@dataclass
class Section:
    """Represents a region found by structure analysis."""

    type: SectionType
    onset: float  # Start time in seconds
    offset: float  # End time in seconds
    bars: int = 1
    label: str = ""
    confidence: float = 1.0
    is_main_loop: bool = False

    @property
    def duration(self) -> float:
        return self.offset - self.onset

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.onset, self.offset)


@dataclass
class StructureInfo:
    """Container for structure analysis results."""

    segment_times: np.ndarray = field(default_factory=lambda: np.zeros(0))
    features: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    similarity: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    patterns: List[DetectedPattern] = field(default_factory=list)
    novelty: np.ndarray = field(default_factory=lambda: np.zeros(0))
    novelty_peaks: List[int] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    form: str = ""  # one letter per segment, e.g. "AAAABAAA"
    repetition_map: Dict[int, List[int]] = field(default_factory=dict)

    @property
    def loops(self) -> List[Section]:
        return [s for s in self.sections if s.type == SectionType.LOOP]

    @property
    def fills(self) -> List[Section]:
        return [s for s in self.sections if s.type == SectionType.FILL]

    @property
    def main_pattern(self) -> Optional[DetectedPattern]:
        return self.patterns[0] if self.patterns else None


def segment_grid(
    duration: float,
    bpm: float,
    anchor: float = 0.0,
    beats_per_segment: int = BEATS_PER_BAR,
) -> np.ndarray:
    """
    Segment start times on a tempo grid passing through ``anchor``.

    The grid extends back to the earliest non-negative position and
    forward to the last position before ``duration``.
    """
    if bpm <= 0:
        raise ValueError(f"Tempo must be positive, got {bpm}")
    step = beats_per_segment * 60.0 / bpm
    first = anchor % step
    return np.arange(first, duration, step)


class StructureAnalyzer:
    """Analyze a stem for repeating loops and fills."""

    def __init__(
        self,
        feature_extractor: Optional[FeatureExtractor] = None,
        similarity: Optional[SelfSimilarityAnalyzer] = None,
        novelty: Optional[NoveltyDetector] = None,
        beats_per_segment: int = BEATS_PER_BAR,
        main_loop_confidence: float = 0.9,
    ):
        """
        Initialize StructureAnalyzer.

        Args:
            feature_extractor: Produces one vector per segment
            similarity: Self-similarity analyzer for pattern search
            novelty: Novelty detector for fill search
            beats_per_segment: Segment size in beats (4 = one bar)
            main_loop_confidence: Confidence floor for main-loop sections
        """
        self.feature_extractor = feature_extractor or FeatureExtractor()
        self.similarity = similarity or SelfSimilarityAnalyzer()
        self.novelty = novelty or NoveltyDetector()
        self.beats_per_segment = beats_per_segment
        self.main_loop_confidence = main_loop_confidence

    def analyze(
        self,
        buffer: AudioBuffer,
        bpm: float,
        anchor: float = 0.0,
    ) -> StructureInfo:
        """
        Analyze stem structure on a tempo grid.

        Args:
            buffer: Decoded stem
            bpm: Tempo in BPM
            anchor: A time the segment grid must pass through (e.g. the
                energy onset)

        Returns:
            StructureInfo with analysis results
        """
        times = segment_grid(buffer.duration, bpm, anchor, self.beats_per_segment)
        return self.analyze_segments(buffer, times, bpm)

    def analyze_segments(
        self,
        buffer: AudioBuffer,
        segment_times: np.ndarray,
        bpm: float,
    ) -> StructureInfo:
        """Analyze structure from explicit segment start times."""
        segment_times = np.asarray(segment_times, dtype=np.float64)
        if len(segment_times) == 0:
            return StructureInfo()

        features = self.feature_extractor.beat_features(buffer, segment_times)
        matrix = self.similarity.similarity_matrix(features)
        patterns = self.similarity.find_repeating_patterns(matrix)
        curve = self.novelty.novelty_curve(features)
        peaks = self.novelty.find_peaks(curve)

        segment_duration = self.beats_per_segment * 60.0 / bpm
        sections = self.detect_sections(
            patterns, peaks, curve, segment_times, segment_duration, buffer.duration
        )

        return StructureInfo(
            segment_times=segment_times,
            features=features,
            similarity=matrix,
            patterns=patterns,
            novelty=curve,
            novelty_peaks=peaks,
            sections=sections,
            form=self.identify_form(matrix),
            repetition_map={
                p.start_segment: [p.start_segment + k * p.length_segments for k in range(p.repeat_count)]
                for p in patterns
            },
        )

    def detect_sections(
        self,
        patterns: List[DetectedPattern],
        peaks: List[int],
        curve: np.ndarray,
        segment_times: np.ndarray,
        segment_duration: float,
        total_duration: float,
    ) -> List[Section]:
        """
        Turn patterns into loop sections and novelty peaks into fills.

        Sections that would run past ``total_duration`` are dropped.
        """
        sections = []

        for pattern in patterns:
            onset = float(segment_times[pattern.start_segment])
            offset = onset + pattern.length_segments * segment_duration
            if offset > total_duration:
                continue
            confidence = pattern.average_similarity
            if pattern.is_main_loop:
                confidence = max(confidence, self.main_loop_confidence)
            sections.append(
                Section(
                    type=SectionType.LOOP,
                    onset=onset,
                    offset=offset,
                    bars=pattern.length_segments * self.beats_per_segment // BEATS_PER_BAR or 1,
                    label=f"x{pattern.repeat_count}",
                    confidence=float(min(1.0, confidence)),
                    is_main_loop=pattern.is_main_loop,
                )
            )

        for fill_number, peak in enumerate(peaks, start=1):
            onset = float(segment_times[peak])
            offset = onset + segment_duration
            if offset > total_duration:
                continue
            sections.append(
                Section(
                    type=SectionType.FILL,
                    onset=onset,
                    offset=offset,
                    bars=max(1, self.beats_per_segment // BEATS_PER_BAR),
                    label=f"Fill {fill_number}",
                    confidence=float(min(1.0, curve[peak])),
                )
            )

        return sections

    def identify_form(self, matrix: np.ndarray) -> str:
        """
        Letter per segment; segments similar to an earlier letter's first
        segment reuse that letter.
        """
        letters = []
        representatives: List[int] = []
        threshold = self.similarity.threshold
        for i in range(len(matrix)):
            for label, rep in enumerate(representatives):
                if matrix[i, rep] >= threshold:
                    letters.append(chr(ord("A") + label % 26))
                    break
            else:
                representatives.append(i)
                letters.append(chr(ord("A") + (len(representatives) - 1) % 26))
        return "".join(letters)

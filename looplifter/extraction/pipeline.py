"""Per-stem sample extraction.

Runs the analysis components over one decoded stem and turns their output
into ExtractedSample records:

    onsets + tempo ─┐
    audio ──► energy onset ──► hits ──► drum type / pitch ──► Hit samples
                         └───► loop heuristic ─┐
    audio ──► bar features ──► patterns ───────┴► ranked Loop samples
                           └─► novelty peaks ───► Fill samples
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..analysis import (
    AnalysisContext,
    EnergyOnsetLocator,
    FeatureExtractor,
    PitchDetector,
    PitchResult,
    TempoAnalyzer,
    TempoInfo,
)
from ..core import AudioBuffer, ExtractedSample, SampleCategory, StemType
from ..core.constants import MAX_HITS_PER_STEM, MIN_GAP_AFTER, MIN_GAP_BEFORE
from ..inference import StructureAnalyzer, StructureInfo
from ..processing import Quantizer
from .classifier import ClassifiedHit, DrumClassifier
from .hits import HitIsolator, IsolatedHit
from .loops import (
    LoopCandidate,
    merge_loop_candidates,
    onset_density_loop,
    quantize_to_beat,
)

DEFAULT_HIT_CONFIDENCE = 0.8


@dataclass
class ExtractionConfig:
    """Tunables for one extraction pass."""

    max_hits: int = MAX_HITS_PER_STEM
    hit_strategy: str = "onsets"  # "onsets" (earliest after energy point) or "isolated"
    min_gap_before: float = MIN_GAP_BEFORE
    min_gap_after: float = MIN_GAP_AFTER
    loop_bars: int = 2
    max_loops: int = 4
    use_structure: bool = True
    pattern_threshold: float = 0.85
    novelty_threshold: float = 0.5
    classify_drums: bool = True
    detect_pitch: bool = True
    quantizer: Optional[Quantizer] = None

    def __post_init__(self):
        if self.hit_strategy not in ("onsets", "isolated"):
            raise ValueError(f"Unknown hit strategy: {self.hit_strategy}")


@dataclass
class StemAnalysis:
    """Everything learned about one stem."""

    stem_type: StemType
    tempo: float
    duration: float
    energy_onset: float
    hits: List[IsolatedHit] = field(default_factory=list)
    classified_hits: List[ClassifiedHit] = field(default_factory=list)
    pitches: Dict[float, PitchResult] = field(default_factory=dict)  # keyed by hit start
    loops: List[LoopCandidate] = field(default_factory=list)
    structure: Optional[StructureInfo] = None
    samples: List[ExtractedSample] = field(default_factory=list)

    def samples_by_category(self, category: SampleCategory) -> List[ExtractedSample]:
        return [s for s in self.samples if s.category == category]


class SampleExtractor:
    """Extract loops, hits and fills from separated stems."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        context: Optional[AnalysisContext] = None,
        tempo_analyzer: Optional[TempoAnalyzer] = None,
    ):
        """
        Initialize SampleExtractor.

        Args:
            config: Extraction settings
            context: Analysis context shared by all components of this extractor
            tempo_analyzer: Onset/tempo tracker used when none are supplied
        """
        self.config = config or ExtractionConfig()
        self.context = context or AnalysisContext()
        self.tempo_analyzer = tempo_analyzer or TempoAnalyzer()

        cfg = self.config
        self.energy_locator = EnergyOnsetLocator()
        self.hit_isolator = HitIsolator(
            min_gap_before=cfg.min_gap_before,
            min_gap_after=cfg.min_gap_after,
            max_hits=cfg.max_hits,
        )
        self.classifier = DrumClassifier(context=self.context)
        self.pitch_detector = PitchDetector(context=self.context)
        self.structure_analyzer = StructureAnalyzer(
            feature_extractor=FeatureExtractor(context=self.context),
        )
        self.structure_analyzer.similarity.threshold = cfg.pattern_threshold
        self.structure_analyzer.novelty.threshold = cfg.novelty_threshold

    # ---- hits -------------------------------------------------------------

    def find_hits(
        self,
        onsets: Sequence[float],
        duration: float,
        energy_onset: float,
    ) -> List[IsolatedHit]:
        """Hit ranges at or after the energy onset, per the configured strategy."""
        if self.config.hit_strategy == "isolated":
            after = [t for t in onsets if t >= energy_onset]
            return self.hit_isolator.find_isolated_hits(after, duration)[:self.config.max_hits]
        return self.hit_isolator.hits_from_onsets(onsets, duration, energy_onset)

    def _hit_samples(
        self,
        analysis: StemAnalysis,
        buffer: AudioBuffer,
        source: Optional[str],
    ) -> List[ExtractedSample]:
        stem = analysis.stem_type
        samples = []

        if stem.is_percussive and self.config.classify_drums:
            analysis.classified_hits = self.classifier.classify(buffer, analysis.hits)
            counts: Dict[str, int] = {}
            for classified in analysis.classified_hits:
                label = classified.drum_type.value
                counts[label] = counts.get(label, 0) + 1
                samples.append(
                    self._sample(
                        analysis,
                        name=f"{stem.display_name} {label} {counts[label]}",
                        category=SampleCategory.HIT,
                        start=classified.hit.start_time,
                        end=classified.hit.end_time,
                        confidence=classified.confidence,
                        source=source,
                    )
                )
            return samples

        for number, hit in enumerate(analysis.hits, start=1):
            pitch = None
            if self.config.detect_pitch and not stem.is_percussive:
                window = buffer.slice(hit.start_time, hit.end_time)
                pitch = self.pitch_detector.detect(window, buffer.sample_rate)
                if pitch is not None:
                    analysis.pitches[hit.start_time] = pitch

            name = f"{stem.display_name} Hit {number}"
            if pitch is not None:
                name = f"{name} ({pitch.note_name})"
            samples.append(
                self._sample(
                    analysis,
                    name=name,
                    category=SampleCategory.HIT,
                    start=hit.start_time,
                    end=hit.end_time,
                    confidence=DEFAULT_HIT_CONFIDENCE,
                    source=source,
                    note_name=pitch.note_name if pitch else None,
                )
            )
        return samples

    # ---- loops and fills --------------------------------------------------

    def _loop_candidates(
        self,
        analysis: StemAnalysis,
        buffer: AudioBuffer,
        onsets: Sequence[float],
    ) -> List[LoopCandidate]:
        candidates = []
        heuristic = onset_density_loop(
            onsets,
            analysis.duration,
            analysis.tempo,
            energy_onset=analysis.energy_onset,
            bars=self.config.loop_bars,
        )
        if heuristic is not None:
            candidates.append(heuristic)

        if self.config.use_structure:
            anchor = quantize_to_beat(analysis.energy_onset, analysis.tempo)
            analysis.structure = self.structure_analyzer.analyze(buffer, analysis.tempo, anchor)
            for section in analysis.structure.loops:
                candidates.append(
                    LoopCandidate(
                        time_range=section.time_range,
                        bars=section.bars,
                        confidence=section.confidence,
                        is_main_loop=section.is_main_loop,
                        source="similarity",
                    )
                )

        return merge_loop_candidates(candidates, max_loops=self.config.max_loops)

    def _loop_samples(self, analysis: StemAnalysis, source: Optional[str]) -> List[ExtractedSample]:
        samples = []
        stem = analysis.stem_type.display_name
        for number, loop in enumerate(analysis.loops, start=1):
            name = f"{stem} Loop" if number == 1 else f"{stem} Loop {number}"
            samples.append(
                self._sample(
                    analysis,
                    name=name,
                    category=SampleCategory.LOOP,
                    start=loop.time_range.start,
                    end=loop.time_range.end,
                    confidence=loop.confidence,
                    source=source,
                    bar_length=loop.bars,
                )
            )
        return samples

    def _fill_samples(self, analysis: StemAnalysis, source: Optional[str]) -> List[ExtractedSample]:
        if analysis.structure is None:
            return []
        stem = analysis.stem_type.display_name
        return [
            self._sample(
                analysis,
                name=f"{stem} {section.label}",
                category=SampleCategory.FILL,
                start=section.onset,
                end=section.offset,
                confidence=section.confidence,
                source=source,
                bar_length=section.bars,
            )
            for section in analysis.structure.fills
        ]

    def _sample(self, analysis: StemAnalysis, name, category, start, end, confidence,
                source=None, bar_length=None, note_name=None) -> ExtractedSample:
        return ExtractedSample(
            name=name,
            category=category,
            stem_type=analysis.stem_type,
            start_time=float(start),
            end_time=float(end),
            confidence=float(confidence),
            tempo=analysis.tempo,
            bar_length=bar_length,
            source=source,
            note_name=note_name,
        )

    # ---- entry points -----------------------------------------------------

    def extract(
        self,
        buffer: AudioBuffer,
        stem_type: StemType,
        tempo: TempoInfo,
        source: Optional[str] = None,
    ) -> StemAnalysis:
        """
        Extract samples from one decoded stem.

        Args:
            buffer: Decoded stem audio
            stem_type: Which stem this is
            tempo: BPM and onset times from the onset/tempo tracker
            source: Path recorded on every sample

        Returns:
            StemAnalysis with intermediate results and the sample list
        """
        onsets = tempo.onset_times
        if self.config.quantizer is not None:
            onsets = self.config.quantizer.quantize(onsets, buffer.duration)

        analysis = StemAnalysis(
            stem_type=stem_type,
            tempo=tempo.bpm,
            duration=buffer.duration,
            energy_onset=self.energy_locator.locate(buffer),
        )
        analysis.hits = self.find_hits(onsets, buffer.duration, analysis.energy_onset)

        samples = self._hit_samples(analysis, buffer, source)
        analysis.loops = self._loop_candidates(analysis, buffer, onsets)
        samples.extend(self._loop_samples(analysis, source))
        samples.extend(self._fill_samples(analysis, source))

        analysis.samples = samples
        return analysis

    def extract_file(
        self,
        path: Union[str, Path],
        stem_type: StemType,
        bpm: Optional[float] = None,
        onsets: Optional[Sequence[float]] = None,
    ) -> StemAnalysis:
        """
        Decode a stem and extract samples.

        Missing tempo or onsets are filled in by the tempo analyzer.

        Raises:
            DecodeError: If the stem cannot be decoded
        """
        buffer = self.context.buffer(path)
        if bpm is None or onsets is None:
            detected = self.tempo_analyzer.analyze(buffer)
            bpm = detected.bpm if bpm is None else bpm
            onsets = detected.onset_times if onsets is None else onsets
        tempo = TempoInfo(bpm=bpm, onset_times=onsets)
        return self.extract(buffer, stem_type, tempo, source=str(path))

    def extract_stems(
        self,
        stems: Dict[StemType, Union[str, Path]],
        bpm: Optional[float] = None,
        max_workers: int = 4,
    ) -> Dict[StemType, StemAnalysis]:
        """
        Extract from several stems concurrently.

        Each task decodes and analyses its own stem; the first decode
        failure propagates once all tasks have finished.
        """
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                stem: pool.submit(self.extract_file, path, stem, bpm)
                for stem, path in stems.items()
            }
        return {stem: future.result() for stem, future in futures.items()}

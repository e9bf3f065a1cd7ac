"""Extraction layer - From onsets and audio to sample regions.

- Hit isolation from onset gaps
- Spectral drum classification
- Loop candidates (onset density and self-similarity, merged and ranked)
- Per-stem extraction pipeline
"""

from .hits import HitIsolator, IsolatedHit
from .classifier import (
    DrumClassifier,
    DrumType,
    ClassifiedHit,
    HitFeatures,
    DrumRule,
    DRUM_RULES,
    apply_rules,
)
from .loops import (
    LoopCandidate,
    onset_density_loop,
    merge_loop_candidates,
    quantize_to_beat,
)
from .pipeline import ExtractionConfig, SampleExtractor, StemAnalysis

__all__ = [
    "HitIsolator",
    "IsolatedHit",
    "DrumClassifier",
    "DrumType",
    "ClassifiedHit",
    "HitFeatures",
    "DrumRule",
    "DRUM_RULES",
    "apply_rules",
    "LoopCandidate",
    "onset_density_loop",
    "merge_loop_candidates",
    "quantize_to_beat",
    "ExtractionConfig",
    "SampleExtractor",
    "StemAnalysis",
]

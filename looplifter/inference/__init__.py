"""Inference layer - Structural understanding of a stem.

- Self-similarity matrices and repeating patterns (loops)
- Novelty curves and peaks (fills, transitions)
- Structure analysis combining both on a tempo grid

Pipeline: Audio → per-bar features → [Patterns, Novelty] → Sections
"""

from .similarity import SelfSimilarityAnalyzer, DetectedPattern
from .novelty import NoveltyDetector
from .structure import (
    StructureAnalyzer,
    StructureInfo,
    Section,
    SectionType,
    segment_grid,
)

__all__ = [
    "SelfSimilarityAnalyzer",
    "DetectedPattern",
    "NoveltyDetector",
    "StructureAnalyzer",
    "StructureInfo",
    "Section",
    "SectionType",
    "segment_grid",
]

"""LoopLifter - Sample extraction from separated stems.

Architecture Layers:
    1. core/       - Audio buffers, stems, extracted samples
    2. input/      - Audio decoding
    3. analysis/   - Low-level signal analysis (energy, features, pitch, tempo)
    4. extraction/ - Hits, drum classification, loop candidates, per-stem pipeline
    5. inference/  - Structure (self-similarity patterns, novelty)
    6. processing/ - Onset quantization
    7. output/     - Sample pack export
"""

__version__ = "0.1.0"

# Core types
from .core import AudioBuffer, ExtractedSample, SampleCategory, StemType, TimeRange

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import (
    AnalysisContext,
    EnergyOnsetLocator,
    FeatureExtractor,
    PitchDetector,
    TempoAnalyzer,
)

# Extraction layer
from .extraction import (
    HitIsolator,
    DrumClassifier,
    SampleExtractor,
    ExtractionConfig,
)

# Inference layer
from .inference import (
    SelfSimilarityAnalyzer,
    NoveltyDetector,
    StructureAnalyzer,
)

# Processing layer
from .processing import Quantizer

# Output layer
from .output import SamplePackWriter

__all__ = [
    # Core
    "AudioBuffer",
    "ExtractedSample",
    "SampleCategory",
    "StemType",
    "TimeRange",
    # Input
    "AudioLoader",
    # Analysis
    "AnalysisContext",
    "EnergyOnsetLocator",
    "FeatureExtractor",
    "PitchDetector",
    "TempoAnalyzer",
    # Extraction
    "HitIsolator",
    "DrumClassifier",
    "SampleExtractor",
    "ExtractionConfig",
    # Inference
    "SelfSimilarityAnalyzer",
    "NoveltyDetector",
    "StructureAnalyzer",
    # Processing
    "Quantizer",
    # Output
    "SamplePackWriter",
]

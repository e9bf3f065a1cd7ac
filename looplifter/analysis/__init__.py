"""Analysis layer - Low-level signal analysis.

This layer turns decoded audio into measurements:
- Energy onset (where the main section starts)
- Per-beat spectral features
- Pitch detection (YIN)
- Tempo and onsets
"""

from .context import AnalysisContext
from .energy import EnergyOnsetLocator
from .features import FeatureExtractor
from .pitch import PitchDetector, PitchResult
from .tempo import TempoAnalyzer, TempoInfo, normalize_onsets

__all__ = [
    "AnalysisContext",
    "EnergyOnsetLocator",
    "FeatureExtractor",
    "PitchDetector",
    "PitchResult",
    "TempoAnalyzer",
    "TempoInfo",
    "normalize_onsets",
]

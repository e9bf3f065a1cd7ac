"""Output layer - Export extracted samples.

- WAV slices per sample, in a named pack folder
- JSON manifest with timing, tempo and confidence
"""

from .pack import SamplePackWriter, ExportResult, safe_name

__all__ = [
    "SamplePackWriter",
    "ExportResult",
    "safe_name",
]

"""Processing layer - Onset post-processing."""

from .quantize import GridDivision, Quantizer

__all__ = ["GridDivision", "Quantizer"]

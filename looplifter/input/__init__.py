"""Input layer - decoding stems into memory."""

from .loader import AudioLoader

__all__ = ["AudioLoader"]

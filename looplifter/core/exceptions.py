"""Errors raised while reading audio."""


class DecodeError(Exception):
    """Raised when an audio file cannot be decoded or holds no samples."""

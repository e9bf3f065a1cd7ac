"""Per-analysis resources: decoded buffers and analysis windows."""

import threading
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np

from ..core import AudioBuffer
from ..input import AudioLoader
from .dsp import hann_window


class AnalysisContext:
    """
    Owns the decode and FFT resources for one analysis session.

    Components receive the context explicitly instead of reaching for a
    global engine, so two contexts never share state. Buffers are decoded
    at most once per path; Hann windows are built once per size.

    Decoded buffers stay cached until ``forget`` or ``clear`` is called, so
    a context should live for one song. Drop it, or clear it, once that
    song's samples are exported.
    """

    def __init__(self, loader: Optional[AudioLoader] = None):
        self.loader = loader or AudioLoader()
        self._buffers: Dict[str, AudioBuffer] = {}
        self._windows: Dict[int, np.ndarray] = {}
        self._lock = threading.Lock()

    def buffer(self, path: Union[str, Path]) -> AudioBuffer:
        """Full decoded buffer for ``path``, decoded on first use."""
        key = str(Path(path).resolve())
        with self._lock:
            cached = self._buffers.get(key)
        if cached is not None:
            return cached

        buffer = self.loader.load(path)
        with self._lock:
            self._buffers[key] = buffer
        return buffer

    def read_window(
        self,
        path: Union[str, Path],
        start: float,
        duration: float,
    ) -> AudioBuffer:
        """
        Decode only ``[start, start + duration)`` of ``path``.

        Uses the cached full buffer when one already exists.
        """
        key = str(Path(path).resolve())
        with self._lock:
            cached = self._buffers.get(key)
        if cached is not None:
            return AudioBuffer(cached.slice(start, start + duration), cached.sample_rate)
        return self.loader.load(path, offset=start, duration=duration)

    def window(self, n: int) -> np.ndarray:
        """Hann window of length ``n``."""
        with self._lock:
            window = self._windows.get(n)
            if window is None:
                window = hann_window(n)
                self._windows[n] = window
        return window

    def register(self, path: Union[str, Path], buffer: AudioBuffer) -> None:
        """Provide an already decoded buffer for ``path``."""
        with self._lock:
            self._buffers[str(Path(path).resolve())] = buffer

    def forget(self, path: Union[str, Path]) -> None:
        """Drop the cached buffer for ``path``, if any."""
        with self._lock:
            self._buffers.pop(str(Path(path).resolve()), None)

    def clear(self) -> None:
        with self._lock:
            self._buffers.clear()
            self._windows.clear()

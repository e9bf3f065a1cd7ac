"""Audio loading utilities."""

import numpy as np
import librosa
from pathlib import Path
from typing import Optional, Union

from ..core import AudioBuffer, DecodeError


class AudioLoader:
    """Decodes stem files into in-memory buffers."""

    SUPPORTED_FORMATS = {".wav", ".aif", ".aiff", ".mp3", ".flac", ".ogg", ".m4a", ".mp4"}

    def __init__(
        self,
        target_sr: Optional[int] = None,
        mono: bool = True,
        normalize: bool = False,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling (None keeps native rate)
            mono: Convert to mono if True
            normalize: Peak-normalize audio if True
        """
        self.target_sr = target_sr
        self.mono = mono
        self.normalize = normalize

    def load(
        self,
        path: Union[str, Path],
        offset: float = 0.0,
        duration: Optional[float] = None,
    ) -> AudioBuffer:
        """
        Decode an audio file, or the sub-range ``[offset, offset + duration)``.

        Args:
            path: Path to audio file
            offset: Start of the range to read, in seconds
            duration: Length of the range in seconds (None reads to the end)

        Returns:
            AudioBuffer holding the decoded samples

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format not supported
            DecodeError: If the file cannot be decoded or is empty
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {self.SUPPORTED_FORMATS}"
            )

        try:
            audio, sr = librosa.load(
                str(path),
                sr=self.target_sr,
                mono=self.mono,
                offset=offset,
                duration=duration,
            )
        except Exception as e:
            raise DecodeError(
                f"{path.name} could not be decoded. Invalid audio data or unsupported format."
            ) from e

        if audio.size == 0 and offset == 0.0:
            raise DecodeError(f'No audio data could be loaded from "{path}".')

        if self.normalize:
            audio = self._normalize(audio)

        return AudioBuffer(samples=audio, sample_rate=int(sr))

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        if audio.size == 0:
            return audio
        peak = np.abs(audio).max()
        if peak > 0:
            audio = audio / peak
        return audio

"""Sample pack export - WAV slices plus a JSON manifest."""

import json
import soundfile as sf
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..analysis import AnalysisContext
from ..core import DecodeError, ExtractedSample

PACK_SUFFIX = "_LoopLifter"
MANIFEST_NAME = "samples.json"


def safe_name(name: str, fallback: str = "Untitled") -> str:
    """Replace path separators so ``name`` is usable as a file name."""
    cleaned = name.replace("/", "-").replace(":", "-").replace("\\", "-").strip()
    return cleaned or fallback


@dataclass
class ExportResult:
    """Outcome of a pack export."""

    folder: Optional[Path]
    written: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)  # sample names

    @property
    def success_count(self) -> int:
        return len(self.written)

    @property
    def fail_count(self) -> int:
        return len(self.failed)


class SamplePackWriter:
    """Write selected samples into ``<Song>_LoopLifter/``."""

    def __init__(
        self,
        song_name: str,
        context: Optional[AnalysisContext] = None,
        subtype: str = "PCM_24",
    ):
        """
        Initialize SamplePackWriter.

        Args:
            song_name: Used for the pack folder name
            context: Analysis context used to read source audio
            subtype: soundfile subtype for written WAVs
        """
        self.song_name = song_name
        self.context = context or AnalysisContext()
        self.subtype = subtype

    @property
    def folder_name(self) -> str:
        return f"{safe_name(self.song_name)}{PACK_SUFFIX}"

    def export(self, samples: Sequence[ExtractedSample], destination: Path) -> ExportResult:
        """
        Write each selected sample's effective range as a WAV.

        Samples without a source, or whose source cannot be decoded, are
        reported in ``failed`` and skipped.

        Args:
            samples: Samples to export (unselected ones are ignored)
            destination: Parent directory for the pack folder

        Returns:
            ExportResult listing written files and failures
        """
        selected = [s for s in samples if s.is_selected]
        if not selected:
            return ExportResult(folder=None)

        folder = Path(destination) / self.folder_name
        folder.mkdir(parents=True, exist_ok=True)
        result = ExportResult(folder=folder)

        manifest = []
        used_names = set()
        for sample in selected:
            if sample.source is None:
                result.failed.append(sample.name)
                continue
            try:
                buffer = self.context.buffer(sample.source)
            except (DecodeError, FileNotFoundError, ValueError):
                result.failed.append(sample.name)
                continue

            audio = buffer.slice(max(0.0, sample.effective_start_time), sample.effective_end_time)
            if len(audio) == 0:
                result.failed.append(sample.name)
                continue

            base = safe_name(sample.name)
            file_name = f"{base}.wav"
            suffix = 2
            while file_name in used_names:
                file_name = f"{base} {suffix}.wav"
                suffix += 1
            used_names.add(file_name)

            path = folder / file_name
            sf.write(str(path), audio, buffer.sample_rate, subtype=self.subtype)
            result.written.append(path)

            entry = sample.to_dict()
            entry["file"] = file_name
            manifest.append(entry)

        with open(folder / MANIFEST_NAME, "w") as f:
            json.dump({"song": self.song_name, "samples": manifest}, f, indent=2)

        return result

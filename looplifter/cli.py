"""Command-line interface for LoopLifter.

Provides commands for:
- extract: Find loops, hits and fills in a stem (optionally export a pack)
- batch: Extract from several stems of one song concurrently
- pitch: Detect the pitch of a time window
- structure: Show repeating patterns and novelty peaks of a stem
- info: Show audio file information
"""

import time
import typer
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .analysis import AnalysisContext, EnergyOnsetLocator, PitchDetector, TempoAnalyzer
from .core import DecodeError, StemType
from .extraction import ExtractionConfig, SampleExtractor, StemAnalysis
from .inference import StructureAnalyzer
from .input import AudioLoader
from .output import SamplePackWriter
from .processing import GridDivision, Quantizer

app = typer.Typer(
    name="looplifter",
    help="Extract loops, one-shots and fills from separated stems",
    rich_markup_mode="markdown",
)
console = Console()


@dataclass
class StageTimings:
    """Track timing of processing stages."""

    stages: Dict[str, float] = field(default_factory=dict)
    _current_stage: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        """Start timing a stage."""
        self._current_stage = stage
        self._start_time = time.time()

    def stop(self) -> float:
        """Stop timing the current stage, return duration."""
        if self._current_stage is None:
            return 0.0
        duration = time.time() - self._start_time
        self.stages[self._current_stage] = duration
        self._current_stage = None
        return duration

    @property
    def total_time(self) -> float:
        return sum(self.stages.values())

    def print_summary(self) -> None:
        """Print timing summary to console."""
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, duration in self.stages.items():
            console.print(f"  {stage}: {duration:.2f}s")
        console.print(f"  [bold]Total: {self.total_time:.2f}s[/bold]")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stages": self.stages,
            "total_time": self.total_time,
        }


def _parse_stem(value: str) -> StemType:
    try:
        return StemType(value.lower())
    except ValueError:
        valid = ", ".join(s.value for s in StemType)
        console.print(f"[red]Error: Unknown stem '{value}'. Valid: {valid}[/red]")
        raise typer.Exit(1)


def _parse_onsets(path: Optional[Path]) -> Optional[List[float]]:
    """Read one onset time per line, the format onset trackers print."""
    if path is None:
        return None
    if not path.exists():
        console.print(f"[red]Error: Onset file not found: {path}[/red]")
        raise typer.Exit(1)
    onsets = []
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            onsets.append(float(line.split()[0]))
        except ValueError:
            continue
    return onsets


def _check_input(input_file: Path) -> None:
    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)


@app.command()
def extract(
    input_file: Path = typer.Argument(..., help="Stem audio file (WAV, AIFF, FLAC, MP3)"),
    stem: str = typer.Option("drums", "-s", "--stem", help="Stem type: drums, bass, vocals, other"),
    bpm: float = typer.Option(0.0, "-t", "--tempo", help="Override tempo (BPM). 0 = auto-detect"),
    onsets_file: Optional[Path] = typer.Option(
        None, "--onsets", help="Text file with one onset time (seconds) per line"
    ),
    max_hits: int = typer.Option(8, "--max-hits", help="Maximum hits per stem"),
    isolated: bool = typer.Option(
        False, "--isolated", help="Only emit hits surrounded by silence"
    ),
    structure: bool = typer.Option(
        True, "--structure/--no-structure", help="Use self-similarity for loops and fills"
    ),
    quantize: Optional[str] = typer.Option(
        None, "-q", "--quantize", help="Quantize onsets to a grid: 1/4, 1/8, 1/16, 1/32"
    ),
    export_dir: Optional[Path] = typer.Option(
        None, "-o", "--export", help="Write WAV slices and a manifest into this directory"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """
    Extract loops, hits and fills from one stem.

    Example:
        looplifter extract drums.wav --stem drums -o ./packs
    """
    _check_input(input_file)
    stem_type = _parse_stem(stem)
    timings = StageTimings()
    context = AnalysisContext()

    try:
        timings.start("load")
        buffer = context.buffer(input_file)
        timings.stop()
    except (DecodeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    onsets = _parse_onsets(onsets_file)
    tempo = bpm if bpm > 0 else None

    if not json_output:
        console.print(f"[blue]Loading stem:[/blue] {input_file}")
        console.print(f"  Duration: {buffer.duration:.2f}s, Sample rate: {buffer.sample_rate}Hz")

    if tempo is None or onsets is None:
        if not json_output:
            console.print("[blue]Detecting tempo and onsets...[/blue]")
        timings.start("tempo")
        detected = TempoAnalyzer().analyze(buffer)
        timings.stop()
        tempo = tempo or detected.bpm
        onsets = onsets if onsets is not None else list(detected.onset_times)
        if not json_output:
            console.print(f"  Tempo: {tempo:.1f} BPM, Onsets: {len(onsets)}")

    quantizer = None
    if quantize:
        try:
            quantizer = Quantizer(tempo=tempo, division=GridDivision(quantize))
        except ValueError:
            console.print(f"[yellow]Unknown grid '{quantize}', onsets left unquantized[/yellow]")

    config = ExtractionConfig(
        max_hits=max_hits,
        hit_strategy="isolated" if isolated else "onsets",
        use_structure=structure,
        quantizer=quantizer,
    )
    extractor = SampleExtractor(config=config, context=context)

    if not json_output:
        console.print(f"[blue]Analyzing {stem_type.display_name}...[/blue]")
    timings.start("extract")
    analysis = extractor.extract_file(input_file, stem_type, bpm=tempo, onsets=onsets)
    timings.stop()

    export_result = None
    if export_dir is not None:
        timings.start("export")
        writer = SamplePackWriter(song_name=input_file.stem, context=context)
        export_result = writer.export(analysis.samples, export_dir)
        timings.stop()

    if json_output:
        result = {
            "input": str(input_file),
            "stem": stem_type.value,
            "tempo": analysis.tempo,
            "duration": analysis.duration,
            "energy_onset": analysis.energy_onset,
            "samples": [s.to_dict() for s in analysis.samples],
            "timings": timings.to_dict(),
        }
        if analysis.structure is not None:
            result["form"] = analysis.structure.form
        if export_result is not None:
            result["export"] = {
                "folder": str(export_result.folder) if export_result.folder else None,
                "written": export_result.success_count,
                "failed": export_result.fail_count,
            }
        console.print_json(data=result)
        return

    console.print(f"  Energy onset: {analysis.energy_onset:.2f}s")
    _show_samples_table(analysis)

    if export_result is not None:
        if export_result.folder is None:
            console.print("[yellow]Nothing selected for export[/yellow]")
        else:
            console.print(f"[green]Exported {export_result.success_count} sample(s) to {export_result.folder}[/green]")

            if export_result.fail_count:
                console.print(f"[yellow]  {export_result.fail_count} sample(s) could not be written[/yellow]")

    context.clear()

    if verbose:
        if analysis.structure is not None:
            console.print(f"  Form: {analysis.structure.form}")
        timings.print_summary()


@app.command()
def batch(
    stems_dir: Path = typer.Argument(..., help="Directory holding drums/bass/vocals/other stems"),
    bpm: float = typer.Option(0.0, "-t", "--tempo", help="Override tempo (BPM). 0 = auto-detect"),
    workers: int = typer.Option(4, "-j", "--workers", help="Stems analysed in parallel"),
    export_dir: Optional[Path] = typer.Option(
        None, "-o", "--export", help="Write WAV slices and a manifest into this directory"
    ),
):
    """
    Extract from every stem found in a directory.

    Stems are matched by file name (e.g. drums.wav, bass.flac).
    """
    if not stems_dir.is_dir():
        console.print(f"[red]Error: Not a directory: {stems_dir}[/red]")
        raise typer.Exit(1)

    stems = {}
    for stem_type in StemType:
        matches = sorted(
            p for p in stems_dir.iterdir()
            if p.stem.lower() == stem_type.value and p.suffix.lower() in AudioLoader.SUPPORTED_FORMATS
        )
        if matches:
            stems[stem_type] = matches[0]

    if not stems:
        console.print("[yellow]No stems found (expected drums, bass, vocals, other)[/yellow]")
        raise typer.Exit(1)

    context = AnalysisContext()
    extractor = SampleExtractor(context=context)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            progress.add_task(f"Extracting {', '.join(s.value for s in stems)}...", total=None)
            results = extractor.extract_stems(stems, bpm=bpm if bpm > 0 else None, max_workers=workers)
    except (DecodeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    all_samples = []
    for analysis in results.values():
        _show_samples_table(analysis)
        all_samples.extend(analysis.samples)

    if export_dir is not None:
        writer = SamplePackWriter(song_name=stems_dir.name, context=context)
        export_result = writer.export(all_samples, export_dir)
        console.print(f"[green]Exported {export_result.success_count} sample(s) to {export_result.folder}[/green]")


@app.command()
def pitch(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    start: float = typer.Option(0.0, "--start", help="Window start (seconds)"),
    duration: float = typer.Option(0.5, "--duration", help="Window length (seconds)"),
):
    """Detect the pitch of a time window."""
    _check_input(input_file)
    detector = PitchDetector()
    result = detector.detect_file(input_file, start, duration)

    if result is None:
        console.print("[yellow]No pitch detected (atonal or too short)[/yellow]")
        return

    console.print(f"[green]{result.note_name}[/green] {result.frequency:.2f} Hz")
    console.print(f"  Cents: {result.cents_offset:+.1f}")
    console.print(f"  Confidence: {result.confidence:.2f}")


@app.command("structure")
def structure_cmd(
    input_file: Path = typer.Argument(..., help="Stem audio file"),
    bpm: float = typer.Option(0.0, "-t", "--tempo", help="Override tempo (BPM). 0 = auto-detect"),
):
    """Show repeating patterns and fill candidates on a bar grid."""
    _check_input(input_file)
    context = AnalysisContext()
    try:
        buffer = context.buffer(input_file)
    except (DecodeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    tempo = bpm if bpm > 0 else TempoAnalyzer().detect(buffer.to_mono(), buffer.sample_rate)[0]
    anchor = EnergyOnsetLocator().locate(buffer)
    info = StructureAnalyzer().analyze(buffer, tempo, anchor)

    console.print(f"\n[bold]Structure:[/bold] {input_file.name} @ {tempo:.1f} BPM")
    console.print(f"  Bars: {len(info.segment_times)}")
    console.print(f"  Form: {info.form or '-'}")

    table = Table(title="Repeating Patterns")
    table.add_column("Start bar", style="cyan")
    table.add_column("Length", style="green")
    table.add_column("Repeats", style="yellow")
    table.add_column("Similarity", style="magenta")
    table.add_column("Main", style="bold")
    for pattern in info.patterns:
        table.add_row(
            str(pattern.start_segment + 1),
            str(pattern.length_segments),
            str(pattern.repeat_count),
            f"{pattern.average_similarity:.2f}",
            "yes" if pattern.is_main_loop else "",
        )
    console.print(table)

    if info.novelty_peaks:
        bars = ", ".join(str(p + 1) for p in info.novelty_peaks)
        console.print(f"  Fill candidates at bars: {bars}")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    _check_input(input_file)
    context = AnalysisContext()
    try:
        buffer = context.buffer(input_file)
    except (DecodeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {buffer.duration:.2f} seconds")
    console.print(f"  Sample rate: {buffer.sample_rate} Hz")
    console.print(f"  Samples: {buffer.n_samples:,}")

    tempo, _ = TempoAnalyzer().detect(buffer.to_mono(), buffer.sample_rate)
    console.print(f"  Estimated tempo: {tempo:.1f} BPM")
    console.print(f"  Energy onset: {EnergyOnsetLocator().locate(buffer):.2f}s")


def _show_samples_table(analysis: StemAnalysis):
    """Display extracted samples in a table."""
    table = Table(title=f"{analysis.stem_type.display_name} @ {analysis.tempo:.1f} BPM")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Start", style="yellow")
    table.add_column("Length")
    table.add_column("Bars")
    table.add_column("Confidence", style="magenta")

    for sample in analysis.samples:
        table.add_row(
            sample.name,
            sample.category.value,
            sample.position_string(sample.start_time),
            sample.duration_string,
            sample.bar_description or "",
            f"{sample.confidence_percent}%",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()

import concurrent.futures
import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Confirm
from rich.table import Table

from .config import (
    DEFAULT_CRF,
    DEFAULT_MAX_WIDTH,
    DEFAULT_PRESET,
    DEFAULT_QUALITY,
    TARGET_FORMATS,
    VALID_PRESETS,
    ImageConfig,
    VideoConfig,
)
from .engine import BatchEngine
from .errors import AuroraError
from .images import ImageConversionEngine
from .stats import RunSummary, format_bytes
from .video import VideoCompressionEngine

console = Console()
logger = logging.getLogger("aurora")

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

# =============================================================================
# Summary Report
# =============================================================================

def print_summary_report(summary: RunSummary, title: str = "Processing Summary"):
    """Print final processing summary."""
    console.print("\n" + "=" * 60)
    console.print(f"[bold cyan]{title}[/bold cyan]")
    console.print("=" * 60)

    table = Table(show_header=False, box=None)
    table.add_column("Label", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Files Converted:", str(summary.converted_count))
    if summary.existing_target_preferred_count is not None:
        table.add_row("Existing Targets Used:", str(summary.existing_target_preferred_count))
    table.add_row("Files Copied:", str(summary.copied_count))
    table.add_row("Files Skipped:", str(summary.skipped_count))
    table.add_row("Files Failed:", str(summary.error_count))
    table.add_row("", "")
    table.add_row("Original Size:", format_bytes(summary.original_total_bytes))
    table.add_row("Final Size:", format_bytes(summary.final_total_bytes))

    if summary.bytes_saved > 0:
        table.add_row("Space Saved:", f"[green]{format_bytes(summary.bytes_saved)} ({summary.saving_percent:.1f}%)[/green]")
    elif summary.bytes_saved < 0:
        table.add_row("Space Change:", f"[red]+{format_bytes(abs(summary.bytes_saved))}[/red]")
    else:
        table.add_row("Space Saved:", "0 B")
    table.add_row("Elapsed:", f"{summary.elapsed_seconds:.2f} s")

    console.print(table)
    console.print("=" * 60 + "\n")

# =============================================================================
# Run Helpers
# =============================================================================

def setup_logging(quiet: bool, verbose: bool, log_file: Optional[str]):
    log_level = logging.WARNING if quiet else (logging.DEBUG if verbose else logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)


def run_with_progress(engine: BatchEngine, quiet: bool) -> Optional[RunSummary]:
    """
    Run the engine on a worker thread while the main thread renders progress
    and handles Ctrl+C. Returns None if the run aborted at startup.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        disable=quiet,
    ) as progress:
        task_id = progress.add_task("[bold white]Starting...", total=100)

        def on_progress(percent: int, message: str):
            progress.update(task_id, completed=percent, description=message[:70])

        engine.set_progress_callback(on_progress)

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(engine.run)
            while True:
                try:
                    return future.result(timeout=0.5)
                except concurrent.futures.TimeoutError:
                    continue
                except AuroraError as e:
                    progress.console.print(f"[bold red]Error: {e}[/bold red]")
                    return None
                except KeyboardInterrupt:
                    progress.stop()
                    try:
                        response = Confirm.ask("Stop processing?", default=False)
                    except (KeyboardInterrupt, EOFError):
                        response = True
                    if response:
                        console.print("[bold red]Stopping... (finishing current file)[/bold red]")
                        engine.cancel()
                    else:
                        console.print("[bold green]Resuming...[/bold green]")
                    progress.start()


def finish(summary: Optional[RunSummary], as_json: bool, quiet: bool, title: str):
    if summary is None:
        sys.exit(1)
    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    elif not quiet:
        print_summary_report(summary, title)
    if summary.error_count or summary.cancelled:
        sys.exit(2)


def common_options(f):
    f = click.option("--verbose", "-v", is_flag=True, help="Increase output verbosity.")(f)
    f = click.option("--quiet", "-q", is_flag=True, help="Reduce output verbosity.")(f)
    f = click.option("--log-file", type=click.Path(), help="Write logs to file.")(f)
    f = click.option("--json", "as_json", is_flag=True, help="Print the run summary as JSON.")(f)
    f = click.option("--clear-output", is_flag=True, help="Empty the output directory before processing (keeps .gitkeep).")(f)
    f = click.option("--output-path", "-o", type=click.Path(file_okay=False), required=True, help="Output directory.")(f)
    f = click.argument("input_path", type=click.Path(exists=True, file_okay=False))(f)
    return f

# =============================================================================
# Main Entry Point
# =============================================================================

@click.group()
@click.version_option(package_name="aurora-media")
def main():
    """Batch convert images to WebP/PNG and compress videos with FFmpeg."""


@main.command()
@common_options
@click.option("--quality", default=DEFAULT_QUALITY, type=click.IntRange(0, 100),
              help=f"Encoder quality (0-100). Default {DEFAULT_QUALITY}.")
@click.option("--max-width", default=DEFAULT_MAX_WIDTH, type=click.IntRange(min=1),
              help=f"Downscale wider images to this width. Default {DEFAULT_MAX_WIDTH}.")
@click.option("--format", "target_format", default="webp", type=click.Choice(TARGET_FORMATS, case_sensitive=False),
              help="Target image format (default: webp).")
def images(input_path, output_path, clear_output, as_json, log_file, quiet, verbose,
           quality, max_width, target_format):
    """Convert every image under INPUT_PATH, mirroring the tree into the output directory."""
    setup_logging(quiet, verbose, log_file)
    try:
        config = ImageConfig(
            input_dir=input_path,
            output_dir=output_path,
            clear_output_dir=clear_output,
            quality=quality,
            max_width=max_width,
            target_format=target_format,
        )
    except AuroraError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        sys.exit(1)

    if clear_output and not quiet:
        console.print(f"[bold yellow]Output directory {output_path} will be cleared first.[/bold yellow]")

    summary = run_with_progress(ImageConversionEngine(config), quiet)
    finish(summary, as_json, quiet, "Image Conversion Summary")


@main.command()
@common_options
@click.option("--crf", default=DEFAULT_CRF, type=click.IntRange(0, 51),
              help=f"CRF value (default: {DEFAULT_CRF}). Lower is better quality.")
@click.option("--preset", default=DEFAULT_PRESET, type=click.Choice(VALID_PRESETS, case_sensitive=False),
              help=f"Preset (default: {DEFAULT_PRESET}). Slower = better compression.")
@click.option("--ffmpeg", "ffmpeg_path", envvar="AURORA_FFMPEG", type=click.Path(dir_okay=False),
              help="Path to the ffmpeg binary (default: found on PATH).")
def videos(input_path, output_path, clear_output, as_json, log_file, quiet, verbose,
           crf, preset, ffmpeg_path):
    """Compress every video under INPUT_PATH with H.264/AAC, copying other files."""
    setup_logging(quiet, verbose, log_file)
    try:
        config = VideoConfig(
            input_dir=input_path,
            output_dir=output_path,
            clear_output_dir=clear_output,
            crf=crf,
            preset=preset,
            ffmpeg_path=ffmpeg_path,
        )
    except AuroraError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        sys.exit(1)

    summary = run_with_progress(VideoCompressionEngine(config), quiet)
    finish(summary, as_json, quiet, "Video Compression Summary")


if __name__ == "__main__":
    main()

import os
import sys
import argparse
import logging

try:
    from rich.console import Console
    from rich.logging import RichHandler
    from rich.table import Table
    from rich.panel import Panel
    from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn
    from rich import box
except ImportError:
    print("Error: The 'rich' library is required for the CLI but not installed.", file=sys.stderr)
    print("Please install it with: pip install clicktrack[cli]", file=sys.stderr)
    sys.exit(1)

from clickslib import __version__
from clickslib.clips import ClipRegistry, ImportReport
from clickslib.config import ConfigError, default_config, load_preset, merge_configs, validate_config
from clickslib.events import EventBus
from clickslib.models import JumpSymbol
from clickslib.reports import clip_rows, save_json
from clickslib.show import ShowFormatError, load_show_json
from clickslib.timeline import resolve_cue

console = Console()
log = logging.getLogger("clicks")

_SYMBOL_GLYPHS = {
    JumpSymbol.VOLTA: "⤼ volta",
    JumpSymbol.REPEAT_ONCE: "↺1 repeat",
    JumpSymbol.REPEAT: "↺ vamp",
    JumpSymbol.STEP_OUT: "↷ jump",
    JumpSymbol.PAUSE: "⏸ pause",
}


def positive_float(value):
    fvalue = float(value)
    if fvalue <= 0:
        raise argparse.ArgumentTypeError("must be a positive number")
    return fvalue


def parse_arguments():
    parser = argparse.ArgumentParser(
        description="Resolve a click-track cue into its timeline lanes",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--version", action="version",
                        version=f"clicks {__version__}")

    parser.add_argument("show", type=str,
                        help="Show directory (containing show.json and playback_media/) or a show JSON file")
    parser.add_argument("--cue", type=int, default=0,
                        help="Index of the cue to resolve")
    parser.add_argument("--preset", type=str, default=None,
                        help="JSON preset with configuration overrides")

    parser.add_argument("--zoom", type=positive_float, default=None,
                        help="Beat width in pixels (default from config)")
    parser.add_argument("--proportional", action="store_true",
                        help="Scale beat widths by beat length")
    parser.add_argument("--sample_rate", type=int, default=None,
                        help="Sample rate used to place clips (default from config)")

    parser.add_argument("--clips_only", action="store_true",
                        help="Only import and list the audio clips")
    parser.add_argument("--json", type=str, default=None,
                        help="Write the resolved timeline to this JSON file")
    parser.add_argument("--buckets", action="store_true",
                        help="Include peak bucket values in the JSON output")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show info-level log messages")

    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()

    if args.cue < 0:
        parser.error("--cue must be >= 0")

    return args


def build_config(args):
    config = default_config()
    if args.preset:
        config = merge_configs(config, load_preset(args.preset))
    overrides = {"_show_dir": _show_dir(args.show)}
    if args.zoom is not None:
        overrides["base_beat_width"] = args.zoom
    if args.proportional:
        overrides["proportional_beat_length"] = True
    if args.sample_rate is not None:
        overrides["sample_rate"] = args.sample_rate
    config = merge_configs(config, overrides)
    validate_config(config)
    return config


def _show_dir(path):
    return path if os.path.isdir(path) else (os.path.dirname(path) or ".")


# ---------------------------------------------------------------------------
# Rich console rendering (CLI-only, not in the library)
# ---------------------------------------------------------------------------

def print_clips(registry, report):
    table = Table(box=box.ROUNDED, title="Audio Clips", title_justify="left")
    table.add_column("Ch", justify="right", style="bold cyan")
    table.add_column("Idx", justify="right", style="cyan")
    table.add_column("Length", justify="right")
    table.add_column("File", style="dim")

    for row in clip_rows(registry):
        seconds = row["samples"] // max(row["samplerate"], 1)
        table.add_row(
            str(row["channel"]),
            str(row["clip"]),
            f"{seconds // 60} min {seconds % 60} sec ({row['samples']} samples)",
            os.path.basename(row["path"]),
        )
    console.print(table)

    for skipped in report.skipped:
        console.print(f"  [yellow]⚠ skipped {skipped.path}: {skipped.reason}[/]")


def beat_annotations(timeline):
    """Collect every mark of the timeline per beat index, as display strings."""
    marks = {}

    def add(idx, text):
        marks.setdefault(idx, []).append(text)

    for m in timeline.tempo_marks:
        add(m.beat_index, f"[yellow]♩={m.tempo}[/]")
    for m in timeline.gradual_tempo_marks:
        add(m.beat_index, f"[yellow]♩={m.start_tempo}→{m.end_tempo}/{m.length}[/]")
    for m in timeline.rehearsal_marks:
        add(m.beat_index, f"[bold red][{m.label}][/]")
    for m in timeline.timecode_marks:
        add(m.beat_index, f"[white]TC {m.instant}[/]" if m.instant else "[white]TC stop[/]")
    for m in timeline.jump_marks:
        add(m.beat_index, f"[yellow]{_SYMBOL_GLYPHS[m.symbol]}[/]")
        add(m.destination, f"[yellow]↘ from {m.beat_index}[/]")
    for m in timeline.pause_marks:
        add(m.beat_index, f"[yellow]{_SYMBOL_GLYPHS[JumpSymbol.PAUSE]} ({m.behaviour.value})[/]")
    for m in timeline.playback_marks:
        if m.started:
            add(m.beat_index, f"[green]▶ ch{m.channel}:{m.clip}[/]")
        else:
            add(m.beat_index, f"[red]■ ch{m.channel}[/]")
    return marks


def print_timeline(cue, timeline):
    marks = beat_annotations(timeline)
    table = Table(box=box.ROUNDED, title=f"Cue: {cue.name or '(unnamed)'}", title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Bar", justify="right", style="bold")
    table.add_column("Beat", justify="right")
    table.add_column("x", justify="right", style="dim")
    table.add_column("Width", justify="right", style="dim")
    table.add_column("Marks")
    table.add_column("Playing", style="cyan")

    for cell, playback in zip(timeline.beats, timeline.playback):
        bar = "CI" if cell.is_count_in else str(cell.bar_number)
        if not cell.is_downbeat:
            bar = ""
        playing = []
        for s in playback.slices:
            peak = float(s.buckets.max()) if s.buckets.size else 0.0
            flag = "?" if s.missing else f"{peak:.2f}"
            playing.append(f"ch{s.channel}:{s.clip} ({flag})")
        table.add_row(
            str(cell.index),
            bar,
            str(cell.count),
            f"{cell.x:.1f}",
            f"{cell.width:.1f}",
            " ".join(marks.get(cell.index, [])),
            ", ".join(playing),
        )
    console.print(table)

    past_end = [m for m in timeline.jump_marks if m.destination >= len(timeline.beats)]
    for m in past_end:
        console.print(f"  [yellow]⚠ jump at beat {m.beat_index} targets beat "
                      f"{m.destination}, past the end of the cue[/]")
    if timeline.unresolved_events:
        console.print(f"  [yellow]⚠ {timeline.unresolved_events} events lie past the last beat[/]")


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------

def main():
    args = parse_arguments()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    try:
        config = build_config(args)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 1

    show_dir = config["_show_dir"]

    console.print(Panel.fit(
        f"[bold]Clicks[/]\n"
        f"Show: [cyan]{os.path.abspath(args.show)}[/]\n"
        f"Beat width: [cyan]{config['base_beat_width']} px[/] | "
        f"Scaling: [cyan]{'proportional' if config['proportional_beat_length'] else 'fixed'}[/]\n"
        f"Sample rate: [cyan]{config['sample_rate']} Hz[/] | "
        f"Bucket: [cyan]{config['peak_bucket_size']} samples[/]",
        title="Configuration"
    ))

    # --- IMPORT CLIPS ---
    registry = ClipRegistry()
    event_bus = EventBus()
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task_id = progress.add_task("[cyan]Importing clips...", total=None)

        def on_clip_done(**data):
            progress.update(task_id, total=data["total"], advance=1)
        event_bus.subscribe_progress(on_clip_done)

        try:
            report = registry.import_media(show_dir, config, event_bus=event_bus)
        except OSError as e:
            log.warning("No clips imported, cannot read media folder: %s", e)
            report = ImportReport(media_dir=os.path.join(show_dir, config["media_folder"]))

    print_clips(registry, report)
    if args.clips_only:
        return 0

    # --- LOAD SHOW & RESOLVE ---
    try:
        show = load_show_json(args.show)
    except ShowFormatError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 1

    if not show.cues:
        console.print("[yellow]The show has no cues.[/]")
        return 0
    if args.cue >= len(show.cues):
        console.print(f"[bold red]Error:[/] cue {args.cue} does not exist "
                      f"(show has {len(show.cues)} cues)")
        return 1

    cue = show.cues[args.cue]
    if not cue.beats:
        console.print("[yellow]The cue has no beats.[/]")
        return 0

    timeline = resolve_cue(cue, registry, config)
    print_timeline(cue, timeline)

    if args.json:
        save_json(args.json, timeline, registry, config, report,
                  cue_name=cue.name, include_buckets=args.buckets)
        console.print(f"\n[dim]Timeline saved to: {args.json}[/]")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Profelofono - instrument synth and chromatic tuner, command line entry point."""
import argparse
import sys
import time
from typing import List, Optional

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from config_manager import ConfigManager
from logging_utils import configure_logging, setup_file_logger
from music.chord_library import ChordLibrary
from music.humanize import Humanizer
from music.instruments import (
    DEFAULT_DURATIONS,
    METALLOPHONE_ACCIDENTALS,
    METALLOPHONE_BARS,
    RECORDER_HOLES,
    piano_key,
    recorder_duration,
    recorder_frequency,
    recorder_label,
)
from music.synth_engine import CHORD_NOTE_DURATION, SynthEngine
from music.voice_graph import TIMBRE_TAILS, Timbre
from tuner.tuner_controller import TunerController
from tuner.note_mapping import TunerReading

_CONSOLE = Console()
_TIMBRE_NAMES = [t.value for t in Timbre] + ["profelofono"]


def _parse_frequency(value: str) -> Optional[float]:
    """Accept "440", "440.0" or a key name like "A4" / "C#5"."""
    key = piano_key(value)
    if key is not None:
        return key.frequency
    try:
        return float(value)
    except ValueError:
        return None


def _build_engine(config: ConfigManager) -> SynthEngine:
    interval, jitter = config.get_strum_timing()
    return SynthEngine(
        sample_rate=config.get_sample_rate(),
        buffer_size=config.get_buffer_size(),
        master_gain=config.get_master_gain(),
        humanizer=Humanizer(interval, jitter),
        device_index=config.get_output_device(),
    )


def _wait_for_ring(engine: SynthEngine, seconds: float):
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline and (engine.active_voice_count or not engine.event_queue.empty()):
        time.sleep(0.05)


def cmd_play(args, config: ConfigManager) -> int:
    frequency = _parse_frequency(args.note)
    if frequency is None:
        _CONSOLE.print(f"[red]Not a note or frequency:[/red] {args.note}")
        return 2
    timbre = Timbre.parse(args.instrument or config.get_instrument())
    duration = args.duration or DEFAULT_DURATIONS[timbre]
    engine = _build_engine(config)
    if not engine.is_available():
        _CONSOLE.print("[yellow]No audio output available; running silent.[/yellow]")
    try:
        engine.play_note(frequency, duration, timbre)
        _wait_for_ring(engine, duration + TIMBRE_TAILS[timbre] + 0.5)
    finally:
        engine.close()
    config.set_instrument(timbre)
    return 0


def cmd_chord(args, config: ConfigManager) -> int:
    library = ChordLibrary()
    timbre = Timbre.parse(args.instrument)
    if timbre == Timbre.GUITAR:
        frequencies = library.guitar_voicing(args.root, args.quality)
    else:
        frequencies = library.chord_frequencies(args.root, args.quality, octave=args.octave)
    if not frequencies:
        _CONSOLE.print(f"[red]Unknown chord:[/red] {args.root} {args.quality}")
        return 2
    notes = library.get_chord_notes(args.root, args.quality)
    _CONSOLE.print(f"[bold]{args.root} {args.quality}[/bold]  {' - '.join(notes)}")
    explanation = library.describe(args.root, args.quality)
    if explanation:
        _CONSOLE.print(f"[dim]{explanation}[/dim]")

    engine = _build_engine(config)
    try:
        events = engine.play_chord(frequencies, timbre)
        for event in events:
            _CONSOLE.print(f"  string {event.index + 1}: {event.frequency:7.2f} Hz  +{event.offset * 1000:5.1f} ms")
        _wait_for_ring(engine, CHORD_NOTE_DURATION + TIMBRE_TAILS[timbre] + 0.5)
    finally:
        engine.close()
    return 0


def _parse_holes(value: str) -> Optional[List[float]]:
    """Parse "11110000" or "1,1,1,1,0,0,0,0.5", thumb hole first."""
    parts = value.split(",") if "," in value else list(value)
    try:
        holes = [float(p) for p in parts]
    except ValueError:
        return None
    if len(holes) != RECORDER_HOLES or any(h not in (0.0, 0.5, 1.0) for h in holes):
        return None
    return holes


def cmd_recorder(args, config: ConfigManager) -> int:
    holes = _parse_holes(args.holes)
    if holes is None:
        _CONSOLE.print(f"[red]Expected {RECORDER_HOLES} holes (1 covered, 0 open, 0.5 half):[/red] {args.holes}")
        return 2
    _CONSOLE.print(recorder_label(holes))
    if not any(holes):
        return 0
    duration = recorder_duration(holes)
    engine = _build_engine(config)
    try:
        engine.play_note(recorder_frequency(holes), duration, Timbre.FLUTE)
        _wait_for_ring(engine, duration + 0.5)
    finally:
        engine.close()
    return 0


def _render_reading(reading: TunerReading) -> Text:
    if not reading.has_signal:
        return Text("  -    -- Hz    listening...", style="dim")
    sign = "+" if reading.cents > 0 else ""
    style = "bold green" if reading.in_tune else "bold red"
    return Text.assemble(
        (f"{reading.note_name:>3}{reading.octave}", style),
        f"  {reading.display_frequency:5d} Hz  ",
        (f"{sign}{reading.cents} cents", style),
    )


def cmd_tune(args, config: ConfigManager) -> int:
    tuner = TunerController(
        refresh_rate=config.get_refresh_rate(),
        sample_rate=config.get_sample_rate(),
        frame_size=config.get_frame_size(),
        device_index=config.get_input_device(),
    )
    if not tuner.start():
        _CONSOLE.print(f"[red]{tuner.error}[/red]")
        return 1
    deadline = time.monotonic() + args.seconds if args.seconds else None
    try:
        with Live(_render_reading(tuner.reading), console=_CONSOLE, refresh_per_second=15) as live:
            while deadline is None or time.monotonic() < deadline:
                live.update(_render_reading(tuner.reading))
                time.sleep(1 / 15)
    except KeyboardInterrupt:
        pass
    finally:
        tuner.stop()
    return 0


def cmd_instruments(args, config: ConfigManager) -> int:
    table = Table(title="Instruments")
    table.add_column("Name")
    table.add_column("Default note length")
    table.add_column("Tail")
    selected = config.get_instrument()
    for timbre in Timbre:
        name = f"{timbre.value} *" if timbre == selected else timbre.value
        table.add_row(name, f"{DEFAULT_DURATIONS[timbre]:.1f} s", f"{TIMBRE_TAILS[timbre]:.1f} s")
    _CONSOLE.print(table)

    bars = Table(title="Metallophone bars")
    bars.add_column("Bar")
    bars.add_column("Hz", justify="right")
    for bar in METALLOPHONE_BARS + METALLOPHONE_ACCIDENTALS:
        bars.add_row(f"{bar.label} ({bar.name})", f"{bar.frequency:.2f}")
    _CONSOLE.print(bars)

    library = ChordLibrary()
    chords = Table(title="Chord qualities")
    chords.add_column("Root")
    chords.add_column("Qualities")
    for key in library.get_keys():
        chords.add_row(key, ", ".join(library.get_chord_types(key)))
    _CONSOLE.print(chords)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="profelofono")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--log-file", action="store_true", help="also log to ~/.profelofono/logs")
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="play one note")
    play.add_argument("note", help="frequency in Hz or key name such as A4")
    play.add_argument("-i", "--instrument", choices=_TIMBRE_NAMES)
    play.add_argument("-d", "--duration", type=float)
    play.set_defaults(func=cmd_play)

    chord = sub.add_parser("chord", help="strum a chord")
    chord.add_argument("root", choices=ChordLibrary.KEYS)
    chord.add_argument("quality", nargs="?", default="Mayor")
    chord.add_argument("-i", "--instrument", choices=_TIMBRE_NAMES, default="guitar")
    chord.add_argument("-o", "--octave", type=int, default=3)
    chord.set_defaults(func=cmd_chord)

    recorder = sub.add_parser("recorder", help="play a recorder fingering")
    recorder.add_argument("holes", help="8 holes, thumb first, e.g. 11110000")
    recorder.set_defaults(func=cmd_recorder)

    tune = sub.add_parser("tune", help="chromatic tuner (Ctrl+C to stop)")
    tune.add_argument("-s", "--seconds", type=float, default=0.0)
    tune.set_defaults(func=cmd_tune)

    instruments = sub.add_parser("instruments", help="list instruments and chords")
    instruments.set_defaults(func=cmd_instruments)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    if args.log_file:
        setup_file_logger()
    return args.func(args, ConfigManager())


if __name__ == "__main__":
    sys.exit(main())

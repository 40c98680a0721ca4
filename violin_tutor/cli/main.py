"""Main entry point for the Violin Tutor CLI."""

import time
from typing import Optional

import click

from ..core.config import ConfigManager
from ..fingering import FingeringChart
from ..logger import get_logger
from ..logging_config import setup_logging
from ..modes import Mode
from ..note_utils import cents_offset, format_note_name, frequency_to_midi, get_note_name
from ..violin import Violin

logger = get_logger(__name__)


def _config(ctx: click.Context) -> ConfigManager:
    return ctx.obj["config"]


def _format_reading(reading) -> str:
    return (
        f"{format_note_name(reading.note_name)} {reading.pitch_hz:.1f}Hz "
        f"string {reading.string_index} offset {reading.offset * 100:+.0f} "
        f"{reading.severity.value}"
    )


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config-dir", default=None, help="Directory holding the JSON config files")
@click.pass_context
def main(ctx: click.Context, debug: bool, config_dir: Optional[str]) -> None:
    """Violin Tutor - intonation and fingering feedback"""
    setup_logging(level="DEBUG" if debug else "WARNING")
    ctx.ensure_object(dict)
    ctx.obj["config"] = ConfigManager(config_dir)


@main.command()
@click.option("--flats", is_flag=True, help="Spell notes with flats")
@click.pass_context
def chart(ctx: click.Context, flats: bool) -> None:
    """Print the fingering chart for the configured tuning"""
    intonation = _config(ctx).get_config("intonation")
    fingering = FingeringChart.build(
        intonation["tuning"],
        int(intonation["frets_per_string"]),
        reference_frequency=float(intonation["reference_frequency"]),
    )
    for string_index, row in enumerate(fingering.string_frequencies):
        cells = [f"{get_note_name(f, use_flats=flats):>4}" for f in row]
        click.echo(f"S{string_index}: " + " ".join(cells))
    click.echo()
    for note in fingering.notes:
        positions = ", ".join(str(p) for p in fingering.note_positions(note))
        click.echo(f"{format_note_name(note, use_flats=flats):>4}: {positions}")


@main.command()
@click.argument("frequency", type=float)
def note(frequency: float) -> None:
    """Show the note name and offset for FREQUENCY"""
    midi = frequency_to_midi(frequency)
    if midi is None:
        raise click.BadParameter("frequency must be a positive number", param_hint="FREQUENCY")
    click.echo(
        f"{get_note_name(frequency)} (MIDI {midi:.2f}, offset {cents_offset(frequency) * 100:+.0f})"
    )


@main.command()
@click.argument("frequency", type=float)
@click.option("--fret", "-f", default=0, help="Target fret index (0 = open string)")
@click.pass_context
def evaluate(ctx: click.Context, frequency: float, fret: int) -> None:
    """Evaluate FREQUENCY against the nearest string at a target fret"""
    violin = Violin.from_config(_config(ctx))
    if not 0 <= fret <= violin.chart.frets_per_string:
        raise click.BadParameter(
            f"must be between 0 and {violin.chart.frets_per_string}", param_hint="--fret"
        )
    reading = violin.engine.evaluate(frequency, fret)
    if reading is None:
        raise click.BadParameter("frequency must be a positive number", param_hint="FREQUENCY")
    click.echo(_format_reading(reading))


@main.command()
@click.option("--device", type=int, default=None, help="Audio input device ID")
@click.option("--wav", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Read a recording instead of the microphone")
@click.option("--mode", type=click.Choice([m.value for m in Mode if m is not Mode.POSITION]),
              default=Mode.TUNE.value, help="Feedback mode")
@click.option("--duration", "-t", default=15.0, help="Listening time in seconds")
@click.pass_context
def listen(ctx: click.Context, device: Optional[int], wav: Optional[str], mode: str,
           duration: float) -> None:
    """Print live intonation feedback from the microphone or a WAV file"""
    from ..audio.pitch_oracle import DEFAULT_HOP_SIZE, AubioPitchOracle, WavFilePitchOracle

    violin = Violin.from_config(_config(ctx))
    violin.set_mode(Mode(mode))
    last_line = None

    def show(frame) -> None:
        nonlocal last_line
        if frame is None or frame.reading is None:
            return
        line = _format_reading(frame.reading)
        if frame.target is not None:
            line += f" | target {frame.target}"
        if line != last_line:
            click.echo(line)
            last_line = line

    if wav:
        oracle = WavFilePitchOracle(wav)
        seconds_per_hop = DEFAULT_HOP_SIZE / oracle.sample_rate
        for index, estimate in enumerate(oracle):
            show(violin.tick(index * seconds_per_hop, estimate))
        return

    oracle = AubioPitchOracle(device_id=device)
    oracle.start()
    start = time.time()
    try:
        while time.time() - start < duration:
            show(violin.poll(time.time(), oracle))
            time.sleep(violin.gate.interval or 0.05)
    except KeyboardInterrupt:
        click.echo("\nStopped by user")
    finally:
        oracle.stop()


if __name__ == "__main__":
    main()

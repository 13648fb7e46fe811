"""Command-line volume monitor.

Registers local input devices as audio sources and prints their meter
readings, including the silence heartbeat when a device stops delivering
samples.
"""

import sys
import threading
from functools import partial

import click

from audiodeck.audio.errors import AdapterUnavailableError
from audiodeck.audio.heartbeat import VolmeterSubscription
from audiodeck.audio.models import VolmeterSample
from audiodeck.core.container import Container
from audiodeck.system.structlog_configurator import configure_structlog

BAR_WIDTH = 30


def render_sample(name: str, sample: VolmeterSample) -> str:
    """Render one meter sample as a text bar."""
    filled = int(round(max(0.0, min(sample.level, 1.0)) * BAR_WIDTH))
    peak_at = min(int(round(max(0.0, min(sample.peak, 1.0)) * BAR_WIDTH)), BAR_WIDTH - 1)
    cells = ["#" if i < filled else "-" for i in range(BAR_WIDTH)]
    if sample.peak > 0.0:
        cells[peak_at] = "|"
    muted = " [muted]" if sample.muted else ""
    return f"{name[:24]:<24} [{''.join(cells)}] {sample.level:.2f} pk {sample.peak:.2f}{muted}"


def _echo_sample(name: str, sample: VolmeterSample) -> None:
    click.echo(render_sample(name, sample))


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Audio source monitor.

    Examples:
      # List input devices
      audiodeck devices

      # Watch meters of every input device for ten seconds
      audiodeck watch --duration 10

      # Watch device 2 with its fader at half deflection
      audiodeck watch --device 2 --deflection 0.5
    """
    ctx.ensure_object(dict)
    ctx.obj.setdefault("container", Container())


@cli.command()
@click.pass_context
def devices(ctx: click.Context) -> None:
    """List audio input devices."""
    container: Container = ctx.obj["container"]
    found = container.audio_device_service().discover_input_devices()
    if not found:
        click.echo(click.style("✗ No input devices found", fg="red"))
        sys.exit(1)
    for device in found:
        click.echo(
            f"{device.index:>3}  {device.name}  "
            f"({device.max_input_channels} ch, {device.default_samplerate:.0f} Hz)"
        )


@cli.command()
@click.option("--device", "device_indexes", type=int, multiple=True, help="Device index to watch")
@click.option("--duration", type=float, default=None, help="Seconds to watch (default: forever)")
@click.option("--deflection", type=float, default=None, help="Initial fader deflection (0-1)")
@click.pass_context
def watch(
    ctx: click.Context,
    device_indexes: tuple[int, ...],
    duration: float | None,
    deflection: float | None,
) -> None:
    """Print volume meters for input devices."""
    container: Container = ctx.obj["container"]
    config = container.config()
    configure_structlog(config)

    found = container.audio_device_service().discover_input_devices()
    selected = [d for d in found if not device_indexes or d.index in device_indexes]
    if not selected:
        click.echo(click.style("✗ No matching input devices", fg="red"))
        sys.exit(1)

    sources_service = container.sources_service()
    audio_service = container.audio_service()
    audio_service.start()

    subscriptions: list[VolmeterSubscription] = []
    try:
        for device in selected:
            source = device.to_source(config.meter.sample_rate, config.meter.channels)
            try:
                sources_service.add_source(source)
            except AdapterUnavailableError as e:
                click.echo(click.style(f"✗ {device.name}: {e.reason}", fg="red"))
                continue

            audio_source = audio_service.get_source(source.source_id)
            if audio_source is None:
                continue
            if deflection is not None:
                state = audio_source.set_deflection(deflection)
                click.echo(f"{device.name}: fader at {state.fader.db} dB")
            subscriptions.append(
                audio_source.subscribe_volmeter(partial(_echo_sample, device.name))
            )
            click.echo(click.style(f"✓ Watching {device.name} ({source.source_id})", fg="green"))

        if not subscriptions:
            click.echo(click.style("✗ No device could be opened", fg="red"))
            sys.exit(1)

        threading.Event().wait(duration)
    except KeyboardInterrupt:
        click.echo("Stopping...")
    finally:
        for subscription in subscriptions:
            subscription.unsubscribe()
        audio_service.stop()


def main() -> None:
    """Entry point for the audiodeck command."""
    cli(obj={})


if __name__ == "__main__":
    main()

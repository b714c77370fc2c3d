"""
Command-Line Interface for artnet-dmx.

Provides commands for setting channels, sending triggers and blacking
out universes on an Art-Net network.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Optional

import click
import pydantic
import structlog

from artnet_dmx import __version__
from artnet_dmx.core.exceptions import ArtNetError

logger = structlog.get_logger()


def _parse_values(raw: str) -> list[Optional[int]]:
    """Parse "255,0,,128" into channel values; empty entries leave a channel alone."""
    values: list[Optional[int]] = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            values.append(None)
            continue
        try:
            values.append(int(item, 0))
        except ValueError:
            raise click.BadParameter(f"not an integer: {item!r}", param_hint="VALUES")
    return values


def _load_settings(ctx: click.Context):
    from artnet_dmx.core.config import ArtNetConfig, Settings

    if ctx.obj["config_path"]:
        settings = Settings.from_yaml(ctx.obj["config_path"])
    else:
        settings = Settings()

    overrides = ctx.obj["overrides"]
    if overrides:
        try:
            settings.artnet = ArtNetConfig.model_validate(
                {**settings.artnet.model_dump(), **overrides}
            )
        except pydantic.ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            raise click.UsageError(f"Invalid value for {field}: {error['msg']}")
    return settings


def _build_controller(ctx: click.Context):
    from artnet_dmx.dmx.controller import ArtNetController

    settings = _load_settings(ctx)
    return ArtNetController(
        settings.artnet,
        error_listeners=[lambda error: click.echo(f"Transport error: {error}", err=True)],
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option("--host", default=None, help="Destination address (default broadcast)")
@click.option("--port", type=int, default=None, help="Destination UDP port")
@click.option("--bind-interface", default=None, help="Local address for broadcast, e.g. 10.0.0.2/24")
@click.option("--refresh-ms", type=int, default=None, help="Keep-alive refresh interval")
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    config: Optional[str],
    host: Optional[str],
    port: Optional[int],
    bind_interface: Optional[str],
    refresh_ms: Optional[int],
) -> None:
    """
    artnet-dmx - Art-Net DMX512 sender

    Sends DMX channel values and triggers to Art-Net nodes over UDP.
    """
    ctx.ensure_object(dict)

    # Configure logging
    log_level = "DEBUG" if debug else "INFO"
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level)
        ),
    )

    overrides = {
        "host": host,
        "port": port,
        "bind_interface": bind_interface,
        "refresh_interval_ms": refresh_ms,
    }
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config) if config else None
    ctx.obj["overrides"] = {k: v for k, v in overrides.items() if v is not None}


@cli.command("set")
@click.option("--universe", "-u", type=int, default=0, help="Universe (0-32767)")
@click.option("--channel", "-c", type=int, default=1, help="First DMX channel (1-512)")
@click.argument("values")
@click.option("--hold/--no-hold", default=True, help="Keep refreshing until Ctrl+C")
@click.pass_context
def set_command(
    ctx: click.Context,
    universe: int,
    channel: int,
    values: str,
    hold: bool,
) -> None:
    """Set channels from a comma separated VALUES list, e.g. 255,0,128."""
    parsed = _parse_values(values)
    try:
        controller = _build_controller(ctx)
    except ArtNetError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        changed = controller.set_channels(universe, channel, parsed)
        if not changed:
            controller.send(universe, full=True)
        click.echo(
            f"Universe {universe}: set {len(parsed)} channel(s) from {channel}"
            f"{'' if changed else ' (unchanged)'}"
        )
        if hold:
            click.echo("Press Ctrl+C to stop and blackout.")
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        click.echo("\nBlacking out...")
    except ArtNetError as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj["debug"]:
            raise
        sys.exit(1)
    finally:
        if hold and not controller.closed:
            try:
                controller.blackout(universe)
            except ArtNetError as e:
                logger.warning("Blackout on exit failed", universe=universe, error=str(e))
        controller.close()


@cli.command()
@click.option("--universe", "-u", type=int, default=0, help="Universe (0-32767)")
@click.pass_context
def blackout(ctx: click.Context, universe: int) -> None:
    """Send an all-zero frame to a universe."""
    controller = _build_controller(ctx)
    try:
        result = controller.blackout(universe).result(timeout=1.0)
        click.echo(f"Universe {universe}: blackout sent ({result} bytes)")
    except ArtNetError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        controller.close()


@cli.command()
@click.option("--oem", type=lambda v: int(v, 0), default="0xFFFF", help="OEM code (default 0xFFFF)")
@click.option("--key", "-k", type=int, default=255, help="Trigger key (0-255)")
@click.option("--subkey", "-s", type=int, default=0, help="Trigger subkey (0-255)")
@click.pass_context
def trigger(ctx: click.Context, oem: int, key: int, subkey: int) -> None:
    """Send a single ArtTrigger packet."""
    controller = _build_controller(ctx)
    try:
        result = controller.send_trigger(oem, key, subkey).result(timeout=1.0)
        click.echo(f"Trigger sent: oem=0x{oem:04X} key={key} subkey={subkey} ({result} bytes)")
    except ArtNetError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        controller.close()


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()

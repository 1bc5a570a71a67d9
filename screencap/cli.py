"CLI layer: a single Typer command for screenshots and recordings."

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config, notify, paths, progress, session, still
from .errors import ScreencapError

app = typer.Typer(
    help="screencap: take screenshots, or start/stop a screen recording",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"screencap {__version__}")
        raise typer.Exit()


def apply_settings(assignments):
    """Persist KEY=VALUE pairs to the config file."""
    cfg = config.load_config()
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if not sep or key not in config.DEFAULTS:
            console.print(
                f"[red]❌ Invalid setting: {assignment}. Keys: {', '.join(config.DEFAULTS)}[/red]"
            )
            raise typer.Exit(1)
        if key in config.INT_KEYS:
            try:
                cfg[key] = config.positive_int(value)
            except ValueError:
                console.print(f"[red]❌ Invalid value for {key}: must be an integer of at least 1[/red]")
                raise typer.Exit(1)
        else:
            cfg[key] = value
        console.print(f"[green]✅ Set {key} to {value}[/green]")
    path = config.save_config(cfg)
    console.print(f"[dim]Saved to {path}[/dim]")


def show_status():
    """Print the state of the recording session."""
    handle, stale = session.session_status()
    if stale is not None:
        console.print(f"[yellow]⚠ {stale}[/yellow]")
        console.print("[dim]It will be cleared by the next 'screencap -v'.[/dim]")
        return
    if handle is None:
        console.print("[dim]No recording in progress[/dim]")
        return

    table = Table(title="Recording in progress")
    table.add_column("PID", style="cyan")
    table.add_column("Output", style="green")
    table.add_column("Progress", style="yellow")
    table.add_row(
        str(handle.pid),
        str(handle.output_path),
        progress.summarize(handle.last_status) if handle.last_status else "-",
    )
    console.print(table)


def take_screenshot(output, window, area, cfg):
    path = paths.resolve_output(output, cfg["picture_dir"], paths.IMAGE_EXTENSION)
    still.capture_still(path, window=window, area=area)
    notify.notify_saved(path, "Screenshot")
    console.print(f"[cyan]Capture saved to: {path}[/cyan]")


def toggle_recording(output, window, framerate, screen, cfg):
    """Stop the running recording, or start one if none is running."""
    handle, stale = session.stop_recording()
    if handle is not None:
        console.print(f"[green]✅ Recording stopped (pid {handle.pid})[/green]")
        notify.notify_saved(handle.output_path, "Recording")
        console.print(f"[cyan]Capture saved to: {handle.output_path}[/cyan]")
        return

    if stale is not None:
        console.print(f"[yellow]⚠ {stale}; cleared it[/yellow]")

    plan = session.prepare_recording(
        output,
        framerate=framerate,
        screen=screen,
        window=window,
        quality=cfg["quality"],
        video_dir=cfg["video_dir"],
    )
    console.print(
        f"[dim]Video: {plan.codecs.video_encoder} {' '.join(plan.codecs.video_options)}[/dim]"
    )
    console.print(
        f"[dim]Audio: {plan.codecs.audio_encoder} @ {plan.codecs.audio_bitrate}[/dim]"
    )
    console.print(
        f"[dim]Region: {plan.geometry.size} at "
        f"({plan.geometry.offset_x}, {plan.geometry.offset_y}), {framerate} fps[/dim]"
    )
    if plan.audio.monitor_source is None:
        console.print(
            "[yellow]⚠ No audio sink is running; recording "
            f"'{plan.audio.input_source}' input only[/yellow]"
        )

    proc, handle = session.begin_recording(plan)
    console.print(f"[green]✅ Recording started (pid {proc.pid})[/green]")
    console.print(f"[dim]Recording to: {plan.output_path}[/dim]")
    console.print("[yellow]Run 'screencap -v' again to stop.[/yellow]")

    session.follow_recording(proc, handle)
    console.print(f"[cyan]Capture saved to: {plan.output_path}[/cyan]")


@app.command()
def main(
    output: Optional[str] = typer.Argument(
        None, help="Output file (default: <host>.<timestamp> under ~/Pictures/Screenshot or ~/Videos/Screenshot)"
    ),
    video: bool = typer.Option(False, "-v", "--video", help="Start a screen recording, or stop the running one"),
    window: bool = typer.Option(False, "-w", "--window", help="Capture the active window"),
    area: bool = typer.Option(False, "-a", "--area", help="Select an area to capture (screenshots only)"),
    rate: Optional[int] = typer.Option(None, "-r", "--rate", min=1, help="Recording framerate (default: from config or 30)"),
    screen: Optional[str] = typer.Option(None, "-s", "--screen", help="X screen index (default: from config or 0)"),
    status: bool = typer.Option(False, "--status", help="Show the running recording and exit"),
    settings: List[str] = typer.Option(None, "--set", metavar="KEY=VALUE", help="Save a config value and exit"),
    version: bool = typer.Option(False, "--version", callback=version_callback, is_eager=True, help="Show version and exit"),
):
    """Take a screenshot, or toggle a screen recording with -v."""
    if settings:
        apply_settings(settings)
        return

    if status:
        show_status()
        return

    if video and area:
        console.print("[red]❌ Error: Area selection is not supported for recordings[/red]")
        raise typer.Exit(1)

    cfg = config.load_config()
    framerate = rate or cfg["framerate"]
    screen = screen if screen is not None else cfg["screen"]

    try:
        if video:
            toggle_recording(output, window, framerate, screen, cfg)
        else:
            take_screenshot(output, window, area, cfg)
    except ScreencapError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

"""Device resolver: capture geometry from X11 and audio endpoints from PulseAudio."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from .errors import ExternalToolFailure, ScreencapError

DEFAULT_INPUT_SOURCE = "default"


@dataclass(frozen=True)
class CaptureGeometry:
    width: int
    height: int
    offset_x: int = 0
    offset_y: int = 0

    @property
    def size(self) -> str:
        """ffmpeg -video_size value."""
        return f"{self.width}x{self.height}"

    def x11grab_input(self, display: str) -> str:
        """x11grab -i value: <display>+X,Y."""
        return f"{display}+{self.offset_x},{self.offset_y}"


@dataclass(frozen=True)
class AudioEndpoints:
    monitor_source: Optional[str]
    input_source: str = DEFAULT_INPUT_SOURCE


def _output_lines(command: List[str]) -> List[str]:
    """Run command and return its stdout lines, failing fast on any error."""
    try:
        result = subprocess.run(command, capture_output=True, text=True)
    except OSError as e:
        raise ExternalToolFailure(command, stderr=str(e)) from e
    if result.returncode != 0:
        raise ExternalToolFailure(command, result.returncode, result.stderr)
    return result.stdout.splitlines()


def _field(lines: List[str], label: str, command: str) -> int:
    """Integer following "label:" on the first line that contains it."""
    pattern = re.compile(re.escape(label) + r":\s*(-?\d+)")
    for line in lines:
        match = pattern.search(line)
        if match:
            return int(match.group(1))
    raise ScreencapError(f"{command} output has no '{label}' field")


def x11_display(screen="0"):
    """X11 display string for the given screen, e.g. ':0.1'.

    Any screen number already in $DISPLAY is replaced by the requested one.
    """
    display = os.environ.get("DISPLAY") or ":0"
    host_part, _, number = display.rpartition(":")
    number = number.split(".", 1)[0]
    return f"{host_part}:{number}.{screen}"


def screen_geometry(screen="0") -> CaptureGeometry:
    """Dimensions of the given X screen, anchored at the origin."""
    lines = _output_lines(["xdpyinfo"])
    header = f"screen #{screen}:"
    dimensions = re.compile(r"dimensions:\s*(\d+)x(\d+)")

    in_screen = False
    for line in lines:
        if line.strip().startswith(header):
            in_screen = True
            continue
        if in_screen:
            match = dimensions.search(line)
            if match:
                return CaptureGeometry(int(match.group(1)), int(match.group(2)))

    raise ScreencapError(f"xdpyinfo reports no dimensions for screen #{screen}")


def active_window() -> str:
    """X11 id of the focused window, as reported by the window manager."""
    lines = _output_lines(["xprop", "-root", "_NET_ACTIVE_WINDOW"])
    for line in lines:
        match = re.search(r"window id # (0x[0-9a-fA-F]+)", line)
        if match:
            return match.group(1)
    raise ScreencapError("No active window reported by xprop")


def window_geometry(window_id: str) -> CaptureGeometry:
    """Size and absolute position of a window."""
    lines = _output_lines(["xwininfo", "-id", window_id])
    return CaptureGeometry(
        width=_field(lines, "Width", "xwininfo"),
        height=_field(lines, "Height", "xwininfo"),
        offset_x=_field(lines, "Absolute upper-left X", "xwininfo"),
        offset_y=_field(lines, "Absolute upper-left Y", "xwininfo"),
    )


def resolve_geometry(screen="0", window=False, video=False) -> CaptureGeometry:
    """Active-window bounds for window video capture, full screen otherwise."""
    if window and video:
        return window_geometry(active_window())
    return screen_geometry(screen)


def running_sink() -> Optional[str]:
    """Name of the first PulseAudio sink in RUNNING state."""
    for line in _output_lines(["pactl", "list", "short", "sinks"]):
        fields = line.split("\t")
        if len(fields) >= 2 and fields[-1].strip().upper() == "RUNNING":
            return fields[1]
    return None


def audio_endpoints() -> AudioEndpoints:
    """Monitor of the running sink (if any) plus the default input source."""
    sink = running_sink()
    monitor = f"{sink}.monitor" if sink else None
    return AudioEndpoints(monitor_source=monitor)

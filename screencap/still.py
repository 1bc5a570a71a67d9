"""Still capture: hand a full-screen, window or area screenshot to gnome-screenshot."""

import subprocess

from .errors import ExternalToolFailure

SCREENSHOT_TOOL = "gnome-screenshot"


def screenshot_command(output, window=False, area=False):
    """Argument list for the requested still-capture mode."""
    cmd = [SCREENSHOT_TOOL, "-f", str(output)]
    if window:
        cmd.append("-w")
    elif area:
        cmd.append("-a")
    return cmd


def capture_still(output, window=False, area=False):
    """Take the screenshot, raising ExternalToolFailure if the tool fails."""
    cmd = screenshot_command(output, window=window, area=area)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ExternalToolFailure(cmd, stderr=str(e)) from e
    if result.returncode != 0:
        raise ExternalToolFailure(cmd, result.returncode, result.stderr)
    return output

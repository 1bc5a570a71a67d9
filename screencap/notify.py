"""Desktop notifications through notify-send."""

import subprocess

from .errors import ExternalToolFailure

NOTIFY_TOOL = "notify-send"


def notify(summary, body="", urgency="low"):
    """Show a desktop notification."""
    cmd = [NOTIFY_TOOL, "-u", urgency, summary]
    if body:
        cmd.append(body)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ExternalToolFailure(cmd, stderr=str(e)) from e
    if result.returncode != 0:
        raise ExternalToolFailure(cmd, result.returncode, result.stderr)


def notify_saved(path, kind="Screenshot"):
    """Announce a saved capture."""
    notify(f"{kind} saved", str(path))

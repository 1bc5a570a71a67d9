"""Output targets: where captures are written and how they are named."""

import socket
from datetime import datetime
from pathlib import Path

TIMESTAMP_FORMAT = "%Y-%m-%d.%H%M.%S"

VIDEO_EXTENSION = "mkv"
IMAGE_EXTENSION = "png"


def short_hostname():
    """Host name up to the first dot."""
    return socket.gethostname().split(".")[0]


def generate_filename(extension, now=None):
    """Build <host>.<timestamp>.<extension>."""
    now = now or datetime.now()
    return f"{short_hostname()}.{now.strftime(TIMESTAMP_FORMAT)}.{extension}"


def resolve_output(explicit, directory, extension, now=None):
    """Return the absolute output path, creating its parent directory.

    An explicit path is used as given (made absolute); otherwise a timestamped
    name is generated under directory.
    """
    if explicit:
        path = Path(explicit).expanduser().absolute()
    else:
        path = Path(directory).expanduser().absolute() / generate_filename(extension, now)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path

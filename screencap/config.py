"""Configuration: state directory layout and the user's JSON config file."""

import json
import os
from pathlib import Path

HOME = Path.home()

DEFAULTS = {
    "framerate": 30,
    "screen": "0",
    "quality": 16,
    "video_dir": str(HOME / "Videos" / "Screenshot"),
    "picture_dir": str(HOME / "Pictures" / "Screenshot"),
}

# Keys holding integers that must be at least 1.
INT_KEYS = ("framerate", "quality")


def positive_int(value):
    """int(value), rejecting anything below 1."""
    number = int(value)
    if number < 1:
        raise ValueError(f"{value!r} is below 1")
    return number


def state_dir():
    """Directory holding the config file and the recording session files."""
    override = os.environ.get("SCREENCAP_HOME")
    if override:
        return Path(override).expanduser()
    return HOME / ".screencap"


def config_file():
    return state_dir() / "config.json"


def load_config(path=None):
    """Read the config file and merge it over the defaults.

    A missing or unreadable file yields the defaults. Unknown keys are ignored.
    """
    path = Path(path) if path else config_file()
    config = dict(DEFAULTS)
    if not path.exists():
        return config

    try:
        with open(path, "r") as f:
            stored = json.load(f)
    except (ValueError, IOError):
        return config

    if not isinstance(stored, dict):
        return config

    for key in DEFAULTS:
        if key in stored:
            config[key] = stored[key]

    for key in INT_KEYS:
        try:
            config[key] = positive_int(config[key])
        except (TypeError, ValueError):
            config[key] = DEFAULTS[key]
    config["screen"] = str(config["screen"])
    return config


def save_config(config, path=None):
    """Write the known keys of config back to disk."""
    path = Path(path) if path else config_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {key: config[key] for key in DEFAULTS if key in config}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path

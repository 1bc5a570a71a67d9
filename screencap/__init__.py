"""screencap: screenshot and toggle-style screen recording for X11 desktops."""

__version__ = "0.1.0"

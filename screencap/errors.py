"""Errors raised by the capture pipeline."""


class ScreencapError(RuntimeError):
    """Base class for every failure the CLI reports to the user."""


class CapabilityUnavailable(ScreencapError):
    """ffmpeg lacks an encoder or format needed to record."""


class StaleSession(ScreencapError):
    """A pid file exists but the process it names is gone or is not ours."""

    def __init__(self, pid, reason):
        super().__init__(f"Stale recording session (pid {pid}): {reason}")
        self.pid = pid
        self.reason = reason


class ExternalToolFailure(ScreencapError):
    """An external command could not run or exited non-zero."""

    def __init__(self, command, returncode=None, stderr=""):
        name = command[0] if command else "?"
        if returncode is None:
            message = f"Could not run {name}"
        else:
            message = f"{name} exited with status {returncode}"
        detail = (stderr or "").strip()
        if detail:
            message = f"{message}: {detail.splitlines()[-1]}"
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr

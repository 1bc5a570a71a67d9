"""Session management: the persisted recording handle and its lifecycle.

A recording is tracked by two files in the state directory:

* ``recording.pid`` holds the ffmpeg process id. Its presence means a
  recording may be active.
* ``recording.log`` holds the output path on its first line and the latest
  ffmpeg progress text after it.

Nothing outside this module touches those files.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import psutil

from . import capture, config, devices, paths, probe, progress
from .errors import ExternalToolFailure, ScreencapError, StaleSession

PID_FILE_NAME = "recording.pid"
LOG_FILE_NAME = "recording.log"


class SessionConflict(ScreencapError):
    """Another invocation created the pid file first."""


def pid_file(state=None) -> Path:
    return Path(state or config.state_dir()) / PID_FILE_NAME


def log_file(state=None) -> Path:
    return Path(state or config.state_dir()) / LOG_FILE_NAME


def _read_pid(state=None) -> Optional[int]:
    """Pid stored in the pid file, or None if the file is missing or garbled."""
    try:
        return int(pid_file(state).read_text().strip())
    except (ValueError, IOError):
        return None


@dataclass
class SessionHandle:
    """An active (or possibly stale) recording."""

    pid: int
    output_path: Path
    last_status: str = ""

    @classmethod
    def load(cls, state=None) -> Optional["SessionHandle"]:
        """Read the handle from disk.

        Returns None when no pid file exists. Raises StaleSession when the
        files exist but cannot be interpreted.
        """
        if not pid_file(state).exists():
            return None

        pid = _read_pid(state)
        if pid is None:
            raise StaleSession("?", "pid file is unreadable")

        try:
            lines = log_file(state).read_text().splitlines()
        except IOError:
            lines = []
        if not lines or not lines[0].strip():
            raise StaleSession(pid, "log file has no output path")

        status = lines[-1].strip() if len(lines) > 1 else ""
        return cls(pid=pid, output_path=Path(lines[0].strip()), last_status=status)

    def save(self, state=None):
        """Persist the handle. The pid file is created exclusively.

        Raises SessionConflict if a pid file already exists.
        """
        pf = pid_file(state)
        pf.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(str(pf), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            raise SessionConflict(f"A recording session already exists ({pf})")
        with os.fdopen(fd, "w") as f:
            f.write(f"{self.pid}\n")
        self.write_status(self.last_status, state)

    def write_status(self, line, state=None):
        """Replace the log file: output path, then the latest progress text."""
        self.last_status = line
        with open(log_file(state), "w") as f:
            f.write(f"{self.output_path}\n")
            if line:
                f.write(f"{line}\n")

    def is_current(self, state=None) -> bool:
        """True while the pid file still names this handle's process."""
        return _read_pid(state) == self.pid

    @staticmethod
    def delete(state=None):
        """Remove both session files."""
        for path in (pid_file(state), log_file(state)):
            if path.exists():
                path.unlink()


def verify_process(handle: SessionHandle):
    """Check that handle.pid is a live ffmpeg writing handle.output_path.

    Raises StaleSession otherwise. The command-line check guards against the
    pid having been reused by an unrelated process.
    """
    try:
        proc = psutil.Process(handle.pid)
        if proc.status() == psutil.STATUS_ZOMBIE:
            raise StaleSession(handle.pid, "process has exited")
        cmdline = proc.cmdline()
    except psutil.NoSuchProcess:
        raise StaleSession(handle.pid, "process is not running")
    except psutil.AccessDenied:
        raise StaleSession(handle.pid, "process belongs to another user")

    if not cmdline or "ffmpeg" not in os.path.basename(cmdline[0]):
        raise StaleSession(handle.pid, "process is not ffmpeg")
    if str(handle.output_path) not in cmdline:
        raise StaleSession(handle.pid, "process is recording a different file")


def session_status(state=None):
    """Current session without changing anything on disk.

    Returns (handle, stale): a live handle and None, (None, StaleSession) for
    leftover files, or (None, None) when idle.
    """
    try:
        handle = SessionHandle.load(state)
        if handle is None:
            return None, None
        verify_process(handle)
    except StaleSession as e:
        return None, e
    return handle, None


def stop_recording(state=None):
    """Stop the active recording, if there is one.

    Returns (handle, stale). On success handle is the stopped session and its
    files are gone. When there is nothing to stop, handle is None; stale
    describes leftover files that were cleared, and the caller may go on to
    start a new recording.
    """
    handle, stale = session_status(state)
    if handle is None:
        if stale is not None:
            SessionHandle.delete(state)
        return None, stale

    # Remove the files before signaling so the recorder's monitor sees a
    # requested stop rather than a crash.
    SessionHandle.delete(state)
    if not capture.signal_process(handle.pid):
        return None, StaleSession(handle.pid, "process could not be signaled")
    return handle, None


@dataclass
class RecordingPlan:
    """Everything resolved before ffmpeg is launched."""

    codecs: probe.SelectedCodecs
    geometry: devices.CaptureGeometry
    audio: devices.AudioEndpoints
    output_path: Path
    command: List[str]


def prepare_recording(output=None, framerate=30, screen="0", window=False,
                      quality=probe.QUALITY, video_dir=None) -> RecordingPlan:
    """Probe ffmpeg, resolve devices and the output path, build the command.

    Raises CapabilityUnavailable before anything is written to disk.
    """
    codecs = probe.probe(quality)
    geometry = devices.resolve_geometry(screen, window=window, video=True)
    audio = devices.audio_endpoints()

    output_path = paths.resolve_output(
        output,
        video_dir or config.DEFAULTS["video_dir"],
        paths.VIDEO_EXTENSION,
    )
    command = capture.build_command(
        codecs,
        geometry,
        audio,
        output_path,
        framerate,
        capture.physical_cores(),
        devices.x11_display(screen),
    )
    return RecordingPlan(codecs, geometry, audio, output_path, command)


def begin_recording(plan: RecordingPlan, state=None):
    """Launch ffmpeg and persist its handle. Returns (proc, handle)."""
    proc = capture.launch(plan.command)
    handle = SessionHandle(pid=proc.pid, output_path=plan.output_path)
    try:
        handle.save(state)
    except SessionConflict:
        proc.terminate()
        proc.wait()
        raise
    return proc, handle


def follow_recording(proc, handle: SessionHandle, state=None):
    """Copy ffmpeg's progress into the log file until the process exits.

    Returns the exit status. If ffmpeg exits on its own (no stop was
    requested) the session files are cleared, and a non-zero status raises
    ExternalToolFailure.
    """
    owned = True
    for line in progress.iter_updates(proc.stderr):
        handle.last_status = line
        if not owned:
            continue
        if handle.is_current(state):
            handle.write_status(line, state)
        # A stop may have removed the files between the check and the write.
        if not handle.is_current(state):
            owned = False
            _discard_orphan_log(state)

    returncode = proc.wait()
    if handle.is_current(state):
        SessionHandle.delete(state)
        if returncode != 0:
            raise ExternalToolFailure(proc.args, returncode, handle.last_status)
    return returncode


def _discard_orphan_log(state=None):
    """Remove a log file left without a pid file beside it."""
    if not pid_file(state).exists():
        try:
            log_file(state).unlink()
        except FileNotFoundError:
            pass

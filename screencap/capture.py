"""Capture engine: build the ffmpeg invocation and manage its process."""

import os
import signal
import subprocess

import psutil

from .errors import ExternalToolFailure
from .probe import FFMPEG

CONTAINER = "matroska"


def physical_cores():
    """Number of physical CPU cores, falling back to logical ones."""
    return psutil.cpu_count(logical=False) or psutil.cpu_count() or 1


def build_command(codecs, geometry, audio, output, framerate, threads, display):
    """Assemble the ffmpeg argument list for a screen recording.

    Input 0 is the x11grab screen grab. When a monitor source is present it
    becomes input 1 and the live input source input 2, mixed into one track;
    otherwise the live input source is input 1.
    """
    cmd = [
        FFMPEG, "-hide_banner", "-nostdin",
        "-threads", str(threads),
        "-y",
        "-f", "x11grab",
        "-draw_mouse", "1",
        "-framerate", str(framerate),
        "-video_size", geometry.size,
        "-i", geometry.x11grab_input(display),
    ]

    if audio.monitor_source:
        cmd += ["-f", "pulse", "-i", audio.monitor_source]
    cmd += ["-f", "pulse", "-i", audio.input_source]

    if audio.monitor_source:
        cmd += [
            "-filter_complex", "[1:a][2:a]amix=inputs=2:duration=longest[aout]",
            "-map", "0:v", "-map", "[aout]",
        ]
    else:
        cmd += ["-map", "0:v", "-map", "1:a"]

    cmd += ["-c:v", codecs.video_encoder, *codecs.video_options]
    cmd += ["-c:a", codecs.audio_encoder, "-b:a", codecs.audio_bitrate]
    cmd += ["-f", CONTAINER, str(output)]
    return cmd


def launch(cmd):
    """Start the capture process in its own session with stderr piped.

    The new session keeps a terminal's Ctrl-C from reaching ffmpeg, so only
    an explicit stop ends the recording.
    """
    try:
        return subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            preexec_fn=os.setsid,
        )
    except OSError as e:
        raise ExternalToolFailure(cmd, stderr=str(e)) from e


def signal_process(pid, sig=signal.SIGTERM):
    """Send sig to pid. Returns False if the process could not be signaled."""
    try:
        os.kill(pid, sig)
    except OSError:
        return False
    return True

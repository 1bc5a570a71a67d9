"""Shared pytest fixtures for screencap tests."""

import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest

CODECS_LISTING = """\
Codecs:
 D..... = Decoding supported
 .E.... = Encoding supported
 ..V... = Video codec
 ..A... = Audio codec
 ..S... = Subtitle codec
 ...I.. = Intra frame-only codec
 ....L. = Lossy compression
 .....S = Lossless compression
 -------
 DEV.LS h264                 H.264 / AVC / MPEG-4 AVC / MPEG-4 part 10 (decoders: h264 h264_v4l2m2m h264_cuvid ) (encoders: libx264 libx264rgb h264_nvenc h264_vaapi )
 DEV.L. vp8                  On2 VP8 (decoders: vp8 libvpx ) (encoders: libvpx )
 DEV.L. vp9                  Google VP9 (decoders: vp9 libvpx-vp9 ) (encoders: libvpx-vp9 )
 DEA.L. aac                  AAC (Advanced Audio Coding) (decoders: aac aac_fixed )
 DEA.L. ac3                  ATSC A/52A (AC-3) (decoders: ac3 ac3_fixed ) (encoders: ac3 ac3_fixed )
 DEA.L. mp3                  MP3 (MPEG audio layer 3) (decoders: mp3float mp3 ) (encoders: libmp3lame )
 D.A.L. wmav2                Windows Media Audio 2
"""

FORMATS_LISTING = """\
File formats:
 D. = Demuxing supported
 .E = Muxing supported
 --
 D  x11grab         X11 screen capture, using XCB
 DE pulse           Pulse audio output
  E matroska        Matroska
 D  matroska,webm   Matroska / WebM
  E mp4             MP4 (MPEG-4 Part 14)
"""

XDPYINFO_OUTPUT = """\
name of display:    :0
version number:    11.0
number of screens:    2

screen #0:
  dimensions:    1920x1080 pixels (508x285 millimeters)
  resolution:    96x96 dots per inch

screen #1:
  dimensions:    2560x1440 pixels (677x381 millimeters)
  resolution:    96x96 dots per inch
"""

XWININFO_OUTPUT = """\

xwininfo: Window id: 0x3a00007 "Terminal"

  Absolute upper-left X:  120
  Absolute upper-left Y:  64
  Relative upper-left X:  0
  Relative upper-left Y:  0
  Width: 1280
  Height: 720
  Depth: 24
"""

PACTL_SINKS = (
    "0\talsa_output.hdmi-stereo\tmodule-alsa-card.c\ts16le 2ch 44100Hz\tSUSPENDED\n"
    "1\talsa_output.pci-0000_00_1f.3.analog-stereo\tmodule-alsa-card.c\ts16le 2ch 44100Hz\tRUNNING\n"
)


def completed(stdout="", returncode=0, stderr=""):
    """Stand-in for subprocess.CompletedProcess."""
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


def fake_process(pid=4242, stderr=b"", returncode=0, args=None):
    """Stand-in for a running ffmpeg Popen object."""
    proc = MagicMock()
    proc.pid = pid
    proc.stderr = io.BytesIO(stderr)
    proc.wait.return_value = returncode
    proc.args = args or ["ffmpeg"]
    return proc


@pytest.fixture
def codecs_listing() -> str:
    return CODECS_LISTING


@pytest.fixture
def formats_listing() -> str:
    return FORMATS_LISTING


@pytest.fixture
def state_dir(tmp_path: Path, monkeypatch) -> Path:
    """Isolated screencap state directory."""
    state = tmp_path / "state"
    monkeypatch.setenv("SCREENCAP_HOME", str(state))
    return state


@pytest.fixture
def video_dir(tmp_path: Path) -> Path:
    return tmp_path / "Videos" / "Screenshot"

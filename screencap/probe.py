"""Capability prober: which ffmpeg encoders and formats are installed.

ffmpeg is queried once per invocation. ``-codecs`` lists one codec family
per line with the encoder implementations in a parenthesized group::

    DEV.LS h264   H.264 / AVC (decoders: h264 h264_qsv ) (encoders: libx264 h264_nvenc )

``-formats`` lists muxers (E) and demuxers (D); newer releases add a ``d``
flag for devices::

    D d x11grab   X11 screen capture, using XCB
      E  matroska Matroska
"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Set, Tuple

from .errors import CapabilityUnavailable, ExternalToolFailure

FFMPEG = "ffmpeg"

# Constant-rate-factor applied to whichever video encoder wins (lower = better).
QUALITY = 16

VIDEO_PREFERENCES: Tuple[Tuple[str, str], ...] = (
    ("h264", "libx264"),
    ("vp9", "libvpx-vp9"),
    ("vp8", "libvpx"),
)

AUDIO_PREFERENCES: Tuple[Tuple[str, str], ...] = (
    ("aac", "libfdk_aac"),
    ("aac", "aac"),
    ("ac3", "ac3"),
    ("mp3", "libmp3lame"),
)

# Encoders recorded with in place of the one that was probed for.
# AC3 records through the MP3 encoder; see DESIGN.md.
ENCODER_SUBSTITUTES = {
    "ac3": "libmp3lame",
}

AUDIO_BITRATES = {
    "aac": "256k",
    "ac3": "256k",
    "mp3": "320k",
}

# (format name, flag that must be present): D = demux, E = mux.
REQUIRED_FORMATS: Tuple[Tuple[str, str], ...] = (
    ("x11grab", "D"),
    ("pulse", "D"),
    ("matroska", "E"),
)

_ENCODERS_RE = re.compile(r"\(encoders:\s*([^)]*)\)")
_FLAG_TOKEN_RE = re.compile(r"^[DEd.]+$")


@dataclass(frozen=True)
class SelectedCodecs:
    """Encoders picked for one recording; None means the family is unavailable."""

    video_encoder: Optional[str]
    video_options: Tuple[str, ...]
    audio_encoder: Optional[str]
    audio_bitrate: str

    @property
    def available(self) -> bool:
        return self.video_encoder is not None and self.audio_encoder is not None

    def missing(self) -> Tuple[str, ...]:
        """Names of the stream kinds that have no encoder."""
        gaps = []
        if self.video_encoder is None:
            gaps.append("video")
        if self.audio_encoder is None:
            gaps.append("audio")
        return tuple(gaps)


def _run_ffmpeg(*args: str) -> str:
    command = [FFMPEG, "-hide_banner", *args]
    try:
        result = subprocess.run(command, capture_output=True, text=True)
    except OSError as e:
        raise ExternalToolFailure(command, stderr=str(e)) from e
    if result.returncode != 0:
        raise ExternalToolFailure(command, result.returncode, result.stderr)
    return result.stdout


def list_codecs() -> str:
    """Raw output of ``ffmpeg -codecs``."""
    return _run_ffmpeg("-codecs")


def list_formats() -> str:
    """Raw output of ``ffmpeg -formats``."""
    return _run_ffmpeg("-formats")


def parse_codecs(text: str) -> Dict[str, Set[str]]:
    """Map each codec family to the set of encoders ffmpeg reports for it."""
    codecs: Dict[str, Set[str]] = {}
    in_table = False

    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("---"):
            in_table = True
            continue
        if not in_table or not stripped:
            continue

        parts = stripped.split(None, 2)
        if len(parts) < 2 or len(parts[0]) != 6:
            continue
        flags, family = parts[0], parts[1]
        rest = parts[2] if len(parts) > 2 else ""

        match = _ENCODERS_RE.search(rest)
        if match:
            encoders = set(match.group(1).split())
        elif flags[1] == "E":
            # Native encoder sharing the family name, e.g. "aac" or "ac3".
            encoders = {family}
        else:
            encoders = set()
        codecs[family] = encoders

    return codecs


def parse_formats(text: str) -> Dict[str, Set[str]]:
    """Map each format name to its capability flags ({'D', 'E', 'd'})."""
    formats: Dict[str, Set[str]] = {}
    in_table = False

    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("--"):
            in_table = True
            continue
        if not in_table or not stripped:
            continue

        tokens = stripped.split()
        flags: Set[str] = set()
        index = 0
        while index < len(tokens) and _FLAG_TOKEN_RE.match(tokens[index]):
            flags.update(tokens[index].replace(".", ""))
            index += 1
        if index >= len(tokens) or not flags:
            continue

        for name in tokens[index].split(","):
            formats.setdefault(name, set()).update(flags)

    return formats


def has_encoder(codecs: Dict[str, Set[str]], family: str, encoder: str) -> bool:
    """True if encoder is listed under family."""
    return encoder in codecs.get(family, ())


def select_encoder(
    codecs: Dict[str, Set[str]], preferences: Iterable[Tuple[str, str]]
) -> Optional[Tuple[str, str]]:
    """Return the first (family, encoder) pair present in codecs."""
    for family, encoder in preferences:
        if has_encoder(codecs, family, encoder):
            return family, encoder
    return None


def video_options(encoder: str, quality: int = QUALITY) -> Tuple[str, ...]:
    """Encoder arguments for a constant-quality recording."""
    if encoder == "libx264":
        return ("-preset", "fast", "-crf", str(quality))
    # libvpx only honours -crf as constant quality when the bitrate is zeroed.
    return ("-crf", str(quality), "-b:v", "0", "-deadline", "realtime")


def select_codecs(codecs: Dict[str, Set[str]], quality: int = QUALITY) -> SelectedCodecs:
    """Pick the video and audio encoders by ordinal preference."""
    video = select_encoder(codecs, VIDEO_PREFERENCES)
    audio = select_encoder(codecs, AUDIO_PREFERENCES)

    video_encoder = video[1] if video else None
    options = video_options(video_encoder, quality) if video_encoder else ()

    if audio:
        audio_family, audio_encoder = audio
        audio_encoder = ENCODER_SUBSTITUTES.get(audio_encoder, audio_encoder)
        bitrate = AUDIO_BITRATES[audio_family]
    else:
        audio_encoder, bitrate = None, ""

    return SelectedCodecs(
        video_encoder=video_encoder,
        video_options=options,
        audio_encoder=audio_encoder,
        audio_bitrate=bitrate,
    )


def check_formats(formats: Dict[str, Set[str]]) -> None:
    """Raise CapabilityUnavailable unless every required format is supported."""
    missing = [
        name for name, flag in REQUIRED_FORMATS
        if flag not in formats.get(name, ())
    ]
    if missing:
        raise CapabilityUnavailable(
            f"ffmpeg lacks required formats: {', '.join(missing)}"
        )


def probe(quality: int = QUALITY) -> SelectedCodecs:
    """Query ffmpeg and return the codecs to record with.

    Raises CapabilityUnavailable when either stream kind has no encoder or a
    required input/output format is missing.
    """
    selected = select_codecs(parse_codecs(list_codecs()), quality)
    if not selected.available:
        raise CapabilityUnavailable(
            f"No usable {' or '.join(selected.missing())} encoder found in ffmpeg"
        )
    check_formats(parse_formats(list_formats()))
    return selected

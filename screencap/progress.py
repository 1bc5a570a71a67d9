"""Progress stream: turn ffmpeg's stderr into clean status lines."""

import codecs
import re

# ffmpeg redraws its progress line with carriage returns.
_LINE_BREAK = re.compile(r"[\r\n]+")

_OSC_ESCAPE = re.compile(r'\x1B\].*?(?:\x07|\x1B\\)')
_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

_PROGRESS_FIELD = re.compile(r'(\w+)=\s*(\S+)')


def clean_text(text):
    """Remove ANSI escape codes and apply backspaces."""
    text = _OSC_ESCAPE.sub('', text)
    text = _ANSI_ESCAPE.sub('', text)

    chars = []
    for c in text:
        if c == '\x08':
            if chars:
                chars.pop()
        else:
            chars.append(c)

    return "".join(chars)


def iter_updates(stream, chunk_size=4096):
    """Yield each non-empty line written to a binary stream.

    Lines end at either a newline or a carriage return. A trailing partial
    line is yielded once the stream closes.
    """
    pending = ""
    # Multibyte characters may be split across reads.
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    read = getattr(stream, "read1", stream.read)

    while True:
        chunk = read(chunk_size)
        if not chunk:
            break
        pending += decoder.decode(chunk)
        pieces = _LINE_BREAK.split(pending)
        pending = pieces.pop()
        for piece in pieces:
            line = clean_text(piece).strip()
            if line:
                yield line

    pending += decoder.decode(b"", final=True)
    line = clean_text(pending).strip()
    if line:
        yield line


def parse_progress(line):
    """Parse an ffmpeg progress line ("frame=  42 fps= 30 ... time=...") into a dict.

    Returns an empty dict for lines that are not progress reports.
    """
    if "frame=" not in line and "size=" not in line:
        return {}
    return dict(_PROGRESS_FIELD.findall(line))


def summarize(line):
    """Short human-readable form of a progress line, or the line itself."""
    fields = parse_progress(line)
    if not fields:
        return line

    parts = []
    if "time" in fields:
        parts.append(fields["time"])
    if "frame" in fields:
        parts.append(f"{fields['frame']} frames")
    if "fps" in fields:
        parts.append(f"{fields['fps']} fps")
    if "size" in fields:
        parts.append(fields["size"])
    return ", ".join(parts) if parts else line

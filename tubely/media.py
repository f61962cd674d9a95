"""Media types, asset storage and video inspection helpers."""

from __future__ import annotations

import base64
import json
import logging
import os
import re
import secrets
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

_MIME_WORD = r'[^\x00-\x20\x7f-\U0010ffff()<>@,;:\\"/\[\]?=]+'
_MIME_WORD_RE = re.compile(_MIME_WORD)
_PARAM_RE = re.compile(
    rf'\s*;\s*({_MIME_WORD})\s*=\s*("(?:[^"\\]|\\.)*"|{_MIME_WORD})'
)
_ESCAPE_RE = re.compile(r"\\(.)")

_ASPECT_TOLERANCE = 0.1


def get_file_extension(media_type: str) -> str:
    """Return the subtype of a media type, or "bin" if it has no single slash."""
    parts = media_type.split("/")
    if len(parts) != 2:
        return "bin"
    return parts[1]


def ensure_assets_dir(path) -> None:
    """Create the assets directory if it does not exist."""
    directory = Path(path)
    if not directory.exists():
        os.mkdir(directory, 0o755)


def _check_media_type(media_type: str) -> None:
    match = _MIME_WORD_RE.match(media_type)
    if match is None:
        raise ValueError("mime: no media type")
    rest = media_type[match.end():]
    if not rest:
        return
    if not rest.startswith("/"):
        raise ValueError("mime: expected slash after first token")
    sub = _MIME_WORD_RE.match(rest, 1)
    if sub is None:
        raise ValueError("mime: expected token after slash")
    if sub.end() != len(rest):
        raise ValueError("mime: unexpected content after media subtype")


def parse_media_type(content_type: str) -> tuple[str, dict[str, str]]:
    """Split a Content-Type value into a lower-case media type and its parameters."""
    base, _, _ = content_type.partition(";")
    media_type = base.strip().lower()
    _check_media_type(media_type)

    params: dict[str, str] = {}
    rest = content_type[len(base):]
    pos = 0
    while True:
        remaining = rest[pos:].strip()
        if remaining in ("", ";"):
            break
        match = _PARAM_RE.match(rest, pos)
        if match is None:
            raise ValueError("mime: invalid media parameter")
        key = match.group(1).lower()
        value = match.group(2)
        if value.startswith('"'):
            value = _ESCAPE_RE.sub(r"\1", value[1:-1])
        if key in params:
            raise ValueError("mime: duplicate parameter name")
        params[key] = value
        pos = match.end()
    return media_type, params


def classify_aspect_ratio(width: int, height: int) -> str:
    """Name the aspect ratio of a frame: "16:9", "9:16" or "other"."""
    if height == 0:
        return "other"
    ratio = width / height
    if abs(ratio - 16.0 / 9.0) <= _ASPECT_TOLERANCE:
        return "16:9"
    if abs(ratio - 9.0 / 16.0) <= _ASPECT_TOLERANCE:
        return "9:16"
    return "other"


def get_video_aspect_ratio(file_path) -> str:
    """Probe a video file with ffprobe and classify its first stream's aspect ratio."""
    result = subprocess.run(
        ["ffprobe", "-v", "error", "-print_format", "json", "-show_streams", str(file_path)],
        stdout=subprocess.PIPE,
        check=True,
    )
    try:
        probe = json.loads(result.stdout)
    except ValueError as exc:
        raise ValueError(f"failed to unmarshal ffprobe output: {exc}") from exc
    streams = probe.get("streams") or []
    if not streams:
        raise ValueError("no video streams found")
    first = streams[0]
    return classify_aspect_ratio(int(first.get("width", 0)), int(first.get("height", 0)))


def aspect_ratio_prefix(aspect_ratio: str) -> str:
    """Map an aspect ratio name to the storage key prefix."""
    return {"16:9": "landscape", "9:16": "portrait"}.get(aspect_ratio, "other")


def process_video_for_fast_start(file_path) -> str:
    """Rewrite a video with its index at the front; return the new file's path."""
    output_path = f"{file_path}.processing"
    try:
        subprocess.run(
            [
                "ffmpeg", "-i", str(file_path), "-c", "copy",
                "-movflags", "faststart", "-f", "mp4", output_path,
            ],
            check=True,
        )
    except (subprocess.CalledProcessError, OSError) as exc:
        logger.error("error when running ffmpeg command to process video for fast start: %s", exc)
        raise
    return output_path


def random_key() -> str:
    """Return 32 random bytes encoded as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode("ascii")
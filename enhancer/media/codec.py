from __future__ import annotations

import base64
import json
import logging
import mimetypes
import os
import shutil
import subprocess
import sys
import tempfile
from contextlib import contextmanager
from math import gcd
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from enhancer.core.dto import FrameExtractionResult, MediaFile, MediaPayload
from enhancer.errors import InvalidMediaError, ReadError


logger = logging.getLogger(__name__)

VIDEO_EXTS = {".mp4", ".webm", ".mkv", ".mov", ".avi", ".m4v"}
IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".heic", ".heif"}

JPEG_MAGIC = b"\xff\xd8\xff"

PROBE_TIMEOUT_SECONDS = 30
RENDER_TIMEOUT_SECONDS = 60
# Keep seeks off the very last timestamp, where decoders often return nothing.
END_OF_STREAM_MARGIN = 0.05

MediaSource = Union[MediaFile, Path, str, bytes]


def _subprocess_kwargs() -> dict:
    """Get platform-specific subprocess kwargs to hide console windows on Windows."""
    kwargs = {}
    if sys.platform == 'win32':
        kwargs['creationflags'] = subprocess.CREATE_NO_WINDOW
    return kwargs


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------

def guess_mime_type(path: Path | str) -> str:
    mime, _ = mimetypes.guess_type(str(path))
    if mime:
        return mime
    suffix = Path(path).suffix.lower()
    if suffix in VIDEO_EXTS:
        return "video/mp4" if suffix in {".mp4", ".m4v"} else f"video/{suffix[1:]}"
    return "application/octet-stream"


def media_file_from_path(path: Path | str) -> MediaFile:
    """Describe a user-selected file. Does not read its contents."""
    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError:
        size = None
    return MediaFile(path=path, mime_type=guess_mime_type(path), size=size)


def encode_to_payload(file: MediaFile | Path | str) -> MediaPayload:
    """
    Read a media file and encode it for transport.

    Args:
        file: Selected file (or a path to it)

    Returns:
        MediaPayload with the bare base64 body and the file's declared MIME type

    Raises:
        ReadError: if the file cannot be read
    """
    if not isinstance(file, MediaFile):
        file = media_file_from_path(file)

    try:
        raw = file.path.read_bytes()
    except OSError as e:
        raise ReadError(f"Could not read {file.name}: {e}") from e

    data = base64.b64encode(raw).decode("ascii")
    logger.debug(f"Encoded {file.name}: {len(raw)} bytes as {file.mime_type}")
    return MediaPayload(data=data, mime_type=file.mime_type)


def reduce_aspect_ratio(width: int, height: int) -> str:
    """Reduce pixel dimensions to a "W:H" ratio in lowest terms."""
    if width <= 0 or height <= 0:
        raise InvalidMediaError(f"Video has an invalid size: {width}x{height}")
    divisor = gcd(width, height)
    return f"{width // divisor}:{height // divisor}"


def extract_frame(source: MediaSource, seek_seconds: float = 0.0) -> FrameExtractionResult:
    """
    Extract a single still frame and the aspect ratio from a video.

    The frame is rendered at the video's native pixel size and encoded as
    JPEG. Blocking; callers on the event loop use ``asyncio.to_thread``.

    Raises:
        InvalidMediaError: metadata unreadable, zero dimension, seek/decode
            produced no frame, or ffmpeg/ffprobe missing
    """
    if not _ffmpeg_available() or not _ffprobe_available():
        raise InvalidMediaError("ffmpeg and ffprobe are required to read video files")

    with _local_source(source) as path:
        width, height, duration = _probe_video(path)
        aspect_ratio = reduce_aspect_ratio(width, height)
        timestamp = _clamp_seek(seek_seconds, duration)
        jpeg = _render_frame(path, timestamp)

    if not jpeg or not jpeg.startswith(JPEG_MAGIC):
        raise InvalidMediaError(f"Could not render a frame at {timestamp:.2f}s")

    logger.info(f"Extracted frame from {path.name} at {timestamp:.2f}s ({width}x{height}, {aspect_ratio})")
    return FrameExtractionResult(
        frame=base64.b64encode(jpeg).decode("ascii"),
        aspect_ratio=aspect_ratio,
        width=width,
        height=height,
    )


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

@contextmanager
def _local_source(source: MediaSource) -> Iterator[Path]:
    """Yield a decodable path for the source; raw bytes live in a temp file for the duration."""
    if isinstance(source, MediaFile):
        yield source.path
        return
    if not isinstance(source, (bytes, bytearray)):
        yield Path(source)
        return

    fd, name = tempfile.mkstemp(prefix="frame-src-", suffix=".video")
    tmp_path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(source)
        yield tmp_path
    finally:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary video {tmp_path}: {e}")


def _ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


def _ffprobe_available() -> bool:
    return shutil.which("ffprobe") is not None


def _probe_video(source: Path) -> Tuple[int, int, Optional[float]]:
    """Return (width, height, duration) of the first video stream."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=width,height:format=duration",
        "-of", "json",
        str(source),
    ]
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            text=True,
            timeout=PROBE_TIMEOUT_SECONDS,
            **_subprocess_kwargs(),
        )
    except subprocess.CalledProcessError as e:
        raise InvalidMediaError(f"Could not read video metadata: {e.stderr.strip()}") from e
    except subprocess.TimeoutExpired as e:
        raise InvalidMediaError("Timed out reading video metadata") from e
    except OSError as e:
        raise InvalidMediaError(f"Could not run ffprobe: {e}") from e

    try:
        info = json.loads(proc.stdout or "{}")
    except json.JSONDecodeError as e:
        raise InvalidMediaError("ffprobe returned unreadable metadata") from e

    streams = info.get("streams") or []
    if not streams:
        raise InvalidMediaError(f"No video stream found in {source.name}")

    stream = streams[0]
    try:
        width = int(stream.get("width") or 0)
        height = int(stream.get("height") or 0)
    except (TypeError, ValueError):
        width = height = 0

    duration = None
    raw_duration = (info.get("format") or {}).get("duration")
    try:
        duration = float(raw_duration)
    except (TypeError, ValueError):
        duration = None
    if duration is not None and duration <= 0:
        duration = None

    return width, height, duration


def _clamp_seek(seek_seconds: float, duration: Optional[float]) -> float:
    try:
        ts = float(seek_seconds)
    except (TypeError, ValueError):
        ts = 0.0
    ts = max(0.0, ts)
    if duration:
        ts = min(ts, max(0.0, duration - END_OF_STREAM_MARGIN))
    return ts


def _render_frame(source: Path, timestamp: float) -> bytes:
    """Decode one frame at ``timestamp`` and encode it as JPEG at native size."""
    cmd = [
        "ffmpeg",
        "-loglevel", "error",
        "-ss", str(timestamp),
        "-i", str(source),
        "-frames:v", "1",
        "-q:v", "2",
        "-f", "image2pipe",
        "-vcodec", "mjpeg",
        "-",
    ]
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            timeout=RENDER_TIMEOUT_SECONDS,
            **_subprocess_kwargs(),
        )
    except subprocess.CalledProcessError as e:
        raise InvalidMediaError(
            f"ffmpeg failed for {source.name}: {e.stderr.decode(errors='ignore').strip()}"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise InvalidMediaError(f"Timed out decoding a frame from {source.name}") from e
    except OSError as e:
        raise InvalidMediaError(f"Could not run ffmpeg: {e}") from e
    return proc.stdout

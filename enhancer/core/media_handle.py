"""
Locally addressable handle for generated media.

The desktop counterpart of a browser object URL: downloaded bytes are
written to a scratch file that playback widgets can open. The handle is
owned by whoever holds the result and must be released explicitly.
"""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class MediaHandle:
    """Scratch-file backed media, deleted on ``release()``."""

    def __init__(self, path: Path, mime_type: str, size: int):
        self._path = path
        self.mime_type = mime_type
        self.size = size
        self._released = False

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        *,
        mime_type: str = "video/mp4",
        suffix: str = ".mp4",
        directory: Optional[Path] = None,
    ) -> "MediaHandle":
        fd, name = tempfile.mkstemp(prefix="enhanced-", suffix=suffix, dir=directory)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError:
            path.unlink(missing_ok=True)
            raise
        logger.debug(f"Created media handle {path} ({len(data)} bytes)")
        return cls(path, mime_type, len(data))

    @property
    def path(self) -> Path:
        if self._released:
            raise RuntimeError("Media handle has been released")
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    def save_to(self, destination: Path | str) -> Path:
        """Copy the media out to a user-chosen location."""
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.path, destination)
        logger.info(f"Saved generated media to {destination}")
        return destination

    def release(self) -> None:
        """Delete the backing file. Safe to call multiple times."""
        if self._released:
            return
        self._released = True
        try:
            self._path.unlink()
            logger.debug(f"Released media handle {self._path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to release media handle {self._path}: {e}")

    def __repr__(self) -> str:
        state = "released" if self._released else str(self._path)
        return f"MediaHandle({state}, {self.mime_type}, {self.size} bytes)"

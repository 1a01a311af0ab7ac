import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True, slots=True)
class MediaFile:
    path: Path
    mime_type: str              # declared type, guessed from the file name
    size: Optional[int] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class MediaPayload:
    data: str                   # bare base64 body, never a data: URI
    mime_type: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass(frozen=True, slots=True)
class FrameExtractionResult:
    frame: str                  # base64 JPEG
    aspect_ratio: str           # "W:H" in lowest terms
    width: int
    height: int

    def frame_bytes(self) -> bytes:
        return base64.b64decode(self.frame)

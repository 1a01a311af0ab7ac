"""Shared pytest fixtures for enhancer tests."""
import base64
import os
from pathlib import Path
from typing import Optional

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from enhancer.core.credentials import CredentialProvider
from enhancer.core.dto import FrameExtractionResult, MediaFile

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16 + b"\xff\xd9"


@pytest.fixture(scope="session")
def qapp():
    """Offscreen QApplication shared by widget tests."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def png_file(tmp_path) -> Path:
    path = tmp_path / "photo.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def video_file(tmp_path) -> MediaFile:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return MediaFile(path=path, mime_type="video/mp4", size=path.stat().st_size)


@pytest.fixture
def frame_result() -> FrameExtractionResult:
    return FrameExtractionResult(
        frame=base64.b64encode(JPEG_BYTES).decode("ascii"),
        aspect_ratio="16:9",
        width=1920,
        height=1080,
    )


class FakeCredentials(CredentialProvider):
    """In-test credential capability with call counters."""

    def __init__(self, key: Optional[str] = "test-key", prompt_value: Optional[str] = "new-key"):
        self.key = key
        self.prompt_value = prompt_value
        self.has_calls = 0
        self.request_calls = 0
        self.invalidations = 0

    async def has_credential(self) -> bool:
        self.has_calls += 1
        return self.key is not None

    async def request_credential(self) -> bool:
        self.request_calls += 1
        if self.prompt_value:
            self.key = self.prompt_value
        return self.key is not None

    def get_credential(self) -> Optional[str]:
        return self.key

    def invalidate(self) -> None:
        self.invalidations += 1
        self.key = None


@pytest.fixture
def credentials() -> FakeCredentials:
    return FakeCredentials()

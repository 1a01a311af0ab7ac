"""Tests for the photo and video session state machines."""
import asyncio
from pathlib import Path
from typing import List, Optional

import pytest

from enhancer.core.dto import GenerationRequest, MediaFile, MediaPayload, OperationStatus
from enhancer.core.media_handle import MediaHandle
from enhancer.core.session import (
    CREDENTIAL_INVALID_MESSAGE,
    Complete,
    Empty,
    Failed,
    Loaded,
    PhotoSession,
    Processing,
    VideoSession,
)
from enhancer.errors import InvalidMediaError, NoResultError, RemoteError
from tests.conftest import FakeCredentials


ENHANCED = MediaPayload(data="ZW5oYW5jZWQ=", mime_type="image/png")


class FakePhotoClient:
    def __init__(self, result=ENHANCED, error: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        self.result = result
        self.error = error
        self.gate = gate
        self.payloads: List[MediaPayload] = []

    async def enhance_image(self, payload):
        self.payloads.append(payload)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


class FakeVideoClient:
    def __init__(self, tmp_path: Path, error: Optional[Exception] = None):
        self.tmp_path = tmp_path
        self.error = error
        self.requests: List[GenerationRequest] = []
        self.handles: List[MediaHandle] = []

    async def generate_video(self, request, on_progress=None, *, cancel_token=None):
        self.requests.append(request)
        on_progress(OperationStatus("Initializing video generation...", 10))
        on_progress(OperationStatus("Your request is processing. This may take a few minutes.", 30))
        if self.error is not None:
            raise self.error
        on_progress(OperationStatus("Finalizing video...", 95))
        handle = MediaHandle.from_bytes(b"mp4", directory=self.tmp_path)
        self.handles.append(handle)
        on_progress(OperationStatus("Video generation complete!", 100))
        return handle


def record(signal) -> list:
    seen = []
    signal.connect(seen.append)
    return seen


def photo(tmp_path: Path, name: str = "photo.png") -> MediaFile:
    path = tmp_path / name
    path.write_bytes(b"\x89PNG fake")
    return MediaFile(path=path, mime_type="image/png", size=path.stat().st_size)


class TestPhotoSession:
    """Tests for PhotoSession."""

    def test_select_file_loads(self, tmp_path):
        session = PhotoSession(FakePhotoClient())
        states = record(session.state_changed)
        file = photo(tmp_path)

        session.select_file(file)

        assert session.state == Loaded(file)
        assert states == [Loaded(file)]

    def test_enhance_success(self, tmp_path):
        client = FakePhotoClient()
        session = PhotoSession(client)
        file = photo(tmp_path)
        session.select_file(file)
        states = record(session.state_changed)

        asyncio.run(session.enhance())

        assert isinstance(states[0], Processing)
        assert session.state == Complete(file, ENHANCED)
        assert client.payloads[0].mime_type == "image/png"

    def test_enhance_failure_keeps_original(self, tmp_path):
        session = PhotoSession(FakePhotoClient(error=NoResultError("No enhanced image found in response.")))
        file = photo(tmp_path)
        session.select_file(file)

        asyncio.run(session.enhance())

        assert session.state == Failed("No enhanced image found in response.", file)
        assert session.can_enhance

    def test_unreadable_file_fails(self, tmp_path):
        session = PhotoSession(FakePhotoClient())
        missing = MediaFile(path=tmp_path / "gone.png", mime_type="image/png")
        session.select_file(missing)

        asyncio.run(session.enhance())

        assert isinstance(session.state, Failed)
        assert "gone.png" in session.state.error

    def test_enhance_without_file_is_ignored(self):
        session = PhotoSession(FakePhotoClient())
        asyncio.run(session.enhance())
        assert session.state == Empty()
        assert session.start_enhance() is None

    def test_new_file_after_complete_clears_result(self, tmp_path):
        session = PhotoSession(FakePhotoClient())
        session.select_file(photo(tmp_path))
        asyncio.run(session.enhance())
        second = photo(tmp_path, "second.png")

        session.select_file(second)

        assert session.state == Loaded(second)

    def test_new_file_during_enhancement_discards_result(self, tmp_path):
        """A late result for an abandoned file never replaces the new selection."""
        async def scenario():
            gate = asyncio.Event()
            session = PhotoSession(FakePhotoClient(gate=gate))
            session.select_file(photo(tmp_path))
            task = session.start_enhance()
            while not isinstance(session.state, Processing) or not session._client.payloads:
                await asyncio.sleep(0.01)
            second = photo(tmp_path, "second.png")
            session.select_file(second)
            gate.set()
            await asyncio.gather(task, return_exceptions=True)
            return session, second

        session, second = asyncio.run(scenario())
        assert session.state == Loaded(second)

    def test_second_enhance_blocked_while_processing(self, tmp_path):
        async def scenario():
            gate = asyncio.Event()
            session = PhotoSession(FakePhotoClient(gate=gate))
            session.select_file(photo(tmp_path))
            task = session.start_enhance()
            while not session._client.payloads:
                await asyncio.sleep(0.01)
            blocked = (session.is_processing, session.can_enhance, session.start_enhance())
            await session.enhance()
            gate.set()
            await task
            return session, blocked

        session, (processing, can_enhance, second_task) = asyncio.run(scenario())
        assert processing and not can_enhance
        assert second_task is None
        assert len(session._client.payloads) == 1
        assert isinstance(session.state, Complete)

    def test_cancel_returns_to_loaded(self, tmp_path):
        async def scenario():
            gate = asyncio.Event()
            session = PhotoSession(FakePhotoClient(gate=gate))
            file = session.select_file(photo(tmp_path))
            task = session.start_enhance()
            while not session._client.payloads:
                await asyncio.sleep(0.01)
            session.cancel()
            await asyncio.gather(task, return_exceptions=True)
            return session, file, task

        session, file, task = asyncio.run(scenario())
        assert session.state == Loaded(file)
        assert task.cancelled()

    def test_save_result(self, tmp_path):
        session = PhotoSession(FakePhotoClient())
        session.select_file(photo(tmp_path))
        asyncio.run(session.enhance())

        out = session.save_result(tmp_path / "out" / "enhanced.png")

        assert out.read_bytes() == b"enhanced"

    def test_save_without_result(self, tmp_path):
        session = PhotoSession(FakePhotoClient())
        with pytest.raises(RuntimeError):
            session.save_result(tmp_path / "x.png")

    def test_reset(self, tmp_path):
        session = PhotoSession(FakePhotoClient())
        session.select_file(photo(tmp_path))
        session.reset()
        assert session.state == Empty()


@pytest.fixture
def fake_extract(frame_result):
    calls = []

    def extract(file):
        calls.append(file)
        return frame_result

    extract.calls = calls
    return extract


def video_session(tmp_path, credentials, extract, **client_kwargs) -> VideoSession:
    return VideoSession(FakeVideoClient(tmp_path, **client_kwargs), credentials, extract=extract)


def ready(session: VideoSession, file: MediaFile, prompt: str = "Add a subtle magical glow") -> None:
    asyncio.run(session.check_credential())
    asyncio.run(session.load_file(file))
    session.prompt = prompt


class TestVideoCredentialGate:
    """Tests for the credential capability gate."""

    def test_check_reads_capability_once(self, tmp_path, credentials, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        changes = record(session.credential_changed)

        assert asyncio.run(session.check_credential()) is True
        assert asyncio.run(session.check_credential()) is True
        assert credentials.has_calls == 1
        assert changes == [True]

    def test_file_refused_without_credential(self, tmp_path, video_file, fake_extract):
        session = video_session(tmp_path, FakeCredentials(key=None), fake_extract)
        asyncio.run(session.check_credential())

        assert asyncio.run(session.load_file(video_file)) is False
        assert session.select_file(video_file) is None
        assert session.state == Empty()
        assert fake_extract.calls == []

    def test_select_credential_is_optimistic(self, tmp_path, fake_extract):
        credentials = FakeCredentials(key=None, prompt_value=None)
        session = video_session(tmp_path, credentials, fake_extract)
        asyncio.run(session.check_credential())

        asyncio.run(session.select_credential())

        assert session.credential_selected
        assert credentials.request_calls == 1


class TestVideoSession:
    """Tests for frame extraction, generation and results."""

    def test_load_extracts_frame(self, tmp_path, credentials, video_file, fake_extract, frame_result):
        session = video_session(tmp_path, credentials, fake_extract)
        asyncio.run(session.check_credential())
        states = record(session.state_changed)

        assert asyncio.run(session.load_file(video_file)) is True

        assert states == [Loaded(video_file), Loaded(video_file, frame_result)]
        assert not session.can_generate
        session.prompt = "Transform this into a vintage film"
        assert session.can_generate

    def test_extraction_failure(self, tmp_path, credentials, video_file):
        def broken(_file):
            raise InvalidMediaError("No video stream found in clip.mp4")

        session = video_session(tmp_path, credentials, broken)
        asyncio.run(session.check_credential())
        asyncio.run(session.load_file(video_file))

        state = session.state
        assert isinstance(state, Failed)
        assert state.error.startswith("Failed to extract frame from video.")
        assert state.original == video_file
        assert not session.can_generate

    def test_blank_prompt_blocks_generation(self, tmp_path, credentials, video_file, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file, prompt="   ")

        assert not session.can_generate
        asyncio.run(session.generate())
        assert isinstance(session.state, Loaded)

    def test_generate_success(self, tmp_path, credentials, video_file, fake_extract, frame_result):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file)
        statuses = record(session.status_changed)

        asyncio.run(session.generate())

        state = session.state
        assert isinstance(state, Complete)
        assert state.result.path.read_bytes() == b"mp4"
        assert state.preview == frame_result
        assert [s.progress for s in statuses] == [0, 10, 30, 95, 100]

        request = session._client.requests[0]
        assert request.prompt == "Add a subtle magical glow"
        assert request.aspect_ratio == "16:9"
        assert request.frame == frame_result.frame

    def test_processing_state_tracks_status(self, tmp_path, credentials, video_file, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file)
        states = record(session.state_changed)

        asyncio.run(session.generate())

        processing = [s.status.progress for s in states if isinstance(s, Processing)]
        assert processing == [0, 10, 30, 95, 100]

    def test_entity_not_found_invalidates_credential(self, tmp_path, credentials, video_file, fake_extract, frame_result):
        error = RemoteError("Video generation failed: Requested entity was not found.", status=404)
        session = video_session(tmp_path, credentials, fake_extract, error=error)
        ready(session, video_file)
        changes = record(session.credential_changed)

        asyncio.run(session.generate())

        assert session.state == Failed(CREDENTIAL_INVALID_MESSAGE, video_file, frame_result)
        assert not session.credential_selected
        assert changes == [False]
        assert credentials.invalidations == 1
        assert credentials.get_credential() is None

    def test_rejected_credential_rechecks_capability(self, tmp_path, video_file, fake_extract):
        """After a rejection the capability is read again, even if the provider still reports a key."""

        class StickyCredentials(FakeCredentials):
            def invalidate(self) -> None:
                self.invalidations += 1

        credentials = StickyCredentials()
        error = RemoteError("Requested entity was not found.", status=404)
        session = video_session(tmp_path, credentials, fake_extract, error=error)
        ready(session, video_file)
        asyncio.run(session.generate())
        assert not session.credential_selected
        calls_before = credentials.has_calls

        assert asyncio.run(session.check_credential()) is True

        assert credentials.has_calls == calls_before + 1
        assert session.credential_selected

    def test_other_errors_keep_credential(self, tmp_path, credentials, video_file, fake_extract, frame_result):
        error = RemoteError("Remote service error 429: quota exceeded", status=429)
        session = video_session(tmp_path, credentials, fake_extract, error=error)
        ready(session, video_file)

        asyncio.run(session.generate())

        assert session.state == Failed("Remote service error 429: quota exceeded", video_file, frame_result)
        assert session.credential_selected
        assert credentials.invalidations == 0
        assert session.can_generate

    def test_reselect_credential_after_invalidation(self, tmp_path, credentials, video_file, fake_extract):
        error = RemoteError("Requested entity was not found.")
        session = video_session(tmp_path, credentials, fake_extract, error=error)
        ready(session, video_file)
        asyncio.run(session.generate())

        asyncio.run(session.select_credential())

        assert session.credential_selected
        assert credentials.get_credential() == "new-key"
        assert session.state.original == video_file

    def test_reset_releases_result(self, tmp_path, credentials, video_file, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file)
        asyncio.run(session.generate())
        handle = session.state.result

        session.reset()

        assert session.state == Empty()
        assert session.prompt == ""
        assert handle.released
        assert not any(tmp_path.glob("enhanced-*"))

    def test_regenerate_releases_previous_result(self, tmp_path, credentials, video_file, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file)
        asyncio.run(session.generate())
        first = session.state.result

        asyncio.run(session.generate())

        assert first.released
        assert not session.state.result.released

    def test_new_file_releases_result(self, tmp_path, credentials, video_file, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file)
        asyncio.run(session.generate())
        handle = session.state.result

        asyncio.run(session.load_file(video_file))

        assert handle.released
        assert isinstance(session.state, Loaded)

    def test_save_result(self, tmp_path, credentials, video_file, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file)
        asyncio.run(session.generate())

        out = session.save_result(tmp_path / "saved" / "enhanced-video.mp4")

        assert out.read_bytes() == b"mp4"

    def test_close_releases_result(self, tmp_path, credentials, video_file, fake_extract):
        session = video_session(tmp_path, credentials, fake_extract)
        ready(session, video_file)
        asyncio.run(session.generate())
        handle = session.state.result

        session.close()

        assert handle.released
        assert session.state == Empty()

    def test_example_prompts(self):
        assert len(VideoSession.EXAMPLE_PROMPTS) == 4
        assert "Make this look like a cinematic movie scene" in VideoSession.EXAMPLE_PROMPTS

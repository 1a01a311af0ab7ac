"""
Enhancement sessions for photo and video mode.

A session owns one tagged state value and is the only thing that changes
it. Transitions come from user actions (select, enhance/generate, reset,
cancel) or from the resolution of the single in-flight remote call.

    Empty -> Loaded -> Processing -> Complete | Failed

Every run gets a monotonically increasing id; a completion whose id is no
longer current (the user picked another file, cancelled, or reset) is
dropped, so a stale result can never overwrite newer state.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Coroutine, Optional, Set, Tuple, Union

from PyQt6.QtCore import QObject, pyqtSignal

from enhancer.core.api.genai import GenAIClient
from enhancer.core.credentials import CredentialProvider
from enhancer.core.dto import (
    FrameExtractionResult,
    GenerationRequest,
    MediaFile,
    MediaPayload,
    OperationStatus,
)
from enhancer.core.media_handle import MediaHandle
from enhancer.core.poller import CancellationToken
from enhancer.errors import OperationCancelled
from enhancer.media.codec import encode_to_payload, extract_frame, media_file_from_path

logger = logging.getLogger(__name__)

CREDENTIAL_INVALID_MARKER = "entity was not found"
CREDENTIAL_INVALID_MESSAGE = "API key not found or invalid. Please select your key again."
FRAME_EXTRACTION_FAILED = "Failed to extract frame from video."
UNKNOWN_ERROR = "An unknown error occurred."


# ------------------------------------------------------------
# States
# ------------------------------------------------------------

@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Loaded:
    original: MediaFile
    preview: Optional[FrameExtractionResult] = None


@dataclass(frozen=True)
class Processing:
    original: MediaFile
    status: OperationStatus
    preview: Optional[FrameExtractionResult] = None


@dataclass(frozen=True)
class Complete:
    original: MediaFile
    result: Union[MediaPayload, MediaHandle]
    preview: Optional[FrameExtractionResult] = None


@dataclass(frozen=True)
class Failed:
    error: str
    original: Optional[MediaFile] = None
    preview: Optional[FrameExtractionResult] = None


SessionState = Union[Empty, Loaded, Processing, Complete, Failed]


def _as_media_file(file: MediaFile | Path | str) -> MediaFile:
    if isinstance(file, MediaFile):
        return file
    return media_file_from_path(file)


def _error_message(error: BaseException) -> str:
    return str(error) or UNKNOWN_ERROR


# ------------------------------------------------------------
# Base session
# ------------------------------------------------------------

class EnhancementSession(QObject):
    """
    Shared state handling for both modes.

    Signals:
        state_changed(state): Emitted after every transition
        status_changed(status): Emitted for each OperationStatus tick
    """

    state_changed = pyqtSignal(object)
    status_changed = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._state: SessionState = Empty()
        self._run_id = 0
        self._inflight: Optional[CancellationToken] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return isinstance(self._state, Processing)

    def _set_state(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        # Result handles are owned by the session; drop them once no state refers to them.
        if isinstance(previous, Complete) and isinstance(previous.result, MediaHandle):
            if not (isinstance(state, Complete) and state.result is previous.result):
                previous.result.release()
        logger.debug(f"{type(self).__name__}: {type(previous).__name__} -> {type(state).__name__}")
        self.state_changed.emit(state)

    # Run bookkeeping -------------------------------------------------

    def _begin_run(self) -> Tuple[int, CancellationToken]:
        self._abort_in_flight()
        token = CancellationToken()
        task = asyncio.current_task()
        if task is not None and task in self._tasks:
            token.bind(task)
        self._inflight = token
        return self._run_id, token

    def _end_run(self, run_id: int) -> None:
        if run_id == self._run_id:
            self._inflight = None

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id

    def _abort_in_flight(self) -> None:
        self._run_id += 1
        if self._inflight is not None:
            self._inflight.cancel()
            self._inflight = None

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"{type(self).__name__} task failed", exc_info=exc)

    # Public ----------------------------------------------------------

    def cancel(self) -> None:
        """Abort the in-flight operation and return to the loaded file."""
        state = self._state
        if not isinstance(state, Processing):
            return
        logger.info(f"{type(self).__name__}: cancelling in-flight operation")
        self._abort_in_flight()
        self._set_state(Loaded(state.original, state.preview))

    def close(self) -> None:
        """Cancel all work and release owned resources."""
        self._abort_in_flight()
        for task in list(self._tasks):
            task.cancel()
        self._set_state(Empty())


# ------------------------------------------------------------
# Photo mode
# ------------------------------------------------------------

class PhotoSession(EnhancementSession):
    """Single-request photo enhancement with a before/after result."""

    def __init__(
        self,
        client: GenAIClient,
        *,
        encode: Callable[[MediaFile], MediaPayload] = encode_to_payload,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._client = client
        self._encode = encode

    @property
    def can_enhance(self) -> bool:
        return not self.is_processing and getattr(self._state, "original", None) is not None

    def select_file(self, file: MediaFile | Path | str) -> MediaFile:
        """Load a new original from any state, dropping any result, error or in-flight call."""
        file = _as_media_file(file)
        self._abort_in_flight()
        self._set_state(Loaded(file))
        logger.info(f"Photo selected: {file.name} ({file.mime_type})")
        return file

    async def enhance(self) -> None:
        state = self._state
        if self.is_processing:
            logger.warning("Enhancement already in progress")
            return
        original = getattr(state, "original", None)
        if original is None:
            logger.warning("Enhance requested without a photo")
            return

        run_id, token = self._begin_run()
        status = OperationStatus("Enhancing...", 0)
        self._set_state(Processing(original, status))
        self.status_changed.emit(status)
        try:
            payload = await asyncio.to_thread(self._encode, original)
            token.raise_if_cancelled()
            result = await self._client.enhance_image(payload)
        except OperationCancelled:
            return
        except Exception as e:
            if self._is_current(run_id):
                logger.error(f"Photo enhancement failed: {e}")
                self._set_state(Failed(_error_message(e), original))
            return
        finally:
            self._end_run(run_id)

        if not self._is_current(run_id):
            logger.debug("Discarding stale enhancement result")
            return
        logger.info(f"Photo enhanced: {original.name}")
        self._set_state(Complete(original, result))

    def start_enhance(self) -> Optional[asyncio.Task]:
        """Schedule ``enhance()`` on the running loop; cancellable via ``cancel()``."""
        if not self.can_enhance:
            return None
        return self._spawn(self.enhance())

    def save_result(self, destination: Path | str) -> Path:
        state = self._state
        if not isinstance(state, Complete):
            raise RuntimeError("No enhanced photo to save")
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(state.result.to_bytes())
        logger.info(f"Saved enhanced photo to {destination}")
        return destination

    def reset(self) -> None:
        self._abort_in_flight()
        self._set_state(Empty())


# ------------------------------------------------------------
# Video mode
# ------------------------------------------------------------

class VideoSession(EnhancementSession):
    """
    Frame-to-video generation gated on a usage credential.

    Signals:
        credential_changed(selected): Emitted when the credential flag flips
    """

    credential_changed = pyqtSignal(bool)

    EXAMPLE_PROMPTS = (
        "Make this look like a cinematic movie scene",
        "Add a subtle magical glow",
        "Transform this into a vintage film",
        "Animate this with a watercolor effect",
    )

    def __init__(
        self,
        client: GenAIClient,
        credentials: CredentialProvider,
        *,
        extract: Callable[[MediaFile], FrameExtractionResult] = extract_frame,
        resolution: str = "720p",
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._client = client
        self._credentials = credentials
        self._extract = extract
        self._resolution = resolution
        self._prompt = ""
        self._credential_selected = False
        self._credential_checked = False

    # Credential gate ------------------------------------------------

    @property
    def credential_selected(self) -> bool:
        return self._credential_selected

    def _set_credential_selected(self, selected: bool) -> None:
        changed = selected != self._credential_selected
        self._credential_selected = selected
        if changed:
            self.credential_changed.emit(selected)

    async def check_credential(self) -> bool:
        """Read the capability once per session."""
        if not self._credential_checked:
            self._credential_checked = True
            self._set_credential_selected(await self._credentials.has_credential())
        return self._credential_selected

    async def select_credential(self) -> bool:
        """Run the selection step; success is assumed once it returns."""
        await self._credentials.request_credential()
        self._credential_checked = True
        self._set_credential_selected(True)
        return True

    def start_credential_check(self) -> asyncio.Task:
        return self._spawn(self.check_credential())

    def start_credential_selection(self) -> asyncio.Task:
        return self._spawn(self.select_credential())

    # Prompt ---------------------------------------------------------

    @property
    def prompt(self) -> str:
        return self._prompt

    @prompt.setter
    def prompt(self, value: str) -> None:
        self._prompt = value or ""

    @property
    def can_generate(self) -> bool:
        state = self._state
        return (
            self._credential_selected
            and bool(self._prompt.strip())
            and not self.is_processing
            and getattr(state, "preview", None) is not None
        )

    # File selection -------------------------------------------------

    async def load_file(self, file: MediaFile | Path | str) -> bool:
        """
        Accept a new video and extract its start frame.

        Returns:
            False when the credential gate is closed and the file was refused
        """
        if not self._credential_selected:
            logger.warning("Video selected before a credential was chosen; ignoring")
            return False

        file = _as_media_file(file)
        self._abort_in_flight()
        self._set_state(Loaded(file))
        logger.info(f"Video selected: {file.name}")

        try:
            preview = await asyncio.to_thread(self._extract, file)
        except Exception as e:
            if self._is_showing(file):
                logger.error(f"Frame extraction failed for {file.name}: {e}")
                self._set_state(Failed(f"{FRAME_EXTRACTION_FAILED} {_error_message(e)}", file))
            return True

        if self._is_showing(file):
            self._set_state(Loaded(file, preview))
        return True

    def select_file(self, file: MediaFile | Path | str) -> Optional[asyncio.Task]:
        if not self._credential_selected:
            logger.warning("Video selected before a credential was chosen; ignoring")
            return None
        return self._spawn(self.load_file(file))

    def _is_showing(self, file: MediaFile) -> bool:
        state = self._state
        return isinstance(state, Loaded) and state.original is file and state.preview is None

    # Generation -----------------------------------------------------

    def _progress_reporter(self, run_id: int) -> Callable[[OperationStatus], None]:
        def report(status: OperationStatus) -> None:
            if not self._is_current(run_id):
                return
            state = self._state
            if isinstance(state, Processing):
                self._set_state(replace(state, status=status))
            self.status_changed.emit(status)
        return report

    async def generate(self) -> None:
        state = self._state
        if self.is_processing:
            logger.warning("Generation already in progress")
            return
        if not self.can_generate:
            logger.warning("Generate requested without credential, prompt or start frame")
            return

        original = state.original
        preview = state.preview
        request = GenerationRequest.create(
            self._prompt,
            preview.frame,
            preview.aspect_ratio,
            resolution=self._resolution,
        )

        run_id, token = self._begin_run()
        status = OperationStatus("Starting...", 0)
        self._set_state(Processing(original, status, preview))
        self.status_changed.emit(status)
        try:
            handle = await self._client.generate_video(
                request,
                self._progress_reporter(run_id),
                cancel_token=token,
            )
        except OperationCancelled:
            return
        except Exception as e:
            if self._is_current(run_id):
                self._handle_failure(e, original, preview)
            return
        finally:
            self._end_run(run_id)

        if not self._is_current(run_id):
            logger.debug("Discarding stale video result")
            handle.release()
            return
        logger.info(f"Video generated for {original.name}: {handle}")
        self._set_state(Complete(original, handle, preview))

    def _handle_failure(
        self,
        error: Exception,
        original: MediaFile,
        preview: Optional[FrameExtractionResult],
    ) -> None:
        message = _error_message(error)
        if CREDENTIAL_INVALID_MARKER in message.lower():
            logger.warning(f"Credential rejected by the service: {message}")
            self._credentials.invalidate()
            # The next attempt must go through the capability check again.
            self._credential_checked = False
            self._set_credential_selected(False)
            self._set_state(Failed(CREDENTIAL_INVALID_MESSAGE, original, preview))
            return
        logger.error(f"Video generation failed: {message}")
        self._set_state(Failed(message, original, preview))

    def start_generate(self) -> Optional[asyncio.Task]:
        if not self.can_generate:
            return None
        return self._spawn(self.generate())

    # Result ---------------------------------------------------------

    def save_result(self, destination: Path | str) -> Path:
        state = self._state
        if not isinstance(state, Complete):
            raise RuntimeError("No generated video to save")
        return state.result.save_to(destination)

    def reset(self) -> None:
        """Start over: drop file, frame, prompt and any result."""
        self._abort_in_flight()
        self._prompt = ""
        self._set_state(Empty())

"""Gemini image enhancement and Veo video generation client."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from enhancer.core.api.base import BaseAPIClient
from enhancer.core.credentials import CredentialProvider
from enhancer.core.dto import GenerationRequest, MediaPayload
from enhancer.core.http_client import HttpClient
from enhancer.core.media_handle import MediaHandle
from enhancer.core.poller import CancellationToken, OperationPoller, ProgressCallback
from enhancer.config import DEFAULT_ENHANCE_INSTRUCTION
from enhancer.errors import NoResultError

logger = logging.getLogger(__name__)


class GenAIClient(BaseAPIClient):
    """
    Remote enhancement operations.

    ``enhance_image`` is a single request/response call. ``generate_video``
    submits a long-running job, polls it through OperationPoller and
    downloads the finished clip into a caller-owned MediaHandle.
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        http: HttpClient,
        credentials: CredentialProvider,
        *,
        base_url: Optional[str] = None,
        image_model: str = "gemini-2.5-flash-image",
        video_model: str = "veo-3.1-fast-generate-preview",
        enhance_instruction: str = DEFAULT_ENHANCE_INSTRUCTION,
        poll_interval: float = 10.0,
        media_dir: Optional[Path] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__(http, credentials, base_url=base_url)
        self.image_model = image_model
        self.video_model = video_model
        self.enhance_instruction = enhance_instruction
        self.poll_interval = poll_interval
        self._media_dir = media_dir
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, http: HttpClient, credentials: CredentialProvider) -> "GenAIClient":
        return cls(
            http,
            credentials,
            base_url=settings.api_base_url,
            image_model=settings.image_model,
            video_model=settings.video_model,
            enhance_instruction=settings.enhance_instruction,
            poll_interval=settings.poll_interval_seconds,
            media_dir=settings.media_temp_dir,
        )

    # ------------------------------------------------------------------
    # Image enhancement
    # ------------------------------------------------------------------

    async def enhance_image(self, payload: MediaPayload) -> MediaPayload:
        """
        Enhance a photo.

        Args:
            payload: Encoded source image

        Returns:
            The first image part of the response

        Raises:
            NoResultError: the response carried no image part
            RemoteError: transport/auth failure or non-success response
        """
        body = {
            "contents": [
                {
                    "parts": [
                        {"inlineData": {"data": payload.data, "mimeType": payload.mime_type}},
                        {"text": self.enhance_instruction},
                    ]
                }
            ],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }
        response = await self._request_json("POST", f"models/{self.image_model}:generateContent", payload=body)
        return extract_image_part(response, fallback_mime_type=payload.mime_type)

    # ------------------------------------------------------------------
    # Video generation
    # ------------------------------------------------------------------

    async def submit_video(self, request: GenerationRequest) -> Dict[str, Any]:
        body = {
            "instances": [
                {
                    "prompt": request.prompt,
                    "image": {"bytesBase64Encoded": request.frame, "mimeType": "image/jpeg"},
                }
            ],
            "parameters": {
                "sampleCount": request.number_of_outputs,
                "resolution": request.resolution,
                "aspectRatio": request.aspect_ratio,
            },
        }
        return await self._request_json("POST", f"models/{self.video_model}:predictLongRunning", payload=body)

    async def get_operation(self, operation: Dict[str, Any]) -> Dict[str, Any]:
        name = operation.get("name")
        if not name:
            raise NoResultError("Operation handle has no name to poll")
        return await self._request_json("GET", name)

    async def download(self, uri: str) -> bytes:
        return await self._download_bytes(uri)

    async def generate_video(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> MediaHandle:
        """
        Generate a clip from a start frame and a prompt.

        Progress is reported through ``on_progress``; 100% is only emitted
        after the clip has been downloaded into the returned handle, which
        the caller must release.
        """
        token = cancel_token or CancellationToken()
        poller = OperationPoller(
            self.get_operation,
            interval=self.poll_interval,
            sleep=self._sleep,
            cancel_token=token,
        )
        logger.info(f"Generating video ({request.aspect_ratio}, {request.resolution}) with {self.video_model}")
        operation = await poller.run(lambda: self.submit_video(request), on_progress)

        uri = extract_video_uri(operation)
        if not uri:
            raise NoResultError("Video generation failed or returned no URI.")

        data = await self.download(uri)
        token.raise_if_cancelled()

        handle = MediaHandle.from_bytes(data, mime_type="video/mp4", suffix=".mp4", directory=self._media_dir)
        try:
            poller.complete()
        except BaseException:
            handle.release()
            raise
        return handle


def extract_image_part(response: Dict[str, Any], *, fallback_mime_type: str = "image/png") -> MediaPayload:
    """Return the first inline-data part of a generateContent response."""
    for candidate in response.get("candidates") or []:
        content = candidate.get("content") or {}
        for part in content.get("parts") or []:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or fallback_mime_type
                return MediaPayload(data=inline["data"], mime_type=mime_type)

    block_reason = (response.get("promptFeedback") or {}).get("blockReason")
    if block_reason:
        raise NoResultError(f"No enhanced image found in response (blocked: {block_reason}).")
    raise NoResultError("No enhanced image found in response.")


def extract_video_uri(operation: Dict[str, Any]) -> Optional[str]:
    """Find the single download URI in a finished video operation."""
    response = operation.get("response") or {}

    # REST shape
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or []
    # SDK shape
    if not samples:
        samples = response.get("generatedVideos") or []

    if not samples:
        return None
    video = samples[0].get("video") or {}
    return video.get("uri") or None

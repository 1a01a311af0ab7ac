from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional

from enhancer.config import Settings
from enhancer.core.api import GenAIClient
from enhancer.core.credentials import CredentialPrompt, SessionCredentialStore
from enhancer.core.http_client import HttpClient, create_http_client_from_settings
from enhancer.core.session import PhotoSession, VideoSession
from enhancer.media.codec import _subprocess_kwargs

logger = logging.getLogger(__name__)


class CoreContext:
    """
    Shared core dependencies (settings + HTTP + credential + client).

    Use a single instance for the app lifetime; sessions created from it
    share one connection pool and one credential store.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        http: Optional[HttpClient] = None,
        credentials: Optional[SessionCredentialStore] = None,
        client: Optional[GenAIClient] = None,
    ):
        self.settings = settings or Settings.from_env()

        self.http = http or create_http_client_from_settings(self.settings)
        logger.info(f"HTTP client created - proxy: {self.http.config.proxy_url or 'none'}")

        self.credentials = credentials or SessionCredentialStore(initial=self.settings.api_key)
        self.client = client or GenAIClient.from_settings(self.settings, self.http, self.credentials)

        self.ffmpeg_available = False
        self.start()

    def start(self) -> None:
        self.ffmpeg_available = self._check_ffmpeg_availability()

    def set_credential_prompt(self, prompt: CredentialPrompt) -> None:
        """Install the interactive selection step used by video mode."""
        self.credentials.set_prompt(prompt)

    def create_photo_session(self, parent=None) -> PhotoSession:
        return PhotoSession(self.client, parent=parent)

    def create_video_session(self, parent=None) -> VideoSession:
        return VideoSession(
            self.client,
            self.credentials,
            resolution=self.settings.video_resolution,
            parent=parent,
        )

    def _check_ffmpeg_availability(self) -> bool:
        """Check if ffmpeg and ffprobe are available for frame extraction."""
        available = True
        for tool in ("ffmpeg", "ffprobe"):
            path = shutil.which(tool)
            if not path:
                logger.warning(
                    f"{tool} not found in PATH. Video start-frame extraction will be unavailable. "
                    "Install ffmpeg: https://ffmpeg.org/download.html"
                )
                available = False
                continue
            try:
                result = subprocess.run(
                    [path, "-version"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                    **_subprocess_kwargs(),
                )
                if result.returncode == 0:
                    logger.info(f"{tool} found: {result.stdout.splitlines()[0] if result.stdout else path}")
                else:
                    logger.warning(f"{tool} found but returned error: {result.stderr}")
                    available = False
            except (OSError, subprocess.SubprocessError) as e:
                logger.warning(f"{tool} found but failed to execute: {e}")
                available = False
        return available

    async def close(self) -> None:
        await self.client.close()

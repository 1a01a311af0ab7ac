"""
Application settings.

Only the service credential comes from the environment; everything else is
a code default that callers (and tests) may override at construction time.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = ("API_KEY", "GEMINI_API_KEY")

DEFAULT_ENHANCE_INSTRUCTION = (
    "Subtly enhance this photo to improve its overall quality, focusing on clarity, "
    "color balance, and lighting, without making it look artificial."
)


def _default_base_dir() -> Path:
    return Path.home() / ".ai-media-enhancer"


@dataclass
class Settings:
    """Runtime configuration for the core pipeline and the UI shell."""

    api_key: Optional[str] = None

    # Remote service
    api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    image_model: str = "gemini-2.5-flash-image"
    video_model: str = "veo-3.1-fast-generate-preview"
    enhance_instruction: str = DEFAULT_ENHANCE_INSTRUCTION
    video_resolution: str = "720p"
    poll_interval_seconds: float = 10.0

    # Transport
    connect_timeout: int = 30
    read_timeout: int = 300
    max_connections_per_host: int = 4
    proxy_url: Optional[str] = None

    # Local paths
    base_dir: Path = field(default_factory=_default_base_dir)

    @property
    def log_dir(self) -> Path:
        return self.base_dir / "logs"

    @property
    def media_temp_dir(self) -> Path:
        """Scratch directory for generated media handles (cleared on release)."""
        path = Path(tempfile.gettempdir()) / "ai-media-enhancer"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Settings":
        """
        Build settings, picking up the service credential from the environment.

        A missing key is not fatal: video mode can ask the user for one.
        """
        env = os.environ if environ is None else environ
        api_key = None
        for name in API_KEY_ENV_VARS:
            value = (env.get(name) or "").strip()
            if value:
                api_key = value
                logger.info(f"Service credential loaded from ${name}")
                break

        if api_key is None:
            logger.warning(
                "API_KEY environment variable not set. Video generation will require a user-provided key."
            )

        overrides.setdefault("api_key", api_key)
        return cls(**overrides)

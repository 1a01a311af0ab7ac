from __future__ import annotations

from dataclasses import dataclass

SUPPORTED_ASPECT_RATIOS = ("16:9", "9:16", "1:1", "4:3", "3:4")
DEFAULT_ASPECT_RATIO = "16:9"


def normalize_aspect_ratio(aspect_ratio: str | None) -> str:
    """Return the ratio if the video model accepts it, else the 16:9 default."""
    if aspect_ratio in SUPPORTED_ASPECT_RATIOS:
        return aspect_ratio
    return DEFAULT_ASPECT_RATIO


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    prompt: str
    frame: str                  # base64 JPEG start image
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    number_of_outputs: int = 1
    resolution: str = "720p"

    def __post_init__(self):
        # The video model rejects anything outside the whitelist.
        object.__setattr__(self, "aspect_ratio", normalize_aspect_ratio(self.aspect_ratio))

    @classmethod
    def create(
        cls,
        prompt: str,
        frame: str,
        aspect_ratio: str | None,
        *,
        resolution: str = "720p",
    ) -> "GenerationRequest":
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValueError("A prompt is required to generate a video")
        if not frame:
            raise ValueError("A start frame is required to generate a video")
        return cls(
            prompt=prompt,
            frame=frame,
            aspect_ratio=aspect_ratio,
            number_of_outputs=1,
            resolution=resolution,
        )

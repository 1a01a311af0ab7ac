from enhancer.core.api.base import BaseAPIClient
from enhancer.core.api.genai import GenAIClient, extract_image_part, extract_video_uri

__all__ = [
    "BaseAPIClient",
    "GenAIClient",
    "extract_image_part",
    "extract_video_uri",
]

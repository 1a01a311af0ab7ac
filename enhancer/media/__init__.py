"""Local media decoding and transport encoding."""

from .codec import (
    IMAGE_EXTS,
    VIDEO_EXTS,
    encode_to_payload,
    extract_frame,
    guess_mime_type,
    media_file_from_path,
    reduce_aspect_ratio,
)

__all__ = [
    'IMAGE_EXTS',
    'VIDEO_EXTS',
    'encode_to_payload',
    'extract_frame',
    'guess_mime_type',
    'media_file_from_path',
    'reduce_aspect_ratio',
]

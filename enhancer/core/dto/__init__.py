from enhancer.core.dto.media import MediaFile, MediaPayload, FrameExtractionResult
from enhancer.core.dto.status import OperationStatus
from enhancer.core.dto.generation import (
    GenerationRequest,
    SUPPORTED_ASPECT_RATIOS,
    DEFAULT_ASPECT_RATIO,
    normalize_aspect_ratio,
)

__all__ = [
    # Media
    "MediaFile",
    "MediaPayload",
    "FrameExtractionResult",

    # Remote jobs
    "OperationStatus",
    "GenerationRequest",
    "SUPPORTED_ASPECT_RATIOS",
    "DEFAULT_ASPECT_RATIO",
    "normalize_aspect_ratio",
]

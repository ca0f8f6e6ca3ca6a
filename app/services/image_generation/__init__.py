"""
Image generation service (fal.ai nano-banana).
"""
from .base import (
    ConfigError,
    EmptyResultError,
    GenerationError,
    GenerationMode,
    GenerationRequest,
    GenerationResult,
    ImageGenerationProvider,
    ImageInput,
    InputError,
    RemoteError,
)
from .aspect_ratio import resolve_aspect_ratio
from .factory import ImageProviderFactory
from .runner import call_with_retry
from .failure_types import FailureType, classify_failure
from .service import ImageGenerationService

__all__ = [
    "ConfigError",
    "EmptyResultError",
    "GenerationError",
    "GenerationMode",
    "GenerationRequest",
    "GenerationResult",
    "ImageGenerationProvider",
    "ImageInput",
    "InputError",
    "RemoteError",
    "resolve_aspect_ratio",
    "ImageProviderFactory",
    "call_with_retry",
    "FailureType",
    "classify_failure",
    "ImageGenerationService",
]

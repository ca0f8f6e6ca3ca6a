"""
Base classes and types for image generation.
Used by the request handler, the factory and the fal provider.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class GenerationMode(str, Enum):
    TEXT_TO_IMAGE = "text-to-image"
    IMAGE_EDITING = "image-editing"


@dataclass
class ImageInput:
    """
    One image slot of the form: uploaded bytes or a remote URL.
    size is the declared upload size; content may be truncated or left unread when size is over the limit.
    """
    content: bytes | None = None
    mime_type: str | None = None
    url: str | None = None
    size: int | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.content)

    @property
    def upload_size(self) -> int:
        if self.size is not None:
            return self.size
        return len(self.content) if self.content else 0

    @property
    def is_present(self) -> bool:
        return self.has_content or bool(self.url) or self.upload_size > 0


@dataclass
class GenerationRequest:
    """Parsed form submission. Values are raw; validation happens in the service."""
    mode: str | None
    prompt: str | None
    aspect_ratio: str | None = None
    image1: ImageInput = field(default_factory=ImageInput)
    image2: ImageInput = field(default_factory=ImageInput)


@dataclass
class GenerationResult:
    url: str
    prompt: str
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "prompt": self.prompt, "description": self.description}


class GenerationError(Exception):
    """Base for every failure the request handler knows how to report."""
    status_code = 500

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InputError(GenerationError):
    """Client input problem; never retried."""
    status_code = 400

    def __init__(self, message: str, details: str = "", status_code: int | None = None) -> None:
        super().__init__(message, details)
        if status_code is not None:
            self.status_code = status_code


class ConfigError(GenerationError):
    """Service misconfiguration (e.g. missing FAL_KEY); never retried."""


class RemoteError(GenerationError):
    """Provider call failed. status is the provider HTTP status, None for transport errors."""

    def __init__(self, message: str, status: int | None = None, detail: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


class EmptyResultError(GenerationError):
    """Provider answered successfully but returned no images."""

    def __init__(self, message: str = "No images generated") -> None:
        super().__init__(message)


# Receives provider progress log lines; observed for diagnostics only.
LogCallback = Callable[[str], None]


class ImageGenerationProvider(ABC):
    """Base class for image generation providers."""

    name = "base"

    def __init__(self, config: dict) -> None:
        self.config = config

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and available."""
        pass

    @abstractmethod
    def text_to_image(
        self,
        prompt: str,
        aspect_ratio: str,
        output_format: str = "png",
        on_log: LogCallback | None = None,
    ) -> dict[str, Any]:
        """Generate from text. Returns the provider result payload. Raises RemoteError on failure."""
        pass

    @abstractmethod
    def edit(
        self,
        prompt: str,
        image_urls: list[str],
        aspect_ratio: str,
        output_format: str = "png",
        on_log: LogCallback | None = None,
    ) -> dict[str, Any]:
        """Generate from text plus ordered reference images (data URIs or URLs)."""
        pass

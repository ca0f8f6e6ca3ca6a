"""
Generate-image request handler: validate -> dispatch by mode -> normalize.

Everything raised inside handle() ends up in one place (classify_failure), so the
caller always gets a JSON body plus an HTTP status and never an exception.
"""
import logging
import time
from typing import Any, Callable

from app.services.image_generation.aspect_ratio import resolve_aspect_ratio
from app.services.image_generation.base import (
    ConfigError,
    EmptyResultError,
    GenerationMode,
    GenerationRequest,
    GenerationResult,
    ImageGenerationProvider,
    InputError,
)
from app.services.image_generation.encoding import build_image_references, check_upload_size
from app.services.image_generation.failure_types import classify_failure
from app.services.image_generation.runner import call_with_retry
from app.utils.metrics import (
    image_generation_duration_seconds,
    image_generation_requests_total,
)

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Mode and prompt are required"
MISSING_KEY_MESSAGE = "API key not configured"
MISSING_KEY_DETAILS = (
    "FAL_KEY environment variable is missing. Please add it to the service environment."
)
INVALID_MODE_MESSAGE = "Invalid mode. Must be 'text-to-image' or 'image-editing'"
MISSING_IMAGE_MESSAGE = "At least one image is required for editing mode"


class ImageGenerationService:
    """Stateless per request; holds only read-only settings and the provider."""

    def __init__(
        self,
        settings: Any,
        provider: ImageGenerationProvider,
        *,
        log: logging.Logger | logging.LoggerAdapter | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.settings = settings
        self.provider = provider
        self.log = log or logger
        self._sleep = sleep

    def handle(self, request: GenerationRequest) -> tuple[dict[str, str], int]:
        """Run one request. Returns (json body, http status)."""
        mode_label = request.mode if request.mode in {m.value for m in GenerationMode} else "unknown"
        started = time.monotonic()
        try:
            result = self._generate(request)
        except Exception as e:
            failure = classify_failure(e)
            self.log.error(
                "image_generation_failed",
                extra={
                    "mode": mode_label,
                    "status_code": failure.status_code,
                    "error": f"{failure.failure_type.value}: {failure.error}",
                },
                exc_info=failure.status_code >= 500,
            )
            image_generation_requests_total.labels(mode=mode_label, status=failure.failure_type.value).inc()
            return failure.to_dict(), failure.status_code
        finally:
            image_generation_duration_seconds.labels(mode=mode_label).observe(time.monotonic() - started)

        image_generation_requests_total.labels(mode=mode_label, status="success").inc()
        return result.to_dict(), 200

    def _generate(self, request: GenerationRequest) -> GenerationResult:
        self.log.info(
            "image_generation_started",
            extra={
                "mode": request.mode,
                "aspect_ratio": request.aspect_ratio,
                "fal_key_configured": bool(self.settings.fal_key),
            },
        )
        if not request.mode or not request.prompt:
            raise InputError(MISSING_FIELDS_MESSAGE, "Both 'mode' and 'prompt' form fields must be provided.")

        if not self.settings.fal_key:
            raise ConfigError(MISSING_KEY_MESSAGE, MISSING_KEY_DETAILS)

        aspect_ratio = resolve_aspect_ratio(request.aspect_ratio)

        if request.mode == GenerationMode.TEXT_TO_IMAGE.value:
            payload = self._text_to_image(request.prompt, aspect_ratio)
        elif request.mode == GenerationMode.IMAGE_EDITING.value:
            payload = self._edit(request, aspect_ratio)
        else:
            raise InputError(INVALID_MODE_MESSAGE, f"Received mode: {request.mode!r}")

        return self._normalize(payload, request.prompt)

    def _text_to_image(self, prompt: str, aspect_ratio: str) -> dict[str, Any]:
        self.log.info(
            "text_to_image_requested",
            extra={"mode": GenerationMode.TEXT_TO_IMAGE.value, "aspect_ratio": aspect_ratio},
        )
        return call_with_retry(
            lambda: self.provider.text_to_image(
                prompt,
                aspect_ratio,
                output_format=self.settings.output_format,
                on_log=self._on_provider_log,
            ),
            max_attempts=self.settings.text_to_image_retry_max_attempts,
            delay_seconds=self.settings.retry_delay_seconds,
            operation=GenerationMode.TEXT_TO_IMAGE.value,
            sleep=self._sleep,
            log=self.log,
        )

    def _edit(self, request: GenerationRequest, aspect_ratio: str) -> dict[str, Any]:
        if not request.image1.is_present and not request.image2.is_present:
            raise InputError(MISSING_IMAGE_MESSAGE, "Upload image1/image2 or pass image1Url/image2Url.")

        slots = [("image1", request.image1), ("image2", request.image2)]
        for slot, image in slots:
            check_upload_size(slot, image, self.settings.max_upload_size_bytes)

        image_urls = build_image_references(
            slots,
            warn_bytes=self.settings.inline_image_warn_bytes,
            log=self.log,
        )
        self.log.info(
            "image_editing_requested",
            extra={
                "mode": GenerationMode.IMAGE_EDITING.value,
                "aspect_ratio": aspect_ratio,
                "image_count": len(image_urls),
            },
        )
        return call_with_retry(
            lambda: self.provider.edit(
                request.prompt,
                image_urls,
                aspect_ratio,
                output_format=self.settings.output_format,
                on_log=self._on_provider_log,
            ),
            max_attempts=self.settings.edit_retry_max_attempts,
            delay_seconds=self.settings.retry_delay_seconds,
            operation=GenerationMode.IMAGE_EDITING.value,
            sleep=self._sleep,
            log=self.log,
        )

    def _normalize(self, payload: dict[str, Any] | None, prompt: str) -> GenerationResult:
        """An empty image list is a failure even when the call itself succeeded."""
        images = (payload or {}).get("images") or []
        if not images:
            raise EmptyResultError()
        first = images[0]
        url = first.get("url") if isinstance(first, dict) else None
        if not url:
            raise EmptyResultError()
        description = (payload or {}).get("description") or ""
        self.log.info("image_generation_succeeded", extra={"image_count": len(images)})
        return GenerationResult(url=url, prompt=prompt, description=description)

    def _on_provider_log(self, message: str) -> None:
        self.log.info(f"provider_log: {message}")

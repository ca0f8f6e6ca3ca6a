"""
fal.ai queue API provider for image generation (nano-banana text-to-image and edit).
Submit -> poll status (with logs) -> fetch result, all over httpx.
"""
import logging
import time
from typing import Any

import httpx

from app.services.image_generation.base import (
    ImageGenerationProvider,
    LogCallback,
    RemoteError,
)

logger = logging.getLogger(__name__)

STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_COMPLETED = "COMPLETED"


def _error_from_response(response: httpx.Response) -> RemoteError:
    """Build RemoteError from a non-2xx fal response, keeping the body's detail."""
    try:
        body = response.json()
    except ValueError:
        body = response.text
    detail = body.get("detail") if isinstance(body, dict) else body
    if isinstance(detail, str) and detail:
        message = detail
    else:
        message = f"{response.status_code} {response.reason_phrase}".strip()
    return RemoteError(message, status=response.status_code, detail=detail or None)


class FalProvider(ImageGenerationProvider):
    """fal.ai queue API provider."""

    name = "fal"

    def __init__(self, config: dict) -> None:
        super().__init__(config)
        self.api_key = (config.get("api_key") or "").strip()
        self.queue_url = (config.get("queue_url") or "https://queue.fal.run").rstrip("/")
        self.text_to_image_model = config.get("text_to_image_model", "fal-ai/nano-banana")
        self.edit_model = config.get("edit_model", "fal-ai/nano-banana/edit")
        self.timeout = float(config.get("timeout", 120.0))
        self.poll_interval = float(config.get("poll_interval", 1.0))
        # Tests pass httpx.MockTransport here.
        self.transport = config.get("transport")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def text_to_image(
        self,
        prompt: str,
        aspect_ratio: str,
        output_format: str = "png",
        on_log: LogCallback | None = None,
    ) -> dict[str, Any]:
        payload = {
            "prompt": prompt,
            "num_images": 1,
            "output_format": output_format,
            "aspect_ratio": aspect_ratio,
        }
        return self.subscribe(self.text_to_image_model, payload, on_log=on_log)

    def edit(
        self,
        prompt: str,
        image_urls: list[str],
        aspect_ratio: str,
        output_format: str = "png",
        on_log: LogCallback | None = None,
    ) -> dict[str, Any]:
        payload = {
            "prompt": prompt,
            "image_urls": list(image_urls),
            "output_format": output_format,
            "aspect_ratio": aspect_ratio,
        }
        return self.subscribe(self.edit_model, payload, on_log=on_log)

    def subscribe(
        self,
        model: str,
        payload: dict[str, Any],
        on_log: LogCallback | None = None,
    ) -> dict[str, Any]:
        """Submit to the queue and block until the result is available."""
        if not self.is_available():
            raise RemoteError("fal provider not configured (missing api_key)", status=401)

        headers = {
            "Authorization": f"Key {self.api_key}",
            "Content-Type": "application/json",
        }
        deadline = time.monotonic() + self.timeout
        started = time.monotonic()

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(f"{self.queue_url}/{model}", headers=headers, json=payload)
                if response.is_error:
                    raise _error_from_response(response)
                submitted = response.json()
                status_url = submitted.get("status_url")
                response_url = submitted.get("response_url")
                if not status_url or not response_url:
                    raise RemoteError(
                        "fal queue response is missing status_url/response_url",
                        detail=submitted,
                    )
                logger.info("fal_request_submitted", extra={"model": model, "provider": self.name})

                self._wait_for_completion(client, status_url, headers, deadline, on_log)

                result_response = client.get(response_url, headers=headers)
                if result_response.is_error:
                    raise _error_from_response(result_response)
                result = result_response.json()
        except httpx.TimeoutException as e:
            raise RemoteError(f"fal request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RemoteError(f"fal request failed: {e}") from e

        logger.info(
            "fal_request_completed",
            extra={
                "model": model,
                "provider": self.name,
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return result if isinstance(result, dict) else {}

    def _wait_for_completion(
        self,
        client: httpx.Client,
        status_url: str,
        headers: dict,
        deadline: float,
        on_log: LogCallback | None,
    ) -> None:
        """Poll the queue status until COMPLETED, forwarding new progress logs."""
        seen_logs = 0
        while time.monotonic() < deadline:
            response = client.get(status_url, headers=headers, params={"logs": 1})
            if response.is_error:
                raise _error_from_response(response)
            status_payload = response.json()
            status = status_payload.get("status")

            if status in (STATUS_IN_PROGRESS, STATUS_COMPLETED) and on_log is not None:
                logs = status_payload.get("logs") or []
                for entry in logs[seen_logs:]:
                    message = entry.get("message") if isinstance(entry, dict) else entry
                    if message:
                        on_log(str(message))
                seen_logs = max(seen_logs, len(logs))

            if status == STATUS_COMPLETED:
                if status_payload.get("error"):
                    raise RemoteError(
                        str(status_payload["error"]),
                        detail=status_payload.get("error_type"),
                    )
                return

            time.sleep(self.poll_interval)

        raise RemoteError(f"fal request timed out after {self.timeout}s")

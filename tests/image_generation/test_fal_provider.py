"""Tests for FalProvider against a mocked fal queue API (httpx.MockTransport)."""
import json
import unittest

import httpx

from app.services.image_generation.base import RemoteError
from app.services.image_generation.providers.fal import FalProvider

QUEUE = "https://queue.test"
STATUS_URL = f"{QUEUE}/fal-ai/nano-banana/requests/req-1/status"
RESPONSE_URL = f"{QUEUE}/fal-ai/nano-banana/requests/req-1"


def _queue_handler(statuses, result, submitted_bodies, submit_status=200, submit_body=None):
    """Submit -> status (one per poll from statuses) -> result."""
    statuses = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            submitted_bodies.append((str(request.url), request.headers.get("Authorization"), json.loads(request.content)))
            if submit_status != 200:
                return httpx.Response(submit_status, json=submit_body)
            return httpx.Response(
                200,
                json={"request_id": "req-1", "status_url": STATUS_URL, "response_url": RESPONSE_URL},
            )
        if request.url.path.endswith("/status"):
            assert request.url.params.get("logs") == "1"
            return httpx.Response(200, json=statuses.pop(0))
        return httpx.Response(200, json=result)

    return handler


def _provider(handler, **config):
    values = {
        "api_key": "secret",
        "queue_url": QUEUE,
        "poll_interval": 0,
        "timeout": 5,
        "transport": httpx.MockTransport(handler),
    }
    values.update(config)
    return FalProvider(values)


class TestFalProvider(unittest.TestCase):
    def test_text_to_image_payload_and_result(self):
        submitted = []
        result = {"images": [{"url": "https://fal.media/out.png"}], "description": "ok"}
        handler = _queue_handler(
            [{"status": "IN_QUEUE"}, {"status": "COMPLETED", "logs": []}], result, submitted
        )
        out = _provider(handler).text_to_image("a cat", "16:9")
        self.assertEqual(out, result)
        url, auth, body = submitted[0]
        self.assertEqual(url, f"{QUEUE}/fal-ai/nano-banana")
        self.assertEqual(auth, "Key secret")
        self.assertEqual(
            body,
            {"prompt": "a cat", "num_images": 1, "output_format": "png", "aspect_ratio": "16:9"},
        )

    def test_edit_payload_uses_edit_model(self):
        submitted = []
        handler = _queue_handler([{"status": "COMPLETED"}], {"images": []}, submitted)
        _provider(handler).edit("blue", ["data:image/png;base64,AA==", "https://x/2.png"], "1:1")
        url, _, body = submitted[0]
        self.assertEqual(url, f"{QUEUE}/fal-ai/nano-banana/edit")
        self.assertEqual(body["image_urls"], ["data:image/png;base64,AA==", "https://x/2.png"])
        self.assertNotIn("num_images", body)

    def test_progress_logs_forwarded_once(self):
        submitted = []
        statuses = [
            {"status": "IN_PROGRESS", "logs": [{"message": "step 1"}]},
            {"status": "IN_PROGRESS", "logs": [{"message": "step 1"}, {"message": "step 2"}]},
            {"status": "COMPLETED", "logs": [{"message": "step 1"}, {"message": "step 2"}]},
        ]
        handler = _queue_handler(statuses, {"images": []}, submitted)
        messages = []
        _provider(handler).text_to_image("a cat", "1:1", on_log=messages.append)
        self.assertEqual(messages, ["step 1", "step 2"])

    def test_unauthorized_submit_raises_remote_error(self):
        submitted = []
        handler = _queue_handler([], {}, submitted, submit_status=401, submit_body={"detail": "Invalid key"})
        with self.assertRaises(RemoteError) as ctx:
            _provider(handler).text_to_image("a cat", "1:1")
        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(ctx.exception.detail, "Invalid key")

    def test_validation_error_detail_kept(self):
        submitted = []
        detail = [{"loc": ["body", "image_urls"], "msg": "field required"}]
        handler = _queue_handler([], {}, submitted, submit_status=422, submit_body={"detail": detail})
        with self.assertRaises(RemoteError) as ctx:
            _provider(handler).edit("blue", [], "1:1")
        self.assertEqual(ctx.exception.status, 422)
        self.assertEqual(ctx.exception.detail, detail)

    def test_completed_with_error(self):
        submitted = []
        handler = _queue_handler(
            [{"status": "COMPLETED", "error": "model crashed", "error_type": "runner"}], {}, submitted
        )
        with self.assertRaises(RemoteError) as ctx:
            _provider(handler).text_to_image("a cat", "1:1")
        self.assertEqual(str(ctx.exception), "model crashed")

    def test_transport_error_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(RemoteError) as ctx:
            _provider(handler).text_to_image("a cat", "1:1")
        self.assertIsNone(ctx.exception.status)
        self.assertIn("connection refused", str(ctx.exception))

    def test_poll_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(
                    200,
                    json={"request_id": "req-1", "status_url": STATUS_URL, "response_url": RESPONSE_URL},
                )
            return httpx.Response(200, json={"status": "IN_QUEUE"})

        with self.assertRaises(RemoteError) as ctx:
            _provider(handler, timeout=0.05, poll_interval=0.01).text_to_image("a cat", "1:1")
        self.assertIn("timed out", str(ctx.exception))

    def test_is_available(self):
        self.assertTrue(FalProvider({"api_key": "k"}).is_available())
        self.assertFalse(FalProvider({"api_key": "  "}).is_available())

    def test_submit_without_queue_urls_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"request_id": "req-1"})

        with self.assertRaises(RemoteError) as ctx:
            _provider(handler).edit("blue", ["https://x/1.png"], "1:1")
        self.assertIn("status_url", str(ctx.exception))

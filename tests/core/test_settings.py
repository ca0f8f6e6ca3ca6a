"""Tests for Settings parsing and JsonFormatter output."""
import json
import logging

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.core.logging import JsonFormatter


def test_defaults():
    s = Settings(_env_file=None, fal_key="k")
    assert s.edit_retry_max_attempts == 3
    assert s.text_to_image_retry_max_attempts == 1
    assert s.retry_delay_seconds == 1.0
    assert s.max_upload_size_bytes == 10 * 1024 * 1024
    assert s.fal_key_configured


def test_blank_key_is_not_configured():
    assert not Settings(_env_file=None, fal_key="   ").fal_key_configured


def test_fal_key_from_env(monkeypatch):
    monkeypatch.setenv("FAL_KEY", "from-env")
    assert Settings(_env_file=None).fal_key == "from-env"


def test_attempts_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, edit_retry_max_attempts=0)


def test_cors_origins_list():
    s = Settings(_env_file=None, cors_origins="http://a, http://b,")
    assert s.cors_origins_list == ["http://a", "http://b"]


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "image_generation_started", None, None)
    record.mode = "text-to-image"
    record.attempt = 2
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "image_generation_started"
    assert payload["level"] == "INFO"
    assert payload["mode"] == "text-to-image"
    assert payload["attempt"] == 2

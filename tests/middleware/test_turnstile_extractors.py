from __future__ import annotations

from typing import Optional

import pytest
from starlette.exceptions import HTTPException
from starlette.requests import Request

from turnstile_gate.middleware.extractors import (
    InputExtractionError,
    default_skipper,
    framework_remote_ip_extractor,
    new_request_id,
    path_skipper,
    request_header_remote_ip_extractor,
    request_header_token_extractor,
    request_id_idempotency_key_extractor,
)


def _request(
    headers: Optional[dict[str, str]] = None,
    path: str = "/",
    client: Optional[tuple[str, int]] = ("198.51.100.20", 50000),
) -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "root_path": "",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
        "server": ("testserver", 80),
    }
    return Request(scope)


def test_token_read_from_default_header():
    extract = request_header_token_extractor()
    assert extract(_request({"cf-turnstile-response": "tok"})) == "tok"


def test_missing_token_names_the_header():
    extract = request_header_token_extractor()
    with pytest.raises(InputExtractionError) as ei:
        extract(_request())
    assert ei.value.status_code == 400
    assert "cf-turnstile-response" in ei.value.detail
    assert isinstance(ei.value, HTTPException)


def test_token_header_name_is_configurable():
    extract = request_header_token_extractor("X-Captcha")
    assert extract(_request({"X-Captcha": "abc"})) == "abc"
    with pytest.raises(InputExtractionError) as ei:
        extract(_request({"cf-turnstile-response": "abc"}))
    assert "X-Captcha" in ei.value.detail


def test_framework_ip_prefers_forwarded_for():
    req = _request({"X-Forwarded-For": "203.0.113.1, 10.0.0.1", "X-Real-IP": "203.0.113.9"})
    assert framework_remote_ip_extractor(req) == "203.0.113.1"


def test_framework_ip_falls_back_to_real_ip_then_peer():
    assert framework_remote_ip_extractor(_request({"X-Real-IP": "203.0.113.9"})) == "203.0.113.9"
    assert framework_remote_ip_extractor(_request()) == "198.51.100.20"


def test_framework_ip_never_fails_without_client():
    assert framework_remote_ip_extractor(_request(client=None)) == ""


def test_cloudflare_ip_header():
    extract = request_header_remote_ip_extractor()
    assert extract(_request({"CF-Connecting-IP": "203.0.113.50"})) == "203.0.113.50"


def test_cloudflare_ip_header_missing_rejects():
    extract = request_header_remote_ip_extractor()
    with pytest.raises(InputExtractionError) as ei:
        extract(_request({"X-Forwarded-For": "203.0.113.1"}))
    assert ei.value.status_code == 400
    assert "CF-Connecting-IP" in ei.value.detail


def test_idempotency_key_reuses_request_id():
    extract = request_id_idempotency_key_extractor(generator=lambda: "generated")
    assert extract(_request({"X-Request-ID": "  rid-42 "})) == "rid-42"


def test_idempotency_key_generated_when_absent_or_blank():
    extract = request_id_idempotency_key_extractor(generator=lambda: "generated")
    assert extract(_request()) == "generated"
    assert extract(_request({"X-Request-ID": "   "})) == "generated"


def test_default_generator_yields_fresh_ids():
    extract = request_id_idempotency_key_extractor()
    first, second = extract(_request()), extract(_request())
    assert first != second
    assert len(new_request_id()) == 36


def test_skippers():
    assert default_skipper(_request()) is False
    skip = path_skipper(["/healthz", "/static/*"])
    assert skip(_request(path="/healthz")) is True
    assert skip(_request(path="/static/app.js")) is True
    assert skip(_request(path="/healthz/deep")) is False
    assert skip(_request(path="/")) is False

from __future__ import annotations

import base64
import json

import pytest

from xhs_studio.ai_generation import (
    Base64Image,
    DataUri,
    ImageUrl,
    RawImageText,
    classify_response,
    extract_image_bytes,
)
from xhs_studio.common import UpstreamFormatError, UpstreamHttpError


class RecordingFetcher:
    def __init__(self, body: bytes = b"\x89PNG-bytes") -> None:
        self.body = body
        self.urls: list[str] = []

    def __call__(self, url: str) -> bytes:
        self.urls.append(url)
        return self.body


def _no_fetch(url: str) -> bytes:
    raise AssertionError(f"unexpected fetch of {url}")


def _chat(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_images_endpoint_url_is_dereferenced():
    fetch = RecordingFetcher()

    data = extract_image_bytes({"data": [{"url": "http://x/y.png"}]}, True, fetch=fetch)

    assert fetch.urls == ["http://x/y.png"]
    assert data == b"\x89PNG-bytes"


def test_images_endpoint_base64_is_decoded_without_fetch():
    data = extract_image_bytes({"data": [{"b64_json": "aGVsbG8="}]}, True, fetch=_no_fetch)

    assert data == b"hello"


def test_images_endpoint_prefers_url_over_base64():
    payload = {"data": [{"url": "https://cdn/a.png", "b64_json": "aGVsbG8="}]}

    assert classify_response(payload, was_images_endpoint=True) == ImageUrl("https://cdn/a.png")


@pytest.mark.parametrize(
    "payload",
    [{"data": [{"revised_prompt": "x"}]}, {"data": []}, {"error": "nope"}, []],
)
def test_images_endpoint_unrecognized_shapes_fail(payload):
    with pytest.raises(UpstreamFormatError):
        extract_image_bytes(payload, True, fetch=_no_fetch)


def test_chat_markdown_image_link_is_dereferenced():
    fetch = RecordingFetcher()

    extract_image_bytes(_chat("![img](http://x/y.png)"), False, fetch=fetch)

    assert fetch.urls == ["http://x/y.png"]


def test_chat_markdown_link_inside_prose_wins():
    payload = _chat("Here is your image:\n![Generated Image](https://img.example/a.png)\nEnjoy!")

    assert classify_response(payload, was_images_endpoint=False) == ImageUrl(
        "https://img.example/a.png"
    )


def test_chat_plain_url_is_dereferenced():
    fetch = RecordingFetcher()

    extract_image_bytes(_chat("https://img.example/b.png"), False, fetch=fetch)

    assert fetch.urls == ["https://img.example/b.png"]


def test_chat_data_uri_is_decoded():
    encoded = base64.b64encode(b"png-data").decode("ascii")

    data = extract_image_bytes(_chat(f"data:image/png;base64,{encoded}"), False, fetch=_no_fetch)

    assert data == b"png-data"


def test_chat_bare_base64_is_decoded():
    encoded = base64.b64encode(b"\x00\x01image").decode("ascii")

    assert classify_response(_chat(encoded), was_images_endpoint=False) == Base64Image(
        encoded, lenient=True
    )
    assert extract_image_bytes(_chat(encoded), False, fetch=_no_fetch) == b"\x00\x01image"


@pytest.mark.parametrize(
    ("content", "recoverable"),
    [("hello", "hell"), ("abc=def", "abc"), ("QUJD", "QUJD")],
)
def test_chat_base64_like_text_never_fails(content, recoverable):
    data = extract_image_bytes(_chat(content), False, fetch=_no_fetch)

    assert data == base64.b64decode(recoverable + "=" * (-len(recoverable) % 4))


def test_images_endpoint_base64_stays_strict():
    with pytest.raises(UpstreamFormatError):
        extract_image_bytes({"data": [{"b64_json": "hello"}]}, True, fetch=_no_fetch)


def test_chat_unrecognized_content_falls_back_to_raw_bytes():
    content = "抱歉，我无法生成图片。"

    variant = classify_response(_chat(content), was_images_endpoint=False)
    data = extract_image_bytes(_chat(content), False, fetch=_no_fetch)

    assert variant == RawImageText(content)
    assert data == content.encode("utf-8")


@pytest.mark.parametrize("payload", [{"choices": []}, _chat(None), _chat(""), {}])
def test_chat_without_content_fails(payload):
    with pytest.raises(UpstreamFormatError):
        extract_image_bytes(payload, False, fetch=_no_fetch)


def test_json_text_body_is_accepted():
    body = json.dumps({"data": [{"b64_json": "aGVsbG8="}]})

    assert extract_image_bytes(body, True, fetch=_no_fetch) == b"hello"
    assert extract_image_bytes(body.encode("utf-8"), True, fetch=_no_fetch) == b"hello"


def test_non_json_text_body_fails():
    with pytest.raises(UpstreamFormatError):
        extract_image_bytes("<html>Bad Gateway</html>", False, fetch=_no_fetch)


def test_data_uri_without_payload_fails():
    assert classify_response(_chat("data:image/png"), was_images_endpoint=False) == DataUri(
        "data:image/png"
    )
    with pytest.raises(UpstreamFormatError):
        extract_image_bytes(_chat("data:image/png"), False, fetch=_no_fetch)


def test_missing_base64_padding_is_tolerated():
    assert extract_image_bytes({"data": [{"b64_json": "aGVsbG8"}]}, True, fetch=_no_fetch) == b"hello"


def test_fetch_errors_propagate():
    def failing_fetch(url: str) -> bytes:
        raise UpstreamHttpError(f"Failed to download image from {url}", status_code=500, url=url)

    with pytest.raises(UpstreamHttpError) as excinfo:
        extract_image_bytes({"data": [{"url": "http://x/y.png"}]}, True, fetch=failing_fetch)

    assert excinfo.value.url == "http://x/y.png"

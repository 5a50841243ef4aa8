"""
Normalize heterogeneous upstream image responses into raw image bytes.

Upstream services answer in one of several shapes. Each shape is classified into a
variant first and resolved to bytes second, so the priority order of the checks stays
in one place and each step can be tested on its own.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union

from xhs_studio.common.errors import UpstreamFormatError

logger = logging.getLogger(__name__)

ImageFetcher = Callable[[str], bytes]

_MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[.*?\]\((https?://[^)]+)\)")
_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/=]+$")
_NON_BASE64_CHARS = re.compile(r"[^A-Za-z0-9+/]")


@dataclass(frozen=True)
class ImageUrl:
    url: str


@dataclass(frozen=True)
class Base64Image:
    data: str
    lenient: bool = False


@dataclass(frozen=True)
class DataUri:
    uri: str


@dataclass(frozen=True)
class RawImageText:
    text: str


ImageResponse = Union[ImageUrl, Base64Image, DataUri, RawImageText]


def classify_images_response(payload: Any) -> ImageResponse:
    """
    Classify an ``/images/generations`` style payload (``{"data": [{...}]}``).
    """
    data = payload.get("data") if isinstance(payload, Mapping) else None
    first = data[0] if isinstance(data, list) and data else None
    if not isinstance(first, Mapping):
        raise UpstreamFormatError("no image data in response")

    if first.get("url"):
        logger.info("Generated image URL: %s", first["url"])
        return ImageUrl(str(first["url"]))
    if first.get("b64_json"):
        logger.info("Generated image in base64 format")
        return Base64Image(str(first["b64_json"]))
    raise UpstreamFormatError("no url or base64 data")


def classify_chat_response(payload: Any) -> ImageResponse:
    """
    Classify a chat-completions style payload by inspecting the message content.

    The checks run in a fixed order; the final fallback never fails.
    """
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamFormatError("no image content in response") from exc
    if not isinstance(content, str) or not content:
        raise UpstreamFormatError("no image content in response")

    markdown_match = _MARKDOWN_IMAGE_PATTERN.search(content)
    if markdown_match:
        logger.info("Extracted image URL from markdown: %s", markdown_match.group(1))
        return ImageUrl(markdown_match.group(1))
    if content.startswith(("http://", "https://")):
        return ImageUrl(content)
    if content.startswith("data:image"):
        return DataUri(content)
    if _BASE64_PATTERN.match(content):
        return Base64Image(content, lenient=True)

    logger.debug("Treating chat content of %d chars as raw image payload.", len(content))
    return RawImageText(content)


def classify_response(payload: Any, *, was_images_endpoint: bool) -> ImageResponse:
    if was_images_endpoint:
        return classify_images_response(payload)
    return classify_chat_response(payload)


def resolve_image_bytes(variant: ImageResponse, *, fetch: ImageFetcher) -> bytes:
    match variant:
        case ImageUrl(url=url):
            return fetch(url)
        case Base64Image(data=data, lenient=True):
            return decode_base64_lenient(data)
        case Base64Image(data=data):
            return decode_base64(data)
        case DataUri(uri=uri):
            _, separator, encoded = uri.partition(",")
            if not separator:
                raise UpstreamFormatError("data URI has no payload")
            return decode_base64_lenient(encoded)
        case RawImageText(text=text):
            return text.encode("utf-8")
    raise TypeError(f"Unsupported image response variant: {variant!r}")


def extract_image_bytes(
    raw_response_body: Any,
    was_images_endpoint: bool,
    *,
    fetch: ImageFetcher,
) -> bytes:
    """
    Extract image bytes from an upstream response body.

    Parameters
    ----------
    raw_response_body:
        Parsed JSON mapping, or the JSON document as ``str``/``bytes``.
    was_images_endpoint:
        Whether the request targeted an images-generation endpoint rather than a
        chat-completions endpoint.
    fetch:
        Callable that downloads a URL and returns its bytes; may raise
        :class:`~xhs_studio.common.errors.UpstreamHttpError`.
    """
    payload = _load_payload(raw_response_body)
    variant = classify_response(payload, was_images_endpoint=was_images_endpoint)
    return resolve_image_bytes(variant, fetch=fetch)


def decode_base64(data: str) -> bytes:
    cleaned = "".join(data.split())
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned)
    except (binascii.Error, ValueError) as exc:
        raise UpstreamFormatError(f"invalid base64 image data: {exc}") from exc


def decode_base64_lenient(data: str) -> bytes:
    """
    Decode whatever base64 can be recovered from ``data``; never raises.

    Decoding stops at the first ``=``, characters outside the alphabet are
    ignored, and a lone trailing character (less than one byte) is dropped.
    """
    cleaned = _NON_BASE64_CHARS.sub("", data.split("=", 1)[0])
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned)


def _load_payload(raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise UpstreamFormatError("response body is not valid JSON") from exc
    return raw

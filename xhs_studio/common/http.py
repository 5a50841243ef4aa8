"""
Thin ``requests`` helpers used to reach the upstream image service.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from .errors import UpstreamHttpError

logger = logging.getLogger(__name__)


def post_json(
    session: requests.Session,
    url: str,
    payload: Mapping[str, Any],
    *,
    api_key: str,
    timeout: float,
) -> Any:
    """
    POST ``payload`` as JSON with bearer auth and return the decoded body.

    The body is returned as parsed JSON when possible and as text otherwise, so the
    caller can decide whether a non-JSON body is acceptable.
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }
    try:
        response = session.post(url, json=dict(payload), headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise UpstreamHttpError(f"Image API request failed: {exc}", url=url) from exc

    if not response.ok:
        raise UpstreamHttpError(
            f"Image API error: {response.status_code} {response.reason}",
            status_code=response.status_code,
            url=url,
        )

    try:
        return response.json()
    except ValueError:
        return response.text


def fetch_bytes(session: requests.Session, url: str, *, timeout: float) -> bytes:
    """
    GET ``url`` and return the raw body, wrapping every failure with the URL.
    """
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        status_code = exc.response.status_code if exc.response is not None else None
        raise UpstreamHttpError(
            f"Failed to download image from {url}: {exc}",
            status_code=status_code,
            url=url,
        ) from exc

    content_type = response.headers.get("content-type") or "image/jpeg"
    logger.info("Downloaded image from %s, type: %s", url, content_type)
    return response.content

"""
Integration with an OpenAI-compatible image API for page image generation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import requests

from xhs_studio.common.config import Settings
from xhs_studio.common.http import fetch_bytes, post_json
from xhs_studio.outline_generation import Page

from .normalizer import extract_image_bytes
from .prompting import build_image_prompt

# 3:4 portrait
IMAGE_SIZE = "1024x1365"
CHAT_MAX_TOKENS = 1024


def _build_images_request(*, model: str, prompt: str) -> dict[str, Any]:
    return {
        "model": model,
        "prompt": prompt,
        "n": 1,
        "size": IMAGE_SIZE,
        "response_format": "url",
    }


def _build_chat_request(*, model: str, prompt: str) -> dict[str, Any]:
    return {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "max_tokens": CHAT_MAX_TOKENS,
    }


class ImageApiGenerator:
    """
    Generates one image per page by calling the configured upstream endpoint.

    Parameters
    ----------
    settings:
        Resolved settings; the ``endpoints`` suffix decides between the
        images-generation and chat-completions request/response shapes.
    session:
        Optional pre-configured :class:`requests.Session`. Mainly useful for testing.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    @property
    def model(self) -> str:
        """Return the model identifier currently used."""
        return self._settings.image_model

    def build_request_body(self, prompt: str) -> dict[str, Any]:
        if self._settings.is_images_endpoint:
            return _build_images_request(model=self._settings.image_model, prompt=prompt)
        return _build_chat_request(model=self._settings.image_model, prompt=prompt)

    def generate_image(
        self,
        page: Page,
        theme: str,
        cover_image_path: str | Path | None = None,
    ) -> bytes:
        """
        Generate the image for ``page`` and return its bytes.

        Raises
        ------
        UpstreamHttpError
            The generation request or the follow-up image download failed.
        UpstreamFormatError
            The upstream answered with a payload shape that holds no image.
        """
        prompt = build_image_prompt(page, theme, cover_image_path)
        body = post_json(
            self._session,
            self._settings.api_url,
            self.build_request_body(prompt),
            api_key=self._settings.image_api_key,
            timeout=self._settings.request_timeout,
        )
        return extract_image_bytes(
            body,
            self._settings.is_images_endpoint,
            fetch=self.download_image,
        )

    def download_image(self, url: str) -> bytes:
        return fetch_bytes(self._session, url, timeout=self._settings.request_timeout)

from __future__ import annotations

import itertools
import sys
from pathlib import Path
from typing import Any

import pytest
import requests

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from xhs_studio.common import Settings
from xhs_studio.storage import ProjectStore


class FakeResponse:
    """Just enough of :class:`requests.Response` for the HTTP helpers."""

    def __init__(
        self,
        *,
        status_code: int = 200,
        json_body: Any = None,
        content: bytes = b"",
        reason: str = "OK",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self._json_body = json_body
        self.content = content
        self.headers = headers or {}

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if self._json_body is None:
            raise ValueError("No JSON body")
        return self._json_body

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} {self.reason}", response=self)


class FakeSession:
    """Records outgoing calls and replays queued responses."""

    def __init__(
        self,
        *,
        post_response: FakeResponse | Exception | None = None,
        get_responses: dict[str, FakeResponse | Exception] | None = None,
    ) -> None:
        self.post_response = post_response or FakeResponse(json_body={})
        self.get_responses = get_responses or {}
        self.posts: list[dict[str, Any]] = []
        self.gets: list[str] = []

    def post(self, url: str, *, json: Any, headers: dict[str, str], timeout: float) -> FakeResponse:
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if isinstance(self.post_response, Exception):
            raise self.post_response
        return self.post_response

    def get(self, url: str, *, timeout: float) -> FakeResponse:
        self.gets.append(url)
        response = self.get_responses.get(url)
        if response is None:
            return FakeResponse(status_code=404, reason="Not Found")
        if isinstance(response, Exception):
            raise response
        return response


def make_settings(tmp_path: Path, *, endpoints: str = "/v1/images/generations") -> Settings:
    return Settings(
        image_api_url="https://api.example.com",
        image_api_key="test-key",
        image_model="test-model",
        endpoints=endpoints,
        data_dir=tmp_path / "data",
        request_timeout=5.0,
    )


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def fake_clock():
    """ISO timestamps one minute apart, strictly increasing."""
    counter = itertools.count()
    return lambda: f"2026-01-01T10:{next(counter):02d}:00+00:00"


@pytest.fixture()
def store(tmp_path: Path, fake_clock) -> ProjectStore:
    return ProjectStore(tmp_path / "data", clock=fake_clock)

"""
Runtime settings for the image API and the project data directory.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .errors import ConfigurationError

IMAGES_ENDPOINT_MARKER = "/images/generations"
DEFAULT_REQUEST_TIMEOUT = 120.0


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} environment variable is required")
    return value


@dataclass(frozen=True)
class Settings:
    """
    Explicit configuration handed to every component that needs it.

    Attributes
    ----------
    image_api_url:
        Base URL of the upstream image service (``IMAGE_API_URL``).
    image_api_key:
        Bearer token for the upstream service (``IMAGE_API_KEY``).
    image_model:
        Model identifier sent with every generation request (``IMAGE_MODEL``).
    endpoints:
        Path suffix appended to ``image_api_url`` (``ENDPOINTS``). A value containing
        ``/images/generations`` selects the images-endpoint request and response shape,
        anything else is treated as a chat-completions endpoint.
    data_dir:
        Directory holding ``projects.json`` and generated images (``DATA_DIR``).
    request_timeout:
        Timeout in seconds for each outbound HTTP call.
    log_level:
        Level name passed to :func:`configure_logging`.
    """

    image_api_url: str
    image_api_key: str
    image_model: str
    endpoints: str
    data_dir: Path
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables, failing fast on missing values.
        """
        env = os.environ if environ is None else environ

        timeout_raw = env.get("IMAGE_REQUEST_TIMEOUT", "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_REQUEST_TIMEOUT
        except ValueError as exc:
            raise ConfigurationError(
                f"IMAGE_REQUEST_TIMEOUT must be a number, got {timeout_raw!r}"
            ) from exc

        return cls(
            image_api_url=_require(env, "IMAGE_API_URL"),
            image_api_key=_require(env, "IMAGE_API_KEY"),
            image_model=_require(env, "IMAGE_MODEL"),
            endpoints=_require(env, "ENDPOINTS"),
            data_dir=Path(_require(env, "DATA_DIR")).expanduser(),
            request_timeout=timeout,
            log_level=env.get("LOG_LEVEL", "").strip() or "INFO",
        )

    @property
    def api_url(self) -> str:
        """Full URL generation requests are posted to."""
        return f"{self.image_api_url}{self.endpoints}"

    @property
    def is_images_endpoint(self) -> bool:
        return IMAGES_ENDPOINT_MARKER in self.endpoints

    @property
    def images_dir(self) -> Path:
        return self.data_dir / "images"


def configure_logging(level: str = "INFO") -> None:
    """
    Route log records to stderr; stdout is reserved for the MCP stdio transport.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers = [handler]

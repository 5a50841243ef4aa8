"""
Common utilities shared across xhs-studio modules.
"""

from .config import Settings, configure_logging
from .errors import (
    ConfigurationError,
    ProjectNotFoundError,
    UpstreamError,
    UpstreamFormatError,
    UpstreamHttpError,
    XhsStudioError,
)
from .http import fetch_bytes, post_json

__all__ = [
    "ConfigurationError",
    "ProjectNotFoundError",
    "Settings",
    "UpstreamError",
    "UpstreamFormatError",
    "UpstreamHttpError",
    "XhsStudioError",
    "configure_logging",
    "fetch_bytes",
    "post_json",
]

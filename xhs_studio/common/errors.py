"""
Error taxonomy shared across xhs-studio modules.
"""

from __future__ import annotations


class XhsStudioError(Exception):
    """Base class for all errors raised by xhs-studio."""


class ConfigurationError(XhsStudioError):
    """A required setting is missing or invalid."""


class UpstreamError(XhsStudioError):
    """The upstream image generation API could not produce an image."""


class UpstreamHttpError(UpstreamError):
    """
    Non-2xx response or transport failure while talking to the upstream API.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class UpstreamFormatError(UpstreamError):
    """The upstream call succeeded but the payload shape is not recognized."""


class ProjectNotFoundError(XhsStudioError, LookupError):
    """No project is stored under the requested identifier."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id

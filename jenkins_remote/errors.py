"""
Exception taxonomy for the Jenkins remote client.

Every failure the client can produce derives from JenkinsError so callers can
catch broadly, but each kind is distinct enough to decide whether to continue
(NotFound inside a range loop), abort, or report.
"""

from __future__ import annotations


class JenkinsError(Exception):
    """Base class for all client errors."""


class InvalidPath(JenkinsError, ValueError):
    """A job path that cannot be turned into job/<seg>/ URL segments."""


class InvalidBuildSpec(JenkinsError, ValueError):
    """A build selector that is neither N, A..B nor A..=B."""


class InvalidSignal(JenkinsError, ValueError):
    """An interrupt signal other than HUP/TERM/KILL (or 1/15/9)."""


class JenkinsConnectionError(JenkinsError, ConnectionError):
    """DNS resolution or TCP connect failed."""


class RequestTimeout(JenkinsError, TimeoutError):
    """The per-request deadline configured on the transport expired."""


class ProtocolError(JenkinsError):
    """Malformed HTTP framing or a missing/unparseable protocol header."""


class TransferError(JenkinsError):
    """The response body could not be read to completion."""


class NotFound(JenkinsError):
    """HTTP 404: the job, build, artifact or node does not exist (yet)."""

    def __init__(self, url: str):
        super().__init__(f"Not found (404): {url}")
        self.url = url


class RequestFailed(JenkinsError):
    """Any non-404 HTTP error status."""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"Jenkins returned HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class DecodeError(JenkinsError):
    """A JSON payload did not match the expected record shape."""

    def __init__(self, type_name: str, detail: str):
        super().__init__(f"Cannot decode {type_name}: {detail}")
        self.type_name = type_name
        self.detail = detail

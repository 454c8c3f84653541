"""
One authenticated HTTP exchange with Jenkins, and body collection.

send() never interprets the status code; collect() applies the one standard
interpretation used throughout the client (404 is NotFound, other errors are
RequestFailed) and drains the body.
"""

import logging
from urllib.parse import urlsplit

import requests
import urllib3
from requests.auth import HTTPBasicAuth

from jenkins_remote.config import JenkinsConfig
from jenkins_remote.errors import (
    JenkinsConnectionError,
    NotFound,
    ProtocolError,
    RequestFailed,
    RequestTimeout,
    TransferError,
)

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


def _host_header(url: str) -> str:
    """'host[:port]' of ``url``, brackets kept for IPv6, credentials dropped."""
    return urlsplit(url).netloc.rsplit("@", 1)[-1]


class _JenkinsSession(requests.Session):
    """Session that re-derives the Host header on every redirect hop.

    Jenkins redirects artifact downloads to its resource root URL, which may
    be a different host; the first request's Host must not follow it there.
    """

    def rebuild_auth(self, prepared_request, response):
        super().rebuild_auth(prepared_request, response)
        prepared_request.headers["Host"] = _host_header(prepared_request.url)


class Transport:
    """Issues single requests against one Jenkins controller.

    Every send() opens and closes its own session, so no connection pool is
    shared between calls.
    """

    def __init__(self, config: JenkinsConfig):
        self.config = config
        self._auth = HTTPBasicAuth(config.user, config.token)
        if not config.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def base_url(self) -> str:
        return self.config.url

    def send(self, url: str, method: str = "GET", *, follow_redirects: bool = True) -> requests.Response:
        """Issue one request and return the response with its body unread."""
        try:
            with _JenkinsSession() as session:
                response = session.request(
                    method,
                    url,
                    auth=self._auth,
                    headers={"Host": _host_header(url)},
                    timeout=self.config.timeout,
                    verify=self.config.verify_ssl,
                    allow_redirects=follow_redirects,
                    stream=True,
                )
        except requests.Timeout:
            raise RequestTimeout(
                f"Jenkins did not respond within {self.config.timeout} seconds ({url})."
            ) from None
        except requests.ConnectionError as exc:
            if _is_protocol_failure(exc):
                raise ProtocolError(f"Malformed HTTP response from {url}: {exc}") from exc
            raise JenkinsConnectionError(
                f"Cannot reach Jenkins at {self.base_url}. "
                "Verify the server is running and JENKINS_URL is correct."
            ) from exc
        except (requests.exceptions.InvalidHeader, requests.exceptions.ContentDecodingError) as exc:
            raise ProtocolError(f"Malformed HTTP response from {url}: {exc}") from exc

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response


def _is_protocol_failure(exc: requests.ConnectionError) -> bool:
    """True when the connection was made but the reply was not valid HTTP."""
    reason = exc.args[0] if exc.args else None
    return isinstance(reason, urllib3.exceptions.ProtocolError)


def raise_for_status(response: requests.Response) -> None:
    """Map HTTP error statuses onto NotFound / RequestFailed, closing the response."""
    status = response.status_code
    if status < 400:
        return
    response.close()
    if status == 404:
        raise NotFound(response.url)
    raise RequestFailed(status, response.url)


def collect(response: requests.Response) -> bytes:
    """Drain every body chunk, in arrival order, into one buffer."""
    raise_for_status(response)

    chunks: list[bytes] = []
    try:
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            if chunk:
                chunks.append(chunk)
    except (requests.exceptions.ChunkedEncodingError,
            requests.exceptions.ConnectionError,
            requests.exceptions.StreamConsumedError,
            urllib3.exceptions.HTTPError) as exc:
        raise TransferError(f"Reading response body from {response.url} failed: {exc}") from exc
    finally:
        response.close()

    return b"".join(chunks)

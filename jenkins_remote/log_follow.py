"""
Follow a running build's console through Jenkins' progressive-text endpoint.

Each poll asks for ``logText/progressiveText?start=<offset>``.  The server
answers with the bytes from ``offset`` onwards, the new total size in
``X-Text-Size`` and, while the build is still writing, an ``X-More-Data``
header.  Polling stops on the first response without ``X-More-Data``; that
response's body is the final fragment.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterator

from jenkins_remote.errors import ProtocolError
from jenkins_remote.paths import ResourcePath, TreeQuery
from jenkins_remote.transport import Transport, collect

logger = logging.getLogger(__name__)

TEXT_SIZE_HEADER = "X-Text-Size"
MORE_DATA_HEADER = "X-More-Data"


@dataclass
class LogCursor:
    offset: int = 0
    finished: bool = False


def _text_size(headers, url: str) -> int | None:
    raw = headers.get(TEXT_SIZE_HEADER)
    if raw is None:
        return None
    try:
        size = int(raw)
    except ValueError:
        raise ProtocolError(f"Unparseable {TEXT_SIZE_HEADER} header {raw!r} from {url}") from None
    if size < 0:
        raise ProtocolError(f"Negative {TEXT_SIZE_HEADER} header {raw!r} from {url}")
    return size


def poll(transport: Transport, job: ResourcePath, build: int, cursor: LogCursor) -> bytes:
    """Run one poll: fetch from ``cursor.offset`` and advance the cursor."""
    query = TreeQuery(f"{build}/logText/progressiveText?start={cursor.offset}").with_path_prefix(job)
    url = query.url(transport.base_url)
    response = transport.send(url)
    headers = response.headers
    body = collect(response)

    size = _text_size(headers, url)
    if MORE_DATA_HEADER not in headers:
        cursor.finished = True
    elif size is None:
        raise ProtocolError(f"{url} reported more data without {TEXT_SIZE_HEADER}")

    # Re-polling an unchanged offset returns an empty body; never move backwards.
    if body and size is not None:
        cursor.offset = max(cursor.offset, size)

    logger.debug(
        "log poll %s #%s: %d bytes, offset=%d, finished=%s",
        job, build, len(body), cursor.offset, cursor.finished,
    )
    return body


def follow_log(
    transport: Transport,
    job: ResourcePath,
    build: int,
    poll_interval: float = 0.0,
) -> Iterator[bytes]:
    """Yield console fragments, in offset order, until the build stops writing.

    Empty fragments are not yielded.  The consumer may stop iterating at any
    time; every poll's response is fully read before control returns.
    """
    cursor = LogCursor()
    while not cursor.finished:
        fragment = poll(transport, job, build, cursor)
        if fragment:
            yield fragment
        if not cursor.finished and poll_interval:
            time.sleep(poll_interval)

"""
Job paths and tree queries.

Jenkins nests jobs inside folders and addresses them by interleaving a literal
``job/`` marker before every path segment:

    'org/repo/main' -> 'job/org/job/repo/job/main/'

The server resolves that prefix left to right, so it must come before any
``api/json`` or action suffix.  Each segment is URL-encoded to handle spaces,
'#', '%', etc.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from jenkins_remote.errors import InvalidPath


@dataclass(frozen=True)
class ResourcePath:
    segments: tuple[str, ...]

    def __str__(self) -> str:
        return "/".join(self.segments)

    def child(self, name: str) -> "ResourcePath":
        return to_job_segments(f"{self}/{name}" if self.segments else name)


ROOT = ResourcePath(())


def to_job_segments(path: str) -> ResourcePath:
    """Split a slash-separated job path into its segments.

    Empty segments ('a//b', trailing '/') and '.' are dropped the way a
    filesystem path would drop them.  An empty result, or any '..' segment,
    raises InvalidPath.
    """
    segments = tuple(seg for seg in path.split("/") if seg and seg != ".")
    if not segments:
        raise InvalidPath(f"Empty job path: {path!r}")
    if ".." in segments:
        raise InvalidPath(f"Job path may not contain '..': {path!r}")
    return ResourcePath(segments)


def render(path: ResourcePath) -> str:
    """'a/b' -> 'job/a/job/b/' (empty string for the root)."""
    return "".join(f"job/{quote(seg, safe='')}/" for seg in path.segments)


@dataclass(frozen=True)
class TreeQuery:
    """A server-relative REST path, e.g. ``api/json?tree=jobs[name]``."""

    query: str

    def with_path_prefix(self, path: ResourcePath | str | None) -> "TreeQuery":
        if not path:
            return self
        if isinstance(path, str):
            path = to_job_segments(path)
        return TreeQuery(render(path) + self.query)

    def url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/{self.query.lstrip('/')}"

    def __str__(self) -> str:
        return self.query

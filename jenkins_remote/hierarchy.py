"""
Flatten Jenkins' folder tree into a depth-first list of jobs.

Folders are expanded one at a time from an explicit stack of
(parent path, entry) pairs rather than by recursion, so deep hierarchies do
not grow the call stack and at most one request is outstanding.  Children
are visited in the order the server lists them.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterator

from jenkins_remote.models import JobEntry, JobListing
from jenkins_remote.paths import ROOT, ResourcePath

logger = logging.getLogger(__name__)

FOLDER_CLASSES = frozenset({
    "com.cloudbees.hudson.plugins.folder.Folder",
    "jenkins.branch.OrganizationFolder",
    "org.jenkinsci.plugins.workflow.multibranch.WorkflowMultiBranchProject",
})


class NodeKind(enum.Enum):
    FOLDER = "folder"
    LEAF = "leaf"


def classify(class_name: str) -> NodeKind:
    """Decide folder vs. runnable job from a ``_class`` discriminator."""
    if class_name in FOLDER_CLASSES or class_name.rsplit(".", 1)[-1].lower() == "folder":
        return NodeKind.FOLDER
    return NodeKind.LEAF


@dataclass(frozen=True)
class FlattenedJob:
    breadcrumb: tuple[str, ...]
    leaf_name: str
    is_folder: bool = False

    @property
    def full_name(self) -> str:
        return "/".join(self.breadcrumb + (self.leaf_name,))


# Fetches the immediate children of a folder (ROOT for the top level).
ListChildren = Callable[[ResourcePath], JobListing]


def walk(list_children: ListChildren, start: ResourcePath = ROOT) -> Iterator[FlattenedJob]:
    """Yield every leaf job under ``start``, depth first.

    The breadcrumb of each job is the name of every folder above it, from
    the namespace root down, each exactly once.  A folder with no children
    is yielded itself (``is_folder=True``) so that it does not vanish from
    the listing.  Any transport or decode failure propagates immediately.
    """
    stack: list[tuple[ResourcePath, JobEntry]] = []
    _push_children(stack, start, list_children(start).jobs)

    while stack:
        parent, entry = stack.pop()
        if classify(entry.class_) is NodeKind.LEAF:
            yield FlattenedJob(breadcrumb=parent.segments, leaf_name=entry.name)
            continue

        folder = parent.child(entry.name)
        logger.debug("expanding folder %s", folder)
        children = list_children(folder).jobs
        if not children:
            yield FlattenedJob(breadcrumb=parent.segments, leaf_name=entry.name, is_folder=True)
            continue
        _push_children(stack, folder, children)


def _push_children(stack: list[tuple[ResourcePath, JobEntry]], parent: ResourcePath, children: list[JobEntry]) -> None:
    # Reversed so the first listed child is popped first.
    for child in reversed(children):
        stack.append((parent, child))

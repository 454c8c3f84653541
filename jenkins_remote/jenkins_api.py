"""
Remote-control operations for a Jenkins controller.

JenkinsClient composes the path builder, transport, codec, log follower and
folder walker into one method per REST operation.  Read operations return
typed records or raw bytes; action operations return the HTTP status code.
All failures are raised as jenkins_remote.errors exceptions.
"""

from __future__ import annotations

import enum
import logging
from typing import Iterator, Mapping
from urllib.parse import quote

from jenkins_remote import hierarchy, log_follow
from jenkins_remote.build_spec import Signal
from jenkins_remote.config import JenkinsConfig
from jenkins_remote.errors import InvalidPath
from jenkins_remote.hierarchy import FlattenedJob
from jenkins_remote.models import (
    BuildActions,
    BuildListing,
    JobListing,
    NodeInfo,
    Parameter,
    decode,
)
from jenkins_remote.paths import ROOT, ResourcePath, TreeQuery, to_job_segments
from jenkins_remote.transport import Transport, collect, raise_for_status

logger = logging.getLogger(__name__)

JOBS_TREE = "api/json?tree=jobs[fullDisplayName,fullName,name]"
BUILDS_TREE = "api/json?tree=builds[number,url],nextBuildNumber"
NODES_PATH = "computer/api/json"


class NodeState(enum.Enum):
    DISCONNECT = "disconnect"
    CONNECT = "connect"
    OFFLINE = "offline"
    ONLINE = "online"


def _job(job: ResourcePath | str) -> ResourcePath:
    return job if isinstance(job, ResourcePath) else to_job_segments(job)


def _with_reason(endpoint: str, key: str, reason: str) -> str:
    return f"{endpoint}?{key}={quote(reason, safe='')}" if reason else endpoint


def _node_path(node_name: str) -> str:
    """Node URL; the controller is '(built-in)' on 2.307+ and '(master)' before."""
    lowered = node_name.lower()
    if lowered in ("built-in", "(built-in)"):
        return "computer/(built-in)"
    if lowered in ("master", "(master)"):
        return "computer/(master)"
    return f"computer/{quote(node_name, safe='')}"


class JenkinsClient:
    def __init__(self, config: JenkinsConfig, transport: Transport | None = None):
        self.config = config
        self.transport = transport or Transport(config)

    @property
    def url(self) -> str:
        return self.config.url

    # -----------------------------------------------------------------------
    # Plumbing
    # -----------------------------------------------------------------------

    def fetch(self, query: TreeQuery) -> bytes:
        """GET a server-relative resource and return its whole body."""
        return collect(self.transport.send(query.url(self.url)))

    def _action(self, query: TreeQuery, method: str = "POST") -> int:
        response = self.transport.send(query.url(self.url), method, follow_redirects=False)
        raise_for_status(response)
        response.close()
        logger.info("%s %s -> %s", method, query, response.status_code)
        return response.status_code

    # -----------------------------------------------------------------------
    # Jobs and builds
    # -----------------------------------------------------------------------

    def list_jobs(self, folder: ResourcePath | str | None = None) -> JobListing:
        """Immediate children of ``folder`` (the top level when omitted)."""
        return decode(JobListing, self.fetch(TreeQuery(JOBS_TREE).with_path_prefix(folder)))

    def walk_jobs(self, folder: ResourcePath | str | None = None) -> Iterator[FlattenedJob]:
        """Every job under ``folder``, nested folders flattened depth first."""
        start = _job(folder) if folder else ROOT
        return hierarchy.walk(self.list_jobs, start)

    def list_builds(self, job: ResourcePath | str) -> BuildListing:
        return decode(BuildListing, self.fetch(TreeQuery(BUILDS_TREE).with_path_prefix(_job(job))))

    def next_build_number(self, job: ResourcePath | str) -> int:
        return self.list_builds(job).next_build_number

    def console_text(self, job: ResourcePath | str, build: int) -> bytes:
        return self.fetch(TreeQuery(f"{build}/consoleText").with_path_prefix(_job(job)))

    def artifacts_archive(self, job: ResourcePath | str, build: int) -> bytes:
        """Zip of every archived artifact.  NotFound when the build archived nothing."""
        return self.fetch(TreeQuery(f"{build}/artifact/*zip*/archive.zip").with_path_prefix(_job(job)))

    def follow_log(self, job: ResourcePath | str, build: int, poll_interval: float = 0.0) -> Iterator[bytes]:
        return log_follow.follow_log(self.transport, _job(job), build, poll_interval)

    def build_actions(self, job: ResourcePath | str, build: int) -> BuildActions:
        query = TreeQuery(f"{build}/api/json?tree=actions").with_path_prefix(_job(job))
        return decode(BuildActions, self.fetch(query))

    def build_parameters(self, job: ResourcePath | str, build: int) -> list[Parameter]:
        """Parameters a build ran with, read from its ParametersAction.

        The action's position varies between builds, so it is located first
        and then projected alone with the ``{index}`` tree selector.
        """
        job = _job(job)
        index = self.build_actions(job, build).parameters_index()
        if index is None:
            return []
        return self._parameters_at(job, build, index)

    def _parameters_at(self, job: ResourcePath, build: int, index: int) -> list[Parameter]:
        query = TreeQuery(
            f"{build}/api/json?tree=actions[parameters[name,value]]{{{index}}}"
        ).with_path_prefix(job)
        return decode(BuildActions, self.fetch(query)).parameters()

    def build(self, job: ResourcePath | str, params: Mapping[str, object] | None = None) -> int:
        """Queue a build.

        ``params=None`` uses the plain build endpoint; any mapping (an empty
        one means "server defaults") goes through buildWithParameters.
        """
        if params is None:
            endpoint = "build?delay=0sec"
        else:
            endpoint = "buildWithParameters?delay=0sec" + "".join(
                f"&{quote(str(k), safe='')}={quote(_param_value(v), safe='')}"
                for k, v in params.items()
            )
        return self._action(TreeQuery(endpoint).with_path_prefix(_job(job)))

    def rebuild(self, job: ResourcePath | str, build: int) -> list[Parameter]:
        """Queue a new build with the parameters ``build`` ran with; returns them.

        A build without a ParametersAction belongs to a job that is not
        parameterized, and buildWithParameters answers such jobs with 400,
        so it is rebuilt through the plain build endpoint.
        """
        job = _job(job)
        index = self.build_actions(job, build).parameters_index()
        if index is None:
            logger.info("rebuilding %s #%s without parameters", job, build)
            self.build(job)
            return []

        params = self._parameters_at(job, build, index)
        logger.info("rebuilding %s #%s with %d parameter(s)", job, build, len(params))
        self.build(job, {p.name: p.value for p in params})
        return params

    def remove(self, job: ResourcePath | str) -> int:
        return self._action(TreeQuery("").with_path_prefix(_job(job)), "DELETE")

    def kill(self, job: ResourcePath | str, build: int, signal: Signal | str = Signal.TERM) -> int:
        if not isinstance(signal, Signal):
            signal = Signal.parse(signal)
        return self._action(TreeQuery(f"{build}/{signal.value}").with_path_prefix(_job(job)))

    def copy_job(self, src: str, dest: str) -> int:
        if "/" in dest:
            raise InvalidPath(f"Copying a job into a folder is not supported: {dest!r}")
        return self._action(TreeQuery(
            f"createItem?from={quote(src, safe='')}&mode=copy&name={quote(dest, safe='')}"
        ))

    def copy_view(self, src: str, dest: str) -> int:
        return self._action(TreeQuery(
            f"createView?from={quote(src, safe='')}&mode=copy&name={quote(dest, safe='')}"
        ))

    # -----------------------------------------------------------------------
    # Controller
    # -----------------------------------------------------------------------

    def quiet_down(self, reason: str = "") -> int:
        return self._action(TreeQuery(_with_reason("quietDown", "reason", reason)))

    def cancel_quiet_down(self) -> int:
        return self._action(TreeQuery("cancelQuietDown"))

    def restart(self, hard: bool = False) -> int:
        return self._action(TreeQuery("restart" if hard else "safeRestart"))

    # -----------------------------------------------------------------------
    # Nodes
    # -----------------------------------------------------------------------

    def nodes(self) -> NodeInfo:
        return decode(NodeInfo, self.fetch(TreeQuery(NODES_PATH)))

    def set_node_state(self, node: str, state: NodeState | str, reason: str = "") -> int:
        state = NodeState(state)
        if state is NodeState.DISCONNECT:
            endpoint = _with_reason("doDisconnect", "offlineMessage", reason)
        elif state is NodeState.CONNECT:
            endpoint = "launchSlaveAgent"
        elif state is NodeState.OFFLINE:
            endpoint = _with_reason("toggleOffline", "offlineMessage", reason)
        else:
            endpoint = "toggleOffline"
        return self._action(TreeQuery(f"{_node_path(node)}/{endpoint}"))


def _param_value(value: object) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if value is None:
        return ""
    return str(value)

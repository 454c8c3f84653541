"""
Jenkins Remote MCP Server

A Model Context Protocol server for remote-controlling a Jenkins controller:
list and flatten the job tree, trigger and follow builds, fetch logs and
artifacts, interrupt or rebuild builds, and manage nodes and the controller
itself.

Transport: Streamable HTTP by default (MCP_TRANSPORT=http, host 0.0.0.0, port 8000).
           Set MCP_TRANSPORT=stdio to use stdio instead (e.g. for Cursor/Claude Desktop).
Logs:      All application logs go to stderr to avoid corrupting the JSON-RPC stream.
"""

import functools
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from fastmcp import FastMCP

from jenkins_remote.build_spec import Signal, parse_build_spec
from jenkins_remote.config import JenkinsConfig
from jenkins_remote.errors import (
    DecodeError,
    InvalidBuildSpec,
    InvalidPath,
    InvalidSignal,
    JenkinsConnectionError,
    NotFound,
    ProtocolError,
    RequestFailed,
    RequestTimeout,
    TransferError,
)
from jenkins_remote.hierarchy import FlattenedJob
from jenkins_remote.jenkins_api import JenkinsClient, NodeState
from jenkins_remote.models import Computer

load_dotenv()

# Route all library and application logs to stderr, never stdout.
logging.basicConfig(
    stream=sys.stderr,
    level=os.getenv("LOG_LEVEL", "WARNING").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("jenkins-remote")

_FOLLOW_OUTPUT_CAP = 200_000

mcp = FastMCP(
    "Jenkins Remote",
    instructions=(
        "You remote-control a Jenkins controller. "
        "Use list_jobs to discover the (flattened) job tree and list_builds for a job's build numbers. "
        "Use build_job to trigger a build (follow=true streams its console until it finishes), "
        "get_console_log for a finished build's log, download_artifacts to save archives. "
        "Builds can be selected as N, A..B (exclusive) or A..=B (inclusive) where a tool accepts a build spec. "
        "Destructive tools (remove_job, restart_server, kill_build) act immediately."
    ),
)


@functools.lru_cache(maxsize=1)
def _client() -> JenkinsClient:
    return JenkinsClient(JenkinsConfig.from_env())


def _handle_error(exc: Exception, context: str) -> str:
    """Convert client exceptions into readable strings for the AI."""
    if isinstance(exc, NotFound):
        return f"[{context}] Not found (404). Verify the job path and build number."
    if isinstance(exc, RequestFailed):
        if exc.status_code == 401:
            return f"[{context}] Authentication failed (401). Check JENKINS_USER and JENKINS_TOKEN."
        if exc.status_code == 403:
            return f"[{context}] Permission denied (403) for this action."
        return f"[{context}] Jenkins API error {exc.status_code}."
    if isinstance(exc, (InvalidPath, InvalidBuildSpec, InvalidSignal)):
        return f"[{context}] Invalid input: {exc}"
    if isinstance(exc, (JenkinsConnectionError, RequestTimeout, ProtocolError, TransferError)):
        return f"[{context}] {exc}"
    if isinstance(exc, DecodeError):
        return f"[{context}] Unexpected response shape from Jenkins ({exc.type_name})."
    return f"[{context}] Unexpected error: {exc}"


def _parse_params(params: str) -> dict[str, str] | None:
    """'A=1,B=two' -> {'A': '1', 'B': 'two'}; '' -> None; '-' -> {} (server defaults)."""
    params = params.strip()
    if not params:
        return None
    if params == "-":
        return {}
    result: dict[str, str] = {}
    for pair in params.split(","):
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Malformed parameter {pair!r}; expected NAME=VALUE")
        result[name.strip()] = value
    return result


def _format_flattened(job: FlattenedJob) -> str:
    crumbs = " => ".join(job.breadcrumb + (job.leaf_name,))
    return crumbs + ("/ (empty folder)" if job.is_folder else "")


def _format_node(computer: Computer) -> str:
    state = "offline" if computer.offline else "online"
    line = f"{computer.display_name:.<40}{state}"
    if computer.offline and computer.offline_cause_reason:
        line += f" ({computer.offline_cause_reason})"
    if computer.labels:
        line += f"  labels: {', '.join(computer.labels)}"
    disk_gb = computer.disk_gb
    if disk_gb is not None:
        line += f"  disk: {disk_gb} GB" + (" (low)" if disk_gb < 10 else "")
    return line


def _job_basename(job: str) -> str:
    return job.rstrip("/").rsplit("/", 1)[-1]


# ---------------------------------------------------------------------------
# Job Tools
# ---------------------------------------------------------------------------


@mcp.tool
def list_jobs(folder: str = "") -> str:
    """List every job, with nested folders flattened into 'Folder => Sub => job' lines.

    Args:
        folder: Folder path to start from (empty string for the root).
    """
    try:
        jobs = list(_client().walk_jobs(folder or None))
    except Exception as exc:
        return _handle_error(exc, "list_jobs")

    if not jobs:
        return f"No jobs found in '{folder or '(root)'}'."
    lines = [f"Jobs in '{folder or '(root)'}' ({len(jobs)}):\n"]
    lines.extend(f"  {_format_flattened(j)}" for j in jobs)
    return "\n".join(lines)


@mcp.tool
def list_builds(job_name: str) -> str:
    """List the build numbers Jenkins keeps for a job.

    Args:
        job_name: Job path (format: path/to/jenkins/job).
    """
    try:
        listing = _client().list_builds(job_name)
    except Exception as exc:
        return _handle_error(exc, "list_builds")

    if not listing.builds:
        return f"No builds recorded for '{job_name}'. Next build number: {listing.next_build_number}."
    lines = [f"Builds of {job_name} (next: #{listing.next_build_number}):"]
    lines.extend(f"  #{b.number}" for b in listing.builds)
    return "\n".join(lines)


@mcp.tool
def build_job(job_name: str, params: str = "", follow: bool = False) -> str:
    """Trigger a build, optionally following its console until it finishes.

    Args:
        job_name: Job path (format: path/to/jenkins/job).
        params: 'NAME=VALUE,...' for a parameterized build, '-' to build with
            the job's defaults, empty for a plain build.
        follow: Stream the console output of the new build.
    """
    client = _client()
    try:
        build_params = _parse_params(params)
        number = client.next_build_number(job_name)
        client.build(job_name, build_params)
    except Exception as exc:
        return _handle_error(exc, "build_job")

    logger.info("started build %s of %s", number, job_name)
    header = f"Started build #{number} of {job_name}."
    if not follow:
        return header

    chunks: list[bytes] = []
    total = 0
    try:
        for fragment in client.follow_log(job_name, number, poll_interval=1.0):
            chunks.append(fragment)
            total += len(fragment)
            if total >= _FOLLOW_OUTPUT_CAP:
                chunks.append(b"\n[CONSOLE TRUNCATED: build still running]")
                break
    except NotFound:
        return header + "\nThe build has not started yet (still queued); use get_console_log later."
    except Exception as exc:
        return header + "\n" + _handle_error(exc, "build_job")

    return header + "\n\n" + b"".join(chunks).decode("utf-8", errors="replace")


@mcp.tool
def get_console_log(job_name: str, build_number: int) -> str:
    """Fetch the full console text of a build.

    Args:
        job_name: Job path (format: path/to/jenkins/job).
        build_number: Build number.
    """
    try:
        text = _client().console_text(job_name, build_number)
    except Exception as exc:
        return _handle_error(exc, "get_console_log")
    return text.decode("utf-8", errors="replace")


@mcp.tool
def download_artifacts(job_name: str, build: str, target_dir: str = ".") -> str:
    """Download the artifact archive of one build or a build range.

    Each archive is written as '<job>_<build>.zip'.  Builds without
    artifacts are reported and skipped.

    Args:
        job_name: Job path (format: path/to/jenkins/job).
        build: Build number, 'A..B' (B excluded) or 'A..=B' (B included).
        target_dir: Directory to write archives into.
    """
    try:
        spec = parse_build_spec(build)
    except Exception as exc:
        return _handle_error(exc, "download_artifacts")

    client = _client()
    base = _job_basename(job_name)
    lines = []
    for number in spec:
        try:
            data = client.artifacts_archive(job_name, number)
        except NotFound:
            lines.append(f"  #{number}: no artifacts")
            continue
        except Exception as exc:
            lines.append(f"  #{number}: " + _handle_error(exc, "download_artifacts"))
            break
        path = Path(target_dir) / f"{base}_{number}.zip"
        path.write_bytes(data)
        logger.info("fetched build %s artifacts from %s", number, job_name)
        lines.append(f"  #{number}: saved {path} ({len(data)} bytes)")
    return f"Artifacts of {job_name}:\n" + "\n".join(lines)


@mcp.tool
def kill_build(job_name: str, build: str, signal: str = "TERM") -> str:
    """Interrupt one build or a build range.

    Args:
        job_name: Job path (format: path/to/jenkins/job).
        build: Build number, 'A..B' or 'A..=B'.
        signal: HUP (stop), TERM (terminate) or KILL (hard kill); 1/15/9 also accepted.
    """
    try:
        spec = parse_build_spec(build)
        sig = Signal.parse(signal)
    except Exception as exc:
        return _handle_error(exc, "kill_build")

    client = _client()
    lines = []
    for number in spec:
        try:
            client.kill(job_name, number, sig)
            lines.append(f"  #{number}: {sig.name} sent")
        except NotFound:
            lines.append(f"  #{number}: no such build")
        except Exception as exc:
            lines.append(f"  #{number}: " + _handle_error(exc, "kill_build"))
            break
    return f"Interrupting {job_name}:\n" + "\n".join(lines)


@mcp.tool
def rebuild_build(job_name: str, build_number: int) -> str:
    """Trigger a new build with the same parameters as an earlier one.

    Args:
        job_name: Job path (format: path/to/jenkins/job).
        build_number: Build whose parameters are reused.
    """
    try:
        params = _client().rebuild(job_name, build_number)
    except Exception as exc:
        return _handle_error(exc, "rebuild_build")

    lines = [f"Rebuilding {job_name} #{build_number} with params:"]
    lines.extend(f"  {p.name:-<40}{p.value}" for p in params)
    if not params:
        lines.append("  (none)")
    return "\n".join(lines)


@mcp.tool
def remove_job(job_name: str) -> str:
    """Delete a job permanently.

    Args:
        job_name: Job path (format: path/to/jenkins/job).
    """
    try:
        _client().remove(job_name)
    except Exception as exc:
        return _handle_error(exc, "remove_job")
    return f"Removed {job_name}."


@mcp.tool
def copy_item(item: str, src: str, dest: str) -> str:
    """Create a job or view as a copy of an existing one.

    Args:
        item: 'job' or 'view'.
        src: Name of the item to copy.
        dest: Name of the new item (jobs cannot be copied into a folder).
    """
    client = _client()
    try:
        if item == "job":
            client.copy_job(src, dest)
        elif item == "view":
            client.copy_view(src, dest)
        else:
            return f"[copy_item] Unknown item type '{item}'; use 'job' or 'view'."
    except Exception as exc:
        return _handle_error(exc, "copy_item")
    return f"Copied {item} '{src}' to '{dest}'."


# ---------------------------------------------------------------------------
# Node Tools
# ---------------------------------------------------------------------------


@mcp.tool
def list_nodes(status: bool = False) -> str:
    """List build nodes, optionally with status, labels and free disk space.

    Args:
        status: Include online/offline status, offline reason, labels and disk.
    """
    try:
        info = _client().nodes()
    except Exception as exc:
        return _handle_error(exc, "list_nodes")

    if not status:
        return "\n".join(c.display_name for c in info.computer)
    return "\n".join(_format_node(c) for c in info.computer)


@mcp.tool
def show_executors(total: bool = False, busy: bool = False) -> str:
    """Show executor counts across all nodes (both when neither flag is set).

    Args:
        total: Show the total number of executors.
        busy: Show the number of busy executors.
    """
    try:
        info = _client().nodes()
    except Exception as exc:
        return _handle_error(exc, "show_executors")

    lines = []
    if total or not busy:
        lines.append(f"Total number of executors: {info.total_executors}")
    if busy or not total:
        lines.append(f"Busy executors: {info.busy_executors}")
    return "\n".join(lines)


@mcp.tool
def set_node_state(node_name: str, state: str, reason: str = "") -> str:
    """Connect, disconnect, or take a node offline/online.

    Args:
        node_name: Node name ('built-in' for the controller).
        state: One of: disconnect, connect, offline, online.
        reason: Optional message for disconnect/offline.
    """
    try:
        node_state = NodeState(state.lower())
    except ValueError:
        return f"[set_node_state] Unknown state '{state}'; use disconnect, connect, offline or online."

    try:
        _client().set_node_state(node_name, node_state, reason)
    except Exception as exc:
        return _handle_error(exc, "set_node_state")
    return f"Node {node_name}: {state.lower()} requested."


# ---------------------------------------------------------------------------
# Controller Tools
# ---------------------------------------------------------------------------


@mcp.tool
def shutdown_banner(enable: bool = True, reason: str = "") -> str:
    """Set or cancel the 'prepare for shutdown' banner (quiet-down mode).

    Args:
        enable: True to set the banner, False to cancel it.
        reason: Optional reason shown in the banner.
    """
    client = _client()
    try:
        if enable:
            client.quiet_down(reason)
        else:
            client.cancel_quiet_down()
    except Exception as exc:
        return _handle_error(exc, "shutdown_banner")
    return "Quiet-down mode enabled." if enable else "Quiet-down mode cancelled."


@mcp.tool
def restart_server(hard: bool = False) -> str:
    """Restart Jenkins; a safe restart waits for running builds first.

    Args:
        hard: Restart immediately without waiting for builds to complete.
    """
    try:
        _client().restart(hard)
    except Exception as exc:
        return _handle_error(exc, "restart_server")
    return "Restart requested." if hard else "Safe restart requested."


@mcp.tool
def server_info() -> str:
    """Show which Jenkins controller this server talks to."""
    try:
        return f"Jenkins URL: {_client().url}"
    except Exception as exc:
        return _handle_error(exc, "server_info")


def main() -> None:
    transport = os.getenv("MCP_TRANSPORT", "http")
    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8000"))

    if transport == "stdio":
        mcp.run(transport="stdio", show_banner=False)
    else:
        print(
            f"Jenkins Remote MCP server starting\n"
            f"  Local:    http://127.0.0.1:{port}/mcp",
            file=sys.stderr,
        )
        mcp.run(transport=transport, host=host, port=port, show_banner=False)


if __name__ == "__main__":
    main()

"""
Typed records for the Jenkins JSON responses the client relies on.

Field names follow the server's camelCase (and its ``_class`` discriminator)
through aliases; unknown fields are ignored because the server's schema grows
with every plugin.  Records dump back by alias, so a decoded payload
re-serialises to the same values.
"""

from __future__ import annotations

from typing import Annotated, Any, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, ValidationError

from jenkins_remote.errors import DecodeError


class JenkinsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Jobs and builds
# ---------------------------------------------------------------------------


class JobEntry(JenkinsModel):
    class_: str = Field(alias="_class")
    full_name: str = Field(alias="fullName")
    name: str
    full_display_name: str = Field(alias="fullDisplayName")


class JobListing(JenkinsModel):
    jobs: list[JobEntry]


class Build(JenkinsModel):
    class_: str = Field(default="", alias="_class")
    number: int = Field(ge=0)
    url: str


class BuildListing(JenkinsModel):
    class_: str = Field(default="", alias="_class")
    builds: list[Build]
    next_build_number: int = Field(alias="nextBuildNumber", ge=0)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class AssignedLabel(JenkinsModel):
    name: str


class Computer(JenkinsModel):
    display_name: str = Field(alias="displayName")
    offline: bool
    idle: bool = False
    num_executors: int = Field(default=0, alias="numExecutors")
    temporarily_offline: bool = Field(default=False, alias="temporarilyOffline")
    offline_cause_reason: str | None = Field(default=None, alias="offlineCauseReason")
    description: str | None = None
    assigned_labels: list[AssignedLabel] = Field(default_factory=list, alias="assignedLabels")
    monitor_data: dict[str, Any] | None = Field(default=None, alias="monitorData")

    @property
    def labels(self) -> list[str]:
        return [lbl.name for lbl in self.assigned_labels if lbl.name]

    @property
    def disk_gb(self) -> float | None:
        """Free disk space on the agent workspace, when DiskSpaceMonitor reports it."""
        disk_monitor = (self.monitor_data or {}).get("hudson.node_monitors.DiskSpaceMonitor")
        if isinstance(disk_monitor, dict) and disk_monitor.get("size") is not None:
            return round(disk_monitor["size"] / (1024 ** 3), 2)
        return None


class NodeInfo(JenkinsModel):
    busy_executors: int = Field(alias="busyExecutors", ge=0)
    total_executors: int = Field(alias="totalExecutors", ge=0)
    display_name: str = Field(default="", alias="displayName")
    computer: list[Computer]


# ---------------------------------------------------------------------------
# Build actions
# ---------------------------------------------------------------------------


class Parameter(JenkinsModel):
    class_: str = Field(default="", alias="_class")
    name: str
    value: Any = None


class ParametersAction(JenkinsModel):
    class_: str = Field(alias="_class")
    parameters: list[Parameter] = Field(default_factory=list)


class OtherAction(JenkinsModel):
    """Any action the client does not inspect; its fields are kept as-is."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    class_: str = Field(default="", alias="_class")


def _action_kind(value: Any) -> str:
    if isinstance(value, dict):
        class_name = value.get("_class", "") or ""
    else:
        class_name = getattr(value, "class_", "")
    return "parameters" if "ParametersAction" in class_name else "other"


Action = Annotated[
    Union[
        Annotated[ParametersAction, Tag("parameters")],
        Annotated[OtherAction, Tag("other")],
    ],
    Discriminator(_action_kind),
]


class BuildActions(JenkinsModel):
    class_: str = Field(default="", alias="_class")
    actions: list[Action]

    def parameters_index(self) -> int | None:
        """Position of the ParametersAction within the build's actions array."""
        for idx, action in enumerate(self.actions):
            if isinstance(action, ParametersAction):
                return idx
        return None

    def parameters(self) -> list[Parameter]:
        return [
            param
            for action in self.actions
            if isinstance(action, ParametersAction)
            for param in action.parameters
        ]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


T = TypeVar("T", bound=BaseModel)


def decode(model: type[T], data: bytes | str) -> T:
    """Parse a JSON body into ``model``, raising DecodeError on any mismatch."""
    try:
        return model.model_validate_json(data)
    except ValidationError as exc:
        raise DecodeError(model.__name__, str(exc)) from exc

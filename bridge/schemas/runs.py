from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, JsonValue


class RunStatus(str, Enum):
    UNSTARTED = ""
    IN_PROGRESS = "in_progress"
    PENDING_BRIDGE = "pending_bridge"
    PENDING_CONFIRMATIONS = "pending_confirmations"
    PENDING_CONNECTION = "pending_connection"
    PENDING_SLEEP = "pending_sleep"
    COMPLETED = "completed"
    ERRORED = "errored"

    @property
    def finished(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.ERRORED)

    @property
    def pending(self) -> bool:
        return self.value.startswith("pending_")


class RunResult(BaseModel):
    """State threaded through the pipeline stages of a single job run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    job_run_id: str = Field(default="", alias="jobRunId")
    data: dict[str, JsonValue] = Field(default_factory=dict)
    status: RunStatus = RunStatus.UNSTARTED
    error_message: str | None = Field(default=None, alias="error")

    @property
    def finished(self) -> bool:
        return self.status.finished

    def with_error(self, message: str) -> RunResult:
        return self.model_copy(update={"status": RunStatus.ERRORED, "error_message": message})


class BridgeType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    outgoing_token: str = ""


class BridgeOutgoing(BaseModel):
    """Request body sent to an external adapter.

    Only these fields go over the wire, whatever else RunResult carries.
    """

    id: str
    data: dict[str, JsonValue]
    response_url: str | None = Field(default=None, serialization_alias="responseURL")


class BridgeRunResult(BaseModel):
    """Partial run result returned by an external adapter."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    job_run_id: str | None = Field(default=None, alias="id")
    data: dict[str, JsonValue] | None = None
    status: RunStatus | None = None
    error: str | None = None
    pending: bool = False

    def resolved_status(self) -> RunStatus | None:
        # A reported error is terminal regardless of any declared status.
        if self.error:
            return RunStatus.ERRORED
        if self.status is not None and self.status is not RunStatus.UNSTARTED:
            return self.status
        if self.pending:
            return RunStatus.PENDING_BRIDGE
        return None

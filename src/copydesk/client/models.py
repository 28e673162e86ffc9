from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RunStatus(str, Enum):
    """Status of a run as reported by the remote service."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        """Whether polling should stop on this status."""
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({
    RunStatus.COMPLETED,
    RunStatus.FAILED,
    RunStatus.CANCELLED,
    RunStatus.INCOMPLETE,
    RunStatus.EXPIRED,
})


class RemoteMessage(BaseModel):
    """A message as stored on a remote thread."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Message identifier assigned by the service")
    thread_id: str = Field(description="Thread the message belongs to")
    role: str = Field(description="Role of the message sender: 'user' or 'assistant'")
    text: str | None = Field(
        default=None,
        description="Value of the first text content block, None if the message has none"
    )
    created_at: int = Field(description="Creation time in epoch seconds")


class RemoteRun(BaseModel):
    """A run (one assistant invocation against a thread)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Run identifier assigned by the service")
    thread_id: str = Field(description="Thread the run is attached to")
    status: RunStatus = Field(description="Last status reported by the service")
    last_error: str | None = Field(
        default=None,
        description="Upstream error message for failed runs"
    )

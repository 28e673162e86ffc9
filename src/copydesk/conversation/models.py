"""Data models for the conversation engine.

These models describe what the rest of the application reads: normalized
messages, run outcomes, assistant profiles and authoring phases.
"""

from datetime import datetime, timezone
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field

from ..client.models import RemoteMessage, RunStatus


class MessageRole(str, Enum):
    """Sender of a thread message."""

    USER = "user"
    ASSISTANT = "assistant"


class DraftPayload(BaseModel):
    """The normalized `{discussion, draft}` record carried by every message."""

    model_config = ConfigDict(frozen=True)

    discussion: str = Field(default="", description="Conversational text for the chat panel")
    draft: str = Field(default="", description="Long-form content being edited")

    def serialize(self) -> str:
        """Canonical JSON text stored in ThreadMessage.content."""
        return self.model_dump_json()


class ThreadMessage(BaseModel):
    """A normalized message on the conversation thread.

    `content` is always a serialized DraftPayload, never raw service text.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Identifier assigned by the remote service")
    role: MessageRole
    content: str = Field(description="Serialized DraftPayload")
    created_at: datetime

    @classmethod
    def from_remote(
        cls,
        message: RemoteMessage,
        payload: DraftPayload,
        role: MessageRole | None = None
    ) -> "ThreadMessage":
        """Build from a remote message and its normalized payload.

        Args:
            message: Message as read from the service
            payload: Normalized content of the message
            role: Override for the role reported by the service
        """
        return cls(
            id=message.id,
            role=role or MessageRole(message.role),
            content=payload.serialize(),
            created_at=datetime.fromtimestamp(message.created_at, tz=timezone.utc),
        )

    @property
    def payload(self) -> DraftPayload:
        """Parsed content."""
        return DraftPayload.model_validate_json(self.content)

    @property
    def discussion(self) -> str:
        return self.payload.discussion

    @property
    def draft(self) -> str:
        return self.payload.draft


class RunResult(BaseModel):
    """Outcome of a run that reached `completed`."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    thread_id: str
    status: RunStatus
    message: RemoteMessage = Field(description="Newest message on the thread after completion")
    polls: int = Field(default=0, description="Number of status reads after creation")


class AssistantProfile(BaseModel):
    """A remote assistant the session can be bound to."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Assistant identifier on the remote service")
    name: str
    description: str = ""


class ContentPhase(IntEnum):
    """Ordered authoring stages, each with a kickoff prompt."""

    GOALS = 1
    NARRATIVE = 2
    STRUCTURE = 3
    CONTENT = 4
    CONCLUSION = 5
    REVIEW = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_string(cls, value: str) -> "ContentPhase":
        """Look up a phase by name (case-insensitive) or number."""
        value = value.strip()
        if value.isdigit():
            return cls(int(value))
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown phase: {value}. "
                f"Valid phases: {', '.join(p.name.lower() for p in cls)}"
            ) from None


class DraftPolicy(str, Enum):
    """What to do with an assistant draft when the live buffer changed meanwhile."""

    OVERWRITE = "overwrite"            # Assistant draft always replaces the buffer
    PRESERVE_EDITS = "preserve_edits"  # Keep manual edits, hold the draft as pending

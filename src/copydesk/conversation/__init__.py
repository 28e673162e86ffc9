"""Conversation session engine.

Thread lifecycle, run polling and payload normalization behind the
ConversationOrchestrator facade.
"""

from .extractor import WireShape, classify, compose_user_turn, normalize, render_outgoing
from .models import (
    AssistantProfile,
    ContentPhase,
    DraftPayload,
    DraftPolicy,
    MessageRole,
    RunResult,
    ThreadMessage,
)
from .orchestrator import ConversationOrchestrator, OrchestratorEvent
from .scheduler import RunScheduler
from .session import SessionManager

__all__ = [
    "AssistantProfile",
    "ContentPhase",
    "ConversationOrchestrator",
    "DraftPayload",
    "DraftPolicy",
    "MessageRole",
    "OrchestratorEvent",
    "RunResult",
    "RunScheduler",
    "SessionManager",
    "ThreadMessage",
    "WireShape",
    "classify",
    "compose_user_turn",
    "normalize",
    "render_outgoing",
]

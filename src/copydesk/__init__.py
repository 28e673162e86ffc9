"""
copydesk: conversation session engine for AI-assisted content editing.

A thread on a hosted assistant service carries the conversation; every
message is normalized into a `{discussion, draft}` pair so the chat and the
draft being edited can be rendered side by side.
"""

__version__ = "0.1.0"

from .client import ThreadService, create_thread_service
from .config import EngineConfig, load_assistant_catalog, load_config
from .conversation import (
    AssistantProfile,
    ContentPhase,
    ConversationOrchestrator,
    DraftPayload,
    DraftPolicy,
    RunScheduler,
    SessionManager,
    ThreadMessage,
    normalize,
)
from .errors import ConversationError

__all__ = [
    "AssistantProfile",
    "ContentPhase",
    "ConversationError",
    "ConversationOrchestrator",
    "DraftPayload",
    "DraftPolicy",
    "EngineConfig",
    "RunScheduler",
    "SessionManager",
    "ThreadMessage",
    "ThreadService",
    "create_thread_service",
    "load_assistant_catalog",
    "load_config",
    "normalize",
]

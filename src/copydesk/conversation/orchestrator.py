"""Application-facing conversation facade.

Holds everything a front end renders (messages, live draft, loading flag,
phase, assistant, last error) and sequences SessionManager calls into
complete user-visible turns. Front ends read the properties and subscribe
to change events; the async methods are the only mutation entry points.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum

from ..prompts import get_phase_prompt, render_assistant_intro
from .extractor import compose_user_turn
from .models import AssistantProfile, ContentPhase, DraftPolicy, ThreadMessage
from .session import SessionManager

logger = logging.getLogger(__name__)


class OrchestratorEvent(str, Enum):
    """Names of the state changes observers are told about."""

    LOADING = "loading"
    MESSAGES = "messages"
    CONTENT = "content"
    PHASE = "phase"
    ASSISTANT = "assistant"
    ERROR = "error"
    DRAFT_CONFLICT = "draft_conflict"


Observer = Callable[[OrchestratorEvent], None]


class ConversationOrchestrator:
    """Conversation state plus the operations that change it.

    Hidden design decisions:
    - Outgoing payload construction (user text bundled with the live draft)
    - Message ordering (newest first)
    - How assistant drafts are merged into the edit buffer (DraftPolicy)
    - Error containment at the operation boundary

    Errors from the session layer are caught here, logged, and exposed as
    `last_error`; `is_loading` is back to False once every in-flight
    operation has settled.
    """

    def __init__(
        self,
        session: SessionManager,
        assistant: AssistantProfile | None = None,
        phase: ContentPhase = ContentPhase.GOALS,
        draft_policy: DraftPolicy = DraftPolicy.OVERWRITE,
        phase_prompts: dict[ContentPhase, str] | None = None
    ):
        """Initialize the orchestrator.

        Args:
            session: Session that owns the remote thread
            assistant: Initial assistant (binds the session to it)
            phase: Initial authoring phase
            draft_policy: How assistant drafts treat concurrent manual edits
            phase_prompts: Overrides for the phase kickoff prompts
        """
        self._session = session
        self._messages: list[ThreadMessage] = []
        self._current_content = ""
        self._pending_draft: str | None = None
        self._in_flight = 0
        self._current_phase = phase
        self._current_assistant = assistant
        self._draft_policy = draft_policy
        self._phase_prompts = phase_prompts or {}
        self._last_error: Exception | None = None
        self._observers: list[Observer] = []

        if assistant is not None:
            session.update_assistant(assistant.id)

    # Read model

    @property
    def messages(self) -> list[ThreadMessage]:
        """Messages of the current thread, newest first."""
        return list(self._messages)

    @property
    def current_content(self) -> str:
        return self._current_content

    @property
    def pending_draft(self) -> str | None:
        """Assistant draft held back to protect manual edits."""
        return self._pending_draft

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    @property
    def current_phase(self) -> ContentPhase:
        return self._current_phase

    @property
    def current_assistant(self) -> AssistantProfile | None:
        return self._current_assistant

    @property
    def draft_policy(self) -> DraftPolicy:
        return self._draft_policy

    @property
    def last_error(self) -> Exception | None:
        """Error of the most recent operation, None if it succeeded."""
        return self._last_error

    @property
    def thread_id(self) -> str | None:
        return self._session.thread_id

    # Observers

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, event: OrchestratorEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception("Observer %r failed on %s event", observer, event.value)

    @contextmanager
    def _operation(self, action: str) -> Iterator[None]:
        """Bracket an async sequence with the loading flag and contain its errors."""
        self._in_flight += 1
        self._last_error = None
        try:
            if self._in_flight == 1:
                self._notify(OrchestratorEvent.LOADING)
            yield
        except Exception as e:
            logger.exception("Failed to %s", action)
            self._last_error = e
            self._notify(OrchestratorEvent.ERROR)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._notify(OrchestratorEvent.LOADING)

    def _prepend(self, message: ThreadMessage) -> None:
        self._messages.insert(0, message)
        self._notify(OrchestratorEvent.MESSAGES)

    def _apply_draft(self, draft: str, sent_content: str) -> None:
        if not draft:
            return
        if self._draft_policy == DraftPolicy.PRESERVE_EDITS and self._current_content != sent_content:
            logger.info("Draft buffer edited during the turn; holding assistant draft as pending")
            self._pending_draft = draft
            self._notify(OrchestratorEvent.DRAFT_CONFLICT)
            return
        self._pending_draft = None
        self._current_content = draft
        self._notify(OrchestratorEvent.CONTENT)

    # Operations

    async def start(self) -> str | None:
        """Create the initial thread.

        Returns:
            The new thread id, None if creation failed (see last_error)
        """
        with self._operation("initialize thread"):
            thread_id = await self._session.create_thread()
            self._messages = []
            self._notify(OrchestratorEvent.MESSAGES)
            return thread_id
        return None

    async def send_message(self, user_text: str) -> ThreadMessage | None:
        """Send one user turn and wait for the assistant's reply.

        Args:
            user_text: What the user typed

        Returns:
            The assistant message, None if the turn failed (see last_error)
        """
        with self._operation("send message"):
            sent_content = self._current_content
            user_message = await self._session.add_message(
                compose_user_turn(user_text, sent_content)
            )
            self._prepend(user_message)

            reply = await self._session.get_assistant_response()
            self._prepend(reply)
            self._apply_draft(reply.draft, sent_content)
            return reply
        return None

    async def set_phase(self, phase: ContentPhase) -> ThreadMessage | None:
        """Move to a phase and send its kickoff prompt."""
        self._current_phase = phase
        self._notify(OrchestratorEvent.PHASE)
        prompt = self._phase_prompts.get(phase) or get_phase_prompt(phase)
        return await self.send_message(prompt)

    async def set_assistant(self, profile: AssistantProfile) -> bool:
        """Switch to another assistant on a brand-new thread.

        History is not carried over. The new thread starts with a single
        introductory message naming the assistant.

        Returns:
            True if the switch completed
        """
        with self._operation("switch assistant"):
            self._messages = []
            self._notify(OrchestratorEvent.MESSAGES)

            await self._session.create_thread()
            self._session.update_assistant(profile.id)
            self._current_assistant = profile
            self._notify(OrchestratorEvent.ASSISTANT)

            intro = await self._session.add_message(render_assistant_intro(profile))
            self._prepend(intro)
            return True
        return False

    async def refresh_history(self) -> list[ThreadMessage]:
        """Reload messages from the thread (e.g. after a reconnect)."""
        with self._operation("refresh history"):
            self._messages = await self._session.get_thread_history()
            self._notify(OrchestratorEvent.MESSAGES)
        return self.messages

    async def cancel(self) -> bool:
        """Request cancellation of the in-flight assistant run."""
        with self._operation("cancel run"):
            return await self._session.cancel_active_run()
        return False

    def set_current_content(self, content: str) -> None:
        """Replace the live draft (manual edit)."""
        self._current_content = content
        self._notify(OrchestratorEvent.CONTENT)

    def accept_pending_draft(self) -> bool:
        """Apply an assistant draft that was held back by PRESERVE_EDITS."""
        if self._pending_draft is None:
            return False
        self._current_content = self._pending_draft
        self._pending_draft = None
        self._notify(OrchestratorEvent.CONTENT)
        return True

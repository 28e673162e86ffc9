"""Thread-level session management.

This module owns the identity of the remote thread and turns every message
the service hands back into a normalized ThreadMessage. It hides:
- When and how threads are created
- Outgoing payload rendering and the echo read-back
- The one-run-per-thread rule
"""

import logging

from ..client import RemoteMessage, ThreadService
from ..errors import AssistantNotConfigured, RunAlreadyActive, RunTimeout, ThreadNotInitialized
from .extractor import normalize, render_outgoing
from .models import MessageRole, ThreadMessage
from .scheduler import RunScheduler

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns one conversation thread on the remote service.

    The service client is injected; one client can back any number of
    sessions.

    Usage:
        session = SessionManager(service, assistant_id="asst_...")
        await session.create_thread()
        user_msg = await session.add_message("Hello")
        reply = await session.get_assistant_response()
    """

    def __init__(
        self,
        service: ThreadService,
        assistant_id: str | None = None,
        scheduler: RunScheduler | None = None
    ):
        self._service = service
        self._assistant_id = assistant_id or None
        self._scheduler = scheduler or RunScheduler(service)
        self._thread_id: str | None = None
        self._active_run_id: str | None = None
        # Timed-out run whose cancellation the service has not confirmed yet
        self._cancelling_run_id: str | None = None
        self._busy = False

    @property
    def thread_id(self) -> str | None:
        return self._thread_id

    @property
    def active_run_id(self) -> str | None:
        """Id of the in-flight run, None when idle."""
        return self._active_run_id

    @property
    def assistant_id(self) -> str | None:
        return self._assistant_id

    @property
    def is_busy(self) -> bool:
        """True while a message submission or run is in flight."""
        return self._busy

    def _require_thread(self, operation: str) -> str:
        if self._thread_id is None:
            raise ThreadNotInitialized(operation)
        return self._thread_id

    async def _acquire(self, thread_id: str) -> None:
        # Set before the first await so overlapping calls see it
        if self._busy:
            raise RunAlreadyActive(thread_id, self._active_run_id)
        self._busy = True
        if self._cancelling_run_id is None:
            return

        try:
            run = await self._service.retrieve_run(thread_id, self._cancelling_run_id)
        except Exception:
            self._release()
            raise
        if not run.status.is_terminal:
            self._release()
            raise RunAlreadyActive(thread_id, run.id)
        logger.debug("Run %s settled as %s", run.id, run.status.value)
        self._cancelling_run_id = None

    def _release(self) -> None:
        self._busy = False
        self._active_run_id = None

    async def create_thread(self) -> str:
        """Create a new remote thread, replacing any previous one."""
        thread_id = await self._service.create_thread()
        if self._thread_id is not None:
            logger.info("Replacing thread %s with %s", self._thread_id, thread_id)
        self._thread_id = thread_id
        self._cancelling_run_id = None
        return thread_id

    async def add_message(self, raw_content: str) -> ThreadMessage:
        """Post a user turn and return it as the service stored it.

        Args:
            raw_content: User text, or a user-turn bundle from compose_user_turn

        Returns:
            The normalized user message

        Raises:
            ThreadNotInitialized: If create_thread() has not been called
            RunAlreadyActive: If a run is in flight on the thread, or a timed-out
                run has not yet been confirmed cancelled
        """
        thread_id = self._require_thread("add_message")
        await self._acquire(thread_id)
        try:
            created = await self._service.add_message(thread_id, render_outgoing(raw_content))
            # Trust the service's copy over the local input
            stored = await self._service.retrieve_message(thread_id, created.id)
        finally:
            self._release()
        return self._to_thread_message(stored, MessageRole.USER)

    async def get_assistant_response(self) -> ThreadMessage:
        """Run the bound assistant on the thread and return its reply.

        Raises:
            ThreadNotInitialized: If create_thread() has not been called
            AssistantNotConfigured: If no assistant is bound
            RunAlreadyActive: If a run is in flight on the thread, or a timed-out
                run has not yet been confirmed cancelled
            RunFailed, RunTimeout, NoResponseReceived: From the scheduler
        """
        thread_id = self._require_thread("get_assistant_response")
        if self._assistant_id is None:
            raise AssistantNotConfigured()

        await self._acquire(thread_id)
        try:
            run = await self._scheduler.submit(thread_id, self._assistant_id)
            self._active_run_id = run.id
            result = await self._scheduler.wait(run)
        except RunTimeout as e:
            self._cancelling_run_id = e.run_id
            raise
        finally:
            self._release()
        return self._to_thread_message(result.message, MessageRole.ASSISTANT)

    async def get_thread_history(self) -> list[ThreadMessage]:
        """All messages on the thread, newest first, normalized."""
        thread_id = self._require_thread("get_thread_history")
        messages = await self._service.list_messages(thread_id, order="desc")
        logger.debug("Retrieved thread history: %d messages", len(messages))

        ordered = sorted(messages, key=lambda m: m.created_at, reverse=True)
        return [self._to_thread_message(message) for message in ordered]

    def update_assistant(self, assistant_id: str) -> None:
        """Bind subsequent runs to another assistant. The thread is kept."""
        self._assistant_id = assistant_id or None

    async def cancel_active_run(self) -> bool:
        """Ask the service to cancel the in-flight run.

        The pending get_assistant_response() then fails with RunCancelled once
        the service reports the cancellation.

        Returns:
            False if there was no run to cancel
        """
        if self._thread_id is None or self._active_run_id is None:
            return False
        await self._service.cancel_run(self._thread_id, self._active_run_id)
        return True

    @staticmethod
    def _to_thread_message(message: RemoteMessage, role: MessageRole | None = None) -> ThreadMessage:
        return ThreadMessage.from_remote(message, normalize(message.text), role)

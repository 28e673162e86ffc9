"""Error taxonomy for the conversation engine.

Component-level code (service client, scheduler, session) raises these and
never swallows them; the orchestrator is the only boundary that catches.
"""


class ConversationError(Exception):
    """Base class for conversation engine errors."""

    def is_retryable(self) -> bool:
        """Override in subclasses to control retry behavior."""
        return False


class ThreadNotInitialized(ConversationError):
    """A thread operation was attempted before a thread was created."""

    def __init__(self, operation: str = "operation"):
        super().__init__(f"Thread not initialized: call create_thread() before {operation}")
        self.operation = operation


class AssistantNotConfigured(ConversationError):
    """No assistant id is bound to the session."""

    def __init__(self) -> None:
        super().__init__("No assistant configured for this session")


class RunAlreadyActive(ConversationError):
    """A run is already in flight on the thread."""

    def __init__(self, thread_id: str, run_id: str | None = None):
        msg = f"A run is already active on thread {thread_id}"
        if run_id:
            msg += f" (run: {run_id})"
        super().__init__(msg)
        self.thread_id = thread_id
        self.run_id = run_id


class RunFailed(ConversationError):
    """A run reached a terminal state other than completed."""

    def __init__(self, run_id: str, status: str, upstream_message: str | None = None):
        self.run_id = run_id
        self.status = status
        self.upstream_message = upstream_message or "Unknown error"
        super().__init__(f"Assistant run {status}: {self.upstream_message}")


class RunCancelled(RunFailed):
    """The run was cancelled before it completed."""

    def __init__(self, run_id: str, upstream_message: str | None = None):
        super().__init__(run_id, "cancelled", upstream_message or "Run was cancelled")


class RunTimeout(ConversationError):
    """The run did not reach a terminal state within the polling ceiling."""

    def __init__(self, run_id: str, timeout: float, last_status: str):
        super().__init__(
            f"Run {run_id} still '{last_status}' after {timeout:.1f}s; cancellation requested"
        )
        self.run_id = run_id
        self.timeout = timeout
        self.last_status = last_status

    def is_retryable(self) -> bool:
        return True


class NoResponseReceived(ConversationError):
    """The run completed but no assistant message could be read back."""

    def __init__(self, thread_id: str):
        super().__init__(f"No response received from assistant on thread {thread_id}")
        self.thread_id = thread_id


class RemoteServiceError(ConversationError):
    """Transport, authentication or rate-limit failure from the remote service."""

    def __init__(self, message: str, status_code: int | None = None):
        msg = f"Remote service error: {message}"
        if status_code is not None:
            msg += f" (status: {status_code})"
        super().__init__(msg)
        self.status_code = status_code

    def is_retryable(self) -> bool:
        # No status code means the request never got a response (connection/timeout)
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class MalformedPayload(ConversationError):
    """Part of the taxonomy only: payload normalization degrades instead of raising."""


class ConfigError(ConversationError):
    """Missing or invalid engine configuration."""

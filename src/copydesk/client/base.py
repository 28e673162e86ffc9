from abc import ABC, abstractmethod
from typing import Any

from .models import RemoteMessage, RemoteRun


class ThreadService(ABC):
    """Abstract base class for remote conversation services.

    This module hides the design decision of which assistant service hosts
    the threads. Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Conversion of SDK objects into RemoteMessage / RemoteRun
    - Mapping transport errors onto RemoteServiceError

    Supports async context manager protocol for proper resource cleanup:
        async with service:
            thread_id = await service.create_thread()
        # Automatically cleaned up
    """

    @abstractmethod
    async def create_thread(self) -> str:
        """Create a new thread.

        Returns:
            Identifier of the new thread

        Raises:
            RemoteServiceError: On transport or API errors
        """
        pass

    @abstractmethod
    async def add_message(self, thread_id: str, content: str, role: str = "user") -> RemoteMessage:
        """Append a message to a thread.

        Args:
            thread_id: Target thread
            content: Text content of the message
            role: Message role (the service only accepts user-authored appends)

        Returns:
            The message as created by the service
        """
        pass

    @abstractmethod
    async def retrieve_message(self, thread_id: str, message_id: str) -> RemoteMessage:
        """Read a single message back from a thread."""
        pass

    @abstractmethod
    async def list_messages(
        self,
        thread_id: str,
        limit: int | None = None,
        order: str = "desc"
    ) -> list[RemoteMessage]:
        """List messages on a thread.

        Args:
            thread_id: Thread to read
            limit: Maximum number of messages (None returns every message)
            order: 'desc' for newest first, 'asc' for oldest first

        Returns:
            Messages in the requested order
        """
        pass

    @abstractmethod
    async def create_run(self, thread_id: str, assistant_id: str) -> RemoteRun:
        """Start an assistant run on a thread."""
        pass

    @abstractmethod
    async def retrieve_run(self, thread_id: str, run_id: str) -> RemoteRun:
        """Fetch the current status of a run."""
        pass

    @abstractmethod
    async def cancel_run(self, thread_id: str, run_id: str) -> RemoteRun:
        """Request cancellation of an in-flight run."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "ThreadService":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            # Suppress harmless cleanup errors from httpx/anyio
            if "Event loop is closed" not in str(e):
                raise

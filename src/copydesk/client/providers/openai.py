import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import openai
from openai import AsyncOpenAI

from ...errors import RemoteServiceError
from ..base import ThreadService
from ..models import RemoteMessage, RemoteRun, RunStatus

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _first_text(content: Any) -> str | None:
    """Return the value of the first text block of a message, if any."""
    for block in content or []:
        if getattr(block, "type", None) == "text":
            return block.text.value.strip()
    return None


def _to_remote_message(message: Any) -> RemoteMessage:
    """Convert an SDK thread message into a RemoteMessage."""
    return RemoteMessage(
        id=message.id,
        thread_id=message.thread_id,
        role=message.role,
        text=_first_text(message.content),
        created_at=message.created_at,
    )


def _to_remote_run(run: Any) -> RemoteRun:
    """Convert an SDK run into a RemoteRun."""
    last_error = getattr(run, "last_error", None)
    return RemoteRun(
        id=run.id,
        thread_id=run.thread_id,
        status=RunStatus(run.status),
        last_error=last_error.message if last_error else None,
    )


@contextmanager
def _remote_errors(action: str) -> Iterator[None]:
    """Re-raise OpenAI SDK errors as RemoteServiceError."""
    try:
        yield
    except openai.APIStatusError as e:
        logger.error("Failed to %s: %s", action, e)
        raise RemoteServiceError(f"Failed to {action}: {e.message}", status_code=e.status_code) from e
    except openai.OpenAIError as e:
        logger.error("Failed to %s: %s", action, e)
        raise RemoteServiceError(f"Failed to {action}: {e}") from e


class OpenAIThreadService(ThreadService):
    """OpenAI Assistants API thread service.

    Hidden design decisions:
    - AsyncOpenAI client initialization
    - Threads/Runs endpoint layout under client.beta
    - SDK object conversion
    - Error mapping onto RemoteServiceError
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = DEFAULT_BASE_URL,
        organization: str | None = None,
        client: AsyncOpenAI | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI thread service.

        Args:
            api_key: OpenAI API key
            base_url: API base URL
            organization: Optional organization ID
            client: Pre-built AsyncOpenAI client (takes precedence over the other args)
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    async def create_thread(self) -> str:
        with _remote_errors("create thread"):
            thread = await self._client.beta.threads.create()
        logger.info("Thread created: %s", thread.id)
        return thread.id

    async def add_message(self, thread_id: str, content: str, role: str = "user") -> RemoteMessage:
        with _remote_errors("add message"):
            message = await self._client.beta.threads.messages.create(
                thread_id,
                role=role,
                content=content,
            )
        logger.debug("Message %s added to thread %s", message.id, thread_id)
        return _to_remote_message(message)

    async def retrieve_message(self, thread_id: str, message_id: str) -> RemoteMessage:
        with _remote_errors("retrieve message"):
            message = await self._client.beta.threads.messages.retrieve(
                message_id,
                thread_id=thread_id,
            )
        return _to_remote_message(message)

    async def list_messages(
        self,
        thread_id: str,
        limit: int | None = None,
        order: str = "desc"
    ) -> list[RemoteMessage]:
        """List thread messages.

        With a limit only the first page is read. Without one the SDK cursor
        is followed until the thread is exhausted.
        """
        with _remote_errors("list messages"):
            if limit is not None:
                page = await self._client.beta.threads.messages.list(
                    thread_id,
                    order=order,
                    limit=limit,
                )
                data = page.data
            else:
                data = [
                    message
                    async for message in self._client.beta.threads.messages.list(thread_id, order=order)
                ]
        messages = [_to_remote_message(message) for message in data]
        logger.debug("Retrieved %d messages from thread %s", len(messages), thread_id)
        return messages

    async def create_run(self, thread_id: str, assistant_id: str) -> RemoteRun:
        with _remote_errors("create run"):
            run = await self._client.beta.threads.runs.create(
                thread_id,
                assistant_id=assistant_id,
            )
        logger.info("Run %s created with assistant %s", run.id, assistant_id)
        return _to_remote_run(run)

    async def retrieve_run(self, thread_id: str, run_id: str) -> RemoteRun:
        with _remote_errors("retrieve run"):
            run = await self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
        return _to_remote_run(run)

    async def cancel_run(self, thread_id: str, run_id: str) -> RemoteRun:
        with _remote_errors("cancel run"):
            run = await self._client.beta.threads.runs.cancel(run_id, thread_id=thread_id)
        logger.info("Cancellation requested for run %s", run_id)
        return _to_remote_run(run)

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()

"""Pytest configuration and shared fixtures."""
import asyncio
import json
import os
from collections.abc import Iterable

import pytest

from copydesk.client import RemoteMessage, RemoteRun, RunStatus, ThreadService
from copydesk.conversation import AssistantProfile, RunScheduler, SessionManager


class FakeThreadService(ThreadService):
    """In-memory thread service with scriptable run outcomes.

    Each run walks through `run_statuses` (one entry per retrieve_run call,
    the last one repeating). When a run first reports `completed`, the next
    entry of `replies` is appended to the thread as the assistant message;
    a None entry appends a message without text content. After cancel_run a
    run walks through `cancel_statuses` instead.
    """

    def __init__(
        self,
        run_statuses: Iterable[RunStatus] = (RunStatus.COMPLETED,),
        replies: Iterable[str | None] = (),
        initial_status: RunStatus = RunStatus.QUEUED,
        last_error: str | None = None
    ):
        self.run_statuses = list(run_statuses)
        self.replies = list(replies)
        self.initial_status = initial_status
        self.last_error = last_error
        self.cancel_statuses: list[RunStatus] = [RunStatus.CANCELLED]
        self.threads: dict[str, list[RemoteMessage]] = {}
        self.posted: list[str] = []
        self.runs: dict[str, RemoteRun] = {}
        self.cancel_requests: list[str] = []
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.gate: asyncio.Event | None = None
        self.closed = False
        self._scripts: dict[str, list[RunStatus]] = {}
        self._clock = 1_700_000_000
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def _append(self, thread_id: str, role: str, text: str | None) -> RemoteMessage:
        message = RemoteMessage(
            id=self._next_id("msg"),
            thread_id=thread_id,
            role=role,
            text=text,
            created_at=self._tick(),
        )
        self.threads[thread_id].append(message)
        return message

    def _set_status(self, run: RemoteRun, status: RunStatus) -> RemoteRun:
        if status == RunStatus.COMPLETED and run.status != RunStatus.COMPLETED and self.replies:
            self._append(run.thread_id, "assistant", self.replies.pop(0))
        last_error = self.last_error if status in (RunStatus.FAILED, RunStatus.EXPIRED) else None
        updated = run.model_copy(update={"status": status, "last_error": last_error})
        self.runs[run.id] = updated
        return updated

    async def create_thread(self) -> str:
        self._check("create_thread")
        thread_id = self._next_id("thread")
        self.threads[thread_id] = []
        return thread_id

    async def add_message(self, thread_id: str, content: str, role: str = "user") -> RemoteMessage:
        self._check("add_message")
        self.posted.append(content)
        return self._append(thread_id, role, content.strip())

    async def retrieve_message(self, thread_id: str, message_id: str) -> RemoteMessage:
        self._check("retrieve_message")
        return next(m for m in self.threads[thread_id] if m.id == message_id)

    async def list_messages(
        self,
        thread_id: str,
        limit: int | None = None,
        order: str = "desc"
    ) -> list[RemoteMessage]:
        self._check("list_messages")
        messages = sorted(self.threads[thread_id], key=lambda m: m.created_at, reverse=order == "desc")
        return messages[:limit] if limit is not None else messages

    async def create_run(self, thread_id: str, assistant_id: str) -> RemoteRun:
        self._check("create_run")
        run = RemoteRun(id=self._next_id("run"), thread_id=thread_id, status=RunStatus.QUEUED)
        self._scripts[run.id] = list(self.run_statuses)
        return self._set_status(run, self.initial_status)

    async def retrieve_run(self, thread_id: str, run_id: str) -> RemoteRun:
        self._check("retrieve_run")
        if self.gate is not None:
            await self.gate.wait()
        script = self._scripts[run_id]
        status = script.pop(0) if len(script) > 1 else script[0]
        return self._set_status(self.runs[run_id], status)

    async def cancel_run(self, thread_id: str, run_id: str) -> RemoteRun:
        self._check("cancel_run")
        self.cancel_requests.append(run_id)
        self._scripts[run_id] = list(self.cancel_statuses)
        return self._set_status(self.runs[run_id], RunStatus.CANCELLING)

    async def close(self) -> None:
        self.closed = True


def assistant_reply(discussion: str, draft: str = "") -> str:
    """Reply text in the JSON shape assistants are instructed to use."""
    return json.dumps({"discussion": discussion, "draft": draft})


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
        "assistant": os.getenv("OPENAI_ASSISTANT_ID"),
    }


@pytest.fixture
def fake_service():
    """Service whose runs complete on the first poll with a canned reply."""
    return FakeThreadService(
        run_statuses=[RunStatus.IN_PROGRESS, RunStatus.COMPLETED],
        replies=[assistant_reply("Sounds good.", "### Draft\\nFirst version")],
    )


@pytest.fixture
def scheduler(fake_service):
    """Scheduler that does not wait between polls."""
    return RunScheduler(fake_service, poll_interval=0, timeout=None)


@pytest.fixture
def session(fake_service, scheduler):
    """Session bound to an assistant, thread not yet created."""
    return SessionManager(fake_service, assistant_id="asst_writer", scheduler=scheduler)


@pytest.fixture
def writer_profile():
    return AssistantProfile(id="asst_writer", name="Generalist Creator", description="A General writer and editor")


@pytest.fixture
def editor_profile():
    return AssistantProfile(id="asst_editor", name="Editor", description="Create and Edit Content")

"""Remote conversation service client.

Threads, messages and runs of the hosted assistant service behind one
abstract interface.
"""

from .base import ThreadService
from .factory import create_thread_service
from .models import RemoteMessage, RemoteRun, RunStatus
from .providers import OpenAIThreadService

__all__ = [
    "ThreadService",
    "create_thread_service",
    "RemoteMessage",
    "RemoteRun",
    "RunStatus",
    "OpenAIThreadService",
]

from typing import Any

from .base import ThreadService
from .providers import OpenAIThreadService


def create_thread_service(provider: str, **config: Any) -> ThreadService:
    """Create a thread service instance.

    This factory function hides the instantiation logic for different services.
    The returned instance is meant to be built once at application start and
    injected into SessionManager.

    Args:
        provider: Service type ('openai')
        **config: Service-specific configuration
            For OpenAI:
                - api_key: str (required)
                - base_url: str (default: 'https://api.openai.com/v1')
                - organization: str | None

    Returns:
        Initialized thread service instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> service = create_thread_service("openai", api_key="sk-...")
    """
    provider_lower = provider.lower()

    if provider_lower == "openai":
        if "api_key" not in config:
            raise TypeError("OpenAI thread service requires 'api_key' in config")
        return OpenAIThreadService(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'openai'"
    )

"""Engine configuration.

Settings come from environment variables (a `.env` file is loaded first).
The config is read once at application start; the service client built from
it is injected into the session layer.

Environment variables:
    OPENAI_API_KEY: OpenAI API key (required, 'sk-' prefix)
    OPENAI_BASE_URL: API base URL (default: https://api.openai.com/v1)
    OPENAI_ORGANIZATION: Optional organization ID
    OPENAI_ASSISTANT_ID_1 .. OPENAI_ASSISTANT_ID_5: Assistant catalog entries
    OPENAI_ASSISTANT_ID: Single assistant, used when no numbered entry is set
    COPYDESK_POLL_INTERVAL: Seconds between run status reads (default: 1.0)
    COPYDESK_RUN_TIMEOUT: Seconds before a run is cancelled; 'none' disables (default: 300)
    COPYDESK_DRAFT_POLICY: 'overwrite' or 'preserve_edits' (default: overwrite)
"""

import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .conversation.models import AssistantProfile, DraftPolicy
from .conversation.scheduler import DEFAULT_POLL_INTERVAL, DEFAULT_RUN_TIMEOUT
from .errors import ConfigError

DEFAULT_BASE_URL = "https://api.openai.com/v1"

# (name, description) for OPENAI_ASSISTANT_ID_1 .. _5
ASSISTANT_CATALOG: tuple[tuple[str, str], ...] = (
    ("Generalist Creator", "A General writer and editor"),
    ("Editor", "Create and Edit Content"),
    ("Project Profile Creator", "Create a project Page for website"),
    ("Interview writer", "Write up the interview notes into a blog post"),
    ("Quick Email", "TBD"),
)


class EngineConfig(BaseModel):
    """Validated engine settings."""

    api_key: str = Field(description="OpenAI API key")
    base_url: str = Field(default=DEFAULT_BASE_URL)
    organization: str | None = Field(default=None)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    run_timeout: float | None = Field(default=DEFAULT_RUN_TIMEOUT, gt=0)
    draft_policy: DraftPolicy = Field(default=DraftPolicy.OVERWRITE)

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: str) -> str:
        # Accepts both standard and project keys
        if not value.startswith("sk-"):
            raise ValueError('Invalid API key format. OpenAI API keys should start with "sk-"')
        return value

    def service_config(self) -> dict[str, str | None]:
        """Keyword arguments for create_thread_service('openai', ...)."""
        return {
            "api_key": self.api_key,
            "base_url": self.base_url,
            "organization": self.organization,
        }


def _environ(environ: Mapping[str, str] | None, dotenv: bool) -> Mapping[str, str]:
    if environ is not None:
        return environ
    if dotenv:
        load_dotenv()
    return os.environ


def load_config(environ: Mapping[str, str] | None = None, dotenv: bool = True) -> EngineConfig:
    """Build EngineConfig from the environment.

    Args:
        environ: Variables to read instead of os.environ
        dotenv: Load a .env file into os.environ first (ignored with environ)

    Raises:
        ConfigError: If the API key is missing or a setting is invalid
    """
    env = _environ(environ, dotenv)

    api_key = env.get("OPENAI_API_KEY")
    if not api_key:
        raise ConfigError(
            "OpenAI API key is not defined in environment variables. "
            "Please add OPENAI_API_KEY to your .env file."
        )

    settings: dict[str, object] = {"api_key": api_key}
    if env.get("OPENAI_BASE_URL"):
        settings["base_url"] = env["OPENAI_BASE_URL"]
    if env.get("OPENAI_ORGANIZATION"):
        settings["organization"] = env["OPENAI_ORGANIZATION"]
    if env.get("COPYDESK_POLL_INTERVAL"):
        settings["poll_interval"] = env["COPYDESK_POLL_INTERVAL"]
    if env.get("COPYDESK_RUN_TIMEOUT"):
        timeout = env["COPYDESK_RUN_TIMEOUT"]
        settings["run_timeout"] = None if timeout.lower() == "none" else timeout
    if env.get("COPYDESK_DRAFT_POLICY"):
        settings["draft_policy"] = env["COPYDESK_DRAFT_POLICY"].lower()

    try:
        return EngineConfig(**settings)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_assistant_catalog(
    environ: Mapping[str, str] | None = None,
    dotenv: bool = True
) -> list[AssistantProfile]:
    """Assistants available for selection, in catalog order.

    Entries whose id variable is unset are skipped. When no numbered entry is
    configured, OPENAI_ASSISTANT_ID provides a single default assistant.
    """
    env = _environ(environ, dotenv)

    catalog = []
    for index, (name, description) in enumerate(ASSISTANT_CATALOG, 1):
        assistant_id = env.get(f"OPENAI_ASSISTANT_ID_{index}")
        if assistant_id:
            catalog.append(AssistantProfile(id=assistant_id, name=name, description=description))

    if not catalog and env.get("OPENAI_ASSISTANT_ID"):
        catalog.append(AssistantProfile(
            id=env["OPENAI_ASSISTANT_ID"],
            name="Content Strategist",
            description="Guides content creation phase by phase",
        ))

    return catalog

"""Prompt management module.

Externalizes prompts to text files for easy customization.
Prompts can be overridden by placing files in the working directory.
"""

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..conversation.models import AssistantProfile, ContentPhase

# Default prompts directory (package location)
_PROMPTS_DIR = Path(__file__).parent


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load a prompt from file.

    Search order:
    1. Current working directory: ./prompts/{name}.txt
    2. Package prompts directory: copydesk/prompts/{name}.txt

    Args:
        name: Prompt name (without .txt extension)

    Returns:
        Prompt text content, without the trailing newline

    Raises:
        FileNotFoundError: If prompt file not found in any location
    """
    filename = f"{name}.txt"

    local_path = Path.cwd() / "prompts" / filename
    if local_path.exists():
        return local_path.read_text(encoding="utf-8").rstrip("\n")

    package_path = _PROMPTS_DIR / filename
    if package_path.exists():
        return package_path.read_text(encoding="utf-8").rstrip("\n")

    raise FileNotFoundError(
        f"Prompt '{name}' not found. Searched:\n"
        f"  - {local_path}\n"
        f"  - {package_path}"
    )


def get_phase_prompt(phase: "ContentPhase") -> str:
    """Get the kickoff prompt sent when entering a phase."""
    return load_prompt(f"phase_{phase.name.lower()}")


def render_user_turn(discussion: str, draft: str) -> str:
    """Render the text posted for a user turn that carries the live draft."""
    return load_prompt("user_turn").format(discussion=discussion, draft=draft)


def render_assistant_intro(profile: "AssistantProfile") -> str:
    """Render the message announcing a newly selected assistant."""
    assistant = profile.name
    if profile.description:
        assistant += f" ({profile.description})"
    return load_prompt("assistant_intro").format(assistant=assistant)


def clear_cache() -> None:
    """Clear the prompt cache (useful after modifying prompt files)."""
    load_prompt.cache_clear()


__all__ = [
    "load_prompt",
    "get_phase_prompt",
    "render_user_turn",
    "render_assistant_intro",
    "clear_cache",
]

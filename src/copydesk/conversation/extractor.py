"""Normalization of raw message payloads into DraftPayload records.

The assistant's text channel has no structured-output guarantee and stored
messages come in several historical shapes: plain text, a single JSON
object, JSON nested inside a `response` field, the outgoing user-turn bundle,
and unparseable text that mentions the "draft" field. Each shape is
recognized explicitly and handled by its own function; anything
unrecognized falls through to plain text.

Nothing here raises: a payload that cannot be understood becomes plain
discussion text with an empty draft.
"""

import json
import re
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from ..prompts import render_user_turn
from .models import DraftPayload


class WireShape(str, Enum):
    """Known payload shapes."""

    STRUCTURED = "structured"  # Already a mapping, not text
    OUTGOING = "outgoing"      # {"discussion": ..., "currentDraft": ...}
    ENVELOPE = "envelope"      # {"response": "<json or text>"}
    CANONICAL = "canonical"    # {"discussion": ..., "draft": ...}
    LOOSE = "loose"            # Unparseable text mentioning "draft"
    PLAIN = "plain"            # Anything else


# A quoted value runs up to the next unescaped quote
_DISCUSSION_PATTERN = re.compile(r'"discussion":\s*"((?:[^"\\]|\\[\s\S])*)"')
_DRAFT_PATTERN = re.compile(r'"draft":\s*"((?:[^"\\]|\\[\s\S])*)"')

_HEADER_PATTERN = re.compile(r"^#[#\s]*")
_BOILERPLATE_PREFIX = re.compile(r"^(?:The user (?:says|said):\s*)+")
_CONTENT_STATE_MARKER = "Current state of the content:"
# Only text mentioning the draft field is worth regex extraction
_DRAFT_MARKER = '"draft"'


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError, RecursionError):
        return str(value)


def _parse_object(text: str) -> dict[str, Any] | None:
    """Parse text as a JSON object; None if it is not one."""
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _unescape(text: str) -> str:
    return text.replace("\\n", "\n").replace('\\"', '"')


def clean_draft(text: str) -> str:
    """Strip header markers and leftover escapes from draft text.

    >>> clean_draft("### Title\\\\nBody")
    'Title\\nBody'
    """
    text = _unescape(text).replace("\\", "")
    return _HEADER_PATTERN.sub("", text.strip()).strip()


def clean_discussion(text: str) -> str:
    """Remove the boilerplate that outgoing user turns are wrapped in."""
    text = _BOILERPLATE_PREFIX.sub("", text.strip())
    marker = text.find(_CONTENT_STATE_MARKER)
    if marker != -1:
        text = text[:marker]
    return text.strip()


def _object_shape(obj: Mapping[str, Any]) -> WireShape:
    if "currentDraft" in obj:
        return WireShape.OUTGOING
    if obj.get("response"):
        return WireShape.ENVELOPE
    return WireShape.CANONICAL


def _decode(raw: str | Mapping[str, Any] | None) -> tuple[WireShape, Any]:
    """Recognize the shape of a payload and return it with the decoded value."""
    if isinstance(raw, Mapping):
        return WireShape.STRUCTURED, raw

    text = "" if raw is None else raw if isinstance(raw, str) else str(raw)
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        if _DRAFT_MARKER in text:
            return WireShape.LOOSE, text
        return WireShape.PLAIN, text

    if not isinstance(parsed, dict):
        return WireShape.PLAIN, text
    return _object_shape(parsed), parsed


def classify(raw: str | Mapping[str, Any] | None) -> WireShape:
    """Name the wire shape a payload is recognized as."""
    return _decode(raw)[0]


def _from_canonical(obj: Mapping[str, Any]) -> DraftPayload:
    return DraftPayload(
        discussion=clean_discussion(_as_text(obj.get("discussion"))),
        draft=clean_draft(_as_text(obj.get("draft"))),
    )


def _from_outgoing(obj: Mapping[str, Any]) -> DraftPayload:
    return DraftPayload(
        discussion=clean_discussion(_as_text(obj.get("discussion"))),
        draft=clean_draft(_as_text(obj.get("currentDraft"))),
    )


def _from_envelope(obj: Mapping[str, Any]) -> DraftPayload:
    response = obj["response"]
    inner = response if isinstance(response, Mapping) else _parse_object(_as_text(response))
    if inner is None:
        return DraftPayload(discussion=clean_discussion(_as_text(response)))
    return _from_canonical(inner)


def _from_structured(obj: Mapping[str, Any]) -> DraftPayload:
    return _OBJECT_HANDLERS[_object_shape(obj)](obj)


def _from_loose(text: str) -> DraftPayload:
    discussion = _DISCUSSION_PATTERN.search(text)
    draft = _DRAFT_PATTERN.search(text)
    if discussion is None and draft is None:
        return _from_plain(text)
    return DraftPayload(
        discussion=clean_discussion(_unescape(discussion.group(1))) if discussion else "",
        draft=clean_draft(draft.group(1)) if draft else "",
    )


def _from_plain(text: str) -> DraftPayload:
    # Plain text is kept verbatim unless it is an echoed user turn
    stripped = text.strip()
    if _BOILERPLATE_PREFIX.match(stripped) or _CONTENT_STATE_MARKER in stripped:
        return DraftPayload(discussion=clean_discussion(stripped))
    return DraftPayload(discussion=text)


_OBJECT_HANDLERS: dict[WireShape, Callable[[Mapping[str, Any]], DraftPayload]] = {
    WireShape.OUTGOING: _from_outgoing,
    WireShape.ENVELOPE: _from_envelope,
    WireShape.CANONICAL: _from_canonical,
}

_HANDLERS: dict[WireShape, Callable[[Any], DraftPayload]] = {
    WireShape.STRUCTURED: _from_structured,
    WireShape.LOOSE: _from_loose,
    WireShape.PLAIN: _from_plain,
    **_OBJECT_HANDLERS,
}


def normalize(raw: str | Mapping[str, Any] | None) -> DraftPayload:
    """Convert one raw payload into a DraftPayload.

    Args:
        raw: Message text as stored on the thread, an outgoing user-turn
            bundle, or an already-decoded mapping

    Returns:
        DraftPayload with both fields set (empty strings by default)
    """
    shape, value = _decode(raw)
    return _HANDLERS[shape](value)


def compose_user_turn(discussion: str, current_draft: str) -> str:
    """Bundle user text with the live draft so the assistant sees both."""
    return json.dumps({"discussion": discussion, "currentDraft": current_draft})


def render_outgoing(raw: str) -> str:
    """Text actually posted to the thread for a user turn.

    A user-turn bundle is expanded into readable prose; any other text is
    posted unchanged.
    """
    obj = _parse_object(raw)
    if obj is None or "currentDraft" not in obj:
        return raw
    return render_user_turn(_as_text(obj.get("discussion")), _as_text(obj.get("currentDraft")))

"""Unit tests for payload normalization."""
import json
from datetime import datetime

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from copydesk.conversation import (
    DraftPayload,
    WireShape,
    classify,
    compose_user_turn,
    normalize,
    render_outgoing,
)
from copydesk.conversation.extractor import clean_discussion, clean_draft


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


_free_text = st.text(alphabet=st.characters(exclude_characters=":"))

_field_names = st.one_of(st.sampled_from(["discussion", "draft", "response", "currentDraft"]), st.text())

_field_values = st.recursive(
    st.one_of(
        st.none(),
        st.booleans(),
        st.integers(),
        st.floats(),
        st.text(),
        st.binary(),
        st.datetimes(),
    ),
    lambda children: st.one_of(
        st.lists(children, max_size=3),
        st.dictionaries(_field_names, children, max_size=3),
    ),
    max_leaves=8,
)


class TestNormalizeShapes:
    """One test per recognized wire shape."""

    def test_canonical_object(self):
        """Test header stripping and newline unescaping in the draft."""
        result = normalize('{"discussion":"hi","draft":"### Title\\nBody"}')

        assert result == DraftPayload(discussion="hi", draft="Title\nBody")

    def test_canonical_object_with_literal_backslash_n(self):
        """Test that a double-escaped newline is unescaped too."""
        result = normalize(r'{"discussion":"hi","draft":"### Title\\nBody"}')

        assert result.draft == "Title\nBody"

    def test_outgoing_user_turn(self):
        """Test that currentDraft is remapped to draft."""
        result = normalize('{"currentDraft":"X","discussion":"Y"}')

        assert result == DraftPayload(discussion="Y", draft="X")

    def test_outgoing_with_null_draft(self):
        result = normalize('{"discussion":"Y","currentDraft":null}')

        assert result == DraftPayload(discussion="Y", draft="")

    def test_envelope_with_nested_json(self):
        """Test that a JSON string inside `response` is unwrapped one level."""
        inner = json.dumps({"discussion": "Inner talk", "draft": "Inner draft"})
        result = normalize(json.dumps({"response": inner}))

        assert result == DraftPayload(discussion="Inner talk", draft="Inner draft")

    def test_envelope_with_plain_text(self):
        """Test that an unparseable response becomes the discussion."""
        result = normalize(json.dumps({"response": "Just words"}))

        assert result == DraftPayload(discussion="Just words", draft="")

    def test_envelope_with_object(self):
        result = normalize({"response": {"discussion": "a", "draft": "b"}})

        assert result == DraftPayload(discussion="a", draft="b")

    def test_empty_response_falls_back_to_fields(self):
        result = normalize(json.dumps({"response": "", "discussion": "d", "draft": "x"}))

        assert result == DraftPayload(discussion="d", draft="x")

    def test_structured_mapping(self):
        """Test that an already-decoded mapping is read directly."""
        result = normalize({"discussion": "  talk  ", "draft": "## Heading"})

        assert result == DraftPayload(discussion="talk", draft="Heading")

    def test_missing_fields_default_to_empty(self):
        assert normalize("{}") == DraftPayload(discussion="", draft="")

    def test_non_string_fields_are_coerced(self):
        result = normalize('{"discussion": 42, "draft": null}')

        assert result == DraftPayload(discussion="42", draft="")

    def test_plain_text(self):
        assert normalize("not json at all") == DraftPayload(discussion="not json at all", draft="")

    def test_json_that_is_not_an_object(self):
        """Test that JSON scalars and arrays are treated as plain text."""
        assert normalize("[1, 2]") == DraftPayload(discussion="[1, 2]", draft="")
        assert normalize("42") == DraftPayload(discussion="42", draft="")

    def test_loose_json_uses_regex_extraction(self):
        """Test that truncated JSON still yields both fields."""
        raw = '{"discussion": "Here you go", "draft": "# Intro\\nText", "extra": '

        result = normalize(raw)

        assert result == DraftPayload(discussion="Here you go", draft="Intro\nText")

    def test_loose_json_with_escaped_quotes(self):
        raw = '{"discussion": "She said \\"hi\\"", "draft": "A \\"quoted\\" word" trailing'

        result = normalize(raw)

        assert result.discussion == 'She said "hi"'
        assert result.draft == 'A "quoted" word'

    def test_loose_json_with_only_draft(self):
        """Test that text mentioning "draft" is not treated as opaque."""
        result = normalize('Sure! "draft": "Body text" (truncated')

        assert result == DraftPayload(discussion="", draft="Body text")

    def test_discussion_field_without_draft_is_plain_text(self):
        """Test that regex extraction needs the draft field to be mentioned."""
        text = 'I typed "discussion": "foo" by hand'

        assert classify(text) == WireShape.PLAIN
        assert normalize(text) == DraftPayload(discussion=text, draft="")

    def test_draft_mention_without_field_value(self):
        """Test that unmatched loose text falls back to the whole string."""
        text = 'Is the "draft" ready?'

        assert normalize(text) == DraftPayload(discussion=text, draft="")

    def test_structured_values_that_are_not_json(self):
        """Test that arbitrary Python values in a mapping are stringified."""
        result = normalize({"discussion": datetime(2024, 1, 1), "draft": b"raw"})

        assert "2024-01-01" in result.discussion
        assert "raw" in result.draft

    def test_empty_input(self):
        assert normalize("") == DraftPayload(discussion="", draft="")
        assert normalize(None) == DraftPayload(discussion="", draft="")


class TestClassify:
    """Tests for wire shape recognition."""

    @pytest.mark.parametrize(
        ("raw", "shape"),
        [
            ({"discussion": "a"}, WireShape.STRUCTURED),
            ('{"discussion": "a", "currentDraft": ""}', WireShape.OUTGOING),
            ('{"response": "x"}', WireShape.ENVELOPE),
            ('{"discussion": "a", "draft": "b"}', WireShape.CANONICAL),
            ('{"draft": "b"', WireShape.LOOSE),
            ("hello", WireShape.PLAIN),
            ("[1]", WireShape.PLAIN),
        ],
    )
    def test_shapes(self, raw, shape):
        assert classify(raw) == shape

    def test_current_draft_wins_over_response(self):
        assert classify('{"currentDraft": "", "response": "x"}') == WireShape.OUTGOING


class TestPostProcessing:
    """Tests for draft and discussion cleanup."""

    def test_draft_cleanup(self):
        assert clean_draft('  ### Title\\n\\"Quoted\\" \\\\text  ') == 'Title\n"Quoted" text'

    def test_draft_repeated_header_markers(self):
        assert clean_draft("## # Title") == "Title"

    def test_discussion_boilerplate_prefix(self):
        assert clean_discussion("The user says: Make it shorter") == "Make it shorter"
        assert clean_discussion("The user said: Make it shorter") == "Make it shorter"

    def test_discussion_content_state_block(self):
        text = "Make it shorter\n\nCurrent state of the content:\nOld draft"

        assert clean_discussion(text) == "Make it shorter"

    def test_echoed_user_turn_is_normalized(self):
        """Test that the text posted for a user turn reads back as the user's words."""
        posted = render_outgoing(compose_user_turn("Add a summary", "# Report\nBody"))

        assert normalize(posted) == DraftPayload(discussion="Add a summary", draft="")


class TestOutgoing:
    """Tests for outgoing user-turn helpers."""

    def test_compose_user_turn(self):
        payload = json.loads(compose_user_turn("hi", "draft text"))

        assert payload == {"discussion": "hi", "currentDraft": "draft text"}

    def test_render_outgoing_expands_bundle(self):
        rendered = render_outgoing(compose_user_turn("hi", "draft text"))

        assert rendered.startswith("The user says: hi")
        assert "Current state of the content:\ndraft text" in rendered

    def test_render_outgoing_keeps_other_text(self):
        assert render_outgoing("Plain message") == "Plain message"
        assert render_outgoing('{"discussion": "x"}') == '{"discussion": "x"}'

    def test_bundle_normalizes_like_assistant_reply(self):
        assert normalize(compose_user_turn("hi", "### T")) == DraftPayload(discussion="hi", draft="T")


class TestNormalizeProperties:
    """Property tests for normalization."""

    @given(st.text(), st.text())
    def test_idempotent_on_canonical_json(self, discussion: str, draft: str):
        """Property test: normalizing a normalized record changes nothing."""
        raw = json.dumps({"discussion": discussion, "draft": draft})

        once = normalize(raw)

        assert normalize(once.serialize()) == once

    @given(_free_text)
    def test_plain_text_is_discussion(self, text: str):
        """Property test: non-JSON text without a draft field is kept verbatim."""
        assume('"draft"' not in text)
        assume(not _is_json(text))

        assert normalize(text) == DraftPayload(discussion=text, draft="")

    @given(_free_text, st.text(alphabet=st.characters(exclude_characters=':"\\')), _free_text)
    def test_discussion_field_alone_is_kept_verbatim(self, before: str, value: str, after: str):
        """Property test: a discussion field without a draft field is not extracted."""
        text = f'{before}"discussion": "{value}"{after}'
        assume('"draft"' not in text)
        assume(not _is_json(text))

        assert normalize(text) == DraftPayload(discussion=text, draft="")

    @given(st.one_of(st.none(), st.text(), st.dictionaries(_field_names, _field_values)))
    def test_never_raises_and_serializes(self, raw):
        """Property test: every input yields a JSON-parseable record."""
        result = normalize(raw)

        assert set(json.loads(result.serialize())) == {"discussion", "draft"}

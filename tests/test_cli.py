"""Tests for the command-line interface."""
import pytest
from typer.testing import CliRunner

from copydesk.cli.app import app
from copydesk.cli.providers import find_assistant

runner = CliRunner()


@pytest.fixture
def catalog(writer_profile, editor_profile):
    return [writer_profile, editor_profile]


class TestFindAssistant:
    """Tests for assistant selection."""

    @pytest.mark.parametrize(
        ("selector", "expected"),
        [("1", "asst_writer"), ("2", "asst_editor"), (" editor ", "asst_editor")],
    )
    def test_match(self, catalog, selector, expected):
        assert find_assistant(catalog, selector).id == expected

    @pytest.mark.parametrize("selector", ["0", "3", "Proofreader"])
    def test_no_match(self, catalog, selector):
        assert find_assistant(catalog, selector) is None


class TestAssistantsCommand:
    """Tests for `copydesk assistants`."""

    def test_lists_catalog(self, monkeypatch):
        monkeypatch.setenv("OPENAI_ASSISTANT_ID_1", "asst_cli_1")
        monkeypatch.setenv("OPENAI_ASSISTANT_ID_2", "asst_cli_2")

        result = runner.invoke(app, ["assistants"])

        assert result.exit_code == 0
        assert "Generalist Creator" in result.output
        assert "asst_cli_2" in result.output

import pytest

from depupdater.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("tool_timed_out", command="gradle", timeout="600")

    assert "gradle did not finish within 600s." in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_key():
    with pytest.raises(KeyError):
        actionable_error("no_such_error")

"""Tests for diagnostic messages and the message-pattern table."""

from __future__ import annotations

import pytest

from cortexops.documents.messages import (
    classify_message,
    parse_error_message,
    tab_message,
    template_message,
    where,
)
from cortexops.documents.schemas import FixId


class TestMessages:
    def test_tab_message_single_line(self) -> None:
        assert tab_message(4, 1) == "Line 4: use spaces, not tabs"

    def test_tab_message_counts_lines(self) -> None:
        assert "(3 lines contain tabs)" in tab_message(4, 3)

    def test_parse_error_with_position(self) -> None:
        msg = parse_error_message(2, 5, "boom")
        assert msg == "YAML syntax error at line 2, column 5: boom"

    def test_parse_error_without_position(self) -> None:
        assert parse_error_message(None, None, "boom") == (
            "YAML syntax error: boom"
        )

    def test_template_message(self) -> None:
        assert template_message(2, 1) == (
            'Unbalanced template markers: 2 "{{" but 1 "}}"'
        )

    def test_where(self) -> None:
        assert where(1) == "Document 1"
        assert where(1, 2) == "Document 1, play 2"
        assert where(1, 2, 3) == "Document 1, play 2, task 3"


class TestClassifyMessage:
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ('Document 1, play 1: "name" is required', FixId.ADD_NAME),
            ('Le champ "name" est requise', FixId.ADD_NAME),
            ('Document 1, play 1: "hosts" is required', FixId.ADD_HOSTS),
            ("Document 1, play 1, task 2: no module specified",
             FixId.ADD_NOOP_MODULE),
            ("Tâche sans aucun module", FixId.ADD_NOOP_MODULE),
            ("Jinja2 expression not closed", FixId.CLOSE_TEMPLATE_MARKERS),
            ('Document must start with "---"', FixId.ADD_SEPARATOR),
            ('Le document doit commencer par "---"', FixId.ADD_SEPARATOR),
            ("Line 3: use spaces, not tabs", FixId.REPLACE_TABS),
            ("found character '\\t' that cannot start any token",
             FixId.REPLACE_TABS),
            ("mapping values are not allowed here", FixId.FIX_INDENTATION),
            ("Bad indentation of a mapping entry", FixId.FIX_INDENTATION),
            ("found duplicate key 'hosts'", FixId.REPAIR_STRUCTURE),
            ("Erreur de syntaxe YAML", FixId.REPAIR_STRUCTURE),
        ],
    )
    def test_patterns(self, message: str, expected: FixId) -> None:
        assert classify_message(message) == expected

    def test_unknown_message(self) -> None:
        assert classify_message("something else entirely") is None

    def test_specific_before_generic(self) -> None:
        # A syntax error mentioning a tab is a tab problem
        assert classify_message("YAML syntax error: tab found") == (
            FixId.REPLACE_TABS
        )

"""Diagnostic messages and the message-pattern table of the fix engine.

Diagnostics built by the validator carry their ``fix_id`` directly.
``classify_message`` covers plain-string diagnostics coming from older
callers, including the French wording of earlier releases and the raw
PyYAML problem strings.
"""

from __future__ import annotations

import re

from cortexops.constants import DOCUMENT_SEPARATOR
from cortexops.documents.schemas import FixId

EMPTY_DOCUMENT = "Document is empty"
NO_DOCUMENTS = "No YAML document found"
MISSING_SEPARATOR = f'Document must start with "{DOCUMENT_SEPARATOR}"'


def tab_message(first_line: int, line_count: int) -> str:
    if line_count == 1:
        return f"Line {first_line}: use spaces, not tabs"
    return (
        f"Line {first_line}: use spaces, not tabs "
        f"({line_count} lines contain tabs)"
    )


def parse_error_message(line: int | None, column: int | None, problem: str) -> str:
    if line is None:
        return f"YAML syntax error: {problem}"
    return f"YAML syntax error at line {line}, column {column}: {problem}"


def template_message(opened: int, closed: int) -> str:
    return (
        f'Unbalanced template markers: {opened} "{{{{" '
        f'but {closed} "}}}}"'
    )


def where(document: int, play: int | None = None, task: int | None = None) -> str:
    parts = [f"Document {document}"]
    if play is not None:
        parts.append(f"play {play}")
    if task is not None:
        parts.append(f"task {task}")
    return ", ".join(parts)


# First match wins; specific patterns come before generic ones
MESSAGE_PATTERNS: tuple[tuple[re.Pattern[str], FixId], ...] = (
    (
        re.compile(r'"name" (?:is required|est requise)', re.IGNORECASE),
        FixId.ADD_NAME,
    ),
    (
        re.compile(r'"hosts" (?:is required|est requise)', re.IGNORECASE),
        FixId.ADD_HOSTS,
    ),
    (
        re.compile(r"no module|aucun module", re.IGNORECASE),
        FixId.ADD_NOOP_MODULE,
    ),
    (
        re.compile(r"template marker|jinja2", re.IGNORECASE),
        FixId.CLOSE_TEMPLATE_MARKERS,
    ),
    (
        re.compile(r'start with "---"|commencer par "---"', re.IGNORECASE),
        FixId.ADD_SEPARATOR,
    ),
    (
        re.compile(r"\btabs?\b|tabulation|'\\t'", re.IGNORECASE),
        FixId.REPLACE_TABS,
    ),
    (
        re.compile(
            r"indentation|block mapping|multiline key|"
            r"mapping values are not allowed|could not find expected ':'|"
            r"did not find expected key|expected <block end>",
            re.IGNORECASE,
        ),
        FixId.FIX_INDENTATION,
    ),
    (
        re.compile(
            r"duplicate|dupliqu|syntax error|erreur de syntaxe|"
            r"expected a single document|found more",
            re.IGNORECASE,
        ),
        FixId.REPAIR_STRUCTURE,
    ),
)


def classify_message(message: str) -> FixId | None:
    """Map a diagnostic message to the fix that addresses it."""
    for pattern, fix_id in MESSAGE_PATTERNS:
        if pattern.search(message):
            return fix_id
    return None

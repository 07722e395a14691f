"""Structural validation of playbook documents.

Checks run on the parsed stream (every document is validated on its
own) and on the raw text (separator, tabs, template markers). The
validator never raises: parse failures become diagnostics with the
parser's line and column.
"""

from __future__ import annotations

import logging
from typing import Any

import yaml
from yaml.nodes import Node

from cortexops.constants import (
    DOCUMENT_SEPARATOR,
    TAB_REPLACEMENT,
    TASK_SECTIONS,
    TEMPLATE_CLOSE,
    TEMPLATE_OPEN,
)
from cortexops.documents import messages
from cortexops.documents.schemas import (
    Diagnostic,
    DiagnosticCode,
    DocumentValidation,
    FixId,
    Play,
    Task,
    module_keys,
)
from cortexops.documents.yaml_io import (
    LOAD_ERRORS,
    LoadedDocument,
    describe_error,
    load_documents,
    mapping_nodes,
    node_line,
    sequence_nodes,
)

logger = logging.getLogger(__name__)

# Keys whose presence marks a top-level mapping as a play
_PLAY_SHAPE_KEYS = ("name", "hosts", "tasks")


def _is_blank(value: object) -> bool:
    return value is None or not str(value).strip()


def _diag(
    message: str,
    code: DiagnosticCode,
    *,
    line: int | None = None,
    column: int | None = None,
    fix_id: FixId | None = None,
) -> Diagnostic:
    return Diagnostic(
        message=message,
        code=code,
        line=line,
        column=column,
        fixable=fix_id is not None,
        fix_id=fix_id,
    )


def _check_separator(text: str) -> list[Diagnostic]:
    if text.lstrip().startswith(DOCUMENT_SEPARATOR):
        return []
    return [
        _diag(
            messages.MISSING_SEPARATOR,
            DiagnosticCode.MISSING_SEPARATOR,
            line=1,
            fix_id=FixId.ADD_SEPARATOR,
        )
    ]


def _check_tabs(text: str) -> list[Diagnostic]:
    tab_lines = [
        number
        for number, line in enumerate(text.splitlines(), start=1)
        if "\t" in line
    ]
    if not tab_lines:
        return []
    return [
        _diag(
            messages.tab_message(tab_lines[0], len(tab_lines)),
            DiagnosticCode.TAB_CHARACTER,
            line=tab_lines[0],
            fix_id=FixId.REPLACE_TABS,
        )
    ]


def _check_template_markers(text: str) -> list[Diagnostic]:
    opened = text.count(TEMPLATE_OPEN)
    closed = text.count(TEMPLATE_CLOSE)
    if opened == closed:
        return []
    # Only missing closers can be repaired mechanically
    fix_id = FixId.CLOSE_TEMPLATE_MARKERS if opened > closed else None
    return [
        _diag(
            messages.template_message(opened, closed),
            DiagnosticCode.UNBALANCED_TEMPLATE,
            fix_id=fix_id,
        )
    ]


def _parse_failure(exc: Exception) -> Diagnostic:
    problem = describe_error(exc)
    message = messages.parse_error_message(
        problem.line, problem.column, problem.problem
    )
    if not isinstance(exc, yaml.YAMLError):
        # Unbuildable values and runaway nesting have no mechanical repair
        return _diag(message, DiagnosticCode.PARSE_ERROR)
    fix_id = messages.classify_message(problem.problem)
    if fix_id == FixId.REPAIR_STRUCTURE and "duplicate" in problem.problem:
        code = DiagnosticCode.DUPLICATE_KEY
    elif fix_id == FixId.FIX_INDENTATION:
        code = DiagnosticCode.BAD_INDENTATION
    else:
        code = DiagnosticCode.PARSE_ERROR
        fix_id = fix_id or FixId.REPAIR_STRUCTURE
    return _diag(
        message,
        code,
        line=problem.line,
        column=problem.column,
        fix_id=fix_id,
    )


def _load(text: str) -> tuple[list[LoadedDocument] | None, Diagnostic | None]:
    """Parse ``text``; a failure caused only by tabs is retried expanded.

    The tab itself is reported by ``_check_tabs``.
    """
    try:
        return load_documents(text), None
    except LOAD_ERRORS as exc:
        failure = exc

    if "\t" in text:
        try:
            return load_documents(text.replace("\t", TAB_REPLACEMENT)), None
        except LOAD_ERRORS as exc:
            failure = exc

    logger.debug("event=document_parse_failed error=%s", failure)
    return None, _parse_failure(failure)


def _check_task(
    task: Any,
    node: Node | None,
    label: str,
) -> list[Diagnostic]:
    line = node_line(node)
    if not isinstance(task, dict):
        return [
            _diag(
                f"{label}: must be a mapping",
                DiagnosticCode.INVALID_TASK,
                line=line,
            )
        ]

    found: list[Diagnostic] = []
    if _is_blank(task.get("name")):
        found.append(
            _diag(
                f'{label}: "name" is required',
                DiagnosticCode.MISSING_TASK_NAME,
                line=line,
                fix_id=FixId.ADD_NAME,
            )
        )
    if not module_keys(task):
        found.append(
            _diag(
                f"{label}: no module specified",
                DiagnosticCode.NO_MODULE,
                line=line,
                fix_id=FixId.ADD_NOOP_MODULE,
            )
        )
    return found


def _check_play(
    play: Any,
    node: Node | None,
    doc_index: int,
    play_index: int,
) -> list[Diagnostic]:
    label = messages.where(doc_index, play_index)
    line = node_line(node)
    if not isinstance(play, dict):
        return [
            _diag(
                f"{label}: must be a mapping",
                DiagnosticCode.INVALID_PLAY,
                line=line,
            )
        ]

    found: list[Diagnostic] = []
    if _is_blank(play.get("name")):
        found.append(
            _diag(
                f'{label}: "name" is required',
                DiagnosticCode.MISSING_PLAY_NAME,
                line=line,
                fix_id=FixId.ADD_NAME,
            )
        )
    if _is_blank(play.get("hosts")):
        found.append(
            _diag(
                f'{label}: "hosts" is required',
                DiagnosticCode.MISSING_HOSTS,
                line=line,
                fix_id=FixId.ADD_HOSTS,
            )
        )

    keyed = mapping_nodes(node)
    play_vars = play.get("vars")
    if play_vars is not None and not isinstance(play_vars, dict):
        found.append(
            _diag(
                f'{label}: "vars" must be a mapping',
                DiagnosticCode.VARS_NOT_MAPPING,
                line=node_line(keyed["vars"][0]) if "vars" in keyed else line,
            )
        )

    for section in TASK_SECTIONS:
        tasks = play.get(section)
        if tasks is None:
            continue
        section_node = keyed[section][1] if section in keyed else None
        if not isinstance(tasks, list):
            found.append(
                _diag(
                    f'{label}: "{section}" must be a list',
                    DiagnosticCode.SECTION_NOT_LIST,
                    line=node_line(section_node) or line,
                )
            )
            continue
        task_nodes = sequence_nodes(section_node)
        for task_index, task in enumerate(tasks, start=1):
            task_node = (
                task_nodes[task_index - 1]
                if len(task_nodes) == len(tasks)
                else None
            )
            task_label = messages.where(doc_index, play_index, task_index)
            if section != "tasks":
                task_label = f"{task_label} ({section})"
            found.extend(_check_task(task, task_node, task_label))

    return found


def _check_document(document: LoadedDocument, doc_index: int) -> list[Diagnostic]:
    data = document.data
    if isinstance(data, dict):
        if any(key in data for key in _PLAY_SHAPE_KEYS):
            return [
                _diag(
                    f"Document {doc_index}: playbook should be a list of "
                    'plays (start with "- name:")',
                    DiagnosticCode.NOT_A_LIST,
                    line=node_line(document.node),
                )
            ]
        # Metadata mapping, not a playbook
        return []

    if not isinstance(data, list):
        return [
            _diag(
                f"Document {doc_index}: must be a list of plays",
                DiagnosticCode.NOT_A_LIST,
                line=node_line(document.node),
            )
        ]

    play_nodes = sequence_nodes(document.node)
    found: list[Diagnostic] = []
    for play_index, play in enumerate(data, start=1):
        play_node = (
            play_nodes[play_index - 1]
            if len(play_nodes) == len(data)
            else None
        )
        found.extend(_check_play(play, play_node, doc_index, play_index))
    return found


def validate_document(text: str | None) -> DocumentValidation:
    """Validate a playbook stream. Never raises."""
    text = text or ""
    if not text.strip():
        return DocumentValidation(
            valid=False,
            diagnostics=[
                _diag(messages.EMPTY_DOCUMENT, DiagnosticCode.EMPTY_DOCUMENT)
            ],
        )

    diagnostics: list[Diagnostic] = []
    diagnostics.extend(_check_separator(text))
    diagnostics.extend(_check_tabs(text))

    documents, failure = _load(text)
    loaded: list[LoadedDocument] = []
    if failure is not None:
        diagnostics.append(failure)
    elif documents is not None:
        loaded = [d for d in documents if d.data is not None]
        if not loaded:
            diagnostics.append(
                _diag(messages.NO_DOCUMENTS, DiagnosticCode.NO_DOCUMENTS)
            )
        for doc_index, document in enumerate(loaded, start=1):
            diagnostics.extend(_check_document(document, doc_index))

    diagnostics.extend(_check_template_markers(text))

    logger.debug(
        "event=document_validated documents=%d diagnostics=%d",
        len(loaded),
        len(diagnostics),
    )
    return DocumentValidation(
        valid=not diagnostics,
        diagnostics=diagnostics,
        documents=len(loaded),
    )


def _to_task(task: dict[str, Any]) -> Task:
    name = task.get("name")
    return Task(
        name="" if name is None else str(name),
        module_keys=module_keys(task),
    )


def _to_play(play: dict[str, Any]) -> Play:
    hosts = play.get("hosts")
    if isinstance(hosts, list):
        hosts = ",".join(str(h) for h in hosts)
    play_vars = play.get("vars")
    sections: dict[str, tuple[Task, ...]] = {}
    for section in TASK_SECTIONS:
        tasks = play.get(section)
        sections[section] = tuple(
            _to_task(t)
            for t in (tasks if isinstance(tasks, list) else [])
            if isinstance(t, dict)
        )
    return Play(
        name="" if play.get("name") is None else str(play["name"]),
        hosts="" if hosts is None else str(hosts),
        vars=play_vars if isinstance(play_vars, dict) else None,
        **sections,
    )


def parse_plays(text: str | None) -> list[Play]:
    """Typed plays of every list document in ``text``.

    Returns an empty list when the text does not parse.
    """
    documents, failure = _load(text or "")
    if failure is not None or documents is None:
        return []
    plays: list[Play] = []
    for document in documents:
        if isinstance(document.data, list):
            plays.extend(
                _to_play(play)
                for play in document.data
                if isinstance(play, dict)
            )
    return plays

"""Auto-fix engine: diagnostics select pure text transforms.

Every transform returns its input unchanged when it does not apply,
so re-running a fix on text it already repaired is a no-op.
``smart_auto_fix`` makes a single pass; callers that want a fixpoint
re-validate and call again, or use ``fix_until_stable``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from yaml.nodes import MappingNode, Node

from cortexops.constants import (
    DEFAULT_HOSTS,
    DOCUMENT_SEPARATOR,
    NOOP_MESSAGE,
    NOOP_MODULE,
    PLACEHOLDER_PLAY_NAME,
    PLACEHOLDER_TASK_NAME,
    PLAY_HEADER_KEYS,
    TAB_REPLACEMENT,
    TASK_CONTROL_KEYWORDS,
    TASK_SECTIONS,
    TEMPLATE_CLOSE,
    TEMPLATE_OPEN,
)
from cortexops.documents.messages import classify_message
from cortexops.documents.schemas import (
    Diagnostic,
    Fix,
    FixId,
    FixReport,
    module_keys,
)
from cortexops.documents.validator import validate_document
from cortexops.documents.yaml_io import (
    NULL_TAG,
    dump_documents,
    mapping_nodes,
    sequence_nodes,
    try_load,
)

logger = logging.getLogger(__name__)

_KEY_LINE_RE = re.compile(r"""^(?P<key>[\w.-]+|"[^"]*"|'[^']*')\s*:(?:\s|$)""")
_ITEM_KEY_RE = re.compile(r"""^-\s+(?P<key>[\w.-]+|"[^"]*"|'[^']*')\s*:(?:\s|$)""")
_BLOCK_SCALAR_RE = re.compile(r":\s*[|>][-+0-9]*\s*(?:#.*)?$")

_PLAY_INDENT = 0
_PLAY_KEY_INDENT = 2
_TASK_INDENT = 4
_TASK_KEY_INDENT = 6
_MODULE_ARG_INDENT = 8

# Keys that end a module's argument block inside a task
_TASK_LEVEL_KEYS = TASK_CONTROL_KEYWORDS - {"name", "vars"}


# ── Line helpers ─────────────────────────────────────────


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _insert_key(
    lines: list[str], line_no: int, column: int, entry: str
) -> None:
    """Insert ``entry`` as a mapping key right before the key at (line, column).

    When the key shares its line with a ``- `` marker the line is split
    so ``entry`` takes the marker.
    """
    line = lines[line_no]
    prefix = line[:column]
    if prefix.strip():
        lines[line_no] = prefix + entry
        lines.insert(line_no + 1, " " * column + line[column:])
    else:
        lines.insert(line_no, " " * column + entry)


def _replace_key(
    lines: list[str], key_node: Node, entry: str
) -> None:
    line_no = key_node.start_mark.line
    column = key_node.start_mark.column
    lines[line_no] = lines[line_no][:column] + entry


# ── Simple transforms ────────────────────────────────────


def add_separator(text: str) -> str:
    if text.lstrip().startswith(DOCUMENT_SEPARATOR):
        return text
    return f"{DOCUMENT_SEPARATOR}\n{text}"


def replace_tabs(text: str) -> str:
    return text.replace("\t", TAB_REPLACEMENT)


def close_template_markers(text: str) -> str:
    """Close unterminated ``{{`` on the lines that opened them."""
    missing = text.count(TEMPLATE_OPEN) - text.count(TEMPLATE_CLOSE)
    if missing <= 0:
        return text

    lines = text.split("\n")
    for index, line in enumerate(lines):
        if missing <= 0:
            break
        gap = line.count(TEMPLATE_OPEN) - line.count(TEMPLATE_CLOSE)
        if gap <= 0:
            continue
        gap = min(gap, missing)
        closers = f" {TEMPLATE_CLOSE}" * gap
        stripped = line.rstrip()
        trailing = line[len(stripped):]
        if stripped and stripped[-1] in "\"'" and stripped.count(stripped[-1]) >= 2:
            lines[index] = stripped[:-1] + closers + stripped[-1] + trailing
        else:
            lines[index] = stripped + closers + trailing
        missing -= gap

    fixed = "\n".join(lines)
    if missing > 0:
        fixed += f" {TEMPLATE_CLOSE}" * missing
    return fixed


# ── Indentation ──────────────────────────────────────────


def reindent(text: str) -> str:
    """Rule-based re-indenter for playbooks that do not parse.

    Tracks whether the cursor is in a play header, a task section or a
    task body and sets the indent to 0 / 2 / 4 / 6 accordingly, with
    nested module arguments at 8.
    """
    in_play = False
    in_section = False
    in_task = False
    in_module_args = False
    current = 0
    fixed: list[str] = []

    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            fixed.append(line)
            continue

        if trimmed == DOCUMENT_SEPARATOR:
            fixed.append(DOCUMENT_SEPARATOR)
            in_play = in_section = in_task = in_module_args = False
            current = 0
            continue

        item = _ITEM_KEY_RE.match(trimmed)
        if item:
            # Raw column 0 inside a section starts the next play
            if in_section and _indent_of(line) > 0:
                fixed.append(" " * _TASK_INDENT + trimmed)
                in_task = True
                in_module_args = False
                current = _TASK_KEY_INDENT
            else:
                fixed.append(" " * _PLAY_INDENT + trimmed)
                in_play = True
                in_section = in_task = in_module_args = False
                current = _PLAY_KEY_INDENT
            continue

        keyed = _KEY_LINE_RE.match(trimmed)
        key = keyed.group("key") if keyed else None

        if in_play and key in TASK_SECTIONS:
            fixed.append(" " * _PLAY_KEY_INDENT + trimmed)
            in_section = True
            in_task = in_module_args = False
            current = _TASK_INDENT
            continue

        if in_task and key is not None:
            if in_module_args and key not in _TASK_LEVEL_KEYS:
                fixed.append(" " * _MODULE_ARG_INDENT + trimmed)
                continue
            fixed.append(" " * _TASK_KEY_INDENT + trimmed)
            in_module_args = (
                key not in TASK_CONTROL_KEYWORDS and trimmed.endswith(":")
            )
            current = (
                _MODULE_ARG_INDENT if in_module_args else _TASK_KEY_INDENT
            )
            continue

        if in_play and not in_section and key in PLAY_HEADER_KEYS:
            fixed.append(" " * _PLAY_KEY_INDENT + trimmed)
            current = _TASK_INDENT if trimmed.endswith(":") else _PLAY_KEY_INDENT
            continue

        fixed.append(" " * current + trimmed if current else line)

    return "\n".join(fixed)


def _redump(text: str) -> str | None:
    documents = try_load(text)
    if documents is None:
        return None
    data = [d.data for d in documents if d.data is not None]
    if not data or not any(isinstance(d, (list, dict)) for d in data):
        return None
    return dump_documents(data)


def fix_indentation(text: str) -> str:
    """Re-serialize when the text parses, else re-indent by rule."""
    dumped = _redump(text)
    if dumped is not None:
        return dumped
    return reindent(text)


# ── Structure ────────────────────────────────────────────


def drop_duplicate_keys(text: str) -> str:
    """Drop keys already seen at the same depth of the same block.

    A dropped key takes its nested block with it. Block scalar
    contents are passed through untouched.
    """
    kept: list[str] = []
    keys_by_level: dict[int, set[str]] = {}
    skip_deeper_than: int | None = None
    scalar_deeper_than: int | None = None

    for line in text.split("\n"):
        trimmed = line.strip()
        indent = _indent_of(line)

        if skip_deeper_than is not None:
            if not trimmed or indent > skip_deeper_than:
                continue
            skip_deeper_than = None

        if scalar_deeper_than is not None:
            if not trimmed or indent > scalar_deeper_than:
                kept.append(line)
                continue
            scalar_deeper_than = None

        if not trimmed or trimmed.startswith("#"):
            kept.append(line)
            continue

        if trimmed == DOCUMENT_SEPARATOR:
            keys_by_level.clear()
            kept.append(line)
            continue

        item = _ITEM_KEY_RE.match(trimmed)
        if item:
            for level in [lv for lv in keys_by_level if lv > indent]:
                del keys_by_level[level]
            keys_by_level[indent + 2] = {item.group("key")}
        elif trimmed.startswith("-"):
            for level in [lv for lv in keys_by_level if lv > indent]:
                del keys_by_level[level]
        else:
            keyed = _KEY_LINE_RE.match(trimmed)
            if keyed:
                for level in [lv for lv in keys_by_level if lv > indent]:
                    del keys_by_level[level]
                seen = keys_by_level.setdefault(indent, set())
                key = keyed.group("key")
                if key in seen:
                    skip_deeper_than = indent
                    continue
                seen.add(key)

        if _BLOCK_SCALAR_RE.search(trimmed):
            scalar_deeper_than = indent
        kept.append(line)

    return "\n".join(kept)


def repair_structure(text: str) -> str:
    """Remove duplicate keys, then re-serialize or re-indent."""
    deduped = drop_duplicate_keys(replace_tabs(text))
    dumped = _redump(deduped)
    if dumped is not None:
        return dumped
    return reindent(deduped)


# ── Missing keys ─────────────────────────────────────────


def _blank_value(value_node: Node) -> bool:
    """True for an empty scalar or an explicit null (``null``, ``~``)."""
    if value_node.tag == NULL_TAG:
        return True
    value = getattr(value_node, "value", None)
    return value is None or (isinstance(value, str) and not value.strip())


def _play_and_task_nodes(
    root: Node,
) -> Iterable[tuple[MappingNode, str]]:
    """Yield (mapping node, placeholder name) for plays and their tasks."""
    for play_node in sequence_nodes(root):
        if not isinstance(play_node, MappingNode):
            continue
        yield play_node, PLACEHOLDER_PLAY_NAME
        keyed = mapping_nodes(play_node)
        for section in TASK_SECTIONS:
            if section not in keyed:
                continue
            for task_node in sequence_nodes(keyed[section][1]):
                if isinstance(task_node, MappingNode):
                    yield task_node, PLACEHOLDER_TASK_NAME


def _name_edits(node: MappingNode, placeholder: str) -> tuple[int, int, str, Node | None] | None:
    keyed = mapping_nodes(node)
    if "name" in keyed:
        key_node, value_node = keyed["name"]
        if not _blank_value(value_node):
            return None
        return (
            key_node.start_mark.line,
            key_node.start_mark.column,
            f"name: {placeholder}",
            key_node,
        )
    if not node.value:
        return None
    first_key = node.value[0][0]
    return (
        first_key.start_mark.line,
        first_key.start_mark.column,
        f"name: {placeholder}",
        None,
    )


def _apply_edits(
    text: str,
    edits: list[tuple[int, int, str, Node | None]],
) -> str:
    lines = text.split("\n")
    # Bottom-up so earlier positions stay valid
    for line_no, column, entry, replaced in sorted(
        edits, key=lambda e: (e[0], e[1]), reverse=True
    ):
        if replaced is not None:
            _replace_key(lines, replaced, entry)
        else:
            _insert_key(lines, line_no, column, entry)
    return "\n".join(lines)


def add_missing_names(text: str) -> str:
    """Give every unnamed play and task a placeholder name.

    The ``name:`` line is inserted as the first key under the ``- ``
    marker. Text that does not parse comes back unchanged.
    """
    documents = try_load(text)
    if documents is None:
        return text

    edits: list[tuple[int, int, str, Node | None]] = []
    for document in documents:
        for node, placeholder in _play_and_task_nodes(document.node):
            if node.flow_style:
                continue
            edit = _name_edits(node, placeholder)
            if edit is not None:
                edits.append(edit)

    if not edits:
        return text
    return _apply_edits(text, edits)


def _hosts_edit(node: MappingNode) -> tuple[int, int, str, Node | None] | None:
    entry = f"hosts: {DEFAULT_HOSTS}"
    keyed = mapping_nodes(node)
    if "hosts" in keyed:
        key_node, value_node = keyed["hosts"]
        if not _blank_value(value_node):
            return None
        return (
            key_node.start_mark.line,
            key_node.start_mark.column,
            entry,
            key_node,
        )

    for key_node, _ in node.value:
        if getattr(key_node, "value", None) in TASK_SECTIONS:
            return (
                key_node.start_mark.line,
                key_node.start_mark.column,
                entry,
                None,
            )

    # No task section: add after the last key's value
    if not node.value:
        return None
    last_key, last_value = node.value[-1]
    end = last_value.end_mark
    line_no = end.line if end.column == 0 else end.line + 1
    return (line_no, last_key.start_mark.column, entry, None)


def _add_hosts_by_line(text: str) -> str:
    """Line-based fallback for text that does not parse."""
    entry = f"hosts: {DEFAULT_HOSTS}"
    lines = text.split("\n")
    fixed: list[str] = []
    in_play = False
    has_hosts = False
    play_indent = 0

    for line in lines:
        trimmed = line.strip()
        indent = _indent_of(line)

        if trimmed.startswith("- name:") and (indent == 0 or indent == play_indent):
            if in_play and not has_hosts:
                _append_before_blank(fixed, " " * (play_indent + 2) + entry)
            in_play = True
            has_hosts = False
            play_indent = indent
            fixed.append(line)
            continue

        if in_play and trimmed.startswith("hosts:"):
            has_hosts = True

        if in_play and not has_hosts and any(
            trimmed.startswith(f"{section}:") for section in TASK_SECTIONS
        ):
            fixed.append(" " * (play_indent + 2) + entry)
            has_hosts = True

        fixed.append(line)

    if in_play and not has_hosts:
        _append_before_blank(fixed, " " * (play_indent + 2) + entry)
    return "\n".join(fixed)


def _append_before_blank(lines: list[str], entry: str) -> None:
    index = len(lines)
    while index > 0 and not lines[index - 1].strip():
        index -= 1
    lines.insert(index, entry)


def add_missing_hosts(text: str) -> str:
    """Insert ``hosts: all`` before the first task section of each play."""
    documents = try_load(text)
    if documents is None:
        return _add_hosts_by_line(text)

    edits: list[tuple[int, int, str, Node | None]] = []
    for document in documents:
        for play_node in sequence_nodes(document.node):
            if not isinstance(play_node, MappingNode) or play_node.flow_style:
                continue
            edit = _hosts_edit(play_node)
            if edit is not None:
                edits.append(edit)

    if not edits:
        return text
    return _apply_edits(text, edits)


def add_noop_modules(text: str) -> str:
    """Give every task without a module a ``debug`` placeholder."""
    documents = try_load(text)
    if documents is None:
        return text

    changed = False
    data: list[Any] = [d.data for d in documents if d.data is not None]
    for document in data:
        if not isinstance(document, list):
            continue
        for play in document:
            if not isinstance(play, dict):
                continue
            for section in TASK_SECTIONS:
                tasks = play.get(section)
                if not isinstance(tasks, list):
                    continue
                for task in tasks:
                    if isinstance(task, dict) and not module_keys(task):
                        task[NOOP_MODULE] = {"msg": NOOP_MESSAGE}
                        changed = True

    if not changed:
        return text
    return dump_documents(data)


# ── Catalog ──────────────────────────────────────────────


FIXES: dict[FixId, Fix] = {
    FixId.ADD_SEPARATOR: Fix(
        fix_id=FixId.ADD_SEPARATOR,
        title="Add the document separator",
        description=f'Prepends the required "{DOCUMENT_SEPARATOR}" line',
        transform=add_separator,
    ),
    FixId.REPLACE_TABS: Fix(
        fix_id=FixId.REPLACE_TABS,
        title="Replace tabs with spaces",
        description="Converts every tab into two spaces",
        transform=replace_tabs,
    ),
    FixId.FIX_INDENTATION: Fix(
        fix_id=FixId.FIX_INDENTATION,
        title="Fix indentation",
        description="Realigns every line on the expected indentation",
        transform=fix_indentation,
    ),
    FixId.REPAIR_STRUCTURE: Fix(
        fix_id=FixId.REPAIR_STRUCTURE,
        title="Repair the YAML structure",
        description="Drops duplicate keys and re-serializes the document",
        transform=repair_structure,
    ),
    FixId.ADD_NAME: Fix(
        fix_id=FixId.ADD_NAME,
        title='Add missing "name" keys',
        description="Gives unnamed plays and tasks a placeholder name",
        transform=add_missing_names,
    ),
    FixId.ADD_HOSTS: Fix(
        fix_id=FixId.ADD_HOSTS,
        title='Add missing "hosts" keys',
        description=f"Targets plays without hosts at {DEFAULT_HOSTS!r}",
        transform=add_missing_hosts,
    ),
    FixId.ADD_NOOP_MODULE: Fix(
        fix_id=FixId.ADD_NOOP_MODULE,
        title="Add a debug module to empty tasks",
        description="Adds a placeholder debug module to tasks without one",
        transform=add_noop_modules,
    ),
    FixId.CLOSE_TEMPLATE_MARKERS: Fix(
        fix_id=FixId.CLOSE_TEMPLATE_MARKERS,
        title="Close template markers",
        description=f'Closes unterminated "{TEMPLATE_OPEN}" markers',
        transform=close_template_markers,
    ),
}

# Application order of smart_auto_fix and the apply-everything fix
FIX_ORDER: tuple[FixId, ...] = (
    FixId.ADD_SEPARATOR,
    FixId.REPLACE_TABS,
    FixId.FIX_INDENTATION,
    FixId.REPAIR_STRUCTURE,
    FixId.ADD_NAME,
    FixId.ADD_HOSTS,
    FixId.ADD_NOOP_MODULE,
    FixId.CLOSE_TEMPLATE_MARKERS,
)


def _fix_id_of(diagnostic: Diagnostic | str) -> FixId | None:
    if isinstance(diagnostic, Diagnostic):
        if diagnostic.fix_id is not None:
            return diagnostic.fix_id
        return classify_message(diagnostic.message) if diagnostic.fixable else None
    return classify_message(diagnostic)


def select_fix_ids(
    diagnostics: Sequence[Diagnostic | str],
) -> list[FixId]:
    """Fix ids addressing ``diagnostics``, in application order."""
    wanted = {
        fix_id
        for fix_id in (_fix_id_of(d) for d in diagnostics)
        if fix_id is not None
    }
    return [fix_id for fix_id in FIX_ORDER if fix_id in wanted]


def _apply_sequence(fix_ids: Sequence[FixId], text: str) -> str:
    for fix_id in fix_ids:
        text = FIXES[fix_id].apply(text)
    return text


def get_fixes(diagnostics: Sequence[Diagnostic | str]) -> list[Fix]:
    """Applicable fixes plus an "apply everything" fix when any apply."""
    fix_ids = select_fix_ids(diagnostics)
    if not fix_ids:
        return []
    fixes = [FIXES[fix_id] for fix_id in fix_ids]

    def apply_all(text: str) -> str:
        return _apply_sequence(fix_ids, text)

    fixes.append(
        Fix(
            fix_id=FixId.APPLY_ALL,
            title="Fix everything",
            description="Applies every available automatic fix in order",
            transform=apply_all,
        )
    )
    return fixes


def auto_fix_with_report(
    text: str, diagnostics: Sequence[Diagnostic | str]
) -> FixReport:
    """Single pass of the minimal fix subset, recording no-ops."""
    applied: list[FixId] = []
    noops: list[FixId] = []
    for fix_id in select_fix_ids(diagnostics):
        fixed = FIXES[fix_id].apply(text)
        if fixed == text:
            noops.append(fix_id)
        else:
            applied.append(fix_id)
        text = fixed

    if noops:
        logger.debug(
            "event=fix_noop fix_ids=%s",
            ",".join(noops),
        )
    return FixReport(text=text, applied=tuple(applied), noops=tuple(noops))


def smart_auto_fix(
    text: str, diagnostics: Sequence[Diagnostic | str]
) -> str:
    """Apply the fixes selected by ``diagnostics`` once, in fixed order."""
    return auto_fix_with_report(text, diagnostics).text


def fix_until_stable(text: str, max_passes: int = 3) -> FixReport:
    """Validate and fix repeatedly until clean, unchanged or out of passes."""
    applied: list[FixId] = []
    noops: list[FixId] = []
    passes = 0

    for _ in range(max(max_passes, 1)):
        validation = validate_document(text)
        if validation.valid:
            break
        report = auto_fix_with_report(text, validation.diagnostics)
        passes += 1
        applied.extend(f for f in report.applied if f not in applied)
        noops.extend(f for f in report.noops if f not in noops)
        if report.text == text:
            break
        text = report.text

    logger.info(
        "event=fix_until_stable passes=%d applied=%s",
        passes,
        ",".join(applied) or "-",
    )
    return FixReport(
        text=text,
        applied=tuple(applied),
        noops=tuple(f for f in noops if f not in applied),
        passes=passes,
    )

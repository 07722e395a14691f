"""Playbook document types: parsed structure, diagnostics and fixes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from cortexops.constants import TASK_CONTROL_KEYWORDS

logger = logging.getLogger(__name__)


class DiagnosticCode(StrEnum):
    """What a diagnostic is about."""

    EMPTY_DOCUMENT = "empty_document"
    MISSING_SEPARATOR = "missing_separator"
    TAB_CHARACTER = "tab_character"
    BAD_INDENTATION = "bad_indentation"
    DUPLICATE_KEY = "duplicate_key"
    PARSE_ERROR = "parse_error"
    NO_DOCUMENTS = "no_documents"
    NOT_A_LIST = "not_a_list"
    INVALID_PLAY = "invalid_play"
    MISSING_PLAY_NAME = "missing_play_name"
    MISSING_HOSTS = "missing_hosts"
    VARS_NOT_MAPPING = "vars_not_mapping"
    SECTION_NOT_LIST = "section_not_list"
    INVALID_TASK = "invalid_task"
    MISSING_TASK_NAME = "missing_task_name"
    NO_MODULE = "no_module"
    UNBALANCED_TEMPLATE = "unbalanced_template"


class FixId(StrEnum):
    """Catalog keys of the auto-fix engine."""

    ADD_SEPARATOR = "add_separator"
    REPLACE_TABS = "replace_tabs"
    FIX_INDENTATION = "fix_indentation"
    REPAIR_STRUCTURE = "repair_structure"
    ADD_NAME = "add_name"
    ADD_HOSTS = "add_hosts"
    ADD_NOOP_MODULE = "add_noop_module"
    CLOSE_TEMPLATE_MARKERS = "close_template_markers"
    APPLY_ALL = "apply_all"


class Diagnostic(BaseModel):
    """One structural defect found in a document."""

    model_config = ConfigDict(frozen=True)

    message: str
    code: DiagnosticCode
    line: int | None = None  # 1-based
    column: int | None = None  # 1-based
    fixable: bool = False
    fix_id: FixId | None = None


class DocumentValidation(BaseModel):
    """Validator output. ``valid`` iff there are no diagnostics."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    diagnostics: list[Diagnostic] = Field(
        default_factory=lambda: list[Diagnostic]()
    )
    documents: int = 0

    @property
    def fixable(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.fixable]


@dataclass(frozen=True)
class Task:
    name: str
    module_keys: tuple[str, ...]

    @property
    def has_module(self) -> bool:
        return bool(self.module_keys)


@dataclass(frozen=True)
class Play:
    name: str
    hosts: str
    vars: dict[str, object] | None = None
    tasks: tuple[Task, ...] = ()
    handlers: tuple[Task, ...] = ()
    pre_tasks: tuple[Task, ...] = ()
    post_tasks: tuple[Task, ...] = ()


def module_keys(task: dict[str, object]) -> tuple[str, ...]:
    """Keys of ``task`` that name a module rather than a control keyword."""
    return tuple(
        str(key) for key in task if str(key) not in TASK_CONTROL_KEYWORDS
    )


@dataclass(frozen=True)
class Fix:
    """A named text transform.

    ``apply`` never raises: a transform failure is logged and the
    input comes back unchanged.
    """

    fix_id: FixId
    title: str
    description: str
    transform: Callable[[str], str] = field(repr=False)

    def apply(self, text: str) -> str:
        try:
            return self.transform(text)
        except Exception:
            logger.warning(
                "event=fix_failed fix_id=%s",
                self.fix_id,
                exc_info=True,
            )
            return text


@dataclass(frozen=True)
class FixReport:
    """Result of an auto-fix run: which fixes changed the text."""

    text: str
    applied: tuple[FixId, ...] = ()
    noops: tuple[FixId, ...] = ()
    passes: int = 1

    @property
    def changed(self) -> bool:
        return bool(self.applied)

"""PyYAML loading with node marks and duplicate-key rejection, plus dumping.

Documents are composed to nodes first and constructed second so that
validators and fixes can map a play or task back to its source line.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml
from yaml.constructor import ConstructorError
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

_MERGE_TAG = "tag:yaml.org,2002:merge"
NULL_TAG = "tag:yaml.org,2002:null"
_DUMP_WIDTH = 4096

# Scanner and parser errors, plus constructor failures PyYAML does not wrap
# (impossible timestamps) and recursion on pathologically deep nesting
LOAD_ERRORS: tuple[type[Exception], ...] = (
    yaml.YAMLError,
    ValueError,
    TypeError,
    RecursionError,
)


class StrictLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicate keys in a mapping."""

    def construct_mapping(
        self, node: MappingNode, deep: bool = False
    ) -> dict[Any, Any]:
        seen: set[tuple[str, str]] = set()
        for key_node, _ in node.value:
            if key_node.tag == _MERGE_TAG or not isinstance(
                key_node, ScalarNode
            ):
                continue
            key = (key_node.tag, key_node.value)
            if key in seen:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key_node.value!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


class IndentedDumper(yaml.SafeDumper):
    """SafeDumper that indents sequences nested in mappings."""

    def increase_indent(
        self, flow: bool = False, indentless: bool = False
    ) -> None:
        return super().increase_indent(flow, False)


@dataclass(frozen=True)
class LoadedDocument:
    data: Any
    node: Node


@dataclass(frozen=True)
class ParseProblem:
    """Position (1-based) and description of a parser failure."""

    line: int | None
    column: int | None
    problem: str


def load_documents(text: str) -> list[LoadedDocument]:
    """Load every document of ``text`` with its root node.

    Raises ``yaml.YAMLError`` on malformed input or duplicate keys, and
    any of ``LOAD_ERRORS`` on values the constructor cannot build.
    """
    loader = StrictLoader(text)
    documents: list[LoadedDocument] = []
    try:
        while loader.check_node():
            node = loader.get_node()
            if node is None:
                break
            documents.append(
                LoadedDocument(
                    data=loader.construct_document(node),
                    node=node,
                )
            )
    finally:
        loader.dispose()
    return documents


def try_load(text: str) -> list[LoadedDocument] | None:
    """``load_documents`` returning None instead of raising."""
    try:
        return load_documents(text)
    except LOAD_ERRORS:
        return None


def describe_error(exc: Exception) -> ParseProblem:
    if isinstance(exc, RecursionError):
        return ParseProblem(
            line=None, column=None, problem="nesting too deep"
        )
    mark = getattr(exc, "problem_mark", None) or getattr(
        exc, "context_mark", None
    )
    problem = (
        getattr(exc, "problem", None)
        or getattr(exc, "context", None)
        or str(exc)
        or type(exc).__name__
    )
    if mark is None:
        return ParseProblem(line=None, column=None, problem=problem)
    return ParseProblem(
        line=mark.line + 1,
        column=mark.column + 1,
        problem=problem,
    )


def dump_documents(documents: list[Any]) -> str:
    """Serialize documents, each with an explicit ``---`` start."""
    return yaml.dump_all(
        documents,
        Dumper=IndentedDumper,
        explicit_start=True,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=_DUMP_WIDTH,
    )


def mapping_nodes(node: Node | None) -> dict[str, tuple[Node, Node]]:
    """Scalar keys of a mapping node mapped to (key_node, value_node)."""
    if not isinstance(node, MappingNode):
        return {}
    return {
        str(key_node.value): (key_node, value_node)
        for key_node, value_node in node.value
        if isinstance(key_node, ScalarNode)
    }


def sequence_nodes(node: Node | None) -> list[Node]:
    if not isinstance(node, SequenceNode):
        return []
    return list(node.value)


def node_line(node: Node | None) -> int | None:
    return node.start_mark.line + 1 if node is not None else None

"""Tests for YAML loading with marks and dumping."""

from __future__ import annotations

import pytest
import yaml

from cortexops.documents.yaml_io import (
    ParseProblem,
    describe_error,
    dump_documents,
    load_documents,
    mapping_nodes,
    node_line,
    sequence_nodes,
    try_load,
)


class TestLoadDocuments:
    def test_multiple_documents(self) -> None:
        docs = load_documents("---\na: 1\n---\n- b\n")
        assert [d.data for d in docs] == [{"a": 1}, ["b"]]

    def test_duplicate_key_rejected(self) -> None:
        with pytest.raises(yaml.YAMLError, match="duplicate key"):
            load_documents("---\na: 1\na: 2\n")

    def test_duplicate_keys_in_separate_mappings_allowed(self) -> None:
        docs = load_documents("---\n- a: 1\n- a: 2\n")
        assert docs[0].data == [{"a": 1}, {"a": 2}]

    def test_try_load_returns_none_on_error(self) -> None:
        assert try_load("a: [1, 2") is None

    def test_try_load_empty_text(self) -> None:
        assert try_load("") == []

    @pytest.mark.parametrize(
        "text",
        ["---\nreleased: 2020-99-99\n", "[" * 20_000],
    )
    def test_try_load_returns_none_on_unbuildable(self, text: str) -> None:
        assert try_load(text) is None


class TestDescribeError:
    def test_duplicate_key_position(self) -> None:
        with pytest.raises(yaml.YAMLError) as info:
            load_documents("---\na: 1\na: 2\n")
        problem = describe_error(info.value)
        assert problem.line == 3
        assert problem.column == 1
        assert "duplicate key" in problem.problem

    def test_constructor_value_error(self) -> None:
        with pytest.raises(ValueError) as info:
            load_documents("---\nreleased: 2020-99-99\n")
        problem = describe_error(info.value)
        assert problem.line is None
        assert "month" in problem.problem

    def test_recursion_error(self) -> None:
        problem = describe_error(RecursionError())
        assert problem == ParseProblem(
            line=None, column=None, problem="nesting too deep"
        )

    def test_markless_error(self) -> None:
        problem = describe_error(yaml.YAMLError("boom"))
        assert problem.line is None
        assert problem.column is None
        assert problem.problem == "boom"


class TestDumpDocuments:
    def test_explicit_start_and_indented_sequences(self) -> None:
        out = dump_documents(
            [[{"name": "x", "hosts": "all", "tasks": [{"name": "t"}]}]]
        )
        assert out.startswith("---\n- name: x\n")
        assert "\n    - name: t\n" in out

    def test_key_order_preserved(self) -> None:
        out = dump_documents([{"zeta": 1, "alpha": 2}])
        assert out.index("zeta") < out.index("alpha")

    def test_unicode_kept(self) -> None:
        assert "cinéma" in dump_documents([{"title": "cinéma"}])

    def test_one_start_per_document(self) -> None:
        out = dump_documents([{"a": 1}, {"b": 2}])
        assert out.count("---") == 2


class TestNodeHelpers:
    def test_play_nodes_and_lines(self) -> None:
        docs = load_documents("---\n- name: x\n  hosts: all\n")
        plays = sequence_nodes(docs[0].node)
        assert len(plays) == 1
        keyed = mapping_nodes(plays[0])
        assert set(keyed) == {"name", "hosts"}
        assert node_line(plays[0]) == 2
        assert node_line(keyed["hosts"][0]) == 3

    def test_wrong_node_kinds(self) -> None:
        docs = load_documents("---\nplain\n")
        assert sequence_nodes(docs[0].node) == []
        assert mapping_nodes(docs[0].node) == {}
        assert node_line(None) is None

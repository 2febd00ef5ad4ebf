"""Unit tests for tree merging and splitting."""

import pytest

from tardis.config.merge import deep_merge, merge_trees, split_tree
from tardis.errors import FormatError


class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_later_source_wins(self) -> None:
        """Leaf defined in both takes the override value."""
        assert deep_merge({"x": 1, "y": 1}, {"x": 2}) == {"x": 2, "y": 1}

    def test_nested_siblings_survive(self) -> None:
        """Overriding one nested field keeps its siblings."""
        base = {"db": {"url": "a", "pool": 5}}
        override = {"db": {"url": "b"}}
        assert deep_merge(base, override) == {"db": {"url": "b", "pool": 5}}

    def test_lists_are_leaves(self) -> None:
        """Lists are replaced, not merged element-wise."""
        assert deep_merge({"hosts": [1, 2, 3]}, {"hosts": [4]}) == {"hosts": [4]}

    def test_override_replaces_non_dict(self) -> None:
        assert deep_merge({"a": {"x": 1}}, {"a": "replaced"}) == {"a": "replaced"}

    def test_inputs_unmodified(self) -> None:
        """Neither input is mutated, including nested values."""
        base = {"a": {"x": 1}}
        override = {"a": {"y": 2}}
        result = deep_merge(base, override)
        result["a"]["z"] = 3
        assert base == {"a": {"x": 1}}
        assert override == {"a": {"y": 2}}


class TestMergeTrees:
    """Tests for merge_trees function."""

    def test_empty_list(self) -> None:
        assert merge_trees([]) == {}

    def test_precedence_follows_order(self) -> None:
        trees = [
            {"fw": {"app": {"id": "local", "name": "n"}}},
            {"fw": {"app": {"id": "remote"}}},
            {"fw": {"app": {"id": "env"}}},
        ]
        assert merge_trees(trees) == {"fw": {"app": {"id": "env", "name": "n"}}}

    def test_associative(self) -> None:
        """Merging [A, B, C] equals merging [A, B] then C."""
        a = {"x": 1, "db": {"url": "a", "pool": 5}, "l": [1]}
        b = {"db": {"url": "b"}, "y": {"k": 1}}
        c = {"db": {"pool": 7}, "y": "flat", "l": [2]}
        assert merge_trees([a, b, c]) == merge_trees([merge_trees([a, b]), c])
        assert merge_trees([a, b, c]) == merge_trees([a, merge_trees([b, c])])


class TestSplitTree:
    """Tests for split_tree function."""

    def test_split_sections(self) -> None:
        """cs becomes '', csm entries become named modules, fw is returned apart."""
        tree = {
            "cs": {"project_name": "p"},
            "csm": {"m1": {"db_proj": {"url": "u"}}},
            "fw": {"app": {"id": "a"}},
        }
        workspace, framework = split_tree(tree)
        assert workspace == {"": {"project_name": "p"}, "m1": {"db_proj": {"url": "u"}}}
        assert framework == {"app": {"id": "a"}}

    def test_missing_sections(self) -> None:
        """Missing branches yield an empty workspace and framework tree."""
        assert split_tree({}) == ({}, {})

    def test_csm_must_be_mapping(self) -> None:
        with pytest.raises(FormatError):
            split_tree({"csm": ["m1"]})

    def test_fw_must_be_mapping(self) -> None:
        with pytest.raises(FormatError):
            split_tree({"fw": "nope"})

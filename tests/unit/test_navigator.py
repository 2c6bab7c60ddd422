# Unit tests for cardvs/core/navigator.py

import pytest

from cardvs.core.navigator import Navigator
from cardvs.exceptions import NotFoundError


def ids(nodes):
    return [node.id for node in nodes]


@pytest.fixture
def nav(base_tree):
    return Navigator(base_tree)


class TestStructure:

    def test_parent(self, nav):
        assert nav.get_parent("121").id == "12"
        assert nav.get_parent("0") is None

    def test_children(self, nav):
        assert ids(nav.get_children("1")) == ["11", "12"]
        assert nav.get_children("21") == []
        assert nav.get_first_child("1").id == "11"
        assert nav.get_last_child("1").id == "12"
        assert nav.get_first_child("21") is None

    def test_index_and_depth(self, nav):
        assert nav.get_index("12") == 1
        assert nav.get_index("0") == 0
        assert nav.get_depth("0") == 0
        assert nav.get_depth("121") == 3

    def test_ancestors_are_root_first(self, nav):
        assert ids(nav.get_ancestors("121")) == ["0", "1", "12"]
        assert nav.get_ancestors("0") == []

    def test_descendants_in_preorder(self, nav):
        assert ids(nav.get_descendants("1")) == ["11", "12", "121"]
        assert ids(nav.get_descendants("0")) == ["1", "11", "12", "121", "2", "21"]
        assert nav.get_descendants("121") == []

    def test_siblings(self, nav):
        assert ids(nav.get_siblings("12")) == ["11", "12"]
        assert ids(nav.get_siblings("0")) == ["0"]

    def test_unknown_id(self, nav):
        with pytest.raises(NotFoundError):
            nav.get_parent("nope")
        assert not nav.contains("nope")


class TestNeighbours:

    def test_next_and_prev_sibling(self, nav):
        assert nav.get_next_sibling("11").id == "12"
        assert nav.get_next_sibling("12") is None
        assert nav.get_prev_sibling("2").id == "1"
        assert nav.get_prev_sibling("1") is None
        assert nav.get_next_sibling("0") is None

    def test_column_neighbours_cross_parents(self, nav):
        assert nav.get_next_in_column("12").id == "21"
        assert nav.get_prev_in_column("21").id == "12"
        assert nav.get_next_in_column("21") is None
        assert nav.get_prev_in_column("11") is None
        assert nav.get_next_in_column("121") is None

    def test_columns(self, nav):
        assert [ids(column) for column in nav.get_columns()] == [
            ["1", "2"],
            ["11", "12", "21"],
            ["121"],
        ]
        assert nav.get_column(9) == []

# Unit tests for cardvs/core/tree.py

import pytest

from cardvs.core.navigator import Navigator
from cardvs.core.tree import Node, Tree, generate_id
from cardvs.exceptions import InvalidOperationError, NotFoundError


def child_ids(tree, node_id):
    return [child.id for child in tree.find(node_id).children]


class TestConstruction:

    def test_default_tree_is_root_only(self):
        tree = Tree()
        assert tree.root.id == "0"
        assert len(tree) == 1

    def test_root_id_enforced(self):
        with pytest.raises(InvalidOperationError):
            Tree(Node("1"))

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvalidOperationError):
            Tree(Node("0", "", [Node("1"), Node("1")]))

    def test_structural_equality(self, base_tree):
        assert Tree.from_dict(base_tree.to_dict()) == base_tree
        assert base_tree.update("1", "changed") != base_tree

    def test_nodes_are_immutable(self, base_tree):
        with pytest.raises(AttributeError):
            base_tree.root.content = "x"

    def test_preorder_iteration(self, base_tree):
        assert base_tree.ids() == ["0", "1", "11", "12", "121", "2", "21"]

    def test_generate_id(self):
        first, second = generate_id(), generate_id()
        assert isinstance(first, str)
        assert first != second


class TestInsert:

    def test_insert_at_position(self, base_tree):
        tree = base_tree.insert(Node("13", "new"), "1", 1)
        assert child_ids(tree, "1") == ["11", "13", "12"]

    def test_position_is_clamped(self, base_tree):
        assert child_ids(base_tree.insert(Node("x"), "1", 99), "1") == ["11", "12", "x"]
        assert child_ids(base_tree.insert(Node("x"), "1", -5), "1") == ["x", "11", "12"]

    def test_original_is_untouched(self, base_tree):
        base_tree.insert(Node("x"), "1", 0)
        assert child_ids(base_tree, "1") == ["11", "12"]
        assert "x" not in base_tree

    def test_missing_parent(self, base_tree):
        with pytest.raises(NotFoundError):
            base_tree.insert(Node("x"), "nope", 0)

    def test_duplicate_id(self, base_tree):
        with pytest.raises(InvalidOperationError):
            base_tree.insert(Node("21"), "1", 0)

    def test_node_must_be_childless(self, base_tree):
        with pytest.raises(InvalidOperationError):
            base_tree.insert(Node("x", "", [Node("y")]), "1", 0)


class TestDelete:

    def test_cascades_to_descendants(self, base_tree):
        doomed = ["1"] + [node.id for node in Navigator(base_tree).get_descendants("1")]
        tree = base_tree.delete("1")
        for node_id in doomed:
            assert node_id not in tree
        assert child_ids(tree, "0") == ["2"]

    def test_cannot_delete_root(self, base_tree):
        with pytest.raises(InvalidOperationError):
            base_tree.delete("0")

    def test_missing_node(self, base_tree):
        with pytest.raises(NotFoundError):
            base_tree.delete("nope")


class TestUpdate:

    def test_changes_only_content(self, base_tree):
        tree = base_tree.update("12", "edited")
        assert tree.find("12").content == "edited"
        assert child_ids(tree, "12") == ["121"]

    def test_siblings_are_shared(self, base_tree):
        tree = base_tree.update("121", "edited")
        assert tree.find("2") is base_tree.find("2")
        assert tree.find("11") is base_tree.find("11")
        assert tree.find("1") is not base_tree.find("1")

    def test_missing_node(self, base_tree):
        with pytest.raises(NotFoundError):
            base_tree.update("nope", "x")


class TestMove:

    def test_move_to_other_parent(self, base_tree):
        tree = base_tree.move("12", "2", 0)
        assert child_ids(tree, "2") == ["12", "21"]
        assert child_ids(tree, "1") == ["11"]
        assert child_ids(tree, "12") == ["121"]

    def test_reorder_within_parent(self, base_tree):
        tree = base_tree.move("1", "0", 1)
        assert child_ids(tree, "0") == ["2", "1"]

    def test_move_under_later_sibling_descendant(self, base_tree):
        tree = base_tree.move("1", "21", 0)
        assert child_ids(tree, "0") == ["2"]
        assert child_ids(tree, "21") == ["1"]
        assert tree.find("121").content == "A.2.1"

    def test_rejects_own_descendant(self, base_tree):
        for target in ["1", "12", "121"]:
            with pytest.raises(InvalidOperationError):
                base_tree.move("1", target, 0)

    def test_rejects_root(self, base_tree):
        with pytest.raises(InvalidOperationError):
            base_tree.move("0", "1", 0)

    def test_missing_parent(self, base_tree):
        with pytest.raises(NotFoundError):
            base_tree.move("1", "nope", 0)


class TestDeepTrees:

    def test_edit_at_the_bottom(self, deep_tree):
        edited = deep_tree.update("d1499", "changed")
        assert edited.find("d1499").content == "changed"
        assert deep_tree.find("d1499").content == "leaf"
        assert edited != deep_tree

    def test_move_and_delete(self, deep_tree):
        moved = deep_tree.move("d1000", "0", 0)
        assert [child.id for child in moved.root.children] == ["d1000", "d0"]
        assert "d1499" not in moved.delete("d1000")

    def test_dict_round_trip(self, deep_tree):
        assert Tree.from_dict(deep_tree.to_dict()) == deep_tree

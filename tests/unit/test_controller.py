# Unit tests for cardvs/core/controller.py

import pytest

from cardvs.core.controller import VersionController
from cardvs.core.objects import Blob
from cardvs.core.status import Bare, Clean, MergeConflict
from cardvs.core.tree import Node, Tree
from cardvs.exceptions import InvalidOperationError, MalformedInputError, NotFoundError


def sync(target, source):
    # Merge source's head and the objects target lacks into target
    return target.merge(source.head, source.store.delta(source.head, target.store), timestamp=5000)


class TestCommit:

    def test_starts_bare(self, controller):
        assert controller.status == Bare()
        assert controller.head is None
        assert controller.tree == Tree()
        assert controller.log() == []

    def test_root_commit_has_no_parents(self, committed):
        controller, head = committed
        assert controller.status == Clean(head)
        commit = controller.store.get_commit(head)
        assert commit.parents == []
        assert commit.author == "tester"
        assert commit.message == "base"

    def test_next_commit_points_at_head(self, committed):
        controller, head = committed
        controller.update("1", "changed")
        second = controller.commit("tester", timestamp=2000)
        assert controller.store.get_commit(second).parents == [head]
        assert controller.status == Clean(second)

    def test_round_trip(self, committed, base_tree):
        controller, head = committed
        controller.update("1", "changed")
        controller.delete("2")
        assert controller.checkout(head) == base_tree
        assert controller.tree == base_tree

    def test_round_trip_in_fresh_controller(self, committed, base_tree):
        controller, head = committed
        other = VersionController(controller.store)
        assert other.checkout(head) == base_tree

    def test_unchanged_tree_only_adds_commit(self, committed):
        controller, _ = committed
        before = len(controller.store)
        controller.commit("tester", timestamp=2000)
        assert len(controller.store) == before + 1

    def test_update_changes_only_path_hashes(self, committed, base_tree):
        controller, head = committed
        old_root = controller.store.get_tree(controller.store.get_commit(head).tree_hash)
        new_tree = base_tree.update("121", "edited")
        new_root = controller.store.get_tree(controller.write_tree(new_tree))

        old_children = dict(old_root.children)
        new_children = dict(new_root.children)
        assert new_children["2"] == old_children["2"]
        assert new_children["1"] != old_children["1"]

        old_one = dict(controller.store.get_tree(old_children["1"]).children)
        new_one = dict(controller.store.get_tree(new_children["1"]).children)
        assert new_one["11"] == old_one["11"]
        assert new_one["12"] != old_one["12"]

    def test_shared_subtrees_keep_cached_hash(self, committed, base_tree):
        controller, _ = committed
        edited = controller.tree.update("121", "edited")
        assert edited.find("2")._tree_hash is not None
        assert edited.find("2")._tree_hash == controller.tree.find("2")._tree_hash
        assert edited.find("12")._tree_hash is None

    def test_identical_content_shares_blob(self, controller):
        controller.insert(Node("1", "same"), "0", 0)
        controller.insert(Node("2", "same"), "0", 1)
        controller.commit("tester", timestamp=1)
        blobs = [h for h in controller.store if controller.store.get(h).obj_type == "blob"]
        assert Blob.from_text("same").hash in blobs
        assert len(blobs) == 2  # "same" and the empty root

    def test_failed_edit_leaves_tree(self, committed, base_tree):
        controller, _ = committed
        with pytest.raises(InvalidOperationError):
            controller.delete("0")
        with pytest.raises(InvalidOperationError):
            controller.move("1", "121", 0)
        assert controller.tree == base_tree


class TestCheckout:

    def test_unknown_commit(self, committed, base_tree):
        controller, head = committed
        controller.update("1", "dirty")
        with pytest.raises(NotFoundError):
            controller.checkout("f" * 40)
        assert controller.status == Clean(head)
        assert controller.tree.find("1").content == "dirty"

    def test_invalid_hash(self, controller):
        with pytest.raises(NotFoundError):
            controller.checkout("HEAD")
        assert controller.status == Bare()

    def test_checkout_older_commit(self, committed):
        controller, head = committed
        controller.update("1", "v2")
        controller.commit("tester", timestamp=2000)
        controller.checkout(head)
        assert controller.tree.find("1").content == "A"
        assert controller.status == Clean(head)


class TestAncestry:

    def test_linear_history(self, committed):
        controller, first = committed
        controller.update("1", "v2")
        second = controller.commit("tester", timestamp=2000)
        assert controller.is_ancestor(first, second)
        assert not controller.is_ancestor(second, first)
        assert controller.is_ancestor(second, second)
        assert controller.ancestors(second) == [second, first]
        assert controller.merge_base(first, second) == first
        assert [c.hash for c in controller.log()] == [second, first]
        assert [c.hash for c in controller.log(max_count=1)] == [second]


class TestMerge:

    def test_into_bare_fast_forwards(self, committed, clone, base_tree):
        controller, head = committed
        copy = clone(controller)
        assert copy.status == Clean(head)
        assert copy.tree == base_tree

    def test_fast_forward(self, committed, clone):
        controller, _ = committed
        copy = clone(controller)
        controller.update("1", "v2")
        second = controller.commit("tester", timestamp=2000)

        status = sync(copy, controller)
        assert status == Clean(second)
        assert copy.tree == controller.tree

    def test_already_merged_is_noop(self, committed):
        controller, first = committed
        controller.update("1", "v2")
        second = controller.commit("tester", timestamp=2000)
        controller.update("2", "dirty")

        assert controller.merge(first) == Clean(second)
        assert controller.merge(second) == Clean(second)
        assert controller.tree.find("2").content == "dirty"

    def test_disjoint_edits_converge(self, committed, clone):
        controller, _ = committed
        copy = clone(controller)
        controller.update("11", "left")
        left = controller.commit("alice", timestamp=2000)
        copy.update("21", "right")
        right = copy.commit("bob", timestamp=2001)

        status = sync(controller, copy)
        assert isinstance(status, Clean)
        merge_commit = controller.store.get_commit(status.head)
        assert merge_commit.parents == [left, right]
        assert merge_commit.author == "alice"
        assert controller.tree.find("11").content == "left"
        assert controller.tree.find("21").content == "right"

    def test_conflicting_edits(self, controller, clone):
        # Root "0" with child "1" = "A"; each side edits "1" differently
        controller.insert(Node("1", "A"), "0", 0)
        controller.commit("alice", timestamp=1000)
        copy = clone(controller)

        controller.update("1", "A1")
        h1 = controller.commit("alice", timestamp=2000)
        copy.update("1", "A2")
        h2 = copy.commit("bob", timestamp=2001)

        status = sync(controller, copy)
        assert isinstance(status, MergeConflict)
        assert (status.old_head, status.new_head, status.conflict_ids) == (h1, h2, ["1"])
        assert controller.tree.find("1").content == "A1"
        assert controller.unresolved_conflicts() == ["1"]

        controller.update("1", "A1 + A2")
        assert controller.unresolved_conflicts() == []
        merged = controller.commit("alice", message="resolve", timestamp=3000)
        assert controller.store.get_commit(merged).parents == [h1, h2]
        assert controller.status == Clean(merged)

    def test_merge_uses_current_working_tree(self, committed, clone):
        controller, _ = committed
        copy = clone(controller)
        controller.update("11", "left")
        controller.commit("alice", timestamp=2000)
        copy.update("21", "right")
        copy.commit("bob", timestamp=2001)

        controller.update("12", "uncommitted")
        sync(controller, copy)
        assert controller.tree.find("12").content == "uncommitted"

    def test_merge_during_conflict_is_rejected(self, controller, clone):
        controller.insert(Node("1", "A"), "0", 0)
        controller.commit("alice", timestamp=1000)
        copy = clone(controller)
        controller.update("1", "A1")
        controller.commit("alice", timestamp=2000)
        copy.update("1", "A2")
        copy.commit("bob", timestamp=2001)
        sync(controller, copy)

        with pytest.raises(InvalidOperationError):
            sync(controller, copy)

    def test_malformed_batch_changes_nothing(self, committed):
        controller, head = committed
        size = len(controller.store)
        tree = controller.tree
        with pytest.raises(MalformedInputError):
            controller.merge("a" * 40, [b"garbage"])
        assert controller.status == Clean(head)
        assert controller.tree is tree
        assert len(controller.store) == size

    def test_malformed_head(self, committed):
        controller, _ = committed
        with pytest.raises(MalformedInputError):
            controller.merge("not-a-hash")

    def test_missing_head(self, committed):
        controller, head = committed
        with pytest.raises(NotFoundError):
            controller.merge("a" * 40)
        assert controller.status == Clean(head)


class TestMissingObjects:

    def _partial_copy(self, controller, head, missing):
        copy = VersionController()
        copy.insert(Node("x", "dirty"), "0", 0)
        objects = controller.store.delta(head)
        del objects[missing]
        copy.store.add_objects(objects)
        return copy

    def test_checkout_without_a_blob(self, committed):
        controller, head = committed
        copy = self._partial_copy(controller, head, Blob.from_text("B.1").hash)
        tree = copy.tree
        with pytest.raises(NotFoundError):
            copy.checkout(head)
        assert copy.status == Bare()
        assert copy.tree is tree

    def test_checkout_without_a_subtree(self, committed):
        controller, head = committed
        copy = self._partial_copy(controller, head, controller.tree.find("2")._tree_hash)
        tree = copy.tree
        with pytest.raises(NotFoundError):
            copy.checkout(head)
        assert copy.status == Bare()
        assert copy.tree is tree


class TestDeepHistory:

    def test_commit_and_checkout(self, controller, deep_tree):
        head = controller.commit("tester", deep_tree, timestamp=1)
        other = VersionController(controller.store)
        assert other.checkout(head) == deep_tree

    def test_merge(self, controller, clone, deep_tree):
        controller.commit("alice", deep_tree, timestamp=1)
        copy = clone(controller)
        controller.update("d1499", "left")
        controller.commit("alice", timestamp=2)
        copy.update("d0", "right")
        copy.commit("bob", timestamp=3)

        assert isinstance(sync(controller, copy), Clean)
        assert controller.tree.find("d1499").content == "left"
        assert controller.tree.find("d0").content == "right"


class TestMoved:

    def test_parent_change(self, base_tree, controller):
        assert controller.moved(base_tree, base_tree.move("12", "2", 0)) == ["12"]

    def test_reorder(self, base_tree, controller):
        assert controller.moved(base_tree, base_tree.move("2", "0", 0)) == ["2", "1"]

    def test_inserts_and_edits_are_not_moves(self, base_tree, controller):
        changed = base_tree.insert(Node("10", "new"), "1", 0).update("11", "x").delete("21")
        assert controller.moved(base_tree, changed) == []

    def test_fixed_crossed_move_is_resolved(self, committed, clone):
        controller, _ = committed
        copy = clone(controller)
        controller.move("2", "1", 2)
        controller.commit("alice", timestamp=2000)
        copy.move("1", "2", 1)
        copy.commit("bob", timestamp=2001)

        status = sync(controller, copy)
        assert isinstance(status, MergeConflict)
        assert controller.unresolved_conflicts() == ["1"]

        # Apply theirs' placement by hand: 2 back under the root, then 1 under 2
        controller.move("2", "0", 0)
        controller.move("1", "2", 1)
        assert controller.unresolved_conflicts() == []

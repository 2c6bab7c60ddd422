"""
Commit, checkout and merge over an object store.

The controller owns exactly one working tree and one Status. Every public
operation either completes or raises a CardVSError with both left as they
were.
"""
import logging
from collections import deque
from typing import Dict, List, Optional, Set, Tuple
from ..exceptions import InvalidOperationError, MalformedInputError, NotFoundError, ObjectError
from .merge import merge_trees
from .navigator import Navigator
from .objects import Blob, Commit, TreeObject, is_hash
from .status import Bare, Clean, MergeConflict, Status
from .store import ObjectBatch, ObjectStore
from .tree import ROOT_ID, Node, Tree

logger = logging.getLogger(__name__)

class VersionController:
    """Repository state machine: Bare -> Clean(head) <-> MergeConflict."""

    def __init__(self, store: Optional[ObjectStore] = None, tree: Optional[Tree] = None,
                 status: Optional[Status] = None):
        self.store = store if store is not None else ObjectStore()
        self.status = status if status is not None else Bare()
        self._tree = tree if tree is not None else Tree()

    @property
    def tree(self) -> Tree:
        """The working tree."""
        return self._tree

    @tree.setter
    def tree(self, tree: Tree):
        if not isinstance(tree, Tree):
            raise InvalidOperationError(f"Working tree must be a Tree, got {type(tree).__name__}")
        self._tree = tree

    @property
    def head(self) -> Optional[str]:
        return self.status.head

    def navigator(self) -> Navigator:
        return Navigator(self._tree)

    # Object graph

    def write_tree(self, tree: Tree) -> str:
        """Store a tree bottom-up and return the root TreeObject hash."""
        return self._write_node(tree.root)

    def _write_node(self, root: Node) -> str:
        # Post-order: a node is written once all of its children have hashes
        stack = [(root, False)]
        while stack:
            node, expanded = stack.pop()
            if not expanded:
                if node._tree_hash is not None and self.store.has(node._tree_hash):
                    continue
                stack.append((node, True))
                stack.extend((child, False) for child in reversed(node.children))
                continue

            children = [(child.id, child._tree_hash) for child in node.children]
            blob_hash = self.store.put(Blob.from_text(node.content))
            node._tree_hash = self.store.put(TreeObject(blob_hash, children))
        return root._tree_hash

    def read_tree(self, tree_hash: str) -> Tree:
        """Rehydrate a Tree from a root TreeObject hash."""
        root = self._read_node(ROOT_ID, tree_hash)
        try:
            return Tree(root)
        except InvalidOperationError as e:
            raise ObjectError(f"Tree {tree_hash} is not a valid card tree: {e}")

    def _read_node(self, node_id: str, tree_hash: str) -> Node:
        built: List[Node] = []
        stack = [(node_id, tree_hash, None)]
        while stack:
            current_id, current_hash, tree_obj = stack.pop()
            if tree_obj is None:
                tree_obj = self.store.get_tree(current_hash)
                stack.append((current_id, current_hash, tree_obj))
                stack.extend((child_id, child_hash, None)
                             for child_id, child_hash in reversed(tree_obj.children))
                continue

            content = self.store.get_blob(tree_obj.content_hash).text
            start = len(built) - len(tree_obj.children)
            node = Node(current_id, content, built[start:])
            del built[start:]
            node._tree_hash = current_hash
            built.append(node)
        return built[0]

    def read_commit_tree(self, commit_hash: str) -> Tree:
        return self.read_tree(self.store.get_commit(commit_hash).tree_hash)

    # History

    def _parents(self, commit_hash: str) -> List[str]:
        return self.store.get_commit(commit_hash).parents

    def ancestors(self, commit_hash: str) -> List[str]:
        """commit_hash and every commit reachable from it, breadth first."""
        order = []
        seen = {commit_hash}
        pending = deque([commit_hash])
        while pending:
            current = pending.popleft()
            order.append(current)
            for parent in self._parents(current):
                if parent not in seen:
                    seen.add(parent)
                    pending.append(parent)
        return order

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True if ancestor is descendant itself or reachable through its parents."""
        if ancestor == descendant:
            return True
        seen: Set[str] = {descendant}
        pending = deque([descendant])
        while pending:
            for parent in self._parents(pending.popleft()):
                if parent == ancestor:
                    return True
                if parent not in seen:
                    seen.add(parent)
                    pending.append(parent)
        return False

    def merge_base(self, first: str, second: str) -> Optional[str]:
        """Nearest common ancestor of two commits, or None for unrelated histories."""
        reachable = set(self.ancestors(second))
        for candidate in self.ancestors(first):
            if candidate in reachable:
                return candidate
        return None

    def log(self, head: Optional[str] = None, max_count: Optional[int] = None) -> List[Commit]:
        """Commits reachable from head, newest first."""
        head = head if head is not None else self.head
        if head is None:
            return []
        hashes = self.ancestors(head)
        position = {commit_hash: i for i, commit_hash in enumerate(hashes)}
        commits = [self.store.get_commit(commit_hash) for commit_hash in hashes]
        commits.sort(key=lambda commit: (-commit.timestamp, position[commit.hash]))
        return commits[:max_count] if max_count is not None else commits

    # State machine

    def unresolved_conflicts(self, tree: Optional[Tree] = None) -> List[str]:
        """Conflicted ids whose content is still the provisional merge value."""
        if not isinstance(self.status, MergeConflict):
            return []
        tree = tree if tree is not None else self._tree
        navigator = None
        unresolved = []
        for conflict in self.status.conflicts:
            if conflict.id not in tree:
                continue
            if conflict.reason == "moved" and conflict.parent is not None:
                if navigator is None:
                    navigator = Navigator(tree)
                if navigator.get_parent(conflict.id).id == conflict.parent:
                    unresolved.append(conflict.id)
                continue
            provisional = conflict.ours if conflict.ours is not None else conflict.theirs
            if tree.find(conflict.id).content == provisional:
                unresolved.append(conflict.id)
        return unresolved

    def _commit_parents(self) -> List[str]:
        status = self.status
        if isinstance(status, MergeConflict):
            return [status.old_head, status.new_head]
        if isinstance(status, Clean):
            return [status.head]
        return []

    def commit(self, author: str, tree: Optional[Tree] = None, message: str = "",
               timestamp: Optional[int] = None) -> str:
        """Record a tree (the working tree by default) as the new head."""
        if tree is None:
            tree = self._tree
        elif not isinstance(tree, Tree):
            raise InvalidOperationError(f"Working tree must be a Tree, got {type(tree).__name__}")
        if not isinstance(author, str):
            raise InvalidOperationError("Commit author must be a string")

        unresolved = self.unresolved_conflicts(tree)
        if unresolved:
            logger.warning("Committing merge with unresolved conflicts: %s", ", ".join(unresolved))

        tree_hash = self.write_tree(tree)
        commit = Commit(tree_hash, self._commit_parents(), author, timestamp, message)
        commit_hash = self.store.put(commit)

        self._tree = tree
        self.status = Clean(commit_hash)
        logger.info("Committed %s (%d parents)", commit_hash, len(commit.parents))
        return commit_hash

    def checkout(self, commit_hash: str) -> Tree:
        """Replace the working tree with the tree at commit_hash."""
        if not is_hash(commit_hash):
            raise NotFoundError(f"Not a valid commit hash: {commit_hash!r}")
        tree = self.read_commit_tree(commit_hash)

        self._tree = tree
        self.status = Clean(commit_hash)
        logger.info("Checked out %s", commit_hash)
        return tree

    def merge(self, incoming_head: str, incoming_objects: ObjectBatch = (),
              tree: Optional[Tree] = None, author: Optional[str] = None,
              timestamp: Optional[int] = None) -> Status:
        """Add a received object batch and reconcile incoming_head with the head.

        Returns the resulting status: unchanged when incoming_head is already
        part of the history, Clean(incoming_head) for a fast-forward,
        Clean(merge commit) when diverged histories merge without conflicts,
        and MergeConflict(head, incoming_head, conflicts) otherwise. The
        automatic merge commit is authored by `author`, defaulting to the
        author of the current head.
        """
        if isinstance(self.status, MergeConflict):
            raise InvalidOperationError("A merge is already in progress; commit or checkout first")
        if not is_hash(incoming_head):
            raise MalformedInputError(f"Invalid incoming head: {incoming_head!r}")
        if tree is not None and not isinstance(tree, Tree):
            raise InvalidOperationError(f"Working tree must be a Tree, got {type(tree).__name__}")

        self.store.add_objects(incoming_objects)
        incoming_commit = self.store.get_commit(incoming_head)
        working = tree if tree is not None else self._tree
        head = self.head

        if head is not None and self.is_ancestor(incoming_head, head):
            logger.info("Already up to date with %s", incoming_head)
            return self.status

        if head is None or self.is_ancestor(head, incoming_head):
            new_tree = self.read_tree(incoming_commit.tree_hash)
            self._tree = new_tree
            self.status = Clean(incoming_head)
            logger.info("Fast-forward to %s", incoming_head)
            return self.status

        base_hash = self.merge_base(head, incoming_head)
        base_tree = self.read_commit_tree(base_hash) if base_hash else Tree()
        theirs = self.read_tree(incoming_commit.tree_hash)
        result = merge_trees(base_tree, working, theirs)

        if result.conflicts:
            self._tree = result.tree
            self.status = MergeConflict(head, incoming_head, result.conflicts)
            logger.info("Merged %s into %s (base %s): %d conflicts",
                        incoming_head, head, base_hash, len(result.conflicts))
            return self.status

        if author is None:
            author = self.store.get_commit(head).author
        message = f"Merge {incoming_head[:7]} into {head[:7]}"
        commit = Commit(self.write_tree(result.tree), [head, incoming_head], author, timestamp, message)
        commit_hash = self.store.put(commit)

        self._tree = result.tree
        self.status = Clean(commit_hash)
        logger.info("Merged %s into %s (base %s) cleanly as %s",
                    incoming_head, head, base_hash, commit_hash)
        return self.status

    # Edits on the working tree

    def insert(self, node: Node, parent_id: str, position: int) -> Tree:
        self._tree = self._tree.insert(node, parent_id, position)
        return self._tree

    def delete(self, node_id: str) -> Tree:
        self._tree = self._tree.delete(node_id)
        return self._tree

    def update(self, node_id: str, content: str) -> Tree:
        self._tree = self._tree.update(node_id, content)
        return self._tree

    def move(self, subtree_id: str, new_parent_id: str, position: int) -> Tree:
        self._tree = self._tree.move(subtree_id, new_parent_id, position)
        return self._tree

    def diff(self, old: Tree, new: Tree) -> Dict[str, Tuple[Optional[str], Optional[str]]]:
        """Ids whose content differs between two trees, mapped to (old, new)."""
        old_contents = {node.id: node.content for node in old}
        new_contents = {node.id: node.content for node in new}
        changes = {}
        for node_id in list(old_contents) + [i for i in new_contents if i not in old_contents]:
            before = old_contents.get(node_id)
            after = new_contents.get(node_id)
            if before != after:
                changes[node_id] = (before, after)
        return changes

    def moved(self, old: Tree, new: Tree) -> List[str]:
        """Ids present in both trees whose parent or order among kept siblings changed."""
        old_parents = _parent_ids(old)
        new_parents = _parent_ids(new)
        changed = {node_id for node_id, parent_id in new_parents.items()
                   if node_id in old_parents and old_parents[node_id] != parent_id}

        for node in new:
            if node.id not in old:
                continue
            # Siblings under the same parent on both sides must keep their relative order
            now = [c.id for c in node.children if old_parents.get(c.id) == node.id]
            before = [c.id for c in old.find(node.id).children if new_parents.get(c.id) == node.id]
            changed.update(a for a, b in zip(before, now) if a != b)

        return [node.id for node in new if node.id in changed]

def _parent_ids(tree: Tree) -> Dict[str, str]:
    return {child.id: node.id for node in tree for child in node.children}

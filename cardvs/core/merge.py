"""
Three-way structural merge of card trees.

merge_trees() is a pure function of (base, ours, theirs): it never touches a
store or a controller, so a caller can retry it or throw its result away.
"""
import logging
from collections import deque
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
from ..exceptions import InvalidOperationError
from .tree import ROOT_ID, Node, Tree

logger = logging.getLogger(__name__)

OURS = "ours"
THEIRS = "theirs"

class Conflict(NamedTuple):
    """A node the two sides disagree on; a side that deleted it holds None."""
    id: str
    ours: Optional[str]
    theirs: Optional[str]
    reason: str = "content"
    # Parent the merge placed a "moved" node under
    parent: Optional[str] = None

class MergeResult(NamedTuple):
    tree: Tree
    conflicts: Tuple[Conflict, ...]

    @property
    def conflict_ids(self) -> List[str]:
        return [conflict.id for conflict in self.conflicts]

class _Placement(NamedTuple):
    node: Node
    parent_id: Optional[str]
    children: Tuple[str, ...]

    @property
    def content(self) -> str:
        return self.node.content

def _flatten(tree: Tree) -> Dict[str, _Placement]:
    placements = {}
    stack = [(tree.root, None)]
    while stack:
        node, parent_id = stack.pop()
        placements[node.id] = _Placement(node, parent_id, tuple(c.id for c in node.children))
        for child in reversed(node.children):
            stack.append((child, node.id))
    return placements

def _interleave(primary: Sequence[str], secondary: Sequence[str]) -> List[str]:
    """primary's order, with ids only secondary has slotted after their nearest known predecessor."""
    result = list(primary)
    previous = None
    for node_id in secondary:
        if node_id not in result:
            index = result.index(previous) + 1 if previous is not None else 0
            result.insert(index, node_id)
        previous = node_id
    return result

class _TreeMerger:
    """Working state of one merge_trees() call."""

    def __init__(self, base: Tree, ours: Tree, theirs: Tree):
        self.base = _flatten(base)
        self.ours = _flatten(ours)
        self.theirs = _flatten(theirs)
        self.contents: Dict[str, str] = {}
        self.parents: Dict[str, str] = {}
        self.sources: Dict[str, str] = {}
        self.conflicts: Dict[str, Conflict] = {}

    def _side(self, source: str) -> Dict[str, _Placement]:
        return self.ours if source == OURS else self.theirs

    def _conflict(self, node_id: str, reason: str, parent: Optional[str] = None):
        ours = self.ours.get(node_id)
        theirs = self.theirs.get(node_id)
        self.conflicts.setdefault(node_id, Conflict(
            node_id,
            ours.content if ours else None,
            theirs.content if theirs else None,
            reason,
            parent,
        ))

    def _all_ids(self) -> List[str]:
        ids = list(self.ours)
        seen = set(ids)
        for side in (self.theirs, self.base):
            for node_id in side:
                if node_id not in seen:
                    seen.add(node_id)
                    ids.append(node_id)
        return ids

    def merge_contents(self):
        for node_id in self._all_ids():
            base = self.base.get(node_id)
            ours = self.ours.get(node_id)
            theirs = self.theirs.get(node_id)

            if ours and theirs:
                if ours.content == theirs.content or (base and theirs.content == base.content):
                    content = ours.content
                elif base and ours.content == base.content:
                    content = theirs.content
                else:
                    self._conflict(node_id, "content")
                    content = ours.content
            elif ours or theirs:
                kept = ours or theirs
                if base:
                    if kept.content == base.content:
                        # Deleted on the other side and untouched here
                        continue
                    self._conflict(node_id, "deleted")
                content = kept.content
            else:
                continue
            self.contents[node_id] = content

    def _pick_parent(self, node_id: str) -> Tuple[str, str]:
        base = self.base.get(node_id)
        ours = self.ours.get(node_id)
        theirs = self.theirs.get(node_id)
        if ours and theirs:
            if ours.parent_id != theirs.parent_id and base and ours.parent_id == base.parent_id:
                return theirs.parent_id, THEIRS
            return ours.parent_id, OURS
        if ours:
            return ours.parent_id, OURS
        return theirs.parent_id, THEIRS

    def place(self):
        for node_id in self.contents:
            if node_id != ROOT_ID:
                self.parents[node_id], self.sources[node_id] = self._pick_parent(node_id)

        while True:
            self._revive_parents()
            cycle = self._find_cycle()
            if cycle is None:
                break
            self._break_cycle(cycle)

    def _revive_parents(self):
        """Bring back deleted nodes that still have surviving children."""
        pending = deque(self.parents)
        while pending:
            node_id = pending.popleft()
            parent_id = self.parents[node_id]
            if parent_id in self.contents:
                continue
            side = self._side(self.sources[node_id])
            self.contents[parent_id] = side[parent_id].content
            self._conflict(parent_id, "deleted")
            if parent_id != ROOT_ID:
                self.parents[parent_id], self.sources[parent_id] = self._pick_parent(parent_id)
                pending.append(parent_id)
            logger.debug("Revived deleted node %s for child %s", parent_id, node_id)

    def _find_cycle(self) -> Optional[List[str]]:
        done = {ROOT_ID}
        for start in self.parents:
            path = []
            on_path = set()
            node_id = start
            while node_id not in done:
                if node_id in on_path:
                    return path[path.index(node_id):]
                on_path.add(node_id)
                path.append(node_id)
                node_id = self.parents[node_id]
            done.update(path)
        return None

    def _break_cycle(self, cycle: List[str]):
        # Crossed moves; the ours-only parent links are acyclic, so undo one of theirs
        for node_id in cycle:
            if self.sources[node_id] == THEIRS and node_id in self.ours:
                self.parents[node_id] = self.ours[node_id].parent_id
                self.sources[node_id] = OURS
                self._conflict(node_id, "moved", self.parents[node_id])
                logger.debug("Undid crossed move of %s", node_id)
                return
        raise InvalidOperationError(f"Cannot place nodes {cycle}: their parents form a cycle")

    def _ordered_children(self, parent_id: str, members: List[str]) -> List[str]:
        base = self.base.get(parent_id)
        ours = self.ours.get(parent_id)
        theirs = self.theirs.get(parent_id)
        base_children = base.children if base else ()
        ours_children = ours.children if ours else ()
        theirs_children = theirs.children if theirs else ()

        if ours and (not theirs or ours_children != base_children):
            sequence = _interleave(ours_children, theirs_children)
        else:
            sequence = _interleave(theirs_children, ours_children)

        member_set = set(members)
        ordered = [node_id for node_id in sequence if node_id in member_set]
        placed = set(ordered)
        ordered.extend(node_id for node_id in members if node_id not in placed)
        return ordered

    def build(self) -> Tree:
        children_of: Dict[str, List[str]] = {node_id: [] for node_id in self.contents}
        for node_id in self.contents:
            if node_id != ROOT_ID:
                children_of[self.parents[node_id]].append(node_id)

        built: List[Node] = []
        stack = [(ROOT_ID, None)]
        while stack:
            node_id, child_ids = stack.pop()
            if child_ids is None:
                child_ids = self._ordered_children(node_id, children_of[node_id])
                stack.append((node_id, child_ids))
                stack.extend((child_id, None) for child_id in reversed(child_ids))
                continue

            start = len(built) - len(child_ids)
            children = tuple(built[start:])
            del built[start:]
            built.append(self._reuse_or_create(node_id, children))

        return Tree(built[0])

    def _reuse_or_create(self, node_id: str, children: Tuple[Node, ...]) -> Node:
        content = self.contents[node_id]
        # Reuse an input subtree when nothing below it changed
        for side in (self.ours, self.theirs):
            placement = side.get(node_id)
            if (placement and placement.content == content
                    and len(placement.node.children) == len(children)
                    and all(a is b for a, b in zip(placement.node.children, children))):
                return placement.node
        return Node(node_id, content, children)

def merge_trees(base: Tree, ours: Tree, theirs: Tree) -> MergeResult:
    """Merge ours and theirs relative to their common ancestor base.

    Content edited on one side wins; content edited differently on both
    sides, or edited on one side and deleted on the other, is recorded as
    a Conflict with ours kept in the tree as the provisional value.
    """
    merger = _TreeMerger(base, ours, theirs)
    merger.merge_contents()
    merger.place()
    tree = merger.build()

    order = {node.id: i for i, node in enumerate(tree)}
    conflicts = tuple(sorted(merger.conflicts.values(), key=lambda c: order.get(c.id, len(order))))
    logger.debug("Merged trees: %d nodes, %d conflicts", len(order), len(conflicts))
    return MergeResult(tree, conflicts)

"""
Read-only queries over a single tree snapshot.
"""
from typing import Dict, List, Optional
from ..exceptions import NotFoundError
from .tree import Node, Tree

class _Entry:
    __slots__ = ("node", "parent_id", "index", "depth", "order", "column_index")

    def __init__(self, node: Node, parent_id: Optional[str], index: int, depth: int, order: int):
        self.node = node
        self.parent_id = parent_id
        self.index = index
        self.depth = depth
        self.order = order
        self.column_index = 0

class Navigator:
    """Index of one Tree: parent links, sibling positions, depths and columns.

    Built once per snapshot in a single pre-order walk; every query after
    that is a dictionary lookup or a slice.
    """

    def __init__(self, tree: Tree):
        self.tree = tree
        self._entries: Dict[str, _Entry] = {}
        self._order: List[str] = []
        self._columns: List[List[str]] = []

        stack = [(tree.root, None, 0, 0)]
        while stack:
            node, parent_id, index, depth = stack.pop()
            entry = _Entry(node, parent_id, index, depth, len(self._order))
            self._entries[node.id] = entry
            self._order.append(node.id)
            if depth == len(self._columns):
                self._columns.append([])
            entry.column_index = len(self._columns[depth])
            self._columns[depth].append(node.id)
            for i in range(len(node.children) - 1, -1, -1):
                stack.append((node.children[i], node.id, i, depth + 1))

    def _entry(self, node_id: str) -> _Entry:
        try:
            return self._entries[node_id]
        except KeyError:
            raise NotFoundError(f"Node {node_id!r} not found")

    def contains(self, node_id: str) -> bool:
        return node_id in self._entries

    def get_node(self, node_id: str) -> Node:
        return self._entry(node_id).node

    def get_parent(self, node_id: str) -> Optional[Node]:
        """Parent node, or None for the root."""
        parent_id = self._entry(node_id).parent_id
        return None if parent_id is None else self._entries[parent_id].node

    def get_children(self, node_id: str) -> List[Node]:
        return list(self._entry(node_id).node.children)

    def get_first_child(self, node_id: str) -> Optional[Node]:
        children = self._entry(node_id).node.children
        return children[0] if children else None

    def get_last_child(self, node_id: str) -> Optional[Node]:
        children = self._entry(node_id).node.children
        return children[-1] if children else None

    def get_index(self, node_id: str) -> int:
        """Position among siblings; the root is at 0."""
        return self._entry(node_id).index

    def get_depth(self, node_id: str) -> int:
        return self._entry(node_id).depth

    def get_siblings(self, node_id: str) -> List[Node]:
        """All children of the node's parent, the node included."""
        parent = self.get_parent(node_id)
        if parent is None:
            return [self.tree.root]
        return list(parent.children)

    def get_ancestors(self, node_id: str) -> List[Node]:
        """Path from the root down to the node's parent, root first."""
        ancestors = []
        parent_id = self._entry(node_id).parent_id
        while parent_id is not None:
            entry = self._entries[parent_id]
            ancestors.append(entry.node)
            parent_id = entry.parent_id
        ancestors.reverse()
        return ancestors

    def get_descendants(self, node_id: str) -> List[Node]:
        """Every node below node_id in pre-order, node_id excluded."""
        entry = self._entry(node_id)
        descendants = []
        for other_id in self._order[entry.order + 1:]:
            if self._entries[other_id].depth <= entry.depth:
                break
            descendants.append(self._entries[other_id].node)
        return descendants

    def _sibling(self, node_id: str, offset: int) -> Optional[Node]:
        entry = self._entry(node_id)
        if entry.parent_id is None:
            return None
        siblings = self._entries[entry.parent_id].node.children
        index = entry.index + offset
        if 0 <= index < len(siblings):
            return siblings[index]
        return None

    def get_next_sibling(self, node_id: str) -> Optional[Node]:
        return self._sibling(node_id, 1)

    def get_prev_sibling(self, node_id: str) -> Optional[Node]:
        return self._sibling(node_id, -1)

    def _column_neighbour(self, node_id: str, offset: int) -> Optional[Node]:
        entry = self._entry(node_id)
        column = self._columns[entry.depth]
        index = entry.column_index + offset
        if 0 <= index < len(column):
            return self._entries[column[index]].node
        return None

    def get_next_in_column(self, node_id: str) -> Optional[Node]:
        """The next node at the same depth in document order, across parents."""
        return self._column_neighbour(node_id, 1)

    def get_prev_in_column(self, node_id: str) -> Optional[Node]:
        return self._column_neighbour(node_id, -1)

    def get_column(self, depth: int) -> List[Node]:
        if depth < 0 or depth >= len(self._columns):
            return []
        return [self._entries[node_id].node for node_id in self._columns[depth]]

    def get_columns(self) -> List[List[Node]]:
        """Columns as the editor lays them out; the root column is not shown."""
        return [self.get_column(depth) for depth in range(1, len(self._columns))]

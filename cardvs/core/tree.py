"""
Persistent card tree and its edit algebra.

A Tree is an immutable value. Every edit returns a new Tree that reuses the
untouched subtrees of the old one; only the nodes on the path from the root
to the edited node are rebuilt.
"""
import secrets
import time
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple
from ..exceptions import InvalidOperationError, NotFoundError

ROOT_ID = "0"

Path = Tuple[int, ...]

def generate_id(timestamp: Optional[float] = None) -> str:
    """New node id from a millisecond clock plus a random suffix."""
    if timestamp is None:
        timestamp = time.time()
    return f"{int(timestamp * 1000):x}{secrets.token_hex(4)}"

class Node:
    """One card: an id, its text and its ordered children."""

    __slots__ = ("id", "content", "children", "_tree_hash")

    def __init__(self, id: str, content: str = "", children: Sequence['Node'] = ()):
        if not isinstance(id, str) or not id:
            raise InvalidOperationError(f"Node id must be a non-empty string, got {id!r}")
        if not isinstance(content, str):
            raise InvalidOperationError(f"Node content must be a string, got {type(content).__name__}")
        children = tuple(children)
        for child in children:
            if not isinstance(child, Node):
                raise InvalidOperationError(f"Children of {id} must be nodes, got {type(child).__name__}")
        object.__setattr__(self, "id", id)
        object.__setattr__(self, "content", content)
        object.__setattr__(self, "children", children)
        # Address of this subtree once written to an object store
        object.__setattr__(self, "_tree_hash", None)

    def __setattr__(self, name, value):
        if name != "_tree_hash":
            raise AttributeError(f"Node is immutable; cannot set {name}")
        object.__setattr__(self, name, value)

    def replace(self, content: Optional[str] = None, children: Optional[Sequence['Node']] = None) -> 'Node':
        return Node(
            self.id,
            self.content if content is None else content,
            self.children if children is None else children,
        )

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, Node):
            return NotImplemented
        pairs = [(self, other)]
        while pairs:
            a, b = pairs.pop()
            if a is b:
                continue
            if a.id != b.id or a.content != b.content or len(a.children) != len(b.children):
                return False
            pairs.extend(zip(a.children, b.children))
        return True

    __hash__ = None

    def __repr__(self):
        return f"Node({self.id!r}, {self.content!r}, children={len(self.children)})"

    def to_dict(self) -> Dict[str, Any]:
        result = {"id": self.id, "content": self.content, "children": []}
        stack = [(self, result)]
        while stack:
            node, data = stack.pop()
            for child in node.children:
                child_data = {"id": child.id, "content": child.content, "children": []}
                data["children"].append(child_data)
                stack.append((child, child_data))
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Node':
        try:
            # Children are built before their parent; finished nodes wait on `built`
            built = []
            stack = [(data, False)]
            while stack:
                item, expanded = stack.pop()
                children = item.get("children", [])
                if not expanded:
                    stack.append((item, True))
                    stack.extend((child, False) for child in reversed(children))
                    continue
                start = len(built) - len(children)
                node = cls(item["id"], item.get("content", ""), built[start:])
                del built[start:]
                built.append(node)
            return built[0]
        except (KeyError, TypeError, AttributeError) as e:
            raise InvalidOperationError(f"Invalid node data: {e}")

def _replace_at(node: Node, path: Path, change) -> Node:
    """Rebuild the nodes along path, applying change to the node at its end."""
    spine = [node]
    for i in path:
        spine.append(spine[-1].children[i])

    new_node = change(spine[-1])
    for parent, i in zip(reversed(spine[:-1]), reversed(path)):
        new_node = parent.replace(children=parent.children[:i] + (new_node,) + parent.children[i + 1:])
    return new_node

def _clamp(position: int, size: int) -> int:
    return max(0, min(int(position), size))

class Tree:
    """Immutable rooted card hierarchy with a fixed root id."""

    def __init__(self, root: Optional[Node] = None):
        if root is None:
            root = Node(ROOT_ID)
        if root.id != ROOT_ID:
            raise InvalidOperationError(f"Tree root must have id {ROOT_ID!r}, got {root.id!r}")
        self.root = root
        self._paths: Optional[Dict[str, Path]] = None
        self._build_index()

    @classmethod
    def _derive(cls, root: Node, paths: Optional[Dict[str, Path]] = None) -> 'Tree':
        """Wrap a root produced by an edit; ids are already known to be unique."""
        tree = cls.__new__(cls)
        tree.root = root
        tree._paths = paths
        return tree

    def _build_index(self) -> Dict[str, Path]:
        paths: Dict[str, Path] = {}
        stack = [(self.root, ())]
        while stack:
            node, path = stack.pop()
            if node.id in paths:
                raise InvalidOperationError(f"Duplicate node id {node.id!r}")
            paths[node.id] = path
            for i in range(len(node.children) - 1, -1, -1):
                stack.append((node.children[i], path + (i,)))
        self._paths = paths
        return paths

    def _index(self) -> Dict[str, Path]:
        if self._paths is None:
            return self._build_index()
        return self._paths

    def path_of(self, node_id: str) -> Path:
        """Child indices leading from the root to node_id."""
        try:
            return self._index()[node_id]
        except KeyError:
            raise NotFoundError(f"Node {node_id!r} not found")

    def find(self, node_id: str) -> Node:
        node = self.root
        for i in self.path_of(node_id):
            node = node.children[i]
        return node

    def contains(self, node_id: str) -> bool:
        return node_id in self._index()

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._index())

    def __iter__(self) -> Iterator[Node]:
        """Nodes in document (pre-)order, root first."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def ids(self):
        return [node.id for node in self]

    def __eq__(self, other):
        if not isinstance(other, Tree):
            return NotImplemented
        return self.root == other.root

    __hash__ = None

    def __repr__(self):
        return f"<Tree nodes={len(self)}>"

    def insert(self, node: Node, parent_id: str, position: int) -> 'Tree':
        """Attach a fresh childless node under parent_id at a clamped position."""
        if not isinstance(node, Node):
            raise InvalidOperationError(f"Expected a Node, got {type(node).__name__}")
        if node.children:
            raise InvalidOperationError(f"Inserted node {node.id!r} must not have children")
        parent_path = self.path_of(parent_id)
        if self.contains(node.id):
            raise InvalidOperationError(f"Node {node.id!r} already exists")

        def attach(parent: Node) -> Node:
            pos = _clamp(position, len(parent.children))
            return parent.replace(children=parent.children[:pos] + (node,) + parent.children[pos:])

        return Tree._derive(_replace_at(self.root, parent_path, attach))

    def delete(self, node_id: str) -> 'Tree':
        """Remove the subtree rooted at node_id."""
        if node_id == ROOT_ID:
            raise InvalidOperationError("Cannot delete the root node")
        path = self.path_of(node_id)
        return Tree._derive(self._detach(path))

    def _detach(self, path: Path) -> Node:
        index = path[-1]

        def remove(parent: Node) -> Node:
            return parent.replace(children=parent.children[:index] + parent.children[index + 1:])

        return _replace_at(self.root, path[:-1], remove)

    def update(self, node_id: str, content: str) -> 'Tree':
        """Replace the content of one node; ids keep their positions."""
        path = self.path_of(node_id)
        if not isinstance(content, str):
            raise InvalidOperationError(f"Node content must be a string, got {type(content).__name__}")
        root = _replace_at(self.root, path, lambda node: node.replace(content=content))
        # Same shape, so the path index carries over
        return Tree._derive(root, self._paths)

    def move(self, subtree_id: str, new_parent_id: str, position: int) -> 'Tree':
        """Detach a subtree and reattach it under new_parent_id at a clamped position."""
        if subtree_id == ROOT_ID:
            raise InvalidOperationError("Cannot move the root node")
        if new_parent_id == subtree_id:
            raise InvalidOperationError(f"Cannot move {subtree_id!r} under itself")
        path = self.path_of(subtree_id)
        parent_path = self.path_of(new_parent_id)
        if parent_path[:len(path)] == path:
            raise InvalidOperationError(f"Cannot move {subtree_id!r} under its descendant {new_parent_id!r}")

        subtree = self.find(subtree_id)
        detached = self._detach(path)

        # A later sibling of the moved node (or its descendant) shifts left by one
        depth = len(path) - 1
        parent_path = list(parent_path)
        if parent_path[:depth] == list(path[:depth]) and len(parent_path) > depth and parent_path[depth] > path[depth]:
            parent_path[depth] -= 1

        def attach(parent: Node) -> Node:
            pos = _clamp(position, len(parent.children))
            return parent.replace(children=parent.children[:pos] + (subtree,) + parent.children[pos:])

        return Tree._derive(_replace_at(detached, tuple(parent_path), attach))

    def to_dict(self) -> Dict[str, Any]:
        return self.root.to_dict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Tree':
        return cls(Node.from_dict(data))

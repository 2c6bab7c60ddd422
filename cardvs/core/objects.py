"""
Card object implementations (blob, tree, commit).
"""
import json
import hashlib
import re
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple
from ..exceptions import ObjectError

HASH_PATTERN = re.compile(r"^[0-9a-f]{40}$")

def is_hash(value: Any) -> bool:
    """Return True if value looks like a full SHA-1 hex digest."""
    return isinstance(value, str) and bool(HASH_PATTERN.match(value))

class CardObject:
    """Base class for all stored objects."""

    obj_type = ""

    def __init__(self, content: bytes, obj_type: str):
        self.content = content
        self.obj_type = obj_type
        self._hash = None

    @property
    def hash(self) -> str:
        """Get the SHA-1 hash of this object."""
        if self._hash is None:
            self._hash = hashlib.sha1(self.serialize()).hexdigest()
        return self._hash

    def serialize(self) -> bytes:
        """Serialize object for storage."""
        header = f"{self.obj_type} {len(self.content)}\0".encode()
        return header + self.content

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple[str, bytes]:
        """Split stored bytes into object type and content."""
        null_pos = data.find(b'\0')
        if null_pos == -1:
            raise ObjectError("Invalid object format: no null separator found")

        try:
            header = data[:null_pos].decode()
            obj_type, size = header.split(' ')
            expected_size = int(size)
        except (UnicodeDecodeError, ValueError):
            raise ObjectError(f"Invalid object header: {data[:null_pos]!r}")

        content = data[null_pos + 1:]
        if len(content) != expected_size:
            raise ObjectError(f"Object size mismatch: expected {expected_size}, got {len(content)}")

        return obj_type, content

    @staticmethod
    def parse(data: bytes) -> 'CardObject':
        """Rebuild a typed object from its serialized form."""
        if not isinstance(data, (bytes, bytearray)):
            raise ObjectError(f"Expected bytes, got {type(data).__name__}")
        obj_type, content = CardObject.deserialize(bytes(data))
        loader = OBJECT_TYPES.get(obj_type)
        if loader is None:
            raise ObjectError(f"Unknown object type: {obj_type}")
        return loader.from_content(content)

    def __eq__(self, other):
        return isinstance(other, CardObject) and self.serialize() == other.serialize()

    def __hash__(self):
        return hash(self.hash)

    def __repr__(self):
        return f"<{type(self).__name__} {self.hash[:8]}>"

class Blob(CardObject):
    """Holds the text content of a single node."""

    def __init__(self, content: bytes):
        super().__init__(content, "blob")

    @classmethod
    def from_text(cls, text: str) -> 'Blob':
        return cls(text.encode('utf-8'))

    @classmethod
    def from_content(cls, content: bytes) -> 'Blob':
        return cls(content)

    @property
    def text(self) -> str:
        try:
            return self.content.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ObjectError(f"Blob {self.hash} is not valid UTF-8: {e}")

class TreeObject(CardObject):
    """Snapshot of one node: its content blob and ordered (child id, child tree) pairs."""

    def __init__(self, content_hash: str, children: Sequence[Tuple[str, str]] = ()):
        self.content_hash = content_hash
        self.children = [tuple(entry) for entry in children]
        super().__init__(self._serialize_entries(), "tree")

    def _serialize_entries(self) -> bytes:
        """Serialize tree entries, one line per entry, children in order."""
        lines = [f"content {self.content_hash}"]
        for child_id, child_hash in self.children:
            if '\n' in child_id:
                raise ObjectError(f"Node id may not contain a newline: {child_id!r}")
            lines.append(f"node {child_hash} {child_id}")
        return "\n".join(lines).encode()

    @classmethod
    def from_content(cls, content: bytes) -> 'TreeObject':
        """Create a tree object from serialized content."""
        try:
            lines = content.decode().split('\n')
        except UnicodeDecodeError as e:
            raise ObjectError(f"Invalid tree encoding: {e}")

        kind, _, content_hash = lines[0].partition(' ')
        if kind != "content" or not is_hash(content_hash):
            raise ObjectError(f"Invalid tree header line: {lines[0]!r}")

        children = []
        for line in lines[1:]:
            parts = line.split(' ', 2)
            if len(parts) != 3 or parts[0] != "node" or not is_hash(parts[1]) or not parts[2]:
                raise ObjectError(f"Invalid tree entry: {line!r}")
            children.append((parts[2], parts[1]))

        return cls(content_hash, children)

    @property
    def child_ids(self) -> List[str]:
        return [child_id for child_id, _ in self.children]

class Commit(CardObject):
    """Represents a commit object."""

    def __init__(self, tree_hash: str, parents: Sequence[str] = (), author: str = "CardVS User",
                 timestamp: Optional[int] = None, message: str = ""):
        if len(parents) > 2:
            raise ObjectError(f"A commit has at most two parents, got {len(parents)}")
        self.tree_hash = tree_hash
        self.parents = list(parents)
        self.author = author
        self.timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self.message = message

        super().__init__(self._serialize_commit(), "commit")

    def _serialize_commit(self) -> bytes:
        """Serialize commit data with a stable key order."""
        commit_data = {
            "tree": self.tree_hash,
            "parents": self.parents,
            "author": self.author,
            "timestamp": self.timestamp,
            "message": self.message,
        }
        return json.dumps(commit_data, indent=2, sort_keys=True).encode()

    @classmethod
    def from_content(cls, content: bytes) -> 'Commit':
        """Create a commit from serialized content."""
        try:
            commit_data = json.loads(content.decode())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ObjectError(f"Invalid commit format: {e}")

        if not isinstance(commit_data, dict):
            raise ObjectError("Invalid commit format: expected a JSON object")

        tree_hash = commit_data.get("tree")
        parents = commit_data.get("parents", [])
        timestamp = commit_data.get("timestamp")
        author = commit_data.get("author", "CardVS User")
        message = commit_data.get("message", "")

        if not is_hash(tree_hash):
            raise ObjectError(f"Invalid commit tree: {tree_hash!r}")
        if not isinstance(parents, list) or not all(is_hash(p) for p in parents):
            raise ObjectError(f"Invalid commit parents: {parents!r}")
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            raise ObjectError(f"Invalid commit timestamp: {timestamp!r}")
        if not isinstance(author, str) or not isinstance(message, str):
            raise ObjectError("Invalid commit author or message")

        commit = cls(tree_hash, parents, author, timestamp, message)
        if commit.content != content:
            # Keep the exact received bytes so the address matches the sender's
            commit.content = content
            commit._hash = None
        return commit

    @property
    def is_merge(self) -> bool:
        return len(self.parents) == 2

    def to_dict(self) -> Dict[str, Any]:
        """Convert commit to dictionary."""
        return {
            "hash": self.hash,
            "tree": self.tree_hash,
            "parents": list(self.parents),
            "author": self.author,
            "timestamp": self.timestamp,
            "message": self.message,
        }

OBJECT_TYPES = {
    "blob": Blob,
    "tree": TreeObject,
    "commit": Commit,
}

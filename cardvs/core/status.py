"""
Repository status values: Bare, Clean(head) and MergeConflict.
"""
from typing import Any, Dict, List, Optional, Sequence
from ..exceptions import MalformedInputError
from .merge import Conflict

class Status:
    """Base class for the repository state machine's states."""

    kind = ""
    head: Optional[str] = None

    @property
    def is_bare(self) -> bool:
        return isinstance(self, Bare)

    @property
    def has_conflicts(self) -> bool:
        return False

    def _fields(self) -> tuple:
        return ()

    def __eq__(self, other):
        return type(self) is type(other) and self._fields() == other._fields()

    def __hash__(self):
        return hash((self.kind,) + self._fields())

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Status':
        try:
            kind = data["kind"]
            if kind == Bare.kind:
                return Bare()
            if kind == Clean.kind:
                return Clean(data["head"])
            if kind == MergeConflict.kind:
                conflicts = [Conflict(**entry) for entry in data.get("conflicts", [])]
                return MergeConflict(data["old_head"], data["new_head"], conflicts)
        except (KeyError, TypeError) as e:
            raise MalformedInputError(f"Invalid status data: {e}")
        raise MalformedInputError(f"Unknown status kind: {kind!r}")

class Bare(Status):
    """No commits yet."""

    kind = "bare"

    def __repr__(self):
        return "Bare()"

class Clean(Status):
    """The working tree descends from a single head commit."""

    kind = "clean"

    def __init__(self, head: str):
        self.head = head

    def _fields(self) -> tuple:
        return (self.head,)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "head": self.head}

    def __repr__(self):
        return f"Clean({self.head[:8]})"

class MergeConflict(Status):
    """A merge of new_head into old_head is waiting to be committed.

    The next commit records both heads as parents. `conflicts` may be empty
    when the trees merged cleanly.
    """

    kind = "merge-conflict"

    def __init__(self, old_head: str, new_head: str, conflicts: Sequence[Conflict] = ()):
        self.old_head = old_head
        self.new_head = new_head
        self.conflicts = tuple(conflicts)

    @property
    def head(self) -> str:
        return self.old_head

    @property
    def conflict_ids(self) -> List[str]:
        return [conflict.id for conflict in self.conflicts]

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def _fields(self) -> tuple:
        return (self.old_head, self.new_head, self.conflicts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "old_head": self.old_head,
            "new_head": self.new_head,
            "conflicts": [conflict._asdict() for conflict in self.conflicts],
        }

    def __repr__(self):
        return f"MergeConflict({self.old_head[:8]}, {self.new_head[:8]}, {self.conflict_ids})"

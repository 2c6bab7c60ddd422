"""
Core CardVS modules.
"""
from .objects import CardObject, Blob, TreeObject, Commit
from .store import ObjectStore, MemoryBackend, FileBackend
from .tree import ROOT_ID, Node, Tree, generate_id
from .navigator import Navigator
from .merge import Conflict, MergeResult, merge_trees
from .status import Status, Bare, Clean, MergeConflict
from .controller import VersionController
from .config import Config
from .repository import Repository
__all__ = [
    "CardObject",
    "Blob",
    "TreeObject",
    "Commit",
    "ObjectStore",
    "MemoryBackend",
    "FileBackend",
    "ROOT_ID",
    "Node",
    "Tree",
    "generate_id",
    "Navigator",
    "Conflict",
    "MergeResult",
    "merge_trees",
    "Status",
    "Bare",
    "Clean",
    "MergeConflict",
    "VersionController",
    "Config",
    "Repository",
]

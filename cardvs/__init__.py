"""
CardVS - Card Versioning System
Content-addressed storage, history and three-way merge for hierarchical card documents.
"""
__version__ = "0.3.0"
__author__ = "CardVS"
__description__ = "Card Versioning System - git-style history and merge for card trees"
from .core.repository import Repository
from .core.controller import VersionController
from .core.tree import Node, Tree
from .exceptions import (
    CardVSError, NotFoundError, InvalidOperationError, MalformedInputError,
    ObjectError, RepositoryError, ConfigError,
)
__all__ = [
    "Repository",
    "VersionController",
    "Node",
    "Tree",
    "CardVSError",
    "NotFoundError",
    "InvalidOperationError",
    "MalformedInputError",
    "ObjectError",
    "RepositoryError",
    "ConfigError",
    "__version__"
]

"""Commit command implementation."""
from argparse import ArgumentParser, _SubParsersAction
from typing import Any, Optional
from .base import BaseCommand
from ..core.status import MergeConflict

class CommitCommand(BaseCommand):
    """Create a commit."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        """Register commit command parser."""
        parser = subparsers.add_parser("commit", help="Record the working tree")
        parser.add_argument("-m", "--message", default="", help="Commit message")
        parser.add_argument("--author", help="Override the configured author")
        return parser

    def execute_from_args(self, args: Any) -> None:
        """Execute commit command from parsed arguments."""
        self.execute(args.message, args.author)

    def execute(self, message: str = "", author: Optional[str] = None) -> None:
        """Create a commit."""
        merging = isinstance(self.repo.status, MergeConflict)
        unresolved = self.repo.controller.unresolved_conflicts()
        is_root_commit = self.repo.head is None

        commit_hash = self.repo.commit(message, author)

        label = " (root-commit)" if is_root_commit else " (merge)" if merging else ""
        print(f"[{commit_hash[:7]}{label}] {message}".rstrip())
        if unresolved:
            print(f"warning: committed with unresolved conflicts in: {', '.join(unresolved)}")

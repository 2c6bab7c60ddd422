"""Checkout command implementation."""
from argparse import ArgumentParser, _SubParsersAction
from typing import Any
from .base import BaseCommand

class CheckoutCommand(BaseCommand):
    """Replace the working tree with a committed tree."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser("checkout", help="Restore the tree of a commit")
        parser.add_argument("commit", help="Commit hash, unique prefix or HEAD")
        return parser

    def execute_from_args(self, args: Any) -> None:
        self.execute(args.commit)

    def execute(self, commit_ish: str) -> None:
        commit_hash = self.repo.checkout(commit_ish)
        print(f"HEAD is now at {commit_hash[:7]}")

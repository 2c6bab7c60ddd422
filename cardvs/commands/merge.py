"""Merge command implementation."""
from argparse import ArgumentParser, _SubParsersAction
from typing import Any
from .base import BaseCommand
from ..core.repository import Repository
from ..core.status import MergeConflict

class MergeCommand(BaseCommand):
    """Merge the history of another repository into this one."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser('merge', help='Join the history of another repository')
        parser.add_argument('source', help='Path of the repository to merge from')
        return parser

    def execute_from_args(self, args: Any):
        self.execute(args.source)

    def execute(self, source: str):
        before = self.repo.status
        other = Repository(source)
        status = self.repo.merge_from(other)

        if status == before:
            print("Already up to date.")
        elif isinstance(status, MergeConflict):
            for conflict in status.conflicts:
                print(f"CONFLICT ({conflict.reason}): {conflict.id}")
            print("Automatic merge failed; fix conflicts and then commit the result.")
        elif status.head == other.head:
            print(f"Fast-forward to {status.head[:7]}")
        else:
            print(f"Merge made as {status.head[:7]}")

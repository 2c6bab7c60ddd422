"""Log command implementation."""
from argparse import ArgumentParser, _SubParsersAction
from datetime import datetime
from typing import Any, Optional
from .base import BaseCommand

class LogCommand(BaseCommand):
    """Show commit history."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        """Register log command parser."""
        parser = subparsers.add_parser('log', help='Show commit history')
        parser.add_argument("--max-count", type=int, default=None, help="Maximum number of commits to show")
        parser.add_argument("-n", type=int, dest="max_count", help="Maximum number of commits to show")
        parser.add_argument("--oneline", action="store_true", help="Show each commit on a single line")
        return parser

    def execute_from_args(self, args: Any) -> None:
        """Execute log command from parsed arguments."""
        self.execute(args.max_count, args.oneline)

    def execute(self, max_count: Optional[int] = None, oneline: bool = False) -> None:
        """Show commit history."""
        commits = self.repo.log(max_count)
        if not commits:
            print("No commits found")
            return

        head = self.repo.head
        for commit in commits:
            head_info = " (HEAD)" if commit.hash == head else ""
            message = commit.message.split('\n')[0]
            if oneline:
                print(f"{commit.hash[:7]}{head_info} {message}".rstrip())
                continue

            print(f"commit {commit.hash}{head_info}")
            if commit.is_merge:
                print(f"Merge: {commit.parents[0][:7]} {commit.parents[1][:7]}")
            print(f"Author: {commit.author}")
            formatted_date = datetime.fromtimestamp(commit.timestamp).strftime("%a %b %d %H:%M:%S %Y")
            print(f"Date:   {formatted_date}")
            print()
            for line in commit.message.split('\n'):
                print(f"    {line}")
            print()

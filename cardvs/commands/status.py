"""Status command implementation."""
from argparse import ArgumentParser, _SubParsersAction
from typing import Any
from .base import BaseCommand
from ..core.status import MergeConflict
from ..core.tree import Tree

class StatusCommand(BaseCommand):
    """Show repository status."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        """Register status command parser."""
        parser = subparsers.add_parser('status', help='Show the working tree status')
        return parser

    def execute_from_args(self, args: Any) -> None:
        """Execute status command from parsed arguments."""
        self.execute()

    def execute(self) -> None:
        """Show repository status."""
        controller = self.repo.controller
        status = controller.status

        if self.repo.is_bare():
            print("No commits yet")
            head_tree = Tree()
        else:
            print(f"HEAD at {status.head[:7]}")
            head_tree = controller.read_commit_tree(status.head)

        if isinstance(status, MergeConflict):
            print(f"Merging {status.new_head[:7]} into {status.old_head[:7]}")
            unresolved = set(controller.unresolved_conflicts())
            print("\nConflicts:")
            print('  (edit the cards, then run "cardvs commit" to conclude the merge)')
            for conflict in status.conflicts:
                state = "unresolved" if conflict.id in unresolved else "edited"
                print(f"\t{conflict.reason}: {conflict.id} ({state})")

        changes = controller.diff(head_tree, controller.tree)
        moved = controller.moved(head_tree, controller.tree)
        if changes or moved:
            print("\nChanges not committed:")
            for node_id, (before, after) in changes.items():
                if before is None:
                    print(f"\tnew card:   {node_id}")
                elif after is None:
                    print(f"\tdeleted:    {node_id}")
                else:
                    print(f"\tmodified:   {node_id}")
            for node_id in moved:
                print(f"\tmoved:      {node_id}")
        elif not isinstance(status, MergeConflict):
            print("\nnothing to commit, working tree clean")

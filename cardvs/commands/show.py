"""Show command implementation."""
import json
from argparse import ArgumentParser, _SubParsersAction
from typing import Any, Optional
from .base import BaseCommand
from ..core.navigator import Navigator
from ..core.tree import Node, Tree

class ShowCommand(BaseCommand):
    """Print the working tree or the tree of a commit."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser("show", help="Print a card tree")
        parser.add_argument("commit", nargs="?", help="Show this commit's tree instead of the working tree")
        group = parser.add_mutually_exclusive_group()
        group.add_argument("--json", action="store_true", help="Print the tree as JSON")
        group.add_argument("--columns", action="store_true", help="Print the tree column by column")
        return parser

    def execute_from_args(self, args: Any) -> None:
        self.execute(args.commit, args.json, args.columns)

    def execute(self, commit_ish: Optional[str] = None, as_json: bool = False, columns: bool = False) -> None:
        if commit_ish:
            tree = self.repo.controller.read_commit_tree(self.repo.resolve_commit(commit_ish))
        else:
            tree = self.repo.tree

        if as_json:
            print(json.dumps(tree.to_dict(), indent=2))
        elif columns:
            self._print_columns(tree)
        else:
            self._print_outline(tree.root)

    def _summary(self, node: Node) -> str:
        first_line = node.content.split('\n')[0]
        return f"[{node.id}] {first_line}".rstrip()

    def _print_outline(self, root: Node):
        stack = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            print("  " * depth + self._summary(node))
            stack.extend((child, depth + 1) for child in reversed(node.children))

    def _print_columns(self, tree: Tree):
        navigator = Navigator(tree)
        for number, column in enumerate(navigator.get_columns(), start=1):
            print(f"Column {number}:")
            for node in column:
                parent = navigator.get_parent(node.id)
                print(f"  {self._summary(node)}  (under {parent.id})")

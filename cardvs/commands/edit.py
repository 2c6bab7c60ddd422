"""Tree edit commands: insert, update, delete and move cards."""
from argparse import ArgumentParser, _SubParsersAction
from typing import Any, Optional
from .base import BaseCommand

class InsertCommand(BaseCommand):
    """Add a new card under a parent."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser("insert", help="Add a card under a parent card")
        parser.add_argument("parent", help="Id of the parent card (0 is the root)")
        parser.add_argument("content", help="Text of the new card")
        parser.add_argument("-p", "--position", type=int, default=None,
                            help="Position among the parent's children (default: last)")
        parser.add_argument("--id", dest="node_id", help="Use this id instead of generating one")
        return parser

    def execute_from_args(self, args: Any) -> None:
        self.execute(args.parent, args.content, args.position, args.node_id)

    def execute(self, parent: str, content: str, position: Optional[int] = None,
                node_id: Optional[str] = None) -> None:
        if position is None:
            position = len(self.repo.tree.find(parent).children)
        new_id = self.repo.insert(content, parent, position, node_id)
        print(new_id)

class UpdateCommand(BaseCommand):
    """Replace the text of a card."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser("update", help="Replace the text of a card")
        parser.add_argument("id", help="Card id")
        parser.add_argument("content", help="New text")
        return parser

    def execute_from_args(self, args: Any) -> None:
        self.execute(args.id, args.content)

    def execute(self, node_id: str, content: str) -> None:
        self.repo.update(node_id, content)

class DeleteCommand(BaseCommand):
    """Remove a card and everything below it."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser("delete", help="Remove a card and its children")
        parser.add_argument("id", help="Card id")
        return parser

    def execute_from_args(self, args: Any) -> None:
        self.execute(args.id)

    def execute(self, node_id: str) -> None:
        removed = len(self.repo.controller.navigator().get_descendants(node_id)) + 1
        self.repo.delete(node_id)
        print(f"Deleted {removed} card{'s' if removed != 1 else ''}")

class MoveCommand(BaseCommand):
    """Move a card, with its children, under another parent."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser("move", help="Move a card and its children")
        parser.add_argument("id", help="Card to move")
        parser.add_argument("parent", help="New parent card")
        parser.add_argument("-p", "--position", type=int, default=0,
                            help="Position among the new parent's children (default: first)")
        return parser

    def execute_from_args(self, args: Any) -> None:
        self.execute(args.id, args.parent, args.position)

    def execute(self, node_id: str, parent: str, position: int = 0) -> None:
        self.repo.move(node_id, parent, position)

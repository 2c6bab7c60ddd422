"""Config command implementation."""
from argparse import ArgumentParser, _SubParsersAction
from typing import Any, Optional
from .base import BaseCommand

class ConfigCommand(BaseCommand):
    """Get or set repository options."""

    @classmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        parser = subparsers.add_parser('config', help='Get and set repository options')
        parser.add_argument('key', help='Option name as section.option')
        parser.add_argument('value', nargs='?', help='New value')
        return parser

    def execute_from_args(self, args: Any):
        self.execute(args.key, args.value)

    def execute(self, key: str, value: Optional[str] = None):
        self.repo._ensure_repo_exists()
        if value is None:
            current = self.repo.config.get(key)
            if current is not None:
                print(current)
        else:
            self.repo.config.set(key, value)

"""
Base command class for CardVS commands.
"""
from abc import ABC, abstractmethod
from argparse import ArgumentParser, _SubParsersAction
from typing import Any
from ..core.repository import Repository

class BaseCommand(ABC):
    """Base class for all CardVS commands."""

    def __init__(self, repository: Repository):
        self.repo = repository

    @classmethod
    @abstractmethod
    def register_parser(cls, subparsers: _SubParsersAction) -> ArgumentParser:
        """Register command parser with subparsers."""
        pass

    @abstractmethod
    def execute_from_args(self, args: Any) -> None:
        """Execute command from parsed arguments."""
        pass

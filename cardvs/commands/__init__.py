"""
CardVS command implementations.
"""
from .base import BaseCommand
from .init import InitCommand
from .edit import InsertCommand, UpdateCommand, DeleteCommand, MoveCommand
from .commit import CommitCommand
from .checkout import CheckoutCommand
from .log import LogCommand
from .show import ShowCommand
from .status import StatusCommand
from .merge import MergeCommand
from .config import ConfigCommand
__all__ = [
    "BaseCommand",
    "InitCommand",
    "InsertCommand",
    "UpdateCommand",
    "DeleteCommand",
    "MoveCommand",
    "CommitCommand",
    "CheckoutCommand",
    "LogCommand",
    "ShowCommand",
    "StatusCommand",
    "MergeCommand",
    "ConfigCommand",
]

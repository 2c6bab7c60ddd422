"""
Command Line Interface for CardVS.
"""
import argparse
import logging
import sys
from .core.repository import Repository
from .commands import (
    InitCommand, InsertCommand, UpdateCommand, DeleteCommand, MoveCommand,
    CommitCommand, CheckoutCommand, LogCommand, ShowCommand, StatusCommand,
    MergeCommand, ConfigCommand
)
from .exceptions import CardVSError

class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that suppresses subcommand help in main help."""
    def _format_action(self, action):
        # Skip subparsers action to avoid showing individual command help
        if isinstance(action, argparse._SubParsersAction):
            return ''
        return super()._format_action(action)

COMMANDS = {
    "init": InitCommand,
    "insert": InsertCommand,
    "update": UpdateCommand,
    "delete": DeleteCommand,
    "move": MoveCommand,
    "commit": CommitCommand,
    "checkout": CheckoutCommand,
    "log": LogCommand,
    "show": ShowCommand,
    "status": StatusCommand,
    "merge": MergeCommand,
    "config": ConfigCommand,
}

def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        description="CardVS - Card Versioning System",
        prog="cardvs",
        formatter_class=CustomHelpFormatter,
        epilog="""These are common CardVS commands used in various situations:

start a document
   init      Create an empty CardVS repository

edit the card tree
   insert    Add a card under a parent card
   update    Replace the text of a card
   delete    Remove a card and its children
   move      Move a card and its children

examine the history and state
   log       Show commit logs
   show      Print the working tree or a committed tree
   status    Show the repository status

record and combine history
   commit    Record the working tree
   checkout  Restore the tree of a commit
   merge     Join the history of another repository

   config    Get and set repository options

See 'cardvs <command> --help' to read about a specific command."""
    )
    parser.add_argument(
        "--repo",
        default=".",
        help="Repository path (default: current directory)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or debugging detail (-vv) to stderr"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__import__('cardvs').__version__}"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="CardVS command to run (see command list below)",
        metavar="<command>"
    )

    for command_class in COMMANDS.values():
        command_class.register_parser(subparsers)

    return parser

def configure_logging(verbosity: int):
    """Map -v flags onto a logging level for the cardvs loggers."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return

    try:
        repo = Repository(args.repo)
        command = COMMANDS[args.command](repo)
        command.execute_from_args(args)

    except CardVSError as e:
        print(f"fatal: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)
    except Exception as e:
        logging.getLogger(__name__).debug("Unexpected error", exc_info=True)
        print(f"fatal: unexpected error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()

"""Subcommand dispatcher shared by the capture tools."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from utils.error_tracker import CaptureError, ErrorTracker
from utils.logger import Logger, LoggerType


@dataclass
class Command:
    """Represents a single CLI command."""

    name: str
    handler: Callable[[argparse.Namespace], None]
    add_arguments: Optional[Callable[[argparse.ArgumentParser], None]] = None
    help: str | None = None


@dataclass
class CommandDispatcher:
    """Register and execute subcommands using ``argparse``."""

    description: str
    commands: Iterable[Command] = field(default_factory=list)

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description=self.description)
        subparsers = parser.add_subparsers(dest="command")
        for cmd in self.commands:
            sp = subparsers.add_parser(cmd.name, help=cmd.help)
            if cmd.add_arguments:
                cmd.add_arguments(sp)
            sp.set_defaults(func=cmd.handler)
        return parser

    def run(
        self,
        args: Optional[list[str]] = None,
        *,
        logger: Optional[LoggerType] = None,
        track_exceptions: bool = True,
    ) -> int:
        """
        Parse ``args`` and dispatch the selected command.

        Returns the exit status. A command aborted by a :class:`CaptureError`
        prints the error's status text to stderr and returns 1. Argument
        errors exit through ``argparse`` as usual.
        """

        if logger is None:
            logger = Logger.get_logger("utils.cli")

        if track_exceptions:
            ErrorTracker.install_excepthook()
            ErrorTracker.install_signal_handlers()

        parser = self._build_parser()
        ns = parser.parse_args(args)
        if not hasattr(ns, "func"):
            parser.print_help()
            return 0

        try:
            ns.func(ns)
        except CaptureError as e:
            logger.error(f"{ns.command} aborted ({e.status}): {e}")
            print(e.status, file=sys.stderr)
            return 1
        return 0

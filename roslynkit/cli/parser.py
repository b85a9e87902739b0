"""
roslynkit CLI argument parser.

This module implements the command-line interface for roslynkit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from roslynkit import __version__

logger = logging.getLogger(__name__)


class CLI:
    """roslynkit command-line interface."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="roslynkit",
            description="roslynkit - C# language server acquisition and project tooling",
            epilog='Use "roslynkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"roslynkit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./roslynkit.yaml)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_cached_command(subparsers)
        self._add_which_command(subparsers)
        self._add_properties_command(subparsers)
        self._add_tasks_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Locate or install the language server",
            description="Resolve the newest language server and install it into the cache",
        )
        parser.add_argument(
            "--pre-release",
            action="store_true",
            default=None,
            help="Consider pre-release versions",
        )
        parser.add_argument(
            "--strategy",
            choices=["release", "feed"],
            metavar="STRATEGY",
            help="Acquisition strategy (release|feed) [default: from config]",
        )

    def _add_cached_command(self, subparsers):
        """Add 'cached' subcommand."""
        subparsers.add_parser(
            "cached",
            help="Show the cached language server",
            description="Print the most recently cached server without network access",
        )

    def _add_which_command(self, subparsers):
        """Add 'which' subcommand."""
        subparsers.add_parser(
            "which",
            help="Show a user-installed language server",
            description="Print the language server found on PATH",
        )

    def _add_properties_command(self, subparsers):
        """Add 'properties' subcommand."""
        parser = subparsers.add_parser(
            "properties",
            help="Query MSBuild properties of a project",
            description="Print MSBuild properties extracted from dotnet msbuild",
        )
        parser.add_argument("project", type=Path, metavar="PROJECT", help="Project file")
        parser.add_argument("names", nargs="+", metavar="NAME", help="Property names")

    def _add_tasks_command(self, subparsers):
        """Add 'tasks' subcommand."""
        parser = subparsers.add_parser(
            "tasks",
            help="List dotnet tasks for a source file",
            description="Print the task templates offered for a C# source file",
        )
        parser.add_argument("file", type=Path, metavar="FILE", help="Source file")
        parser.add_argument(
            "--json", action="store_true", help="Print templates as JSON"
        )

    def parse_args(self, args: Optional[List[str]] = None):
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,
        )

    def _dispatch_command(self, args) -> int:
        command_map = {
            "install": "roslynkit.cli.commands.install",
            "cached": "roslynkit.cli.commands.cached",
            "which": "roslynkit.cli.commands.which",
            "properties": "roslynkit.cli.commands.properties",
            "tasks": "roslynkit.cli.commands.tasks",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main(args: Optional[List[str]] = None) -> None:
    """Console-script entry point."""
    sys.exit(CLI().run(args))

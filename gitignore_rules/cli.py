#!/usr/bin/env python3
"""Command-line interface for gitignore-rules.

This module provides the ``gitignore-rules`` command:
- check: report whether paths are accepted or denied
- inspect: report whether any rule touches paths
- filter: list the accepted (or denied) entries of a directory tree

Example:
    >>> from gitignore_rules.cli import parse_arguments
    >>> args = parse_arguments(["check", "--ignore-file", ".gitignore", "build/"])
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from gitignore_rules.core.config import ConfigError, ConfigManager, ConfigSource
from gitignore_rules.core.constants import GITIGNORE_RULES_VERSION, CompileMode, ConfigKey
from gitignore_rules.core.logging import Logger, set_global_logger
from gitignore_rules.core.validators import ValidationError
from gitignore_rules.rules.engine import RuleSet

DESCRIPTION = "gitignore-rules - evaluate paths against gitignore patterns"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i",
        "--ignore-file",
        metavar="FILE",
        type=str,
        required=True,
        help="Ignore file to load (e.g. .gitignore)",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    parser.add_argument(
        "--encoding",
        metavar="NAME",
        type=str,
        help="Text encoding of the ignore file (default: utf-8)",
    )

    parser.add_argument(
        "--lazy",
        action="store_true",
        help="Compile matchers on first use instead of up front",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on patterns that cannot be compiled instead of skipping them",
    )

    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Write log messages to FILE",
    )


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If validation fails
    """
    parser = argparse.ArgumentParser(
        prog="gitignore-rules",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Which of these paths does .gitignore ignore?
  gitignore-rules check -i .gitignore build/ src/main.py

  # Exit with status 1 if any path is ignored
  gitignore-rules check -i .gitignore --fail-on-denied dist/app.js

  # List the files of the current tree that are kept
  gitignore-rules filter -i .gitignore

  # List ignored entries of another tree
  gitignore-rules filter -i project/.gitignore -d project --denied
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {GITIGNORE_RULES_VERSION}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    check = subparsers.add_parser("check", help="Report whether paths are accepted or denied")
    _add_common_arguments(check)
    check.add_argument("paths", metavar="PATH", nargs="+", help="Paths relative to the ignore file")
    check.add_argument(
        "--fail-on-denied",
        action="store_true",
        help="Exit with status 1 when any path is denied",
    )

    inspect = subparsers.add_parser("inspect", help="Report whether any rule touches paths")
    _add_common_arguments(inspect)
    inspect.add_argument("paths", metavar="PATH", nargs="+", help="Paths relative to the ignore file")

    filter_ = subparsers.add_parser("filter", help="List accepted entries of a directory tree")
    _add_common_arguments(filter_)
    filter_.add_argument(
        "-d",
        "--directory",
        metavar="DIR",
        type=str,
        help="Tree to list (default: the ignore file's directory)",
    )
    filter_.add_argument(
        "--denied",
        action="store_true",
        help="List denied entries instead of accepted ones",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    ignore_path = Path(args.ignore_file)

    if not ignore_path.exists():
        raise CLIError(f"Ignore file does not exist: {args.ignore_file}")

    if not ignore_path.is_file():
        raise CLIError(f"Ignore file path is not a file: {args.ignore_file}")

    if getattr(args, "directory", None):
        directory = Path(args.directory)

        if not directory.exists():
            raise CLIError(f"Directory does not exist: {args.directory}")

        if not directory.is_dir():
            raise CLIError(f"Not a directory: {args.directory}")

    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")


def build_config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build the configuration overrides given on the command line.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration dictionary for the CLI_ARGS level of ConfigManager
    """
    section: Dict[str, Any] = {}

    if args.encoding:
        section[ConfigKey.ENCODING] = args.encoding
    if args.lazy:
        section[ConfigKey.COMPILE_MODE] = CompileMode.LAZY.value
    if args.strict:
        section[ConfigKey.STRICT] = True

    logging_section: Dict[str, Any] = {}
    if args.debug:
        logging_section[ConfigKey.LOG_LEVEL] = "DEBUG"
    if args.log_file:
        logging_section[ConfigKey.LOG_FILE] = args.log_file
    if logging_section:
        section[ConfigKey.LOGGING] = logging_section

    return {ConfigKey.ROOT: section}


def load_config(args: argparse.Namespace) -> ConfigManager:
    """
    Load layered configuration: defaults, config file, environment, CLI.

    Args:
        args: Parsed arguments namespace

    Returns:
        Validated configuration manager

    Raises:
        CLIError: If the configuration cannot be loaded or is invalid
    """
    try:
        config = ConfigManager(args.config)
        config.load_dict(build_config_from_args(args), ConfigSource.CLI_ARGS)
        config.validate()
    except ConfigError as e:
        raise CLIError(f"Invalid configuration: {e}")

    return config


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging based on configuration.

    Args:
        config: Configuration manager

    Returns:
        Configured logger instance, also registered as the package logger
    """
    log_level = config.get(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}.{ConfigKey.LOG_LEVEL}", "INFO")
    log_file = config.get(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}.{ConfigKey.LOG_FILE}")

    logger = Logger(level=log_level)
    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))

    set_global_logger(logger)
    return logger


def load_rules(args: argparse.Namespace, config: ConfigManager) -> RuleSet:
    """
    Load the ignore file named on the command line.

    Args:
        args: Parsed arguments namespace
        config: Configuration manager

    Returns:
        Rule set

    Raises:
        CLIError: If the file cannot be read or a pattern is rejected
    """
    try:
        return RuleSet.from_file(
            args.ignore_file,
            encoding=config.encoding,
            mode=config.compile_mode,
            strict=config.strict,
        )
    except ValidationError as e:
        raise CLIError(f"Invalid ignore file {args.ignore_file}: {e}")
    except UnicodeDecodeError as e:
        raise CLIError(f"Failed to decode ignore file {args.ignore_file}: {e}")
    except OSError as e:
        raise CLIError(f"Failed to read ignore file {args.ignore_file}: {e}")


def run_command(args: argparse.Namespace, rules: RuleSet, out: Optional[TextIO] = None) -> int:
    """
    Run the selected command.

    Args:
        args: Parsed arguments namespace
        rules: Rule set loaded from the ignore file
        out: Stream for results (defaults to sys.stdout)

    Returns:
        Exit status
    """
    out = out or sys.stdout

    if args.command == "check":
        any_denied = False
        for path in args.paths:
            denied = rules.denies(path)
            any_denied = any_denied or denied
            print(f"{'denied' if denied else 'accepted'}\t{path}", file=out)
        return 1 if args.fail_on_denied and any_denied else 0

    if args.command == "inspect":
        for path in args.paths:
            inspected = rules.inspects(path)
            print(f"{'inspected' if inspected else 'untouched'}\t{path}", file=out)
        return 0

    directory = args.directory or str(Path(args.ignore_file).resolve().parent)
    entries = rules.denied(directory) if args.denied else rules.accepted(directory)
    for entry in entries:
        print(entry, file=out)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Exit status
    """
    try:
        args = parse_arguments(argv)
        config = load_config(args)
        logger = setup_logging(config)

        rules = load_rules(args, config)
        logger.debug("Loaded ignore file", path=args.ignore_file, rules=repr(rules))

        return run_command(args, rules)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())

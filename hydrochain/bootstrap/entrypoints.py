"""
bootstrap/entrypoints.py - Application entry points

Provides logging setup and the CLI entry point.
"""

from __future__ import annotations
from typing import List, Optional
import argparse
import json
import logging
import sys

logger = logging.getLogger("bootstrap.entrypoints")

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    json_format: bool = False,
    fmt: str = DEFAULT_LOG_FORMAT,
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        fmt: Format string for plain-text logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JSONFormatter() if json_format else logging.Formatter(fmt)

    # Console handler; stderr keeps stdout for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    """Top-level parser with one subcommand per registered CLI command."""
    from hydrochain.cli.commands import register_commands

    parser = argparse.ArgumentParser(
        description="hydrochain - hydraulic conveyance chain and stilling basin design",
        prog="hydrochain",
    )

    parser.add_argument(
        "-p", "--project",
        help="Project file (JSON element store)",
        default="",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides configuration)",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path",
        default=None,
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )

    register_commands().build_parser(parser)
    return parser


def cli_main(args: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    from hydrochain.bootstrap.config import load_config
    from hydrochain.cli.core import CLIContext, OutputFormat, command_registry, format_output
    from hydrochain.errors import HydroChainError

    parser = build_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 2

    config = load_config(parsed.config)

    # Setup logging
    if parsed.verbose:
        log_level = "DEBUG"
    else:
        log_level = parsed.log_level or config.logging.level
    setup_logging(
        level=log_level,
        log_file=parsed.log_file or config.logging.log_file,
        json_format=config.logging.json_logs,
        fmt=config.logging.format,
    )

    try:
        ctx = CLIContext.open(
            parsed.project,
            config=config,
            output_format=OutputFormat.JSON if parsed.json else OutputFormat.TEXT,
            verbose=parsed.verbose,
        )
        command = command_registry.get(parsed.command)
        result = command.execute(ctx, parsed)
        print(format_output(result, ctx.output_format))
        return result.exit_code

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except (HydroChainError, OSError, ValueError) as e:
        logger.error(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(cli_main())

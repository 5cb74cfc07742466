"""
cli/core.py - Core CLI infrastructure

Command base class, registry, execution context and output formatting.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
from abc import ABC, abstractmethod
from pathlib import Path
import argparse
import json
import logging

from hydrochain.bootstrap.config import HydroChainConfig
from hydrochain.core.store import ElementStore
from hydrochain.hydraulics.stilling_basin import StillingBasinDesigner
from hydrochain.network.connections import ConnectionManager

logger = logging.getLogger("cli")


class OutputFormat(Enum):
    """Output format options."""
    TEXT = "text"
    JSON = "json"


@dataclass
class CLIContext:
    """Context for CLI operations: one project file and its store."""

    store: ElementStore = field(default_factory=ElementStore)
    project_path: str = ""
    config: HydroChainConfig = field(default_factory=HydroChainConfig)

    # Output settings
    output_format: OutputFormat = OutputFormat.TEXT
    verbose: bool = False

    _manager: Optional[ConnectionManager] = None

    @classmethod
    def open(cls, project_path: str = "", **kwargs: Any) -> "CLIContext":
        """Load the project file if it exists, otherwise start an empty store."""
        store = ElementStore()
        if project_path and Path(project_path).exists():
            store = ElementStore.load_from_file(project_path)
        return cls(store=store, project_path=project_path, **kwargs)

    @property
    def manager(self) -> ConnectionManager:
        if self._manager is None or self._manager.store is not self.store:
            designer = StillingBasinDesigner(self.config.design)
            self._manager = ConnectionManager(self.store, designer=designer)
        return self._manager

    @property
    def has_project(self) -> bool:
        return bool(self.project_path)

    def save(self) -> None:
        """Write the store back to the project file."""
        if not self.project_path:
            raise ValueError("No project file given; use --project")
        self.store.save_to_file(self.project_path)


@dataclass
class CommandResult:
    """Result of a CLI command execution."""

    success: bool = True
    message: str = ""
    data: Any = None
    error: Optional[str] = None

    exit_code: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "error": self.error,
        }


class CLICommand(ABC):
    """Base class for CLI commands."""

    name: str = "command"
    description: str = "Base command"
    aliases: List[str] = []

    @abstractmethod
    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        """Execute the command."""

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        """Configure argument parser for this command."""


class CommandRegistry:
    """Registry for CLI commands."""

    def __init__(self):
        self._commands: Dict[str, CLICommand] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, command: CLICommand) -> None:
        """Register a command."""
        self._commands[command.name] = command
        for alias in command.aliases:
            self._aliases[alias] = command.name

    def get(self, name: str) -> Optional[CLICommand]:
        """Get command by name or alias."""
        if name in self._commands:
            return self._commands[name]
        if name in self._aliases:
            return self._commands[self._aliases[name]]
        return None

    def list_commands(self) -> List[str]:
        """List all command names."""
        return list(self._commands.keys())

    def get_all(self) -> Dict[str, CLICommand]:
        """Get all commands."""
        return dict(self._commands)

    def build_parser(self, parser: argparse.ArgumentParser) -> None:
        """Add one subparser per registered command."""
        subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
        for command in self._commands.values():
            sub = subparsers.add_parser(
                command.name,
                help=command.description,
                description=command.description,
                aliases=command.aliases,
            )
            command.configure_parser(sub)


# Global registry
command_registry = CommandRegistry()


def format_output(result: CommandResult, format: OutputFormat) -> str:
    """Format command result for display."""
    if format == OutputFormat.JSON:
        return json.dumps(result.to_dict(), indent=2, default=str)

    if not result.success:
        return f"Error: {result.error}"

    output = result.message
    if isinstance(result.data, dict):
        for k, v in result.data.items():
            output += f"\n  {k}: {v}"
    elif isinstance(result.data, list):
        for item in result.data:
            if isinstance(item, dict):
                item = ", ".join(f"{k}={v}" for k, v in item.items())
            output += f"\n  {item}"
    elif result.data:
        output += f"\n{result.data}"
    return output

"""
cli/ - Command line interface

Commands operate on a JSON project file holding an ElementStore.
"""

from .core import (
    OutputFormat,
    CLIContext,
    CommandResult,
    CLICommand,
    CommandRegistry,
    command_registry,
    format_output,
)
from .commands import (
    DesignBasinCommand,
    ManualBasinCommand,
    AddCommand,
    RemoveCommand,
    ListCommand,
    ConnectCommand,
    DisconnectCommand,
    RecalculateCommand,
    ReviewCommand,
    register_commands,
)

__all__ = [
    # Core
    "OutputFormat",
    "CLIContext",
    "CommandResult",
    "CLICommand",
    "CommandRegistry",
    "command_registry",
    "format_output",
    # Commands
    "DesignBasinCommand",
    "ManualBasinCommand",
    "AddCommand",
    "RemoveCommand",
    "ListCommand",
    "ConnectCommand",
    "DisconnectCommand",
    "RecalculateCommand",
    "ReviewCommand",
    "register_commands",
]

"""
bootstrap/ - Bootstrap Layer

Provides configuration loading, logging setup and the CLI entry point.
"""

from .config import (
    HydroChainConfig,
    DesignConfig,
    ReviewConfig,
    LoggingConfig,
    load_config,
    get_config,
)

from .entrypoints import (
    cli_main,
    setup_logging,
)


__all__ = [
    # Config
    "HydroChainConfig",
    "DesignConfig",
    "ReviewConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    # Entry Points
    "cli_main",
    "setup_logging",
]

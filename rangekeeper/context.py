"""
Shared context object for rangekeeper CLI commands.

This module defines the global Click context used to share configuration
and runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from rangekeeper.config import RangekeeperConfig


class RangekeeperContext:
    """Global context object for rangekeeper CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the loaded configuration file, if any.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Settings from the configuration file (or defaults).
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: RangekeeperConfig = RangekeeperConfig()


#: Click decorator for injecting :class:`RangekeeperContext` into commands.
pass_context = click.make_pass_decorator(RangekeeperContext, ensure=True)

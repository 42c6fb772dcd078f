from __future__ import annotations

"""
Logging Settings for the Catalog Tools.

Maintenance batches log one WARNING per failed record and one INFO summary
per batch; codec truncation is only visible at DEBUG. These settings decide
where those records go: stderr for interactive runs, plus an optional
rotating file for long unattended merges and repairs.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

# Accepted names for the 'log_level' config key
_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


@dataclass(frozen=True)
class LoggingConfig:
    """
    Where and how much the catalog tools log.

    Attributes:
        level: Minimum level name (a key of the level map).
        console: Emit to stderr, keeping stdout free for command output.
        log_file: Rotating log file path; None disables file logging.
        max_bytes: Size at which the log file rolls over.
        backup_count: Rolled-over files kept next to the active one.
        console_fmt: Terminal format; short, since record ids carry the detail.
        file_fmt: File format, with timestamp and the emitting module.
        datefmt: Timestamp format for file entries.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 2 * 1024 * 1024
    backup_count: int = 3

    console_fmt: str = "%(levelname)s | %(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def for_cli(cls, level: str, log_file: str = "") -> LoggingConfig:
        """
        Build the settings used by the command-line tool.

        Args:
            level: Level name from the validated config or --debug.
            log_file: The 'log_file' config value; empty means console only.
        """
        return cls(level=level, console=True, log_file=log_file or None)

from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides cross-platform resolution of the per-user data directory and path
normalization for database and log locations. Acts as an abstraction over
the 'os' module to ensure uniform behavior across Windows and Unix-like
systems.
"""

import os
from typing import Optional

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "ArcadeCatalog"
UNIX_APP_DIR_NAME = ".arcade_catalog"
DEFAULT_DATABASE_FILE = "database.db"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/ArcadeCatalog
    - Linux/Mac: ~/.arcade_catalog

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    # Windows specific resolution
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    # Posix fallback (Linux/Mac)
    if not path:
        home = os.path.expanduser("~")
        path = os.path.join(home, UNIX_APP_DIR_NAME)

    # Idempotent directory creation
    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    p = os.path.expandvars(os.path.expanduser(p))
    return os.path.abspath(p)


def resolve_database_path(database_path: Optional[str]) -> str:
    """
    Resolve the configured database location to an absolute path.

    Relative paths are taken from the current working directory; the special
    SQLite name ':memory:' is passed through untouched.
    """
    if (database_path or "").strip() == ":memory:":
        return ":memory:"
    return normalize_path(database_path, DEFAULT_DATABASE_FILE)

"""Path resolution and file utilities for the self-paced reading task.

Resolves design/config paths given relative to the project (dev mode),
the bundled resource directory, or the executable directory (frozen builds).
"""
from __future__ import annotations

import os
import sys


def _base_dir() -> str:
    from config_loader import BASE_DIR
    return BASE_DIR


def resolve_path(p: str) -> str:
    """Resolve a possibly relative path.

    Priority:
    1. Absolute paths are returned as given
    2. BASE_DIR / path (bundled resources or dev mode)
    3. Executable directory / path (frozen builds)
    4. Current working directory / path

    Args:
        p: Path to resolve (absolute or relative)

    Returns:
        Resolved absolute path (the BASE_DIR candidate if nothing exists)
    """
    if os.path.isabs(p):
        return p

    candidate = os.path.join(_base_dir(), p)
    if os.path.exists(candidate):
        return candidate

    if getattr(sys, 'frozen', False):
        fallback = os.path.join(os.path.dirname(sys.executable), p)
        if os.path.exists(fallback):
            return fallback

    cwd_candidate = os.path.abspath(p)
    if os.path.exists(cwd_candidate):
        return cwd_candidate

    return candidate


def file_exists_nonempty(path: str) -> bool:
    """Check that path is an existing file with non-zero size."""
    try:
        return os.path.isfile(path) and os.path.getsize(path) > 0
    except OSError:
        return False

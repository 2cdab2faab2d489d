"""Configuration loader for the self-paced reading task.

Separately loads the experiment design (configs/design.json) and the
display layout (configs/layout.json), with external override precedence
for layout when running as a packaged exe.
"""
from __future__ import annotations

import json
import os
import sys
import warnings
from typing import cast

from psychopy import logging


def get_base_dir() -> str:
    """Return base directory for read-only resources (configs).

    Note: In PyInstaller onefile, resources are unpacked to a temporary
    extraction directory (sys._MEIPASS). That location is read-only and may be
    deleted after exit, so DO NOT write output files there.
    """
    meipass = getattr(sys, '_MEIPASS', None)
    if meipass and os.path.isdir(meipass):
        return meipass
    # Onedir: use the executable directory so bundled folders like 'configs/' work
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    # Dev mode: project root (src/..)
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def get_output_dir() -> str:
    """Return a persistent, user-writable directory for saving results.

    - For frozen apps (onefile/onedir), use the directory next to the executable.
    - For dev, use the project-level 'data' directory.
    """
    if getattr(sys, 'frozen', False):
        return os.path.join(os.path.dirname(sys.executable), 'data')
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'data'))


def get_exe_override_path(rel_path: str) -> str | None:
    """When running as a frozen exe, return the override path next to the exe.

    Example: rel_path='configs/layout.json' -> '<exe_dir>/configs/layout.json'
    Returns None if not frozen.
    """
    if getattr(sys, 'frozen', False):
        return os.path.join(os.path.dirname(sys.executable), rel_path)
    return None


# Module-level constants
BASE_DIR = get_base_dir()
DESIGN_DEFAULT_PATH = os.path.join(BASE_DIR, 'configs', 'design.json')
LAYOUT_DEFAULT_PATH = os.path.join(BASE_DIR, 'configs', 'layout.json')


from errors import ValidationError
from path_utils import file_exists_nonempty, resolve_path
from spr_types import DesignDocument, LayoutConfig


def load_design(design_path: str | None = None) -> DesignDocument:
    """Load the experiment design document.

    Args:
        design_path: Absolute or project-relative path; defaults to configs/design.json

    Raises:
        ValidationError: file missing or empty, unparsable JSON, or not an object
    """
    path = resolve_path(design_path) if design_path else DESIGN_DEFAULT_PATH
    if not file_exists_nonempty(path):
        raise ValidationError([f'Design file not found or empty: {path}'])
    logging.info(f'Loading design from {path}')
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError([f'Design file is not valid JSON: {path} ({e})']) from e
    if not isinstance(data, dict):
        raise ValidationError([f'Design file must contain a JSON object: {path}'])
    return cast(DesignDocument, data)


def load_layout(layout_path: str | None = None) -> LayoutConfig:
    """Load layout.json with external-override precedence and parameter merging.

    Args:
        layout_path: Alternative defaults file; configs/layout.json when None

    Search order:
    1) Load defaults from <BASE_DIR>/configs/layout.json (must exist)
    2) If running as frozen exe, load overrides from <exe_dir>/configs/layout.json
    3) Merge: override parameters take precedence, missing ones use defaults
    """
    default_path = layout_path or LAYOUT_DEFAULT_PATH
    if not os.path.exists(default_path):
        raise RuntimeError(
            f"Default layout configuration not found: {default_path}\n"
            "This base configuration file is required."
        )

    with open(default_path, 'r', encoding='utf-8') as f:
        layout = cast(LayoutConfig, json.load(f))

    override_path = get_exe_override_path(os.path.join('configs', 'layout.json'))
    if override_path and os.path.exists(override_path):
        try:
            with open(override_path, 'r', encoding='utf-8') as f:
                overrides = json.load(f)
            layout.update(overrides)
        except (OSError, ValueError) as e:
            warnings.warn(
                f"External layout override is malformed, using defaults: {override_path}\nError: {e}"
            )

    return layout

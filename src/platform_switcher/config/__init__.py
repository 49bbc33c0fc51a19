"""Configuration and state module.

This module provides state storage, loading, and data models for the application.

Submodules:
    manager: StateManager for loading/saving the JSON state files
    schema: Data classes defining the persisted state (Entry, RequiredFiles, Settings)
    paths: StatePaths (state file names) and InstallPaths (install root layout)
    path_validator: Name and path validation used before touching the file system

The state files live in the state directory, which defaults to the current
working directory (normally the game root).
"""

from .manager import StateManager
from .schema import AppState, Entry, RequiredFiles, Settings
from .paths import InstallPaths, StatePaths

__all__ = [
    "StateManager",
    "AppState",
    "Entry",
    "RequiredFiles",
    "Settings",
    "InstallPaths",
    "StatePaths",
]

"""Paths for the install root, platforms, saves and state files"""

import os
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from .schema import Entry

if TYPE_CHECKING:
    from .manager import StateManager


class StatePaths:
    """Names and default location of the files this application owns."""

    ENTRIES_FILE = "Entries.json"
    LAST_REQUIRED_FILES_FILE = "LastRequiredFiles.json"
    SETTINGS_FILE = "Settings.json"
    LOCK_FILE = "platform_switcher.lock"
    BACKUP_EXTENSION = ".bak"

    # Overrides the default state directory (the current working directory)
    HOME_ENV_VAR = "PLATFORM_SWITCHER_HOME"

    @classmethod
    def managed_files(cls) -> list[str]:
        """Names of the JSON files managed by the state manager."""
        return [cls.ENTRIES_FILE, cls.LAST_REQUIRED_FILES_FILE, cls.SETTINGS_FILE]

    @classmethod
    def default_state_dir(cls) -> Path:
        """Resolve the state directory when none was given explicitly.

        Returns:
            Path from PLATFORM_SWITCHER_HOME, or the current working directory
        """
        env_value = os.environ.get(cls.HOME_ENV_VAR)
        if env_value and env_value.strip():
            return expand_path(env_value)
        return Path.cwd()


class InstallPaths:
    """Builds every path below the configured install root.

    The root is read from the state manager's settings on each call so a
    settings change takes effect without rebuilding anything.

    Layout::

        <root>/
            Platforms/<platform>/...
            Saves/<platform>/[<label>/]
            Backups/<timestamp>/      (unless a backups directory is configured)
    """

    PLATFORMS_DIR_NAME = "Platforms"
    SAVES_DIR_NAME = "Saves"
    BACKUPS_DIR_NAME = "Backups"

    def __init__(self, state_manager: "StateManager"):
        self._state_manager = state_manager

    def _settings(self):
        return self._state_manager.state.settings

    def is_root_directory_set(self) -> bool:
        return self._settings().is_root_directory_set()

    def get_root_directory(self) -> Optional[Path]:
        if not self.is_root_directory_set():
            return None
        return expand_path(self._settings().root_directory)

    def _require_root(self) -> Path:
        root = self.get_root_directory()
        if root is None:
            raise ValueError("Root directory is not set")
        return root

    def get_platforms_directory(self) -> Path:
        return self._require_root() / self.PLATFORMS_DIR_NAME

    def get_saves_directory(self) -> Path:
        return self._require_root() / self.SAVES_DIR_NAME

    def get_platform_directory(self, entry: Entry) -> Path:
        return self.get_platforms_directory() / entry.platform

    def get_launcher_path(self, entry: Entry) -> Path:
        """Get the executable path, e.g. C:\\Games\\Diablo II\\Game.exe"""
        return self._require_root() / entry.launcher

    def get_save_directory(self, entry: Entry, exclude_label: bool = False) -> Path:
        """Get the save directory for an entry.

        Args:
            entry: The entry to resolve
            exclude_label: If True, return the platform-level save directory

        Returns:
            Saves/<platform>/<label> (or Saves/<platform> without a label)
        """
        save_directory = self.get_saves_directory() / entry.platform
        if not exclude_label and entry.label and entry.label.strip():
            save_directory = save_directory / entry.label
        return save_directory

    def get_backups_directory(self) -> Path:
        configured = self._settings().backups_directory
        if configured and configured.strip():
            return expand_path(configured)
        return self._require_root() / self.BACKUPS_DIR_NAME

    def get_backup_directory(self, name: str) -> Path:
        return self.get_backups_directory() / name


def expand_path(path_str: str) -> Path:
    """Expand environment variables and ~ in a path string.

    Args:
        path_str: Path string potentially containing environment variables

    Returns:
        Path object with expanded variables
    """
    return Path(os.path.expanduser(os.path.expandvars(path_str.strip())))

"""Backup operations for platforms, saves and state files"""

import shutil
from datetime import datetime
from pathlib import Path

from ..config.manager import StateManager
from ..config.path_validator import is_path_under_root
from ..config.paths import InstallPaths
from ..errors import BackupError, GameRunningError
from ..logging_config import get_logger
from .process_manager import ProcessManager

logger = get_logger("backup_service")

BACKUP_NAME_FORMAT = "%Y-%m-%d-%H%M-%S"


class BackupService:
    """Copy the Platforms and Saves directories plus the state files.

    Every backup is a plain directory named after the time it was taken,
    e.g. ``Backups/2026-10-19-1432-05/``.
    """

    def __init__(self, paths: InstallPaths, state_manager: StateManager,
                 process_manager: ProcessManager):
        self.paths = paths
        self.state_manager = state_manager
        self.process_manager = process_manager

    def create_backup(self) -> Path:
        """Create a new backup.

        Returns:
            Path to the created backup directory

        Raises:
            BackupError: If a source is missing or copying fails
            GameRunningError: If the game is running (saves may be mid-write)
        """
        if not self.paths.is_root_directory_set():
            raise BackupError("Please set your root directory before creating a backup.")

        platforms_directory = self.paths.get_platforms_directory()
        saves_directory = self.paths.get_saves_directory()

        for source in (platforms_directory, saves_directory):
            if not source.is_dir():
                raise BackupError(f"The following directory doesn't exist: {source}")

        for state_file in self.state_manager.managed_paths:
            if not state_file.is_file():
                raise BackupError(f"The following file doesn't exist: {state_file}")

        if self.process_manager.is_game_running():
            raise GameRunningError("Please close the game before creating a backup.")

        backups_directory = self.paths.get_backups_directory()
        for source in (platforms_directory, saves_directory):
            # Copying a directory into itself would never finish
            if is_path_under_root(backups_directory, source):
                raise BackupError(f"The backups directory cannot be inside {source}")

        backup_directory = backups_directory / datetime.now().strftime(BACKUP_NAME_FORMAT)
        if backup_directory.exists():
            raise BackupError(f"A backup with this name already exists: {backup_directory}")

        try:
            logger.info(f"Creating backup at {backup_directory}")
            backup_directory.mkdir(parents=True)

            shutil.copytree(platforms_directory, backup_directory / platforms_directory.name)
            shutil.copytree(saves_directory, backup_directory / saves_directory.name)
            for state_file in self.state_manager.managed_paths:
                shutil.copy2(state_file, backup_directory / state_file.name)

            logger.info("Backup created successfully")
        except PermissionError as e:
            logger.error(f"Permission denied creating backup: {e}")
            raise BackupError(f"Permission denied: {e}") from e
        except OSError as e:
            logger.error(f"Failed to create backup: {e}")
            raise BackupError(f"Failed to create backup: {e}") from e

        return backup_directory

    def list_backups(self) -> list[Path]:
        """Existing backups, newest first."""
        if not self.paths.is_root_directory_set():
            return []
        backups_directory = self.paths.get_backups_directory()
        if not backups_directory.is_dir():
            return []
        return sorted((p for p in backups_directory.iterdir() if p.is_dir()), reverse=True)

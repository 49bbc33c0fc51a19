"""State management - load/save the JSON state files"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from .paths import StatePaths
from .schema import AppState, Entry, RequiredFiles, Settings
from ..errors import CorruptStateError
from ..logging_config import get_logger

logger = get_logger("state_manager")


class StateManager:
    """Manages persistence of entries, the last installed manifest and settings.

    Each file is written on its own with an atomic replace. Saves are not
    transactional across files, so a crash between two saves can leave the
    entries and the manifest out of step.
    """

    def __init__(self, state_dir: Optional[Path] = None):
        self.state_dir = state_dir or StatePaths.default_state_dir()
        self.entries_path = self.state_dir / StatePaths.ENTRIES_FILE
        self.last_required_files_path = self.state_dir / StatePaths.LAST_REQUIRED_FILES_FILE
        self.settings_path = self.state_dir / StatePaths.SETTINGS_FILE
        self.state = AppState()

    @property
    def managed_paths(self) -> list[Path]:
        """Full paths of the managed state files."""
        return [self.entries_path, self.last_required_files_path, self.settings_path]

    def is_first_run(self) -> bool:
        """Check if this is the first run (no settings file yet)."""
        return not self.settings_path.exists()

    def validate(self) -> None:
        """Try to parse every state file.

        On the first failure all managed files are backed up (.bak) and
        removed so the next start begins fresh.

        Raises:
            CorruptStateError: If any state file cannot be parsed
        """
        loaders: list[tuple[str, Callable[[], Any]]] = [
            (StatePaths.ENTRIES_FILE, self.load_entries),
            (StatePaths.LAST_REQUIRED_FILES_FILE, self.load_required_files),
            (StatePaths.SETTINGS_FILE, self.load_settings),
        ]

        for file_name, loader in loaders:
            try:
                loader()
            except (ValueError, TypeError, KeyError, OSError) as e:
                logger.error(f"Failed to load {file_name}: {e}")
                self.backup_and_delete_files()
                raise CorruptStateError(file_name, str(e)) from e

    def load(self) -> AppState:
        """Load all state files.

        Returns:
            AppState with settings, entries and the last installed manifest
        """
        logger.debug(f"Loading state from {self.state_dir}")
        self.state = AppState(
            settings=self.load_settings(),
            entries=self.load_entries(),
            last_required_files=self.load_required_files(),
        )
        logger.debug(f"State loaded: {len(self.state.entries)} entries")
        return self.state

    def load_entries(self) -> list[Entry]:
        data = self._read_json(self.entries_path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise TypeError(f"{StatePaths.ENTRIES_FILE} must contain a list")
        return [Entry.from_dict(item) for item in data]

    def load_required_files(self) -> Optional[RequiredFiles]:
        """Read the manifest installed by the last switch.

        Returns:
            The manifest, or None if no switch has ever been recorded
        """
        data = self._read_json(self.last_required_files_path)
        if data is None:
            return None
        return RequiredFiles.from_dict(data)

    def load_settings(self) -> Settings:
        data = self._read_json(self.settings_path)
        if data is None:
            return Settings()
        return Settings.from_dict(data)

    def save_entries(self, entries: Optional[list[Entry]] = None) -> None:
        if entries is not None:
            self.state.entries = entries
        self._write_json(self.entries_path, [entry.to_dict() for entry in self.state.entries])

    def save_required_files(self, required_files: RequiredFiles) -> None:
        self.state.last_required_files = required_files.copy()
        self._write_json(self.last_required_files_path, required_files.to_dict())

    def save_settings(self, settings: Optional[Settings] = None) -> None:
        if settings is not None:
            self.state.settings = settings
        self._write_json(self.settings_path, self.state.settings.to_dict())

    def migrate_legacy_format(self) -> bool:
        """Convert entries that still store a full executable path.

        Older releases saved "Path" (e.g. C:\\Games\\Diablo II\\Game.exe)
        instead of a launcher relative to the root. The files are backed up
        first.

        Returns:
            True if a migration was performed
        """
        settings = self.state.settings
        if settings.has_migrated_to_new_format:
            return False

        legacy_entries = [e for e in self.state.entries if e.legacy_path and not e.launcher]
        if legacy_entries:
            logger.info(f"Migrating {len(legacy_entries)} entries to the new format")
            self.backup_files()

            for entry in legacy_entries:
                legacy = Path(entry.legacy_path.replace("\\", os.sep))
                entry.launcher = legacy.name
                if not settings.is_root_directory_set():
                    settings.root_directory = str(legacy.parent)
                    logger.info(f"Root directory set from legacy path: {settings.root_directory}")
                entry.legacy_path = None

            self.save_entries()

        settings.has_migrated_to_new_format = True
        self.save_settings()
        return bool(legacy_entries)

    def backup_files(self) -> None:
        """Copy each existing state file to <name>.bak."""
        for path in self.managed_paths:
            self._backup_file(path)

    def delete_backup_files(self) -> None:
        for path in self.managed_paths:
            self._backup_path(path).unlink(missing_ok=True)

    def backup_and_delete_files(self) -> None:
        for path in self.managed_paths:
            self._backup_file(path)
            path.unlink(missing_ok=True)

    @staticmethod
    def _backup_path(path: Path) -> Path:
        return path.with_name(path.name + StatePaths.BACKUP_EXTENSION)

    def _backup_file(self, path: Path) -> None:
        if path.exists():
            target = self._backup_path(path)
            logger.info(f"Backing up {path} -> {target}")
            shutil.copy2(path, target)

    @staticmethod
    def _read_json(path: Path) -> Any:
        """Parse a JSON file, returning None if it does not exist."""
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def _write_json(self, path: Path, data: Any) -> None:
        """Replace a file's contents atomically."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved {path}")

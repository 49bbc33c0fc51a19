"""State data models and their JSON representation"""

from dataclasses import dataclass, field
from typing import Any, Optional


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise TypeError(f"Expected a string, got {type(value).__name__}")
    return value


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise TypeError(f"Expected a boolean, got {type(value).__name__}")
    return value


def _as_names(value: Any) -> set[str]:
    if value is None:
        return set()
    if not isinstance(value, list):
        raise TypeError(f"Expected a list of names, got {type(value).__name__}")
    return {_as_str(name) for name in value}


@dataclass(eq=False)
class Entry:
    """A switchable configuration: one platform, optionally with a save label.

    Entries compare by identity. Two entries may describe the same platform
    and label (e.g. with different flags) and still be distinct records.
    """
    platform: str = ""
    label: Optional[str] = None
    launcher: str = ""
    flags: str = ""
    was_last_ran: bool = False
    # Only read from files written by older releases, never saved.
    legacy_path: Optional[str] = None

    def __post_init__(self):
        if not self.label:
            self.label = None

    def to_dict(self) -> dict:
        return {
            "Platform": self.platform,
            "Label": self.label,
            "Launcher": self.launcher,
            "Flags": self.flags,
            "WasLastRan": self.was_last_ran,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        if not isinstance(data, dict):
            raise TypeError(f"Entry must be an object, got {type(data).__name__}")
        label = data.get("Label")
        return cls(
            platform=_as_str(data.get("Platform")),
            label=_as_str(label) if label is not None else None,
            launcher=_as_str(data.get("Launcher")),
            flags=_as_str(data.get("Flags")),
            was_last_ran=_as_bool(data.get("WasLastRan")),
            legacy_path=_as_str(data.get("Path")) or None,
        )

    def describe(self) -> str:
        """Human readable "Platform [Label]" text."""
        if self.label:
            return f"{self.platform} [{self.label}]"
        return self.platform


@dataclass
class RequiredFiles:
    """Top-level files and directories a platform installs into the root."""
    files: set[str] = field(default_factory=set)
    directories: set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.files and not self.directories

    def copy(self) -> "RequiredFiles":
        return RequiredFiles(files=set(self.files), directories=set(self.directories))

    def to_dict(self) -> dict:
        # Sorted so the file diffs cleanly between switches
        return {
            "Directories": sorted(self.directories, key=str.lower),
            "Files": sorted(self.files, key=str.lower),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RequiredFiles":
        if not isinstance(data, dict):
            raise TypeError(f"Required files must be an object, got {type(data).__name__}")
        return cls(
            files=_as_names(data.get("Files")),
            directories=_as_names(data.get("Directories")),
        )


@dataclass
class Settings:
    """Application settings"""
    root_directory: str = ""
    backups_directory: str = ""
    should_minimize_to_tray: bool = False
    should_enable_dark_mode: bool = False
    preferred_color: str = "Teal"
    has_migrated_to_new_format: bool = False

    def is_root_directory_set(self) -> bool:
        return bool(self.root_directory and self.root_directory.strip())

    def to_dict(self) -> dict:
        return {
            "rootDirectory": self.root_directory,
            "backupsDirectory": self.backups_directory,
            "shouldMinimizeToTray": self.should_minimize_to_tray,
            "shouldEnableDarkMode": self.should_enable_dark_mode,
            "preferredColor": self.preferred_color,
            "hasMigratedToNewFormat": self.has_migrated_to_new_format,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        if not isinstance(data, dict):
            raise TypeError(f"Settings must be an object, got {type(data).__name__}")
        return cls(
            root_directory=_as_str(data.get("rootDirectory")),
            backups_directory=_as_str(data.get("backupsDirectory")),
            should_minimize_to_tray=_as_bool(data.get("shouldMinimizeToTray")),
            should_enable_dark_mode=_as_bool(data.get("shouldEnableDarkMode")),
            preferred_color=_as_str(data.get("preferredColor"), "Teal"),
            has_migrated_to_new_format=_as_bool(data.get("hasMigratedToNewFormat")),
        )


@dataclass
class AppState:
    """Everything loaded from the state directory"""
    settings: Settings = field(default_factory=Settings)
    entries: list[Entry] = field(default_factory=list)
    last_required_files: Optional[RequiredFiles] = None

    def get_last_ran(self) -> Optional[Entry]:
        """Get the entry whose files are currently installed.

        Returns:
            The first entry flagged as last ran, or None
        """
        for entry in self.entries:
            if entry.was_last_ran:
                return entry
        return None

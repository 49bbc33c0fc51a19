"""Editing entries, including renaming their platform and save directories"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from ..config.paths import InstallPaths
from ..config.schema import Entry
from ..errors import (
    DuplicateEntryError,
    FileOperationError,
    GameRunningError,
    InvalidEntryError,
    PreconditionError,
)
from ..logging_config import get_logger
from .entries import EntryManager, names_equal
from .process_manager import ProcessManager
from .registry import ActivationSink

logger = get_logger("entry_editor")

_UNSET = object()


@dataclass
class _EntrySnapshot:
    platform: str
    label: Optional[str]
    launcher: str
    flags: str
    was_last_ran: bool

    @classmethod
    def of(cls, entry: Entry) -> "_EntrySnapshot":
        return cls(**{f.name: getattr(entry, f.name) for f in fields(cls)})

    def restore(self, entry: Entry) -> None:
        for f in fields(self):
            setattr(entry, f.name, getattr(self, f.name))


def _same_path(left: Path, right: Path) -> bool:
    return str(left).casefold() == str(right).casefold()


class EntryEditor:
    """Applies an edit to one entry and keeps the directories in step.

    Renaming a platform renames ``Platforms/<name>`` and ``Saves/<name>`` and
    every entry using it; renaming a label renames ``Saves/<platform>/<label>``
    and every entry of that platform using it. Any refusal restores the
    entry's previous values.
    """

    def __init__(self, entries: EntryManager, paths: InstallPaths,
                 process_manager: ProcessManager, activation_sink: ActivationSink):
        self.entries = entries
        self.paths = paths
        self.process_manager = process_manager
        self.activation_sink = activation_sink

    def edit(self, entry: Entry, platform=_UNSET, label=_UNSET, launcher=_UNSET,
             flags=_UNSET, was_last_ran=_UNSET) -> Entry:
        """Change an entry's fields.

        Only the keyword arguments that are given are changed.

        Raises:
            InvalidEntryError: The result is missing fields or has invalid characters
            PreconditionError: A target directory exists, or a label would be removed
            GameRunningError: The entry is active and its directories would move
            FileOperationError: A directory rename failed
        """
        old = _EntrySnapshot.of(entry)
        old_last_ran = self.entries.get_last_ran()

        if platform is not _UNSET:
            entry.platform = platform
        if label is not _UNSET:
            entry.label = label or None
        if launcher is not _UNSET:
            entry.launcher = launcher
        if flags is not _UNSET:
            entry.flags = flags or ""
        if was_last_ran is not _UNSET:
            entry.was_last_ran = bool(was_last_ran)

        try:
            self._apply(entry, old)
        except (PreconditionError, GameRunningError, FileOperationError):
            old.restore(entry)
            raise

        # Turning this entry on turns the previous one off
        if not old.was_last_ran and entry.was_last_ran:
            self.entries.swap_last_ran(old_last_ran, entry)

        last_ran = self.entries.get_last_ran()
        if entry.was_last_ran:
            self.activation_sink.update(entry)
        elif last_ran is not None and self.entries.does_platform_match_last_ran(entry.platform):
            # A shared platform rename moves the active save directory too
            self.activation_sink.update(last_ran)

        self.entries.save()
        logger.info(f"Edited entry {old.platform!r} -> {entry.describe()!r}")
        return entry

    def _apply(self, entry: Entry, old: _EntrySnapshot) -> None:
        if self.entries.is_invalid(entry):
            raise InvalidEntryError(
                "Unable to change your Entry! Please make sure all fields are:\n\n"
                "- Populated (Label/Flags are optional)\n"
                "- No invalid characters"
            )

        if self.entries.platform_and_label_exist(entry, exclude_self=True):
            raise DuplicateEntryError(f'An entry for "{entry.describe()}" already exists.')

        # A fresh copy has no directories of its own yet
        if not old.platform:
            return

        # Toggling the last ran state must not move the isolated save directory
        if old.was_last_ran != entry.was_last_ran:
            return

        old_entry = Entry(platform=old.platform, label=old.label)
        old_platform_directory = self.paths.get_platform_directory(old_entry)
        new_platform_directory = self.paths.get_platform_directory(entry)
        old_saves_directory = self.paths.get_save_directory(old_entry)
        new_saves_directory = self.paths.get_save_directory(entry)

        # Exact comparison: a case-only rename still has to rename the directories
        platform_changed = old.platform != entry.platform
        label_changed = (old.label or "") != (entry.label or "")

        if not platform_changed and not label_changed:
            return

        if (platform_changed and not names_equal(old.platform, entry.platform)
                and new_platform_directory.exists()):
            raise PreconditionError(f'A platform directory with the name "{entry.platform}" already exists.')

        # Moving saves out of a label directory could collide with flat saves
        if old.label and not entry.label:
            raise PreconditionError("A label cannot be removed once created. It can only be modified.")

        if not _same_path(old_saves_directory, new_saves_directory) and new_saves_directory.exists():
            raise PreconditionError(f'A save directory with the same name exists at: "{new_saves_directory}"')

        # Renaming the installed platform moves the active save directory as well
        in_use = entry.was_last_ran or (platform_changed and self.entries.does_platform_match_last_ran(old.platform))
        if in_use and self.process_manager.is_game_running():
            logger.warning("You can't edit this entry since the game is currently running and using its save directory.")
            raise GameRunningError(
                "You can't edit this entry since the game is currently running and using its save directory.\n\n"
                "Please close all instances of the game and try again."
            )

        try:
            if platform_changed:
                self._move(old_platform_directory, new_platform_directory)
                # The platform-level save directory holds every label
                self._move(
                    self.paths.get_save_directory(old_entry, exclude_label=True),
                    self.paths.get_save_directory(entry, exclude_label=True),
                )
                self.entries.rename_platform(old.platform, entry.platform)

            # Without an old label the saves are flat and stay where they are
            if label_changed and old.label:
                self._move(
                    self.paths.get_save_directory(Entry(platform=entry.platform, label=old.label)),
                    new_saves_directory,
                )
                self.entries.rename_label(entry.platform, old.label, entry.label)
        except OSError as e:
            raise FileOperationError(f"Could not rename the entry's directories.\n\n{e}") from e

    @staticmethod
    def _move(source: Path, target: Path) -> None:
        if not source.exists() or str(source) == str(target):
            return
        logger.info(f"Renaming: {source} -> {target}")
        target.parent.mkdir(parents=True, exist_ok=True)
        if _same_path(source, target):
            # Case-only rename; go through a temporary name for case-insensitive file systems
            temporary = source.with_name(f"{source.name}.renaming")
            source.rename(temporary)
            temporary.rename(target)
        else:
            source.rename(target)

"""Entry collection management"""

from typing import Optional

from ..config.manager import StateManager
from ..config.path_validator import contains_invalid_characters, is_plain_name
from ..config.schema import Entry
from ..errors import DuplicateEntryError, InvalidEntryError
from ..logging_config import get_logger

logger = get_logger("entries")


def names_equal(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive comparison where None and "" are the same."""
    return (left or "").casefold() == (right or "").casefold()


class EntryManager:
    """Owns the ordered list of entries.

    - Adding, copying, deleting and reordering entries
    - Enforcing that at most one entry is flagged as last ran
    - Rename cascades for platforms and labels
    - Saving through the StateManager

    The list object is shared with ``StateManager.state.entries``.
    """

    def __init__(self, state_manager: StateManager):
        self.state_manager = state_manager

    @property
    def _entries(self) -> list[Entry]:
        return self.state_manager.state.entries

    def get_entries(self) -> list[Entry]:
        return self._entries

    def get_last_ran(self) -> Optional[Entry]:
        for entry in self._entries:
            if entry.was_last_ran:
                return entry
        return None

    def last_ran_count(self) -> int:
        return sum(1 for entry in self._entries if entry.was_last_ran)

    def index_of(self, entry: Entry) -> int:
        for index, current in enumerate(self._entries):
            if current is entry:
                return index
        raise ValueError(f"Entry {entry.describe()!r} is not in the list")

    def save(self) -> None:
        self.state_manager.save_entries()

    def add(self, entry: Entry) -> Entry:
        """Validate and append a new entry, then save.

        Raises:
            InvalidEntryError: If required fields are blank or invalid
            DuplicateEntryError: If the platform and label are already used
        """
        if self.is_invalid(entry):
            raise InvalidEntryError(
                "Please make sure the required fields are populated and contain no invalid characters."
            )
        if self.platform_and_label_exist(entry):
            raise DuplicateEntryError(
                f'An entry for "{entry.describe()}" already exists.'
            )

        # A new entry never starts out installed
        entry.was_last_ran = False
        self._entries.append(entry)
        self.save()
        logger.info(f"Added entry {entry.describe()}")
        return entry

    def delete(self, entry: Entry) -> None:
        index = self.index_of(entry)
        self._entries.pop(index)
        self.save()
        logger.info(f"Deleted entry {entry.describe()}")

    def copy(self, entry: Entry) -> Entry:
        """Duplicate an entry without its platform.

        The copy has to be given a platform with an edit before it can run.
        """
        new_entry = Entry(
            label=entry.label,
            launcher=entry.launcher,
            flags=entry.flags,
        )
        self._entries.append(new_entry)
        self.save()
        return new_entry

    def move_up(self, entry: Entry) -> None:
        index = self.index_of(entry)
        if index == 0:
            return
        self._entries[index - 1], self._entries[index] = entry, self._entries[index - 1]
        self.save()

    def move_down(self, entry: Entry) -> None:
        index = self.index_of(entry)
        if index == len(self._entries) - 1:
            return
        self._entries[index + 1], self._entries[index] = entry, self._entries[index + 1]
        self.save()

    def move(self, source_index: int, target_index: int) -> None:
        """Move an entry to a drop position.

        ``target_index`` is the slot the entry is dropped in front of, so
        dropping on the source or just after it changes nothing.
        """
        if source_index == target_index or target_index == source_index + 1:
            return
        if len(self._entries) <= 1:
            return
        if not 0 <= source_index < len(self._entries):
            raise IndexError(f"No entry at position {source_index}")
        if not 0 <= target_index <= len(self._entries):
            raise IndexError(f"Cannot move to position {target_index}")

        # Removing first shifts everything after the source up by one
        should_adjust_index = target_index == len(self._entries) or source_index < target_index

        entry = self._entries.pop(source_index)
        if should_adjust_index:
            target_index -= 1
        self._entries.insert(target_index, entry)
        self.save()

    def mark_last_ran(self, entry: Entry) -> None:
        """Flag an entry as last ran, clearing every other flag."""
        for current in self._entries:
            current.was_last_ran = current is entry
        entry.was_last_ran = True

    def swap_last_ran(self, old_entry: Optional[Entry], new_entry: Entry) -> None:
        """Move the last ran flag from one entry to another."""
        if old_entry is not None:
            old_entry.was_last_ran = False
        self.mark_last_ran(new_entry)

    def clear_last_ran(self) -> None:
        for entry in self._entries:
            entry.was_last_ran = False

    def rename_platform(self, old_platform: str, new_platform: str) -> None:
        """Rename every reference to a platform."""
        for entry in self._entries:
            if names_equal(entry.platform, old_platform):
                entry.platform = new_platform

    def rename_label(self, platform: str, old_label: Optional[str], new_label: Optional[str]) -> None:
        """Rename a label for every entry of one platform."""
        for entry in self._entries:
            if not names_equal(entry.platform, platform):
                continue
            if names_equal(entry.label, old_label):
                entry.label = new_label or None

    def does_platform_match_last_ran(self, platform: str) -> bool:
        last_ran = self.get_last_ran()
        if last_ran is None:
            return False
        return names_equal(last_ran.platform, platform)

    @staticmethod
    def is_invalid(entry: Entry) -> bool:
        """Check the fields a user can type in.

        Platform, label and launcher become directory or file names below the
        root, so "." and ".." are refused too. Label and flags are optional;
        flags are free text.
        """
        return (
            not entry.platform or not entry.platform.strip()
            or not entry.launcher or not entry.launcher.strip()
            or not is_plain_name(entry.platform)
            or not is_plain_name(entry.launcher)
            or (entry.label is not None and not is_plain_name(entry.label))
            or contains_invalid_characters(entry.platform)
            or contains_invalid_characters(entry.launcher)
            or contains_invalid_characters(entry.label)
        )

    def platform_and_label_exist(self, entry: Entry, exclude_self: bool = False) -> bool:
        """Check if another entry uses this platform and label combination.

        Args:
            entry: Entry to look for
            exclude_self: Skip ``entry`` itself while scanning
        """
        for current in self._entries:
            if exclude_self and current is entry:
                continue
            if not names_equal(current.platform, entry.platform):
                continue
            if names_equal(current.label, entry.label):
                return True
        return False

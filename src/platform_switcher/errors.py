"""Exceptions raised by the switch engine and its services.

Every message is written for the user; callers print ``str(error)`` as-is.
"""


class SwitcherError(Exception):
    """Base class for all user-facing errors"""
    pass


class PreconditionError(SwitcherError):
    """The requested operation cannot start. Nothing was changed."""
    pass


class RootDirectoryNotSetError(PreconditionError):
    """No install root is configured"""

    def __init__(self):
        super().__init__(
            "Please set your root directory (settings --root <path>) "
            "before launching the game."
        )


class InvalidEntryError(PreconditionError):
    """Entry fields are missing or contain invalid characters"""
    pass


class DuplicateEntryError(PreconditionError):
    """Another entry already uses the same platform and label"""
    pass


class PlatformMissingError(PreconditionError):
    """The entry's platform directory does not exist"""
    pass


class NothingToResetError(PreconditionError):
    """Reset was requested but no entry is currently installed"""
    pass


class GameRunningError(SwitcherError):
    """The game is running and the operation would disturb it"""

    def __init__(self, message: str | None = None):
        super().__init__(message or (
            "The game is still running!\n\n"
            "Please close the game before attempting to:\n\n"
            "- Switch to a different platform.\n"
            "- Switch to the same platform but with a different label.\n"
            "- Reset your directory."
        ))


class FileOperationError(SwitcherError):
    """A copy, delete or rename failed part way through"""
    pass


class FileInUseError(FileOperationError):
    """A file is still locked by the operating system"""
    pass


class LaunchError(SwitcherError):
    """The launcher could not be started. The switch itself stays applied."""
    pass


class BackupError(SwitcherError):
    """Exception raised for backup operation errors"""
    pass


class CorruptStateError(SwitcherError):
    """A state file could not be parsed.

    The state files have already been moved aside (.bak) when this is raised;
    the application must exit and start fresh.
    """

    def __init__(self, file_name: str, detail: str):
        self.file_name = file_name
        self.detail = detail
        super().__init__(
            "At least one of your state files failed to load. Moving your old "
            "files out of the way (.bak). Please restart for a fresh install.\n\n"
            f"Error Message ({file_name})\n\n{detail}"
        )


class AlreadyRunningError(SwitcherError):
    """Another instance of the application holds the lock"""
    pass

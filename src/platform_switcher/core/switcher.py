"""File switching between platforms sharing one install root"""

import shutil
import threading
from pathlib import Path
from typing import Callable, Optional

from ..config.manager import StateManager
from ..config.path_validator import is_plain_name, resolve_child
from ..config.paths import InstallPaths
from ..config.schema import Entry, RequiredFiles
from ..errors import (
    FileInUseError,
    FileOperationError,
    GameRunningError,
    InvalidEntryError,
    LaunchError,
    NothingToResetError,
    PlatformMissingError,
    PreconditionError,
    RootDirectoryNotSetError,
)
from ..logging_config import get_logger
from .entries import EntryManager, names_equal
from .process_manager import ProcessManager, is_user_admin
from .protected import EXPANSION_ARCHIVES
from .registry import ActivationSink
from .required_files import RequiredFilesGenerator

logger = get_logger("switcher")

HIDDEN_ARCHIVE_SUFFIX = ".bak"


class FileSwitcher:
    """Switches the files in the install root to the ones an entry needs.

    The manifest of the last install is persisted after every switch, so the
    next switch knows which top-level files and directories to remove even
    after a restart. Protected names are filtered out before every install
    and every delete, including manifests read back from disk.

    Entry comparisons decide how much work a run needs:

    - nothing installed yet: install the entry's platform
    - same platform, same label: only move the last ran flag
    - same platform, different label: move the flag (refused while the game runs)
    - different platform: remove the old files, install the new ones
      (refused while the game runs)
    """

    def __init__(
        self,
        entries: EntryManager,
        generator: RequiredFilesGenerator,
        process_manager: ProcessManager,
        activation_sink: ActivationSink,
        paths: InstallPaths,
        state_manager: StateManager,
    ):
        self.entries = entries
        self.generator = generator
        self.process_manager = process_manager
        self.activation_sink = activation_sink
        self.paths = paths
        self.state_manager = state_manager

    def run(self, entry: Entry) -> threading.Thread:
        """Make an entry active and launch it.

        State is committed before the launcher is started, so a launch
        failure never rolls the switch back.

        Args:
            entry: The entry to run (must be in the entry list)

        Returns:
            The worker thread running the game

        Raises:
            PreconditionError: Root unset, platform blank or missing
            GameRunningError: The switch would change files or saves in use
            FileOperationError: Copying or deleting failed part way
            LaunchError: The launcher does not exist
        """
        self.check_preconditions(entry)

        last_ran = self.entries.get_last_ran()

        if last_ran is None:
            logger.info("No version was ever ran. Running this and setting it as main version.")
            self._switch_files(entry, last_ran=None)
            self._update_entry_and_sink(None, entry)

        elif names_equal(last_ran.platform, entry.platform):
            logger.info("Running the same platform.")
            if not names_equal(last_ran.label, entry.label):
                logger.info("Same platform but different labels. Updating.")
                # A different label means a different save directory
                self._ensure_game_not_running()
            else:
                logger.info("Same platform and same label.")
            # Flags may differ even though the files do not
            self._update_entry_and_sink(last_ran, entry)

        else:
            logger.info("A different version has been selected. Switching.")
            self._ensure_game_not_running()
            self._switch_files(entry, last_ran=last_ran)
            self._update_entry_and_sink(last_ran, entry)

        return self._launch_game(entry)

    def reset_directory(self) -> None:
        """Remove the installed platform's files from the root.

        Raises:
            GameRunningError: The game is running
            NothingToResetError: No entry is currently installed
            FileOperationError: Deleting failed part way
        """
        logger.warning("Resetting Directory ...")

        self._ensure_game_not_running()

        last_ran = self.entries.get_last_ran()
        if last_ran is None:
            logger.warning("No last ran entry detected. Aborting.")
            raise NothingToResetError("Nothing to reset: no entry is currently installed.")

        root_directory = self._require_root_directory()
        last_required_files = self._get_last_required_files(last_ran)

        def reset():
            self._delete_required_files(root_directory, last_required_files)
            self.state_manager.save_required_files(self.generator.empty())
            self._restore_expansion_archives(root_directory)

        self._run_file_operation(reset)

        self.entries.clear_last_ran()
        self._run_file_operation(self.entries.save, "Your entries could not be saved.")

    def check_preconditions(self, entry: Entry) -> None:
        """Fail before anything is touched if the entry cannot run."""
        if not self.paths.is_root_directory_set():
            raise RootDirectoryNotSetError()

        if not entry.platform or not entry.platform.strip():
            raise PreconditionError("Please make sure your entry has a Platform set before launching the game!")

        self.ensure_platform_exists(entry)

    def is_platform_directory_missing(self, entry: Entry) -> bool:
        return not self.paths.get_platform_directory(entry).is_dir()

    def ensure_platform_exists(self, entry: Entry) -> None:
        if not self.paths.is_root_directory_set():
            raise RootDirectoryNotSetError()
        # "." or ".." would make the root or Platforms/ itself the platform
        if not is_plain_name(entry.platform):
            raise InvalidEntryError(f'"{entry.platform}" cannot be used as a platform name.')
        if self.is_platform_directory_missing(entry):
            raise PlatformMissingError(
                f'The platform "{entry.platform}" doesn\'t exist in your Platforms folder.'
            )

    def _ensure_game_not_running(self) -> None:
        if self.process_manager.is_game_running():
            logger.warning("Refusing to continue while the game is running")
            raise GameRunningError()

    def _require_root_directory(self) -> Path:
        root_directory = self.paths.get_root_directory()
        if root_directory is None:
            raise RootDirectoryNotSetError()
        return root_directory

    def _update_entry_and_sink(self, last_ran: Optional[Entry], entry: Entry) -> None:
        previous_flags = [(current, current.was_last_ran) for current in self.entries.get_entries()]
        previous_flags.append((entry, entry.was_last_ran))
        self.entries.swap_last_ran(last_ran, entry)

        def commit():
            self.activation_sink.update(entry)
            self.entries.save()

        try:
            self._run_file_operation(commit, "The active entry could not be recorded.")
        except FileOperationError:
            # Keep memory in step with Entries.json
            for current, was_last_ran in previous_flags:
                current.was_last_ran = was_last_ran
            raise

    def _get_last_required_files(self, last_ran: Optional[Entry]) -> RequiredFiles:
        """Work out what the previous switch installed.

        Falls back to scanning the last ran platform's current contents when
        the manifest is missing (or empty while an entry is installed). That
        scan can differ from what was really installed if the platform
        directory changed since.
        """
        try:
            last_required_files = self.state_manager.load_required_files()
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Could not read the last required files: {e}")
            raise FileOperationError(
                "Your LastRequiredFiles.json could not be read, so it is unknown which files to remove. "
                f"Nothing was changed. Please restart the application.\n\n{e}"
            ) from e

        if last_ran is None:
            return last_required_files or self.generator.empty()

        if last_required_files is None or last_required_files.is_empty():
            logger.warning(
                "The last required files file doesn't exist or the collections are empty. "
                "Using current version as a base."
            )
            return self.generator.for_entry(last_ran)

        return last_required_files

    def _switch_files(self, entry: Entry, last_ran: Optional[Entry]) -> None:
        root_directory = self._require_root_directory()
        platform_directory = self.paths.get_platform_directory(entry)

        last_required_files = self._get_last_required_files(last_ran)
        target_required_files = self.generator.for_entry(entry)

        def swap():
            self._delete_required_files(root_directory, last_required_files)
            self._install_required_files(platform_directory, root_directory, target_required_files)
            # Recorded so the next switch can clean these up
            self.state_manager.save_required_files(target_required_files)

        self._run_file_operation(swap)

    def _run_file_operation(self, operation: Callable[[], None],
                            failure_message: str = "The install directory could not be fully switched.") -> None:
        """Run file system work, converting OSError into user-facing errors.

        Work already done before the failure stays done; the error says so.
        """
        try:
            operation()
        except PermissionError as e:
            logger.error(f"File in use: {e}")
            raise FileInUseError(
                "A file is still being used (You are probably switching entries too fast?). "
                "Switch back to the previous version and wait a few seconds after you exit the game "
                f"so that Windows stops using the file, then retry.\n\nError\n--------\n{e}"
            ) from e
        except OSError as e:
            logger.error(f"File operation failed: {e}")
            raise FileOperationError(
                f"{failure_message} Some changes may already have been applied. "
                f"Wait a few seconds and retry.\n\nError\n--------\n{e}"
            ) from e

    def _install_required_files(self, platform_directory: Path, root_directory: Path,
                                required_files: RequiredFiles) -> None:
        required_files = self.generator.policy.filter_protected(required_files)

        for file in sorted(required_files.files):
            source_file = resolve_child(platform_directory, file)
            target_file = resolve_child(root_directory, file)
            if source_file is None or target_file is None:
                continue
            if source_file.is_file():
                logger.info(f"Copying: {source_file} -> {target_file}")
                shutil.copy2(source_file, target_file)

        for directory in sorted(required_files.directories):
            source_directory = resolve_child(platform_directory, directory)
            target_directory = resolve_child(root_directory, directory)
            if source_directory is None or target_directory is None:
                continue
            if source_directory.is_dir():
                logger.info(f"Copying: {source_directory} -> {target_directory}")
                shutil.copytree(source_directory, target_directory, dirs_exist_ok=True)

    def _delete_required_files(self, root_directory: Path, required_files: RequiredFiles) -> None:
        # A hand edited LastRequiredFiles.json must never delete a protected item
        required_files = self.generator.policy.filter_protected(required_files)

        for file in sorted(required_files.files):
            target_file = resolve_child(root_directory, file)
            if target_file is None:
                continue
            if target_file.is_file() or target_file.is_symlink():
                logger.info(f"Deleting: {target_file}")
                target_file.unlink()

        for directory in sorted(required_files.directories):
            target_directory = resolve_child(root_directory, directory)
            if target_directory is None:
                continue
            if target_directory.is_symlink():
                logger.info(f"Deleting: {target_directory}")
                target_directory.unlink()
            elif target_directory.is_dir():
                logger.info(f"Deleting: {target_directory}")
                shutil.rmtree(target_directory)

    def _restore_expansion_archives(self, root_directory: Path) -> None:
        """Put back expansion archives hidden by older releases.

        Older releases renamed the expansion archives to <name>.bak while a
        Classic platform was active. Classic versions run fine with them in
        place, so they are simply restored.
        """
        for archive in EXPANSION_ARCHIVES:
            original_path = root_directory / archive
            hidden_path = root_directory / f"{archive}{HIDDEN_ARCHIVE_SUFFIX}"

            if hidden_path.is_file() and not original_path.exists():
                logger.info(f"Moving: {hidden_path} -> {original_path}")
                try:
                    hidden_path.rename(original_path)
                except OSError as e:
                    raise FileOperationError(
                        f"Could not restore {archive} from {hidden_path.name}.\n\n{e}"
                    ) from e

    def _create_save_directory(self, entry: Entry) -> None:
        # The game falls back to <root>/Save if the registry path is missing
        save_directory = self.paths.get_save_directory(entry)
        if not save_directory.is_dir():
            logger.info(f"Creating save directory {save_directory}")
            try:
                save_directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileOperationError(f"Could not create the save directory {save_directory}.\n\n{e}") from e

    def _launch_game(self, entry: Entry) -> threading.Thread:
        root_directory = self._require_root_directory()

        self._create_save_directory(entry)
        self._restore_expansion_archives(root_directory)

        launcher_path = self.paths.get_launcher_path(entry)
        if not launcher_path.is_file():
            raise LaunchError(f"The launcher doesn't exist!\n\n{launcher_path}")

        return self.process_manager.launch(launcher_path, entry.flags, is_user_admin())

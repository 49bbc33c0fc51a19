"""Main application entry point and orchestrator"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from .config.manager import StateManager
from .config.path_validator import validate_root_directory
from .config.paths import InstallPaths, StatePaths, expand_path
from .config.schema import Entry
from .core.backup_service import BackupService
from .core.entries import EntryManager
from .core.entry_editor import EntryEditor
from .core.instance_lock import InstanceLock
from .core.process_manager import ProcessManager
from .core.protected import ProtectedSetPolicy
from .core.registry import create_activation_sink
from .core.required_files import RequiredFilesGenerator
from .core.switcher import FileSwitcher
from .errors import CorruptStateError, PreconditionError, SwitcherError
from .logging_config import setup_logging, get_logger
from . import __app_name__, __version__

logger = get_logger("app")


class PlatformSwitcherApp:
    """Main application orchestrator.

    Wires the services together and handles the startup sequence: lock,
    validate, load, migrate.
    """

    def __init__(self, state_dir: Path, process_manager: Optional[ProcessManager] = None):
        self.state_manager = StateManager(state_dir)
        self.paths = InstallPaths(self.state_manager)
        self.policy = ProtectedSetPolicy(paths=self.paths)
        self.generator = RequiredFilesGenerator(self.paths, self.policy)
        self.entries = EntryManager(self.state_manager)
        self.process_manager = process_manager or ProcessManager()
        self.activation_sink = create_activation_sink(self.paths)
        self.switcher = FileSwitcher(
            self.entries,
            self.generator,
            self.process_manager,
            self.activation_sink,
            self.paths,
            self.state_manager,
        )
        self.editor = EntryEditor(self.entries, self.paths, self.process_manager, self.activation_sink)
        self.backup_service = BackupService(self.paths, self.state_manager, self.process_manager)
        self.lock = InstanceLock(state_dir / StatePaths.LOCK_FILE)

    def start(self) -> None:
        """Take the lock and load the state files.

        Raises:
            AlreadyRunningError: Another instance holds the lock
            CorruptStateError: A state file could not be parsed
        """
        self.lock.acquire()
        try:
            if self.state_manager.is_first_run():
                logger.info("First run, no settings found")
            self.state_manager.validate()
            self.state_manager.load()
            self.state_manager.migrate_legacy_format()
        except BaseException:
            self.lock.release()
            raise

    def stop(self) -> None:
        self.lock.release()

    def get_entry(self, position: int) -> Entry:
        """Look up an entry by its 1-based position in the list."""
        entries = self.entries.get_entries()
        if not 1 <= position <= len(entries):
            raise PreconditionError(f"There is no entry number {position}. Use 'list' to see your entries.")
        return entries[position - 1]

    def run(self, args: argparse.Namespace) -> int:
        """Dispatch a parsed command."""
        handler = getattr(self, f"cmd_{args.command.replace('-', '_')}")
        return handler(args) or 0

    def cmd_list(self, args: argparse.Namespace) -> int:
        entries = self.entries.get_entries()
        if not entries:
            print("No entries. Add one with 'add --platform <name> --launcher <exe>'.")
            return 0
        for position, entry in enumerate(entries, start=1):
            marker = "*" if entry.was_last_ran else " "
            flags = f" {entry.flags}" if entry.flags else ""
            print(f"{marker} {position}. {entry.describe() or '(no platform)'} -> {entry.launcher}{flags}")
        return 0

    def cmd_add(self, args: argparse.Namespace) -> int:
        entry = Entry(
            platform=args.platform,
            label=args.label,
            launcher=args.launcher,
            flags=args.flags or "",
        )
        self.switcher.ensure_platform_exists(entry)
        self.entries.add(entry)
        print(f"Added {entry.describe()}")
        return 0

    def cmd_edit(self, args: argparse.Namespace) -> int:
        entry = self.get_entry(args.index)
        changes = {
            name: getattr(args, name)
            for name in ("platform", "label", "launcher", "flags", "was_last_ran")
            if getattr(args, name) is not None
        }
        self.editor.edit(entry, **changes)
        print(f"Updated {entry.describe()}")
        return 0

    def cmd_delete(self, args: argparse.Namespace) -> int:
        entry = self.get_entry(args.index)
        self.entries.delete(entry)
        print(f"Deleted {entry.describe() or '(no platform)'}")
        return 0

    def cmd_copy(self, args: argparse.Namespace) -> int:
        self.entries.copy(self.get_entry(args.index))
        print(f"Copied to entry {len(self.entries.get_entries())}. Set its platform with 'edit'.")
        return 0

    def cmd_move_up(self, args: argparse.Namespace) -> int:
        self.entries.move_up(self.get_entry(args.index))
        return 0

    def cmd_move_down(self, args: argparse.Namespace) -> int:
        self.entries.move_down(self.get_entry(args.index))
        return 0

    def cmd_move(self, args: argparse.Namespace) -> int:
        self.get_entry(args.index)
        try:
            self.entries.move(args.index - 1, args.target - 1)
        except IndexError as e:
            raise PreconditionError(str(e)) from e
        return 0

    def cmd_run(self, args: argparse.Namespace) -> int:
        entry = self.get_entry(args.index)
        thread = self.switcher.run(entry)
        print(f"Launched {entry.describe()}")
        thread.join()
        if self.process_manager.last_error:
            print(self.process_manager.last_error, file=sys.stderr)
            return 2
        return 0

    def cmd_reset(self, args: argparse.Namespace) -> int:
        self.switcher.reset_directory()
        print("Your directory has been reset.")
        return 0

    def cmd_backup(self, args: argparse.Namespace) -> int:
        if args.list:
            for backup in self.backup_service.list_backups():
                print(backup)
            return 0
        backup_directory = self.backup_service.create_backup()
        print(f"Backup created at {backup_directory}")
        return 0

    def cmd_settings(self, args: argparse.Namespace) -> int:
        settings = self.state_manager.state.settings
        changed = False

        if args.root is not None:
            root_directory = expand_path(args.root)
            is_valid, error_message = validate_root_directory(root_directory)
            if not is_valid:
                raise PreconditionError(f"{error_message}: {root_directory}")
            settings.root_directory = str(root_directory)
            changed = True

        if args.backups_dir is not None:
            settings.backups_directory = args.backups_dir
            changed = True

        if changed:
            self.state_manager.save_settings()
            logger.info("Settings saved")

        print(f"Root directory:    {settings.root_directory or '(not set)'}")
        backups = self.paths.get_backups_directory() if self.paths.is_root_directory_set() else None
        print(f"Backups directory: {backups or settings.backups_directory or '(not set)'}")
        return 0


# Flags usually start with "-", which argparse would read as another option
FLAGS_HELP = "Launcher arguments, passed through verbatim. Use the = form: --flags=\"-w -direct\""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="platform-switcher",
        description=f"{__app_name__} v{__version__}: switch one Diablo II install between platforms",
    )
    parser.add_argument("--state-dir", default=None,
                        help=f"Directory holding the state files (default: ${StatePaths.HOME_ENV_VAR} or cwd)")
    parser.add_argument("--debug", action="store_true", help="Also log to the console")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show all entries (* marks the installed one)")

    add = sub.add_parser("add", help="Add an entry")
    add.add_argument("--platform", required=True)
    add.add_argument("--launcher", required=True)
    add.add_argument("--label", default=None)
    add.add_argument("--flags", default="", help=FLAGS_HELP)

    edit = sub.add_parser("edit", help="Change an entry, renaming its directories if needed")
    edit.add_argument("index", type=int)
    edit.add_argument("--platform", default=None)
    edit.add_argument("--launcher", default=None)
    edit.add_argument("--label", default=None)
    edit.add_argument("--flags", default=None, help=FLAGS_HELP)
    edit.add_argument("--last-ran", dest="was_last_ran", action=argparse.BooleanOptionalAction, default=None)

    for name, help_text in (
        ("delete", "Delete an entry"),
        ("copy", "Copy an entry (without its platform)"),
        ("move-up", "Move an entry up"),
        ("move-down", "Move an entry down"),
        ("run", "Switch to an entry and launch it"),
    ):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("index", type=int)

    move = sub.add_parser("move", help="Move an entry in front of another position")
    move.add_argument("index", type=int)
    move.add_argument("target", type=int)

    sub.add_parser("reset", help="Remove the installed platform's files from the root")

    backup = sub.add_parser("backup", help="Back up platforms, saves and state files")
    backup.add_argument("--list", action="store_true", help="List existing backups instead")

    settings = sub.add_parser("settings", help="Show or change settings")
    settings.add_argument("--root", default=None, help="Install root directory")
    settings.add_argument("--backups-dir", default=None, help="Where backups are stored")

    return parser


def main(argv: Optional[list[str]] = None):
    """Application entry point."""
    args = build_parser().parse_args(argv)
    state_dir = expand_path(args.state_dir) if args.state_dir else StatePaths.default_state_dir()

    # Initialize logging first
    root_logger = setup_logging(state_dir, debug=args.debug)
    root_logger.info(f"Starting {__app_name__} v{__version__}")

    exit_code = 0
    app = PlatformSwitcherApp(state_dir)
    try:
        app.start()
        try:
            exit_code = app.run(args)
        finally:
            app.stop()
    except CorruptStateError as e:
        logger.error(str(e))
        print(str(e), file=sys.stderr)
        exit_code = 1
    except SwitcherError as e:
        logger.warning(str(e))
        print(str(e), file=sys.stderr)
        exit_code = 2
    except Exception as e:
        logger.exception("Fatal error")
        print(f"{__app_name__} failed:\n\n{e}", file=sys.stderr)
        exit_code = 1
    finally:
        root_logger.info(f"{__app_name__} shutting down")

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

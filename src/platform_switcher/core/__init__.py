"""Core business logic module.

This module contains the switch engine and the services around it.

Submodules:
    protected: ProtectedSetPolicy, the names in the root that are never touched
    required_files: RequiredFilesGenerator for a platform's top-level manifest
    entries: EntryManager for the ordered entry list and the last ran flag
    entry_editor: EntryEditor, edits with platform and label rename cascades
    switcher: FileSwitcher, which installs, removes and launches platforms
    process_manager: ProcessManager for launching and the running-game guard
    registry: Activation sinks that point the game at the active save directory
    instance_lock: InstanceLock so only one copy manages a root at a time
    backup_service: BackupService for timestamped copies of platforms and saves

Only names directly below the install root are switched. Everything inside a
platform directory is copied as a unit.
"""

from .backup_service import BackupService
from .entries import EntryManager
from .entry_editor import EntryEditor
from .instance_lock import InstanceLock
from .process_manager import ProcessManager
from .protected import ProtectedSetPolicy
from .registry import create_activation_sink
from .required_files import RequiredFilesGenerator
from .switcher import FileSwitcher

__all__ = [
    "BackupService",
    "EntryManager",
    "EntryEditor",
    "FileSwitcher",
    "InstanceLock",
    "ProcessManager",
    "ProtectedSetPolicy",
    "RequiredFilesGenerator",
    "create_activation_sink",
]

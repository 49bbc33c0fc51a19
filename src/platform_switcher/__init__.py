"""Platform Switcher - Multi-installation manager for Diablo II.

This application provides:
    - Several isolated game "platforms" (versions, mods) sharing one install root
    - Switching which platform's files are installed into the root
    - Per-platform (and per-label) save directories
    - Reset of the root back to a clean, platform-free baseline
    - Backups of platforms, saves and state files

The switch engine keeps a manifest of every top-level file and directory it
installed, so a later switch (even after a restart) knows exactly what to
remove. Core game archives are protected and never removed or overwritten.

Package Structure:
    app: Application entry point and command-line front end
    config: JSON state persistence, schema, install paths and validation
    core: Switch engine, manifests, entries, processes, backups

Quick Start:
    Run from command line::

        python -m platform_switcher list
        python -m platform_switcher run 1

    Or programmatically::

        from platform_switcher.app import main
        main(["run", "1"])

State files (stored in the state directory, the game root by default):
    - Entries.json
    - LastRequiredFiles.json
    - Settings.json
    - platform_switcher.log
"""

__version__ = "2.3.0"
__app_name__ = "Platform Switcher"

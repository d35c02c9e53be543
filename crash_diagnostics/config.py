# crash_diagnostics/config.py

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from platformdirs import user_documents_dir

APP_NAME = "Crash Diagnostics Tool"

# Game layout
GAME_EXECUTABLE = "RDR2.exe"
SCRIPTS_FOLDER = "scripts"
GAME_LOG_PATTERN = "*.log"
SETTINGS_RELATIVE_PATH = ("Rockstar Games", "Red Dead Redemption 2", "Settings", "system.xml")
GAME_RELATIVE_PATH = ("Rockstar Games", "Red Dead Redemption 2")
PROGRAM_FILES_FALLBACK = r"C:\Program Files"

# Archive entry names
ENTRY_SETTINGS = "system.xml"
ENTRY_DXDIAG = "dxdiag.xml"
ENTRY_GAME_LISTING = "fs_game_folder.txt"
ENTRY_SCRIPTS_LISTING = "fx_scripts_folder.txt"
ENTRY_RUN_LOG = "CrashDiagnostics.log"

# Output names, dated yy-MM-dd
ARCHIVE_NAME_FORMAT = "CrashDiagnostics-{date:%y-%m-%d}.zip"
LOG_NAME_FORMAT = "CrashDiag-{date:%y-%m-%d}.log"

# Directory listings are joined the way the Windows build always wrote them
LISTING_SEPARATOR = "\r\n"

# Folder prompt is bounded; None from the operator cancels immediately
DEFAULT_MAX_ATTEMPTS = 5

# Env switch for VERBOSE log lines
DEBUG_ENV_VAR = "CRASHDIAG_DEBUG"


def archive_name(now: datetime | None = None) -> str:
    return ARCHIVE_NAME_FORMAT.format(date=now or datetime.now())


def log_name(now: datetime | None = None) -> str:
    return LOG_NAME_FORMAT.format(date=now or datetime.now())


def default_settings_file() -> Path:
    return Path(user_documents_dir()).joinpath(*SETTINGS_RELATIVE_PATH)


def default_game_dir() -> Path:
    program_files = os.environ.get("PROGRAMFILES") or PROGRAM_FILES_FALLBACK
    return Path(program_files).joinpath(*GAME_RELATIVE_PATH)


@dataclass
class BundlerConfig:
    """Where the bundler reads from and writes to for a single run."""
    settings_file: Path
    default_game_dir: Path
    output_dir: Path
    log_file: Path
    executable_name: str = GAME_EXECUTABLE
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


def default_config(cwd: str | os.PathLike | None = None, now: datetime | None = None) -> BundlerConfig:
    base = Path(cwd) if cwd is not None else Path.cwd()
    now = now or datetime.now()
    return BundlerConfig(
        settings_file=default_settings_file(),
        default_game_dir=default_game_dir(),
        output_dir=base,
        log_file=base / log_name(now),
    )

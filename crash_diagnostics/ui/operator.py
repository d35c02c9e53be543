# crash_diagnostics/ui/operator.py

from __future__ import annotations

import sys
from typing import Optional, Protocol

from crash_diagnostics.config import APP_NAME

SUCCESS_MESSAGE = (
    "The Crash Diagnostics Tool has finished running! Send the following file to the "
    "developers who requested you to run it:\n\n{archive_name}"
)
FAILURE_MESSAGE = (
    "Could not pack diagnostic data. Please send the developers the Diagnostics Log file."
)
FOLDER_PROMPT_TITLE = "Select your RDR2 Game Folder"


class Operator(Protocol):
    """The person running the tool. Returning None from pick_directory means cancel."""

    def pick_directory(self, title: str) -> Optional[str]: ...

    def show_success(self, archive_name: str) -> None: ...

    def show_failure(self, log_name: str) -> None: ...


class ConsoleOperator:
    """Plain text prompts for headless runs. Empty answer or EOF cancels."""

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def pick_directory(self, title: str) -> Optional[str]:
        self.stdout.write(f"{title} (leave empty to cancel): ")
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        answer = line.strip().strip('"')
        return answer or None

    def show_success(self, archive_name: str) -> None:
        print(f"[{APP_NAME}] " + SUCCESS_MESSAGE.format(archive_name=archive_name), file=self.stdout)

    def show_failure(self, log_name: str) -> None:
        print(f"[Error] {FAILURE_MESSAGE} ({log_name})", file=self.stdout)

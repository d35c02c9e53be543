# crash_diagnostics/core/game_locator.py

from __future__ import annotations

from pathlib import Path
from typing import Optional

from crash_diagnostics.config import DEFAULT_MAX_ATTEMPTS, GAME_EXECUTABLE
from crash_diagnostics.core.errors import GameFolderNotFound
from crash_diagnostics.ui.operator import FOLDER_PROMPT_TITLE, Operator
from crash_diagnostics.utils.logger import logger


class GameLocator:
    """
    Finds the installation folder: the default folder when it holds the
    executable, otherwise whatever the operator picks. Prompts are bounded
    by `max_attempts`, and a None answer from the operator cancels.
    """

    def __init__(
        self,
        default_dir,
        operator: Operator,
        executable: str = GAME_EXECUTABLE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self.default_dir = Path(default_dir)
        self.operator = operator
        self.executable = executable
        self.max_attempts = max(0, int(max_attempts))

    def is_game_folder(self, path) -> bool:
        p = Path(path)
        return p.is_dir() and (p / self.executable).is_file()

    def locate(self) -> Optional[Path]:
        if self.is_game_folder(self.default_dir):
            return self.default_dir

        logger.warning("Could not find game at default folder. Prompting user for game directory path.")
        for attempt in range(1, self.max_attempts + 1):
            picked = self.operator.pick_directory(FOLDER_PROMPT_TITLE)
            if picked is None:
                logger.warning("Game folder selection cancelled.")
                return None
            if self.is_game_folder(picked):
                return Path(picked)
            logger.warning(f"Could not find {self.executable} in specified path.")
            logger.debug(f"Rejected folder {picked!r} (attempt {attempt}/{self.max_attempts})")

        logger.warning(f"Gave up looking for the game folder after {self.max_attempts} attempt(s).")
        return None

    def require(self) -> Path:
        path = self.locate()
        if path is None:
            raise GameFolderNotFound(f"No folder containing {self.executable} was selected")
        return path

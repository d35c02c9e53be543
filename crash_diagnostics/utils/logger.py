# crash_diagnostics/utils/logger.py

import logging
import os
import sys
from pathlib import Path

from crash_diagnostics.config import DEBUG_ENV_VAR

LOGGER_NAME = "crash_diagnostics"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# VERBOSE is plain DEBUG, only switched on by CRASHDIAG_DEBUG / --verbose
VERBOSE = logging.DEBUG

_LEVEL_TAGS = {
    logging.DEBUG: "VERBOSE",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

# ANSI SGR prefixes (dark gray, white, yellow, red)
_LEVEL_STYLES = {
    logging.DEBUG: "\x1b[90m",
    logging.INFO: "\x1b[37m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
}
RESET_STYLE = "\x1b[0m"


def _closest_level(levelno: int, table: dict) -> int:
    known = [lvl for lvl in sorted(table) if lvl <= levelno]
    return known[-1] if known else min(table)


def level_tag(levelno: int) -> str:
    return _LEVEL_TAGS[_closest_level(levelno, _LEVEL_TAGS)]


def console_style(levelno: int) -> str:
    """Severity -> display style. Pure; nothing touches terminal state."""
    return _LEVEL_STYLES[_closest_level(levelno, _LEVEL_STYLES)]


class RunLogFormatter(logging.Formatter):
    """`2026-10-18 14:03:11 [WARN] message`, traceback on following lines."""

    def __init__(self):
        super().__init__("%(asctime)s [%(tag)s] %(message)s", datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        record.tag = level_tag(record.levelno)
        return super().format(record)


class AppendingFileHandler(logging.Handler):
    """Opens, appends one line and closes the log file on every record."""

    def __init__(self, path, encoding: str = "utf-8"):
        super().__init__()
        self.path = Path(path)
        self.encoding = encoding

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            with open(self.path, "a", encoding=self.encoding) as f:
                f.write(msg + "\n")
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        # Logging must never take the run down; tell the console and move on.
        exc = sys.exc_info()[1]
        print(f"Failed to write log file {self.path}: {exc}", file=sys.stderr)


class ConsoleHandler(logging.StreamHandler):
    def __init__(self, stream=None):
        super().__init__(stream if stream is not None else sys.stdout)

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if self._use_color():
            return f"{console_style(record.levelno)}{msg}{RESET_STYLE}"
        return msg

    def _use_color(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        try:
            return bool(isatty and isatty())
        except ValueError:
            # closed stream
            return False


def setup_logger(log_path, verbose: bool | None = None, stream=None) -> logging.Logger:
    """Wire the run logger to the console and to the dated run log file."""
    if verbose is None:
        verbose = bool(os.environ.get(DEBUG_ENV_VAR))

    log = logging.getLogger(LOGGER_NAME)
    log.setLevel(VERBOSE if verbose else logging.INFO)
    log.propagate = False
    for h in list(log.handlers):
        if isinstance(h, (AppendingFileHandler, ConsoleHandler, logging.NullHandler)):
            log.removeHandler(h)

    formatter = RunLogFormatter()

    console = ConsoleHandler(stream)
    console.setFormatter(formatter)
    log.addHandler(console)

    fh = AppendingFileHandler(log_path)
    fh.setFormatter(formatter)
    log.addHandler(fh)
    return log


def detach_run_log() -> list[Path]:
    """Stop writing to the run log file. Returns the paths that were detached."""
    log = logging.getLogger(LOGGER_NAME)
    detached = []
    for h in list(log.handlers):
        if isinstance(h, AppendingFileHandler):
            log.removeHandler(h)
            detached.append(h.path)
    return detached


def reattach_run_log(log_path) -> bool:
    """Write to `log_path` again after detach_run_log(). Returns False if already attached."""
    log = logging.getLogger(LOGGER_NAME)
    path = Path(log_path)
    for h in log.handlers:
        if isinstance(h, AppendingFileHandler) and h.path == path:
            return False
    fh = AppendingFileHandler(path)
    fh.setFormatter(RunLogFormatter())
    log.addHandler(fh)
    return True


logger = logging.getLogger(LOGGER_NAME)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

# crash_diagnostics/core/errors.py


class CrashDiagnosticsError(Exception):
    """Base class for errors raised by the bundler."""


class MissingInputError(CrashDiagnosticsError):
    """An input file or directory does not exist. The step is skipped."""


class ReportToolError(CrashDiagnosticsError):
    """The diagnostic report utility is missing, failed to start or exited non-zero."""


class GameFolderNotFound(CrashDiagnosticsError):
    """No folder containing the game executable could be resolved."""

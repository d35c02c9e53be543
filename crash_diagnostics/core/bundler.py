# crash_diagnostics/core/bundler.py

from __future__ import annotations

import glob
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from crash_diagnostics.config import (
    ENTRY_DXDIAG,
    ENTRY_GAME_LISTING,
    ENTRY_RUN_LOG,
    ENTRY_SCRIPTS_LISTING,
    ENTRY_SETTINGS,
    GAME_LOG_PATTERN,
    SCRIPTS_FOLDER,
    BundlerConfig,
    archive_name,
)
from crash_diagnostics.core.archive_writer import ArchiveWriter
from crash_diagnostics.core.errors import MissingInputError
from crash_diagnostics.core.game_locator import GameLocator
from crash_diagnostics.core.listing import dump_listing
from crash_diagnostics.core.results import ArchiveTask, BundleReport, PackResult
from crash_diagnostics.ui.operator import Operator
from crash_diagnostics.utils.logger import detach_run_log, logger, reattach_run_log
from crash_diagnostics.utils.sysinfo import DxDiagRunner, get_file_version


class ReportTool(Protocol):
    def run(self) -> Path: ...


def require_file(path) -> Path:
    p = Path(path)
    if not p.is_file():
        raise MissingInputError(f"{p} not found")
    return p


def require_dir(path) -> Path:
    p = Path(path)
    if not p.is_dir():
        raise MissingInputError(f"{p} not found")
    return p


class DiagnosticBundler:
    """
    Packs the settings file, a DirectX report, game folder listings, game logs
    and the run log into CrashDiagnostics-<yy-MM-dd>.zip.

    Settings, DxDiag and the scripts listing are skip-tolerant. Anything else
    that raises lands in run(), which logs it, removes the partial archive and
    shows the operator a single failure notice.
    """

    def __init__(
        self,
        config: BundlerConfig,
        operator: Operator,
        report_tool: Optional[ReportTool] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.operator = operator
        self.report_tool = report_tool if report_tool is not None else DxDiagRunner()
        self.clock = clock
        self.results: List[PackResult] = []

    # ---------- public API ----------

    def output_path(self) -> Path:
        return Path(self.config.output_dir) / archive_name(self.clock())

    def run(self) -> BundleReport:
        self.results = []
        path: Optional[Path] = None
        archive: Optional[ArchiveWriter] = None
        try:
            path = self.resolve_output_path()
            archive = ArchiveWriter(path)
            with archive:
                self.build_task(archive).run(self.results)
            # Closed cleanly: from here on the archive is finished, never partial
            archive = None
        except Exception as e:
            reattach_run_log(self.config.log_file)
            logger.exception("Could not pack diagnostic data")
            if archive is not None:
                self._discard_partial(archive)
            self.operator.show_failure(Path(self.config.log_file).name)
            return BundleReport(ok=False, results=list(self.results), error=e)

        try:
            self.operator.show_success(path.name)
        except Exception:
            reattach_run_log(self.config.log_file)
            logger.exception(f"Packed {path} but could not show the success notice")
        return BundleReport(ok=True, archive_path=path, results=list(self.results))

    def resolve_output_path(self) -> Path:
        path = self.output_path()
        if path.exists():
            logger.debug(f"Removing previous archive {path}")
            path.unlink()
        return path

    def build_task(self, archive: ArchiveWriter) -> ArchiveTask:
        task = ArchiveTask()
        task.add("settings", lambda: [self.pack_game_settings(archive)])
        task.add("dxdiag", lambda: [self.pack_dxdiag(archive)])
        task.add("game_files", lambda: self.pack_game_files(archive))
        task.add("run_log", lambda: [self.pack_log_file(archive)])
        return task

    # ---------- steps ----------

    def pack_game_settings(self, archive: ArchiveWriter) -> PackResult:
        logger.info("Retrieving game settings file")
        try:
            settings = require_file(self.config.settings_file)
        except MissingInputError as e:
            logger.warning("No game settings file could be found.")
            return PackResult.skipped("settings", str(e))
        archive.write_file(ENTRY_SETTINGS, settings)
        logger.info("Packed game settings file")
        return PackResult.packed("settings", ENTRY_SETTINGS)

    def pack_dxdiag(self, archive: ArchiveWriter) -> PackResult:
        report: Optional[Path] = None
        try:
            logger.info("Retrieving DirectX Diagnostics")
            report = self.report_tool.run()
            archive.write_file(ENTRY_DXDIAG, report)
            logger.info("Packed DirectX Diagnostics")
            return PackResult.packed("dxdiag", ENTRY_DXDIAG)
        except Exception as e:
            logger.exception("Failed to retrieve DirectX Diagnostics")
            return PackResult.failed("dxdiag", e)
        finally:
            if report is not None:
                self._remove_temp(report)

    def pack_game_files(self, archive: ArchiveWriter) -> List[PackResult]:
        locator = GameLocator(
            self.config.default_game_dir,
            self.operator,
            executable=self.config.executable_name,
            max_attempts=self.config.max_attempts,
        )
        game_dir = locator.locate()
        if game_dir is None:
            logger.warning("No game folder selected, skipping game files.")
            return [PackResult.skipped("game_files", "game folder not found")]

        logger.info(f"Found Game Folder: {game_dir}")
        version = get_file_version(game_dir / self.config.executable_name)
        logger.info(f"Game Version: {version or 'unknown'}")

        results: List[PackResult] = []

        logger.info("Grabbing hierarchy of game directory")
        archive.write_bytes(ENTRY_GAME_LISTING, dump_listing(game_dir).to_bytes())
        results.append(PackResult.packed("game_listing", ENTRY_GAME_LISTING))

        try:
            scripts = require_dir(game_dir / SCRIPTS_FOLDER)
        except MissingInputError as e:
            logger.warning("No scripts directory found, skipping.")
            results.append(PackResult.skipped("scripts_listing", str(e)))
        else:
            logger.info("Grabbing hierarchy of scripts directory")
            archive.write_bytes(ENTRY_SCRIPTS_LISTING, dump_listing(scripts).to_bytes())
            results.append(PackResult.packed("scripts_listing", ENTRY_SCRIPTS_LISTING))

        logger.info("Grabbing *.log files")
        for log_file in self.game_log_files(game_dir):
            # Entry keeps the full source path, as earlier archives did
            archive.write_file(log_file, log_file)
            results.append(PackResult.packed("game_logs", log_file))

        logger.info("Finished packing game files")
        return results

    def pack_log_file(self, archive: ArchiveWriter) -> PackResult:
        logger.info(f"Successfully packed diagnostic data into: {archive.path}")
        log_path = Path(self.config.log_file)
        archive.write_file(ENTRY_RUN_LOG, log_path)
        # File handler stays attached until the file is gone
        log_path.unlink()
        detach_run_log()
        return PackResult.packed("run_log", ENTRY_RUN_LOG)

    # ---------- internals ----------

    @staticmethod
    def game_log_files(game_dir: Path) -> List[str]:
        pattern = os.path.join(glob.escape(os.fspath(game_dir)), GAME_LOG_PATTERN)
        return [p for p in glob.glob(pattern) if os.path.isfile(p)]

    @staticmethod
    def _remove_temp(path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary report {path}: {e}")

    def _discard_partial(self, archive: ArchiveWriter) -> None:
        try:
            archive.close()
        except Exception as e:
            logger.debug(f"Closing partial archive failed: {e}")
        try:
            if archive.path.exists():
                archive.path.unlink()
        except OSError as e:
            logger.error(f"Could not remove partial archive {archive.path}: {e}")

import unittest
import io
import os
import shutil
import zipfile
from datetime import datetime
from pathlib import Path
from unittest import mock

from crash_diagnostics.config import BundlerConfig
from crash_diagnostics.core.archive_writer import ArchiveWriter
from crash_diagnostics.core.bundler import DiagnosticBundler, require_dir, require_file
from crash_diagnostics.core.errors import MissingInputError, ReportToolError
from crash_diagnostics.core.results import PackStatus
from crash_diagnostics.utils.logger import detach_run_log, setup_logger

FIXED_NOW = datetime(2026, 10, 18, 12, 30, 0)
ARCHIVE = "CrashDiagnostics-26-10-18.zip"


class FakeOperator:
    def __init__(self, answers=()):
        self.answers = list(answers)
        self.prompts = 0
        self.successes = []
        self.failures = []

    def pick_directory(self, title):
        self.prompts += 1
        return self.answers.pop(0) if self.answers else None

    def show_success(self, archive_name):
        self.successes.append(archive_name)

    def show_failure(self, log_name):
        self.failures.append(log_name)


class FailingReportTool:
    def run(self):
        raise ReportToolError("Failed to start process.")


class FileReportTool:
    def __init__(self, path):
        self.path = Path(path)

    def run(self):
        return self.path


def entry_name(path) -> str:
    return str(path).replace(os.sep, "/")


class TestDiagnosticBundler(unittest.TestCase):
    def setUp(self):
        self.base = Path(__file__).resolve().parent / "_tmp_bundler"
        if self.base.exists():
            shutil.rmtree(self.base)
        self.game = self.base / "game"
        self.out = self.base / "out"
        self.game.mkdir(parents=True, exist_ok=True)
        self.out.mkdir(parents=True, exist_ok=True)
        (self.game / "RDR2.exe").write_bytes(b"MZ")
        (self.game / "a.log").write_text("game log line\n", encoding="utf-8")
        self.settings = self.base / "system.xml"
        self.settings.write_bytes(b"<settings>")  # 10 bytes
        self.log_path = self.out / "CrashDiag-26-10-18.log"
        self.config = BundlerConfig(
            settings_file=self.settings,
            default_game_dir=self.game,
            output_dir=self.out,
            log_file=self.log_path,
        )
        self.console = io.StringIO()
        setup_logger(self.log_path, verbose=False, stream=self.console)

    def tearDown(self):
        detach_run_log()
        if self.base.exists():
            shutil.rmtree(self.base)

    def _run(self, operator=None, report_tool=None):
        operator = operator or FakeOperator()
        bundler = DiagnosticBundler(
            self.config,
            operator,
            report_tool=report_tool or FailingReportTool(),
            clock=lambda: FIXED_NOW,
        )
        return bundler.run(), operator

    def _names(self):
        with zipfile.ZipFile(self.out / ARCHIVE) as zf:
            return zf.namelist()

    def _read(self, name):
        with zipfile.ZipFile(self.out / ARCHIVE) as zf:
            return zf.read(name)

    def test_reference_scenario(self):
        report, op = self._run()
        self.assertTrue(report.ok)
        self.assertEqual(report.archive_path, self.out / ARCHIVE)
        self.assertEqual(op.successes, [ARCHIVE])
        self.assertEqual(op.failures, [])
        self.assertEqual(op.prompts, 0)
        self.assertEqual(
            sorted(self._names()),
            sorted([
                "system.xml",
                "fs_game_folder.txt",
                entry_name(self.game / "a.log"),
                "CrashDiagnostics.log",
            ]),
        )
        self.assertEqual(self._read("system.xml"), b"<settings>")
        self.assertEqual(self._read(entry_name(self.game / "a.log")), b"game log line\n")
        failed = report.by_status(PackStatus.FAILED)
        self.assertEqual([r.step for r in failed], ["dxdiag"])

    def test_missing_settings_is_skipped(self):
        self.settings.unlink()
        report, op = self._run()
        self.assertTrue(report.ok)
        self.assertNotIn("system.xml", self._names())
        self.assertEqual(op.successes, [ARCHIVE])
        skipped = [r.step for r in report.by_status(PackStatus.SKIPPED)]
        self.assertIn("settings", skipped)
        self.assertIn("No game settings file could be found.", self._read("CrashDiagnostics.log").decode("utf-8"))

    def test_dxdiag_failure_does_not_stop_run(self):
        report, _ = self._run(report_tool=FailingReportTool())
        names = self._names()
        self.assertNotIn("dxdiag.xml", names)
        self.assertIn("fs_game_folder.txt", names)
        self.assertIn("CrashDiagnostics.log", names)
        log_text = self._read("CrashDiagnostics.log").decode("utf-8")
        self.assertIn("[ERROR] Failed to retrieve DirectX Diagnostics", log_text)
        self.assertIn("ReportToolError", log_text)

    def test_dxdiag_report_packed_and_removed(self):
        tmp_report = self.base / "dxdiag_tmp.xml"
        tmp_report.write_bytes(b"<DxDiag/>")
        report, _ = self._run(report_tool=FileReportTool(tmp_report))
        self.assertTrue(report.ok)
        self.assertEqual(self._read("dxdiag.xml"), b"<DxDiag/>")
        self.assertFalse(tmp_report.exists())

    def test_scripts_listing_absent_without_folder(self):
        self._run()
        self.assertNotIn("fx_scripts_folder.txt", self._names())

    def test_empty_scripts_folder_gives_empty_entry(self):
        (self.game / "scripts").mkdir()
        self._run()
        self.assertIn("fx_scripts_folder.txt", self._names())
        self.assertEqual(self._read("fx_scripts_folder.txt"), b"")

    def test_scripts_listing_content(self):
        scripts = self.game / "scripts"
        scripts.mkdir()
        (scripts / "one.lua").write_text("1", encoding="utf-8")
        (scripts / "nested").mkdir()
        (scripts / "nested" / "deep.lua").write_text("2", encoding="utf-8")
        self._run()
        expected = "\r\n".join(e.path for e in os.scandir(scripts))
        self.assertEqual(self._read("fx_scripts_folder.txt").decode("utf-8"), expected)
        self.assertNotIn("deep.lua", expected)

    def test_game_listing_is_top_level(self):
        self._run()
        lines = self._read("fs_game_folder.txt").decode("utf-8").split("\r\n")
        self.assertEqual(
            sorted(lines),
            sorted([str(self.game / "RDR2.exe"), str(self.game / "a.log")]),
        )

    def test_second_run_overwrites_archive(self):
        self._run()
        self.settings.write_bytes(b"<second/>")
        setup_logger(self.log_path, verbose=False, stream=self.console)
        report, _ = self._run()
        self.assertTrue(report.ok)
        zips = [p.name for p in self.out.iterdir() if p.suffix == ".zip"]
        self.assertEqual(zips, [ARCHIVE])
        names = self._names()
        self.assertEqual(names.count("system.xml"), 1)
        self.assertEqual(self._read("system.xml"), b"<second/>")

    def test_run_log_archived_verbatim_and_deleted(self):
        self._run()
        self.assertFalse(self.log_path.exists())
        archived = self._read("CrashDiagnostics.log").decode("utf-8")
        # console saw exactly the lines that went to the file
        self.assertEqual(archived.replace("\r\n", "\n"), self.console.getvalue())
        self.assertIn("Successfully packed diagnostic data into:", archived)

    def test_prompts_when_default_folder_is_wrong(self):
        self.config.default_game_dir = self.base / "not_installed"
        op = FakeOperator([str(self.out), str(self.game)])
        report, _ = self._run(operator=op)
        self.assertTrue(report.ok)
        self.assertEqual(op.prompts, 2)
        self.assertIn("fs_game_folder.txt", self._names())
        log_text = self._read("CrashDiagnostics.log").decode("utf-8")
        self.assertIn("Could not find RDR2.exe in specified path.", log_text)
        self.assertIn(f"Found Game Folder: {self.game}", log_text)

    def test_cancelled_folder_prompt_skips_game_files(self):
        self.config.default_game_dir = self.base / "not_installed"
        op = FakeOperator([None])
        report, _ = self._run(operator=op)
        self.assertTrue(report.ok)
        names = self._names()
        self.assertNotIn("fs_game_folder.txt", names)
        self.assertIn("system.xml", names)
        self.assertIn("CrashDiagnostics.log", names)

    def test_unwritable_output_fails_whole_run(self):
        self.config.output_dir = self.base / "no_such_dir"
        report, op = self._run()
        self.assertFalse(report.ok)
        self.assertIsInstance(report.error, OSError)
        self.assertEqual(op.successes, [])
        self.assertEqual(op.failures, [self.log_path.name])
        text = self.log_path.read_text(encoding="utf-8")
        self.assertIn("[ERROR] Could not pack diagnostic data", text)
        self.assertIn("Traceback", text)

    def test_failure_mid_run_removes_partial_archive(self):
        with mock.patch(
            "crash_diagnostics.core.bundler.dump_listing",
            side_effect=PermissionError("denied"),
        ):
            report, op = self._run()
        self.assertFalse(report.ok)
        self.assertFalse((self.out / ARCHIVE).exists())
        self.assertEqual(len(op.failures), 1)
        # steps before the failure are still reported
        self.assertEqual(report.results[0].step, "settings")
        self.assertEqual(report.results[0].status, PackStatus.PACKED)
        text = self.log_path.read_text(encoding="utf-8")
        self.assertIn("PermissionError: denied", text)

    def test_success_notice_error_keeps_archive(self):
        op = NoticeFailsOperator()
        report, _ = self._run(operator=op)
        self.assertTrue(report.ok)
        self.assertEqual(report.archive_path, self.out / ARCHIVE)
        self.assertIn("CrashDiagnostics.log", self._names())
        self.assertEqual(op.failures, [])
        # the notice failure is recorded on disk even though the run log was archived
        text = self.log_path.read_text(encoding="utf-8")
        self.assertIn("could not show the success notice", text)
        self.assertIn("RuntimeError: no display", text)

    def test_dxdiag_temp_removed_when_packing_fails(self):
        tmp_report = self.base / "dxdiag_tmp.xml"
        tmp_report.write_bytes(b"<DxDiag/>")
        real_write = ArchiveWriter.write_file

        def failing_dxdiag_write(archive, name, source, compress=True):
            if name == "dxdiag.xml":
                raise OSError("disk full")
            return real_write(archive, name, source, compress)

        with mock.patch.object(ArchiveWriter, "write_file", failing_dxdiag_write):
            report, _ = self._run(report_tool=FileReportTool(tmp_report))
        self.assertTrue(report.ok)
        self.assertFalse(tmp_report.exists())
        self.assertNotIn("dxdiag.xml", self._names())
        self.assertEqual([r.step for r in report.by_status(PackStatus.FAILED)], ["dxdiag"])

    def test_missing_inputs_raise_missing_input_error(self):
        with self.assertRaises(MissingInputError):
            require_file(self.base / "absent.xml")
        with self.assertRaises(MissingInputError):
            require_dir(self.game / "scripts")
        with self.assertRaises(MissingInputError):
            require_dir(self.settings)
        self.assertEqual(require_file(self.settings), self.settings)

    def test_skip_reasons_name_missing_input(self):
        self.settings.unlink()
        report, _ = self._run()
        reasons = {r.step: r.reason for r in report.by_status(PackStatus.SKIPPED)}
        self.assertIn(str(self.settings), reasons["settings"])
        self.assertIn("scripts", reasons["scripts_listing"])


class NoticeFailsOperator(FakeOperator):
    def show_success(self, archive_name):
        raise RuntimeError("no display")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path
from typing import List

from crash_diagnostics.config import APP_NAME, DEFAULT_MAX_ATTEMPTS, default_config
from crash_diagnostics.core.bundler import DiagnosticBundler
from crash_diagnostics.ui.operator import ConsoleOperator
from crash_diagnostics.utils.logger import logger, setup_logger
from crash_diagnostics.utils.sysinfo import get_system_summary


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="crash-diagnostics",
        description="Bundle RDR2 settings, DxDiag output, folder listings and logs into one zip",
    )
    p.add_argument("--game-dir", help="Game folder to use instead of the default install location")
    p.add_argument("--output-dir", help="Where to write the archive (default: current folder)")
    p.add_argument("--settings-file", help="Path to system.xml (default: under Documents)")
    p.add_argument("--console", action="store_true", help="Prompt in the terminal instead of showing dialogs")
    p.add_argument("--max-attempts", type=int, default=DEFAULT_MAX_ATTEMPTS,
                   help="How many times to ask for the game folder before giving up")
    p.add_argument("--verbose", action="store_true", help="Also log VERBOSE lines")
    return p


def _make_operator(console: bool):
    if console:
        return ConsoleOperator()

    import tkinter
    from crash_diagnostics.ui.dialogs import DialogOperator

    operator = DialogOperator()
    try:
        operator.open()
    except tkinter.TclError as e:
        logger.warning(f"Dialogs unavailable ({e}); falling back to console prompts.")
        return ConsoleOperator()
    return operator


def _log_system_summary() -> None:
    for key, value in get_system_summary().items():
        logger.info(f"{key}: {value}")


def main(argv: List[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    config = default_config(now=datetime.now())
    if args.game_dir:
        config.default_game_dir = Path(args.game_dir)
    if args.output_dir:
        config.output_dir = Path(args.output_dir)
    if args.settings_file:
        config.settings_file = Path(args.settings_file)
    config.max_attempts = args.max_attempts

    setup_logger(config.log_file, verbose=True if args.verbose else None)
    logger.info(f"{APP_NAME} started")
    _log_system_summary()

    operator = _make_operator(args.console)
    try:
        report = DiagnosticBundler(config, operator).run()
    finally:
        close = getattr(operator, "close", None)
        if close:
            close()

    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())

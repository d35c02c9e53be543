# crash_diagnostics/utils/sysinfo.py
from __future__ import annotations

import ctypes
import os
import platform
import struct
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import psutil

from crash_diagnostics.core.errors import ReportToolError
from crash_diagnostics.utils.logger import logger

DXDIAG_EXE = "dxdiag.exe"
WINDOWS_FALLBACK = r"C:\Windows"


def _no_window_kwargs() -> dict:
    # Keep console tools from flashing a window on Windows
    if os.name != "nt":
        return {}
    si = subprocess.STARTUPINFO()
    si.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    si.wShowWindow = 0
    return {"startupinfo": si, "creationflags": subprocess.CREATE_NO_WINDOW}


def is_64bit_process() -> bool:
    return struct.calcsize("P") == 8


def is_64bit_os() -> bool:
    if os.name == "nt":
        # PROCESSOR_ARCHITEW6432 is only set for 32-bit processes under WOW64
        arch = os.environ.get("PROCESSOR_ARCHITEW6432") or os.environ.get("PROCESSOR_ARCHITECTURE", "")
        return arch.upper().endswith("64")
    return platform.machine().endswith("64")


def _windows_dir() -> str:
    return os.environ.get("WINDIR") or os.environ.get("SystemRoot") or WINDOWS_FALLBACK


def dxdiag_path() -> Path:
    """
    A 32-bit process on 64-bit Windows is redirected away from the real
    System32; `sysnative` is the alias that reaches it.
    """
    if not is_64bit_process() and is_64bit_os():
        return Path(_windows_dir()) / "sysnative" / DXDIAG_EXE
    return Path(_windows_dir()) / "System32" / DXDIAG_EXE


class DxDiagRunner:
    """Runs `dxdiag /x <tmp>` and hands back the XML report path."""

    def __init__(self, executable: Optional[Path] = None):
        self.executable = Path(executable) if executable else None

    def command(self, output_path: str) -> List[str]:
        exe = self.executable or dxdiag_path()
        return [str(exe), "/x", output_path]

    def run(self) -> Path:
        exe = self.executable or dxdiag_path()
        if not exe.is_file():
            raise ReportToolError(f"Diagnostic tool not found: {exe}")

        fd, out_path = tempfile.mkstemp(suffix=".xml")
        os.close(fd)
        logger.debug(f"Running {exe} into {out_path}")
        try:
            rc = subprocess.call(self.command(out_path), **_no_window_kwargs())
        except OSError as e:
            _discard(out_path)
            raise ReportToolError(f"Failed to start process: {e}") from e
        if rc != 0:
            _discard(out_path)
            raise ReportToolError(f"{exe.name} failed with exit code {rc}")
        return Path(out_path)


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except OSError as e:
        logger.debug(f"Could not remove temp file {path}: {e}")


class _FixedFileInfo(ctypes.Structure):
    _fields_ = [(name, ctypes.c_uint32) for name in (
        "dwSignature", "dwStrucVersion",
        "dwFileVersionMS", "dwFileVersionLS",
        "dwProductVersionMS", "dwProductVersionLS",
        "dwFileFlagsMask", "dwFileFlags", "dwFileOS",
        "dwFileType", "dwFileSubtype", "dwFileDateMS", "dwFileDateLS",
    )]


def get_file_version(path) -> str:
    """FileVersion from a PE version resource; "" off Windows or when absent."""
    if os.name != "nt":
        return ""
    try:
        version = ctypes.WinDLL("version")
        target = str(path)
        size = version.GetFileVersionInfoSizeW(target, None)
        if not size:
            return ""
        buf = ctypes.create_string_buffer(size)
        if not version.GetFileVersionInfoW(target, 0, size, buf):
            return ""
        ptr = ctypes.c_void_p()
        length = ctypes.c_uint()
        if not version.VerQueryValueW(buf, "\\", ctypes.byref(ptr), ctypes.byref(length)) or not length.value:
            return ""
        info = ctypes.cast(ptr, ctypes.POINTER(_FixedFileInfo)).contents
    except (OSError, AttributeError, ValueError) as e:
        logger.debug(f"Version lookup failed for {path}: {e}")
        return ""
    ms, ls = info.dwFileVersionMS, info.dwFileVersionLS
    return f"{ms >> 16}.{ms & 0xFFFF}.{ls >> 16}.{ls & 0xFFFF}"


def get_system_summary() -> Dict[str, str]:
    uname = platform.uname()
    info = {
        "OS": f"{uname.system} {uname.release} ({uname.version})",
        "Machine": f"{uname.machine}",
        "Processor": platform.processor() or "",
        "Python": f"{platform.python_version()} ({'64' if is_64bit_process() else '32'}-bit)",
    }
    try:
        total = psutil.virtual_memory().total
        info["RAM"] = f"{total/1024/1024/1024:.2f} GB"
    except Exception:
        pass
    try:
        cores = psutil.cpu_count(logical=False)
        threads = psutil.cpu_count(logical=True)
        info["CPU Cores/Threads"] = f"{cores}/{threads}"
    except Exception:
        pass
    return info

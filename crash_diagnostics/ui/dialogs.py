# crash_diagnostics/ui/dialogs.py

from __future__ import annotations

from typing import Optional

import customtkinter as ctk
from tkinter import filedialog, messagebox

from crash_diagnostics.config import APP_NAME
from crash_diagnostics.ui.operator import FAILURE_MESSAGE, SUCCESS_MESSAGE


class DialogOperator:
    """Native folder picker and message boxes, parented to a hidden CTk root."""

    def __init__(self):
        self.root: ctk.CTk | None = None

    def open(self) -> None:
        """Create the hidden root up front; raises tkinter.TclError without a display."""
        self._ensure_root()

    def _ensure_root(self) -> ctk.CTk:
        if self.root is None:
            ctk.set_appearance_mode("System")
            ctk.set_default_color_theme("blue")
            self.root = ctk.CTk()
            self.root.withdraw()
        return self.root

    def pick_directory(self, title: str) -> Optional[str]:
        root = self._ensure_root()
        folder = filedialog.askdirectory(parent=root, title=title, mustexist=True)
        # askdirectory returns "" (or an empty tuple on some Tk builds) on cancel
        return folder or None

    def show_success(self, archive_name: str) -> None:
        messagebox.showinfo(
            APP_NAME,
            SUCCESS_MESSAGE.format(archive_name=archive_name),
            parent=self._ensure_root(),
        )

    def show_failure(self, log_name: str) -> None:
        messagebox.showerror("Error", FAILURE_MESSAGE, parent=self._ensure_root())

    def close(self) -> None:
        if self.root is not None:
            root, self.root = self.root, None
            root.destroy()

"""
Custom Widgets
==============
Exposes: ProblemsTable, StatusBar

The user edits C files in their own editor; watchdog detects saves and
the problems table refreshes with each published diagnostic set.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from rich.text import Text
from textual.widgets import DataTable, Static

from ..host import severity_text, uri_to_path
from ..parsing.diagnostics import Diagnostic, count_by_severity
from ..parsing.severity import Severity


class ProblemsTable(DataTable):
    """
    Main pane: one row per diagnostic across all open documents.
    ID: #problems
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(id="problems", cursor_type="row", zebra_stripes=True, **kwargs)
        self._sets: Dict[str, List[Diagnostic]] = {}

    def on_mount(self) -> None:
        self.add_columns("File", "Line", "Col", "Severity", "Message")

    def set_diagnostics(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        """Replace the rows belonging to one document."""
        if diagnostics:
            self._sets[uri] = list(diagnostics)
        else:
            self._sets.pop(uri, None)
        self._rebuild()

    def all_diagnostics(self) -> List[Diagnostic]:
        return [d for uri in sorted(self._sets) for d in self._sets[uri]]

    def _rebuild(self) -> None:
        self.clear()
        for uri in sorted(self._sets):
            name = Path(uri_to_path(uri)).name
            for d in self._sets[uri]:
                self.add_row(
                    name,
                    str(d.line),
                    str(d.column),
                    severity_text(d.severity),
                    Text(d.summary),
                )


class StatusBar(Static):
    """
    Bottom bar: document count, validation status, problem counts.
    ID: #status-bar
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(id="status-bar", **kwargs)
        self._documents: int = 0
        self._status: str = "idle"
        self._counts: Dict[Severity, int] = {s: 0 for s in Severity}

    def set_status(
        self,
        *,
        documents: int | None = None,
        status: str | None = None,
        diagnostics: List[Diagnostic] | None = None,
    ) -> None:
        if documents is not None:
            self._documents = documents
        if status is not None:
            self._status = status
        if diagnostics is not None:
            self._counts = count_by_severity(diagnostics)
        self._render_bar()

    @property
    def errors(self) -> int:
        return self._counts[Severity.ERROR]

    @property
    def warnings(self) -> int:
        return self._counts[Severity.WARNING]

    def _render_bar(self) -> None:
        parts = [f"📄 {self._documents} file(s)", f"● {self._status}"]
        if self.errors:
            parts.append(f"❌ {self.errors} error(s)")
        if self.warnings:
            parts.append(f"⚠ {self.warnings} warning(s)")
        self.update("  │  ".join(parts))

"""
The boundary between the validation engine and whatever displays its
results: the terminal app, or a plain console for one-shot runs.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from urllib.parse import unquote, urlparse

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .parsing.diagnostics import Diagnostic
from .parsing.severity import Severity

# Theme Colors
C_BG = "#EBEEEE"
C_TEXT = "#191A1A"
C_ACCENT1 = "#45d3ee"  # Cyan
C_ACCENT2 = "#9FBFC5"  # Muted Blue
C_ACCENT3 = "#94bfc1"  # Teal
C_ACCENT4 = "#fecd91"  # Orange

SEVERITY_STYLES: Dict[Severity, str] = {
    Severity.ERROR: "bold #a80000",
    Severity.WARNING: f"bold {C_ACCENT4}",
    Severity.INFORMATION: f"bold {C_ACCENT1}",
    Severity.HINT: C_ACCENT3,
}


class DiagnosticHost(Protocol):
    """What the engine needs from its host."""

    def publish_diagnostics(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        """Replace the diagnostic set shown for a document."""
        ...

    def show_error(self, message: str) -> None:
        """User-visible error notification."""
        ...

    def log_message(self, message: str) -> None:
        """Engine-side message that is not a compiler diagnostic."""
        ...


def uri_to_path(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return uri
    return unquote(parsed.path)


def severity_text(severity: Severity) -> Text:
    return Text(severity.label, style=SEVERITY_STYLES[severity])


def build_table(path: str, diagnostics: List[Diagnostic]) -> Table:
    table = Table(
        title=Path(path).name,
        title_style=f"bold {C_ACCENT3}",
        header_style=f"bold {C_ACCENT1}",
        box=None,
        expand=True,
    )
    table.add_column("Line", justify="right", no_wrap=True)
    table.add_column("Col", justify="right", no_wrap=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Message", style=C_TEXT)
    for d in diagnostics:
        table.add_row(str(d.line), str(d.column), severity_text(d.severity), Text(d.summary))
    return table


class ConsoleHost:
    """Prints every published set; used by `cccdiag --once`."""

    def __init__(self, console: Optional[Console] = None, as_json: bool = False):
        self.console = console if console else Console()
        self.as_json = as_json
        self.published: Dict[str, List[Diagnostic]] = {}
        self.errors: List[str] = []

    def publish_diagnostics(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        self.published[uri] = list(diagnostics)
        if self.as_json:
            payload = {"uri": uri, "diagnostics": [d.to_dict() for d in diagnostics]}
            self.console.print_json(json.dumps(payload))
            return
        path = uri_to_path(uri)
        if not diagnostics:
            self.console.print(f"[bold {C_ACCENT3}]{Path(path).name}[/]: no problems")
            return
        self.console.print(build_table(path, diagnostics))

    def show_error(self, message: str) -> None:
        self.errors.append(message)
        self.console.print(Text(message, style="bold #a80000"))

    def log_message(self, message: str) -> None:
        if not self.as_json:
            self.console.print(Text(message, style=C_ACCENT2))

import logging
import time
from pathlib import Path
from typing import List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Footer, Log

from ..engine import DiagnosticEngine
from ..errors import DiagnosticEngineError
from ..host import C_ACCENT1, C_ACCENT2, C_BG, C_TEXT
from ..parsing.diagnostics import Diagnostic
from ..utils.watcher import FileWatcher
from .widgets import ProblemsTable, StatusBar

logger = logging.getLogger(__name__)


class DiagnosticianApp(App):
    """Problems view for C sources, revalidated on every save."""

    CSS = f"""
    Screen {{
        background: {C_BG};
        color: {C_TEXT};
    }}

    #main-layout {{ height: 1fr; width: 100%; }}

    #problems {{
        height: 3fr;
        border: solid {C_ACCENT2};
        margin: 1 1 0 1;
    }}

    #engine-log {{
        height: 1fr;
        border: solid {C_ACCENT2};
        margin: 0 1;
        color: #5a5a5a;
    }}

    #status-bar {{ height: 1; padding: 0 1; }}

    Footer {{ background: {C_TEXT}; color: {C_ACCENT1}; }}
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "revalidate", "Revalidate", show=True),
    ]

    class DiagnosticsPublished(Message):
        def __init__(self, uri: str, diagnostics: List[Diagnostic]) -> None:
            super().__init__()
            self.uri = uri
            self.diagnostics = diagnostics

    class FileSaved(Message):
        def __init__(self, path: str) -> None:
            super().__init__()
            self.path = path

    class ConfigChanged(Message):
        def __init__(self, path: str) -> None:
            super().__init__()
            self.path = path

    def __init__(self, source_files: List[str], workspace_root: Optional[str] = None,
                 engine: Optional[DiagnosticEngine] = None, watch: bool = True):
        super().__init__()
        self.source_files = [str(Path(p).resolve()) for p in source_files]
        self.engine = engine if engine else DiagnosticEngine(self, workspace_root=workspace_root)
        self.engine.host = self
        self.watcher = FileWatcher() if watch else None

    def compose(self) -> ComposeResult:
        with Vertical(id="main-layout"):
            yield ProblemsTable()
            yield Log(id="engine-log", highlight=False)
        yield StatusBar()
        yield Footer()

    def on_mount(self) -> None:
        self.title = "cccdiag"
        for path in self.source_files:
            self._validate_path(path)
        if self.watcher is not None:
            directories = {str(Path(p).parent) for p in self.source_files}
            self.watcher.start_watching(
                self.source_files,
                self.engine.config.watched_files(directories),
                on_save=lambda path: self.post_message(self.FileSaved(path)),
                on_config=lambda path: self.post_message(self.ConfigChanged(path)),
            )

    async def on_unmount(self) -> None:
        if self.watcher is not None:
            self.watcher.stop_watching()
        await self.engine.shutdown()

    # --- DiagnosticHost ---

    def publish_diagnostics(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        self.post_message(self.DiagnosticsPublished(uri, list(diagnostics)))

    def show_error(self, message: str) -> None:
        self.notify(message, title="cccdiag", severity="error", timeout=8)
        self.log_message(message)

    def log_message(self, message: str) -> None:
        self.query_one("#engine-log", Log).write_line(f"[{time.strftime('%H:%M:%S')}] {message}")

    # --- events ---

    def _validate_path(self, path: str) -> None:
        try:
            document = self.engine.load_document(path)
        except DiagnosticEngineError as e:
            self.show_error(e.notification())
            return
        except OSError as e:
            self.show_error(f"{DiagnosticEngineError.label}: cannot read {path}: {e}")
            return
        self.engine.save_document(document)
        self.query_one(StatusBar).set_status(documents=len(self.source_files), status="validating")

    def on_diagnostician_app_file_saved(self, message: FileSaved) -> None:
        self._validate_path(message.path)

    def on_diagnostician_app_config_changed(self, message: ConfigChanged) -> None:
        logger.info("Configuration file changed: %s", message.path)
        self.log_message(f"Configuration changed: {message.path}")
        self.engine.configuration_changed()

    def on_diagnostician_app_diagnostics_published(self, message: DiagnosticsPublished) -> None:
        table = self.query_one(ProblemsTable)
        table.set_diagnostics(message.uri, message.diagnostics)
        status = f"updated {time.strftime('%H:%M:%S')}"
        self.query_one(StatusBar).set_status(
            documents=len(self.source_files),
            status=status,
            diagnostics=table.all_diagnostics(),
        )

    def action_revalidate(self) -> None:
        for path in self.source_files:
            self._validate_path(path)


def run_tui(source_files: List[str], workspace_root: Optional[str] = None):
    app = DiagnosticianApp(source_files, workspace_root=workspace_root)
    app.run()

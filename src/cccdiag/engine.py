import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .compiler.driver import CompilerDriver
from .errors import DiagnosticEngineError, InvocationError
from .host import DiagnosticHost
from .parsing import Diagnostic, parse_diagnostics
from .utils.config import ConfigManager, Settings
from .utils.state import SessionState, TextDocument

logger = logging.getLogger(__name__)


class DiagnosticEngine:
    """
    Validation service: runs the compiler for open documents and publishes
    the resulting diagnostic sets to the host.

    Validations are keyed by document URI. Triggering a new one cancels the
    one still running for the same document, so the last trigger wins.
    """

    def __init__(
        self,
        host: DiagnosticHost,
        config: Optional[ConfigManager] = None,
        workspace_root: Optional[str] = None,
        driver: Optional[CompilerDriver] = None,
    ):
        self.host = host
        self.workspace_root = workspace_root
        self.config = config if config else ConfigManager(workspace_root=workspace_root)
        self.driver = driver if driver else CompilerDriver()
        self.state = SessionState()
        self._inflight: Dict[str, asyncio.Task] = {}

    # --- document lifecycle ---

    def open_document(self, document: TextDocument) -> asyncio.Task:
        self.state.open(document)
        return self.schedule(document)

    def save_document(self, document: TextDocument) -> asyncio.Task:
        self.state.open(document)
        return self.schedule(document)

    def close_document(self, uri: str) -> None:
        task = self._inflight.pop(uri, None)
        if task is not None:
            task.cancel()
        self.state.close(uri)
        self.host.publish_diagnostics(uri, [])

    def load_document(self, path: str, version: int = 0) -> TextDocument:
        """
        Read a source file with the encoding its settings name.
        Raises ConfigurationError or DecodingError, and OSError if unreadable.
        """
        uri = Path(path).resolve().as_uri()
        settings = self._cached_settings(uri, path)
        return TextDocument.from_path(path, encoding=settings.encoding, version=version)

    def configuration_changed(self) -> List[asyncio.Task]:
        """
        Drop every cached settings snapshot, then re-read and revalidate the
        open documents. The encoding may have changed with the settings.
        """
        self.config.reload()
        self.state.invalidate_settings()
        tasks = []
        for document in list(self.state.documents.values()):
            try:
                document = self.load_document(document.path, document.version)
            except DiagnosticEngineError as e:
                self._report(e)
                continue
            except OSError as e:
                logger.warning("Cannot re-read %s, validating the last snapshot: %s", document.path, e)
            self.state.open(document)
            tasks.append(self.schedule(document))
        return tasks

    async def shutdown(self) -> None:
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()

    # --- validation ---

    def schedule(self, document: TextDocument) -> asyncio.Task:
        previous = self._inflight.get(document.uri)
        if previous is not None and not previous.done():
            logger.debug("Superseding in-flight validation of %s", document.uri)
            previous.cancel()

        task = asyncio.get_running_loop().create_task(self.validate(document))
        self._inflight[document.uri] = task

        def _forget(done: asyncio.Task, uri: str = document.uri) -> None:
            if self._inflight.get(uri) is done:
                del self._inflight[uri]

        task.add_done_callback(_forget)
        return task

    def settings_for(self, document: TextDocument) -> Settings:
        return self._cached_settings(document.uri, document.path)

    def _cached_settings(self, uri: str, path: str) -> Settings:
        settings = self.state.settings_cache.get(uri)
        if settings is None:
            settings = self.config.settings_for(path)
            self.state.settings_cache[uri] = settings
        return settings

    async def validate(self, document: TextDocument) -> Optional[List[Diagnostic]]:
        """
        One full validation pass. Returns the published set, or None when
        an engine error left the previous set in place.
        """
        logger.info("Validating %s (version %s)", document.path, document.version)
        try:
            settings = self.settings_for(document)
            try:
                result = await self.driver.run(settings, document.path, self.workspace_root)
            except InvocationError as e:
                # Clear stale diagnostics but do not pass this off as a clean compile
                self._report(e)
                self._publish(document.uri, [], settings)
                return []
            output = result.diagnostic_text(settings.encoding)
            parsed = parse_diagnostics(output, document.name, document.text, settings)
        except DiagnosticEngineError as e:
            self._report(e)
            return None
        except Exception as e:
            logger.exception("Internal engine error while validating %s", document.path)
            self.host.show_error(f"{DiagnosticEngineError.label}: internal engine error: {e}")
            return None

        for issue in parsed.issues:
            logger.warning("%s: %s", document.name, issue.describe())
            self.host.log_message(f"{document.name}: {issue.describe()}")
        if parsed.filtered:
            logger.debug("%d block(s) belonged to other files", parsed.filtered)

        return self._publish(document.uri, parsed.diagnostics, settings)

    def _publish(self, uri: str, diagnostics: List[Diagnostic], settings: Settings) -> List[Diagnostic]:
        limit = settings.max_number_of_problems
        if limit >= 0 and len(diagnostics) > limit:
            logger.info("Truncating %d diagnostics to %d for %s", len(diagnostics), limit, uri)
            diagnostics = diagnostics[:limit]
        self.state.publish(uri, diagnostics)
        self.host.publish_diagnostics(uri, diagnostics)
        return diagnostics

    def _report(self, error: DiagnosticEngineError) -> None:
        logger.error("%s", error.notification())
        self.host.show_error(error.notification())

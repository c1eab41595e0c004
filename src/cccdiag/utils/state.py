from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..compiler.driver import decode_text
from ..parsing.diagnostics import Diagnostic
from ..parsing.severity import Severity
from .config import Settings


@dataclass(frozen=True)
class TextDocument:
    """A snapshot of one open source file."""
    uri: str
    path: str
    text: str
    version: int = 0

    @property
    def name(self) -> str:
        return Path(self.path).name

    @classmethod
    def from_path(cls, path: str, encoding: str = "utf-8", version: int = 0) -> "TextDocument":
        """Read a source file. Raises DecodingError if it is not valid in `encoding`."""
        resolved = Path(path).resolve()
        text = decode_text(resolved.read_bytes(), encoding, str(resolved))
        return cls(uri=resolved.as_uri(), path=str(resolved), text=text, version=version)


@dataclass
class SessionState:
    """
    Everything the validation service remembers between passes.
    Settings are cached per document and dropped when it closes.
    """
    documents: Dict[str, TextDocument] = field(default_factory=dict)
    settings_cache: Dict[str, Settings] = field(default_factory=dict)
    published: Dict[str, List[Diagnostic]] = field(default_factory=dict)

    def open(self, document: TextDocument) -> None:
        self.documents[document.uri] = document

    def close(self, uri: str) -> None:
        self.documents.pop(uri, None)
        self.settings_cache.pop(uri, None)
        self.published.pop(uri, None)

    def invalidate_settings(self) -> None:
        self.settings_cache.clear()

    def publish(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        # Each pass replaces the previous set wholesale
        self.published[uri] = list(diagnostics)

    def diagnostics_for(self, uri: str) -> List[Diagnostic]:
        return self.published.get(uri, [])

    def has_errors(self, uri: Optional[str] = None) -> bool:
        """True if any published diagnostic (optionally for one document) is an error."""
        sets = [self.diagnostics_for(uri)] if uri else self.published.values()
        return any(d.severity == Severity.ERROR for ds in sets for d in ds)

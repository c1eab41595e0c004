import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..utils.config import Settings
from .blocks import DiagnosticBlocks
from .extractor import ExtractedFields, compile_rules, extract_fields
from .ranges import LineOutOfRange, LineTable, Range, resolve_range
from .severity import Severity, classify_severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    severity: Severity
    message: str  # the whole raw block, not just the summary line
    source: str   # compile command
    # Reported column, kept even though the range spans the full line
    column: int = 0
    file_name: str = ""

    @property
    def line(self) -> int:
        """1-based line number."""
        return self.range.start.line + 1

    @property
    def summary(self) -> str:
        return self.message.strip().splitlines()[0] if self.message.strip() else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "range": self.range.to_dict(),
            "severity": int(self.severity),
            "message": self.message,
            "source": self.source,
            "data": {"column": self.column, "fileName": self.file_name},
        }


@dataclass(frozen=True)
class ExtractionIssue:
    """A block the engine could not turn into a diagnostic."""
    block: str
    reason: str

    def describe(self) -> str:
        head = self.block.strip().splitlines()[0] if self.block.strip() else "<blank block>"
        return f"{self.reason}: {head}"


@dataclass
class ParseResult:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    issues: List[ExtractionIssue] = field(default_factory=list)
    filtered: int = 0  # blocks attributed to other files


def build_diagnostic(fields: ExtractedFields, table: LineTable, settings: Settings) -> Diagnostic:
    return Diagnostic(
        range=resolve_range(fields.line, table),
        severity=classify_severity(fields.severity_text, settings.severity_identifier),
        message=fields.raw_block,
        source=settings.compile_command,
        column=fields.column,
        file_name=fields.file_name,
    )


def parse_diagnostics(
    output: str,
    document_name: str,
    document_text: str,
    settings: Settings,
) -> ParseResult:
    """
    Turn raw compiler diagnostic text into diagnostics for one document.

    Only blocks whose file name equals document_name (a base name) are kept;
    blocks that fail to parse are returned as issues and never abort the pass.
    Raises ConfigurationError for invalid patterns or capture indices.
    """
    rules = compile_rules(settings)
    table = LineTable(document_text)
    result = ParseResult()

    for block in DiagnosticBlocks(output, rules.delimiter):
        fields = extract_fields(block, rules)
        if fields is None:
            result.issues.append(ExtractionIssue(block, "block does not match diagInfoPattern"))
            continue
        if fields.file_name != document_name:
            logger.debug("Skipping diagnostic for %s (validating %s)", fields.file_name, document_name)
            result.filtered += 1
            continue
        try:
            result.diagnostics.append(build_diagnostic(fields, table, settings))
        except LineOutOfRange as e:
            result.issues.append(ExtractionIssue(block, str(e)))

    return result


def count_by_severity(diagnostics: List[Diagnostic]) -> Dict[Severity, int]:
    counts = {severity: 0 for severity in Severity}
    for diagnostic in diagnostics:
        counts[diagnostic.severity] += 1
    return counts

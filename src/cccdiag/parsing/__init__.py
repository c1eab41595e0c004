from .blocks import DiagnosticBlocks, split_blocks
from .extractor import ExtractedFields, ParseRules, compile_rules, extract_fields
from .severity import Severity, classify_severity
from .ranges import LineTable, LineOutOfRange, Position, Range, resolve_range
from .diagnostics import (
    Diagnostic,
    ExtractionIssue,
    ParseResult,
    count_by_severity,
    parse_diagnostics,
)

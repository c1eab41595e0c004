import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Pattern

from ..errors import ConfigurationError
from ..utils.config import CaptureIndices, Settings
from .blocks import compile_delimiter


@dataclass(frozen=True)
class ExtractedFields:
    file_name: str
    line: int    # 1-based
    column: int  # 1-based, as reported by the compiler
    severity_text: str
    raw_block: str


@dataclass(frozen=True)
class ParseRules:
    """Patterns and capture positions compiled from one Settings snapshot."""
    delimiter: Pattern[str]
    record: Pattern[str]
    index: CaptureIndices


@lru_cache(maxsize=32)
def compile_rules(settings: Settings) -> ParseRules:
    """
    Compile the delimiter and record patterns and check the capture indices.
    Raises ConfigurationError for anything that would fail on every block.
    """
    try:
        delimiter = compile_delimiter(settings.diag_delimiter)
    except re.error as e:
        raise ConfigurationError(f"invalid diagDelimiter {settings.diag_delimiter!r}: {e}") from e
    try:
        record = re.compile(settings.diag_info_pattern, re.MULTILINE)
    except re.error as e:
        raise ConfigurationError(f"invalid diagInfoPattern {settings.diag_info_pattern!r}: {e}") from e

    names = ("file_name", "line_pos", "char_pos", "severity")
    for name, position in zip(names, settings.index.as_tuple()):
        if position < 1 or position > record.groups:
            raise ConfigurationError(
                f"parse.index.{name}={position} is out of range; "
                f"diagInfoPattern has {record.groups} capture group(s)"
            )
    return ParseRules(delimiter=delimiter, record=record, index=settings.index)


def extract_fields(block: str, rules: ParseRules) -> Optional[ExtractedFields]:
    """
    Pull the configured fields out of one block.
    Returns None when the record pattern does not match, or when the line
    capture is not a number. A non-numeric column is recorded as 0.
    """
    match = rules.record.search(block)
    if match is None:
        return None

    index = rules.index
    file_name = match.group(index.file_name)
    line_text = match.group(index.line_pos)
    column_text = match.group(index.char_pos)
    severity_text = match.group(index.severity)
    if file_name is None or line_text is None:
        return None

    try:
        line = int(line_text, 10)
    except ValueError:
        return None
    # The range never uses the column, so a missing or odd one is not fatal
    try:
        column = int(column_text, 10) if column_text else 0
    except ValueError:
        column = 0

    return ExtractedFields(
        file_name=file_name,
        line=line,
        column=column,
        severity_text=severity_text or "",
        raw_block=block,
    )

import re
from dataclasses import dataclass
from typing import Dict, List

RE_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class LineOutOfRange(ValueError):
    def __init__(self, line: int, line_count: int):
        super().__init__(f"line {line} is outside the document (1..{line_count})")
        self.line = line
        self.line_count = line_count


@dataclass(frozen=True)
class Position:
    line: int       # 0-based
    character: int  # 0-based

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


class LineTable:
    """The document text split into lines. Built fresh for every pass."""

    def __init__(self, text: str):
        self.lines: List[str] = RE_LINE_BREAK.split(text)

    def __len__(self) -> int:
        return len(self.lines)

    def line_length(self, index: int) -> int:
        return len(self.lines[index])


def resolve_range(line: int, table: LineTable) -> Range:
    """
    Range covering the whole of a 1-based line.
    Columns are not narrowed to the reported column; the full line is used.
    """
    if line < 1 or line > len(table):
        raise LineOutOfRange(line, len(table))
    index = line - 1
    return Range(
        start=Position(index, 0),
        end=Position(index, table.line_length(index)),
    )

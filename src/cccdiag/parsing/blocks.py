import re
from typing import Iterator, Pattern, Union


def compile_delimiter(delimiter: str) -> Pattern[str]:
    """Wrap the delimiter in a lookahead so splitting keeps it on the next block."""
    return re.compile(f"(?={delimiter})", re.MULTILINE)


class DiagnosticBlocks:
    """
    Lazy view of compiler output split into diagnostic blocks.

    Each block starts with the delimiter match that opened it. Text in front
    of the first match (banners like "foo.c: In function 'main':") is a block
    of its own. Iterating again re-splits from the start.
    """

    def __init__(self, text: str, delimiter: Union[str, Pattern[str]]):
        self.text = text
        self.pattern = compile_delimiter(delimiter) if isinstance(delimiter, str) else delimiter

    def __iter__(self) -> Iterator[str]:
        start = 0
        for match in self.pattern.finditer(self.text):
            cut = match.start()
            if cut > start:
                yield self.text[start:cut]
                start = cut
        if start < len(self.text):
            yield self.text[start:]


def split_blocks(text: str, delimiter: Union[str, Pattern[str]]) -> DiagnosticBlocks:
    return DiagnosticBlocks(text, delimiter)

from enum import IntEnum
from ..utils.config import SeverityIdentifiers


class Severity(IntEnum):
    """Diagnostic severity; values follow the editor protocol numbering."""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4

    @property
    def label(self) -> str:
        return self.name.lower()


def classify_severity(text: str, identifiers: SeverityIdentifiers) -> Severity:
    """
    Map free-form severity text to a Severity.
    Checked in fixed order error -> warning -> information -> hint, first
    substring hit wins; unrecognised text counts as an error.
    """
    checks = (
        (identifiers.error, Severity.ERROR),
        (identifiers.warning, Severity.WARNING),
        (identifiers.information, Severity.INFORMATION),
        (identifiers.hint, Severity.HINT),
    )
    for identifier, severity in checks:
        if identifier in text:
            return severity
    return Severity.ERROR

"""
Error types raised by the diagnostic engine.

Anything deriving from DiagnosticEngineError is reported to the user as a
"Diagnostic Error" notification rather than as a compiler diagnostic.
"""


class DiagnosticEngineError(Exception):
    """Base class for failures of the engine itself."""

    label = "Diagnostic Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def notification(self) -> str:
        return f"{self.label}: {self.message}"


class ConfigurationError(DiagnosticEngineError):
    """Bad settings: invalid pattern, bad capture index, wrong value type."""


class InvocationError(DiagnosticEngineError):
    """The compiler could not be started or died without diagnostic output."""


class DecodingError(DiagnosticEngineError):
    """Captured compiler output could not be decoded."""

__version__ = "1.0.0"

from .errors import DiagnosticEngineError, ConfigurationError, InvocationError, DecodingError
from .parsing import Diagnostic, Severity, parse_diagnostics
from .utils.config import Settings

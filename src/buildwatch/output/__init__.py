"""
Operator-facing output: status lines, error reports and buffered warnings.
"""

from .diagnostics import Diagnostic, DiagnosticBuffer
from .formatting import format_duration, format_inputs, format_outputs, format_timings, relative_id
from .status import StatusPrinter, create_console

__all__ = [
    "Diagnostic",
    "DiagnosticBuffer",
    "StatusPrinter",
    "create_console",
    "format_duration",
    "format_inputs",
    "format_outputs",
    "format_timings",
    "relative_id",
]

from .sink import DiagnosticSink, NullDiagnosticSink
from .memory_sink import MemoryDiagnosticSink
from .logging_sink import LoggingDiagnosticSink

__all__ = [
    "DiagnosticSink",
    "NullDiagnosticSink",
    "MemoryDiagnosticSink",
    "LoggingDiagnosticSink",
]

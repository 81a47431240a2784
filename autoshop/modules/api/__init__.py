"""
API Module - Black Box Interface

Purpose: Wire formats shared by the server pipeline and its clients
Interface: DiagnosticLogRecord, ErrorBody, SessionSummary
"""

from .models import API_LOG_HEADER, DiagnosticLogRecord, ErrorBody, SessionSummary

__all__ = [
    "API_LOG_HEADER",
    "DiagnosticLogRecord",
    "ErrorBody",
    "SessionSummary",
]

"""
pinelint Language Server.

Publishes pinelint violations as LSP diagnostics while a Pine Script
document is edited.
"""

from pinelint.lsp.diagnostics import DiagnosticProvider, get_diagnostics_for_document
from pinelint.lsp.server import PineLanguageServer, create_server

__all__ = [
    "DiagnosticProvider",
    "get_diagnostics_for_document",
    "PineLanguageServer",
    "create_server",
]

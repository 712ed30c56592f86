"""
pinelint Language Server Protocol (LSP) Server.

This module implements an LSP server for Pine Script using pygls. It keeps
the open documents in sync and publishes pinelint diagnostics whenever a
document is opened, changed or saved.

Usage:
    # Start the server in stdio mode (for IDE integration)
    pinelint-lsp

    # Enable optional rules and parameter documentation
    pinelint-lsp --rules rules.json --docs reference.json

    # Start in TCP mode (for debugging)
    pinelint-lsp --tcp --port 2087
"""

import argparse
import logging
import sys
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from pinelint import __version__
from pinelint.lsp.diagnostics import get_diagnostics_for_document
from pinelint.registry import DocumentationRegistry, RuleRegistry
from pinelint.utils.errors import PineLintError

logger = logging.getLogger("pinelint-lsp")


class PineLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for Pine Script.

    The rule and documentation registries are loaded once at startup and
    shared by every document.
    """

    def __init__(
        self,
        rules: Optional[RuleRegistry] = None,
        documentation: Optional[DocumentationRegistry] = None,
    ) -> None:
        """Initialize the pinelint language server."""
        super().__init__(
            name="pinelint-lsp",
            version=f"v{__version__}",
        )

        self.rules = rules
        self.documentation = documentation

        # Last published diagnostics (uri -> diagnostics)
        self._diagnostics: dict[str, list[types.Diagnostic]] = {}

    def analyze_document(self, uri: str, text: str) -> list[types.Diagnostic]:
        """Analyze a document and cache its diagnostics."""
        diagnostics = get_diagnostics_for_document(text, self.rules, self.documentation)
        self._diagnostics[uri] = diagnostics
        return diagnostics

    def diagnostics_for(self, uri: str) -> list[types.Diagnostic]:
        return self._diagnostics.get(uri, [])

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        """Publish diagnostics to the client."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Handle document open notification."""
        document = params.text_document
        logger.info("Document opened: %s", document.uri)

        diagnostics = self.analyze_document(document.uri, document.text)
        self._publish_diagnostics(document.uri, diagnostics)

    def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Handle document change notification."""
        uri = params.text_document.uri

        doc = self.workspace.get_text_document(uri)
        if doc is None:
            return

        logger.debug("Document changed: %s", uri)

        diagnostics = self.analyze_document(uri, doc.source)
        self._publish_diagnostics(uri, diagnostics)

    def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        """Handle document save notification."""
        uri = params.text_document.uri
        logger.info("Document saved: %s", uri)

        text = params.text
        if text is None:
            doc = self.workspace.get_text_document(uri)
            if doc is None:
                return
            text = doc.source

        diagnostics = self.analyze_document(uri, text)
        self._publish_diagnostics(uri, diagnostics)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Handle document close notification."""
        uri = params.text_document.uri
        logger.info("Document closed: %s", uri)

        self._diagnostics.pop(uri, None)
        self._publish_diagnostics(uri, [])


def create_server(
    rules: Optional[RuleRegistry] = None,
    documentation: Optional[DocumentationRegistry] = None,
) -> PineLanguageServer:
    """Create and configure a pinelint language server instance."""
    server = PineLanguageServer(rules, documentation)

    @server.feature(types.INITIALIZE)
    def on_initialize(
        params: types.InitializeParams,  # noqa: ARG001
    ) -> types.InitializeResult:
        """Handle initialize request."""
        logger.info("Initializing pinelint Language Server")

        return types.InitializeResult(
            capabilities=types.ServerCapabilities(
                text_document_sync=types.TextDocumentSyncOptions(
                    open_close=True,
                    change=types.TextDocumentSyncKind.Full,
                    save=types.SaveOptions(include_text=True),
                ),
            ),
            server_info=types.ServerInfo(
                name="pinelint-lsp",
                version=__version__,
            ),
        )

    @server.feature(types.INITIALIZED)
    def on_initialized(
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        """Handle initialized notification."""
        logger.info("pinelint Language Server initialized successfully")

    @server.feature(types.SHUTDOWN)
    def on_shutdown(
        params: None,  # noqa: ARG001
    ) -> None:
        """Handle shutdown request."""
        logger.info("Shutting down pinelint Language Server")

    # pygls passes the server as ``ls`` to handlers whose first parameter has that name
    @server.feature(types.TEXT_DOCUMENT_DID_OPEN)
    def did_open(ls: PineLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
        ls._on_did_open(params)

    @server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(ls: PineLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
        ls._on_did_change(params)

    @server.feature(types.TEXT_DOCUMENT_DID_SAVE)
    def did_save(ls: PineLanguageServer, params: types.DidSaveTextDocumentParams) -> None:
        ls._on_did_save(params)

    @server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(ls: PineLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
        ls._on_did_close(params)

    return server


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the pinelint language server.

    Starts the server in stdio mode for IDE integration.
    """
    parser = argparse.ArgumentParser(
        description="pinelint Language Server",
        prog="pinelint-lsp",
    )
    parser.add_argument(
        "--rules",
        default=None,
        help="Rule registry JSON enabling optional checks",
    )
    parser.add_argument(
        "--docs",
        default=None,
        help="Function documentation JSON used by the naming check",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    # stdout carries the protocol in stdio mode
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        rules = RuleRegistry.from_file(args.rules) if args.rules else None
        documentation = None
        if args.docs:
            documentation = DocumentationRegistry()
            documentation.initialize(args.docs)
    except PineLintError as e:
        logger.error("Cannot start pinelint LSP: %s", e)
        sys.exit(2)

    server = create_server(rules, documentation)

    if args.tcp:
        logger.info("Starting pinelint LSP in TCP mode on %s:%d", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting pinelint LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()

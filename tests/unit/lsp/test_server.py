"""Tests for the pinelint language server document handlers."""

import pytest
from lsprotocol import types

from pinelint.lsp.server import PineLanguageServer, create_server

URI = "file:///script.pine"


@pytest.fixture
def server(monkeypatch):
    """Server whose published diagnostics are recorded instead of sent."""
    instance = create_server()
    published: list[tuple[str, list[types.Diagnostic]]] = []
    monkeypatch.setattr(
        instance,
        "_publish_diagnostics",
        lambda uri, diagnostics: published.append((uri, diagnostics)),
    )
    instance.published = published
    return instance


def _open(server: PineLanguageServer, text: str) -> None:
    server._on_did_open(
        types.DidOpenTextDocumentParams(
            text_document=types.TextDocumentItem(
                uri=URI, language_id="pine", version=1, text=text
            )
        )
    )


class TestCreateServer:
    def test_document_handlers_registered(self) -> None:
        server = create_server()
        features = server.protocol.fm.features

        for method in (
            types.TEXT_DOCUMENT_DID_OPEN,
            types.TEXT_DOCUMENT_DID_CHANGE,
            types.TEXT_DOCUMENT_DID_SAVE,
            types.TEXT_DOCUMENT_DID_CLOSE,
        ):
            assert method in features

    def test_servers_are_independent(self) -> None:
        first = create_server()
        second = create_server()

        first.analyze_document(URI, 'indicator("T", "ShortTitle12")')
        assert second.diagnostics_for(URI) == []


class TestDocumentSync:
    def test_open_publishes_diagnostics(self, server) -> None:
        _open(server, 'indicator("T", "ShortTitle12")')

        assert len(server.published) == 1
        uri, diagnostics = server.published[0]
        assert uri == URI
        assert [d.code for d in diagnostics] == ["SHORT_TITLE_TOO_LONG"]
        assert server.diagnostics_for(URI) == diagnostics

    def test_save_with_text(self, server) -> None:
        server._on_did_save(
            types.DidSaveTextDocumentParams(
                text_document=types.TextDocumentIdentifier(uri=URI),
                text='indicator("Clean")',
            )
        )
        assert server.published == [(URI, [])]

    def test_close_clears_diagnostics(self, server) -> None:
        _open(server, 'indicator("T", "ShortTitle12")')

        server._on_did_close(
            types.DidCloseTextDocumentParams(
                text_document=types.TextDocumentIdentifier(uri=URI)
            )
        )

        assert server.published[-1] == (URI, [])
        assert server.diagnostics_for(URI) == []

    def test_registries_are_used(self, rules_factory) -> None:
        server = create_server(rules_factory(["INVALID_PRECISION"]))
        diagnostics = server.analyze_document(URI, 'indicator("T", precision=9)')

        assert [d.code for d in diagnostics] == ["INVALID_PRECISION"]

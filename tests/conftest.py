"""
Pytest configuration and shared fixtures for pinelint tests.
"""

import json
from pathlib import Path
from typing import Any, Iterable, Optional

import pytest

from pinelint.analyzer import CHECKERS
from pinelint.frontend.ast_nodes import FunctionCall
from pinelint.frontend.lexer import Lexer
from pinelint.frontend.parser import CallInfo, ParseResult, extract_function_parameters, parse
from pinelint.frontend.tokens import Token
from pinelint.registry import DocumentationRegistry, RuleRegistry


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str) -> Lexer:
        return Lexer(source)

    return _create_lexer


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        return lexer_factory(source).tokenize()

    return _tokenize


@pytest.fixture
def parse_source():
    """Fixture to parse source code into a ParseResult."""

    def _parse(source: str, max_recovery_attempts: int = 10) -> ParseResult:
        return parse(source, max_recovery_attempts)

    return _parse


@pytest.fixture
def call_infos():
    """Fixture returning the extracted call sites of a source."""

    def _calls(source: str) -> list[CallInfo]:
        return extract_function_parameters(source).function_calls

    return _calls


@pytest.fixture
def calls(call_infos):
    """Fixture returning the FunctionCall nodes of a source, in source order."""

    def _calls(source: str) -> list[FunctionCall]:
        return [info.call for info in call_infos(source)]

    return _calls


@pytest.fixture
def rules_factory():
    """Factory fixture for rule registries enabling the given codes."""

    def _create(codes: Iterable[str] = (), **definitions: Any) -> RuleRegistry:
        return RuleRegistry(list(codes) + list(definitions), definitions)

    return _create


@pytest.fixture
def all_rules(rules_factory) -> RuleRegistry:
    """Registry enabling every optional checker."""
    codes = {code for checker in CHECKERS for code in checker.rule_codes}
    return rules_factory(codes)


@pytest.fixture
def documentation_factory():
    """Factory fixture for loaded documentation registries."""

    def _create(functions: Optional[dict[str, list[str]]] = None) -> DocumentationRegistry:
        registry = DocumentationRegistry()
        entries = {
            f"fun_{name}": {"name": name, "arguments": [{"name": arg} for arg in args]}
            for name, args in (functions or {}).items()
        }
        registry.initialize({"functions": entries})
        return registry

    return _create


@pytest.fixture
def write_json(tmp_path):
    """Fixture writing JSON data to a file under tmp_path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_script(tmp_path):
    """Fixture writing a Pine Script source file under tmp_path."""

    def _write(source: str, name: str = "script.pine") -> Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write

"""
pinelint Command-Line Interface.

Usage:
    pinelint check script.pine                   # Analyze one or more files
    pinelint check *.pine --rules rules.json     # Enable optional rules
    pinelint check script.pine --format json     # Machine-readable output
    pinelint tokens script.pine                  # Dump the token stream
    pinelint ast script.pine                     # Dump the parsed tree
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from pinelint import __version__
from pinelint.analyzer import AnalysisResult, analyze
from pinelint.frontend.ast_nodes import ASTNode
from pinelint.frontend.lexer import tokenize
from pinelint.frontend.parser import parse
from pinelint.registry import DocumentationRegistry, RuleRegistry
from pinelint.utils.diagnostics import Severity, render_violation
from pinelint.utils.errors import PineLintError

logger = logging.getLogger(__name__)


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    GRAY = "\033[90m"

    BOLD = "\033[1m"
    RESET = "\033[0m"

    enabled = True

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.BLUE = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""
        cls.enabled = False


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


_init_colors()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pinelint",
        description="pinelint - static analysis for Pine Script",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Check command
    check_parser = subparsers.add_parser(
        "check",
        help="Analyze Pine Script files and report violations",
    )
    check_parser.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        help="Pine Script files to analyze",
    )
    check_parser.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="Rule registry JSON enabling optional checks",
    )
    check_parser.add_argument(
        "--docs",
        type=Path,
        default=None,
        help="Function documentation JSON used by the naming check",
    )
    check_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    check_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with an error status on warnings as well as errors",
    )

    # Tokens command
    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Print the token stream of a file (debug)",
    )
    tokens_parser.add_argument("input", type=Path, help="Pine Script file")

    # AST command
    ast_parser = subparsers.add_parser(
        "ast",
        help="Print the parsed syntax tree of a file (debug)",
    )
    ast_parser.add_argument("input", type=Path, help="Pine Script file")

    return parser


def _read_source(path: Path) -> Optional[str]:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {path}: {e}", file=sys.stderr)
        return None


def _load_registries(
    args: argparse.Namespace,
) -> tuple[Optional[RuleRegistry], Optional[DocumentationRegistry]]:
    """
    Load the registries named on the command line.

    Raises:
        PineLintError: If a registry file is missing or malformed
    """
    rules = RuleRegistry.from_file(args.rules) if args.rules else None
    documentation = None
    if args.docs:
        documentation = DocumentationRegistry()
        documentation.initialize(args.docs)
    return rules, documentation


# =============================================================================
# Commands
# =============================================================================


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    if args.no_color:
        Colors.disable()

    try:
        rules, documentation = _load_registries(args)
    except PineLintError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 2

    failed = False
    reports: list[dict[str, Any]] = []

    for input_path in args.inputs:
        source = _read_source(input_path)
        if source is None:
            failed = True
            continue

        result = analyze(source, rules, documentation)
        if args.format == "json":
            reports.append({"file": str(input_path), **result.to_dict()})
        else:
            _print_check_report(input_path, source, result)

        if result.error_count or (args.strict and result.warning_count):
            failed = True
        if not result.success:
            failed = True

    if args.format == "json":
        print(json.dumps(reports, indent=2))

    return 1 if failed else 0


def _print_check_report(input_path: Path, source: str, result: AnalysisResult) -> None:
    """
    Print a Rust-style report with source context.

    Example output:
        error[SHORT_TITLE_TOO_LONG]: SHORT_TITLE_TOO_LONG: shorttitle too long ...
          --> script.pine:2:16
           |
          2 | indicator("T", "ShortTitle12")
           |                ^
           |
    """
    if not result.success:
        for error in result.errors:
            print(f"{Colors.RED}Internal error:{Colors.RESET} {error.message}", file=sys.stderr)
        return

    if not result.violations:
        print(f"{Colors.GREEN}[ok]{Colors.RESET} {input_path}: No issues found")
        return

    for violation in result.violations:
        print(render_violation(violation, source, str(input_path), use_color=Colors.enabled))
        print()

    suggestions = sum(1 for v in result.violations if v.severity is Severity.INFO)
    print(
        f"{input_path}: {result.error_count} error(s), {result.warning_count} warning(s), "
        f"{suggestions} suggestion(s)"
    )


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    source = _read_source(args.input)
    if source is None:
        return 1

    for token in tokenize(source):
        print(token)
    return 0


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command (debug)."""
    source = _read_source(args.input)
    if source is None:
        return 1

    result = parse(source)
    _print_ast(result.ast)

    for error in result.errors + result.warnings:
        loc = error.location
        print(
            f"{Colors.GRAY}{error.severity.value}[{error.code}] "
            f"{loc.line}:{loc.column + 1}: {error.message}{Colors.RESET}",
            file=sys.stderr,
        )
    return 0


def _print_ast(node: ASTNode, indent: int = 0) -> None:
    """Pretty print an AST node."""
    prefix = "  " * indent
    attrs = {
        f.name: getattr(node, f.name)
        for f in dataclasses.fields(node)  # type: ignore[arg-type]
        if f.name != "location"
    }

    print(f"{prefix}{type(node).__name__}:")
    for key, value in attrs.items():
        if isinstance(value, ASTNode):
            print(f"{prefix}  {key}:")
            _print_ast(value, indent + 2)
        elif isinstance(value, tuple) and value and isinstance(value[0], ASTNode):
            print(f"{prefix}  {key}: [")
            for item in value:
                _print_ast(item, indent + 2)
            print(f"{prefix}  ]")
        else:
            print(f"{prefix}  {key}: {value!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    command_handlers = {
        "check": cmd_check,
        "tokens": cmd_tokens,
        "ast": cmd_ast,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())

"""
pinelint - static analysis for Pine Script.

pinelint tokenizes Pine Script source, builds an approximate syntax tree
and runs semantic checks that flag likely runtime errors, deprecated API
usage and naming convention violations before a script reaches the
trading platform.
"""

from pinelint.analyzer import AnalysisResult, analyze
from pinelint.frontend.lexer import tokenize
from pinelint.frontend.parser import extract_function_parameters, parse
from pinelint.registry import DocumentationRegistry, RuleRegistry

__version__ = "0.1.0"
__all__ = [
    "analyze",
    "AnalysisResult",
    "tokenize",
    "parse",
    "extract_function_parameters",
    "RuleRegistry",
    "DocumentationRegistry",
]

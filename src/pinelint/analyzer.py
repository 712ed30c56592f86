"""
Analysis pipeline.

``analyze`` parses the source once, then runs the checkers in a fixed
order against a shared, read-only ``CheckContext``:

1. the always-on checkers (na object access, parameter naming);
2. every optional checker whose rule code the rule registry defines.

A checker that raises is reported as a ``<NAME>_VALIDATION_ERROR``
violation plus an entry in ``errors``; the remaining checkers still run
and ``success`` stays True. Only a failure of the pipeline itself sets
``success`` to False.

The ``quick_*`` functions run a single concern and return
``{"violations": [...], "metrics": {...}}``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pinelint.checks.base import CheckContext, Checker, is_enabled
from pinelint.checks.compatibility import CompatibilityChecker, check_syntax_compatibility
from pinelint.checks.na_objects import NAObjectChecker, detect_unsafe_access
from pinelint.checks.naming import NamingChecker, check_naming
from pinelint.checks.ranges import (
    DRAWING_LIMITS,
    MAX_BARS_BACK,
    PRECISION,
    RANGE_RULES,
    RangeChecker,
    ShortTitleChecker,
    check_range,
    check_short_title,
)
from pinelint.checks.signatures import (
    InputTypeChecker,
    SignatureChecker,
    check_input_types,
    check_signatures,
)
from pinelint.checks.simple_params import SimpleParameterChecker, check_simple_parameters
from pinelint.checks.structure import (
    LineContinuationChecker,
    NamespaceChecker,
    check_builtin_namespaces,
    check_line_continuation,
)
from pinelint.frontend.parser import CallInfo, extract_function_parameters, extraction_from, parse
from pinelint.registry import DocumentationRegistry, RuleRegistry
from pinelint.utils.diagnostics import ErrorCategory, ErrorCode, ParseError, Severity, Violation
from pinelint.utils.errors import SourceLocation

logger = logging.getLogger(__name__)

# Execution order is part of the result contract
CHECKERS: tuple[Checker, ...] = (
    NAObjectChecker(),
    NamingChecker(),
    ShortTitleChecker(),
    *(RangeChecker(rule) for rule in RANGE_RULES),
    SignatureChecker(),
    InputTypeChecker(),
    SimpleParameterChecker(),
    NamespaceChecker(),
    LineContinuationChecker(),
    CompatibilityChecker(),
)

_START = SourceLocation(line=1, column=0, offset=0, length=0)


@dataclass
class AnalysisResult:
    """Outcome of one ``analyze`` call."""

    success: bool
    violations: list[Violation] = field(default_factory=list)
    function_calls: list[CallInfo] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(
            1 for v in self.violations if v.severity in (Severity.ERROR, Severity.CRITICAL)
        )

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.WARNING)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "violations": [v.to_dict() for v in self.violations],
            "functionCalls": [c.to_dict() for c in self.function_calls],
            "metrics": {
                "totalTimeMs": self.metrics.get("total_time_ms", 0.0),
                "parseTimeMs": self.metrics.get("parse_time_ms", 0.0),
                "functionsFound": self.metrics.get("functions_found", 0),
                "errorsFound": self.metrics.get("errors_found", 0),
                "checksPerformed": self.metrics.get("checks_performed", 0),
            },
            "errors": [e.to_dict() for e in self.errors],
        }


def _failure(checker: Checker, exc: Exception) -> tuple[Violation, ParseError]:
    code = f"{checker.name.upper()}_VALIDATION_ERROR"
    message = f"{checker.name} validation failed: {exc}"
    metadata = {"checker": checker.name, "exceptionType": type(exc).__name__}
    violation = Violation(
        rule=code,
        message=message,
        line=1,
        column=1,
        severity=Severity.ERROR,
        category=ErrorCategory.INTERNAL,
        metadata=metadata,
    )
    error = ParseError(
        code=code,
        message=message,
        location=_START,
        severity=Severity.ERROR,
        category=ErrorCategory.INTERNAL,
        metadata=metadata,
    )
    return violation, error


def analyze(
    source: str,
    rules: Optional[RuleRegistry] = None,
    documentation: Optional[DocumentationRegistry] = None,
) -> AnalysisResult:
    """
    Run the full analysis pipeline on ``source``.

    Args:
        source: Pine Script source text
        rules: Enabled rule codes; ``RuleRegistry.default()`` when omitted
        documentation: Loaded built-in parameter documentation, if any

    Returns:
        The merged result; never raises
    """
    started = time.perf_counter()
    if rules is None:
        rules = RuleRegistry.default()

    try:
        parse_result = parse(source)
        extraction = extraction_from(parse_result)
        context = CheckContext(
            source=source,
            parse_result=parse_result,
            extraction=extraction,
            rules=rules,
            documentation=documentation,
        )

        violations: list[Violation] = []
        errors: list[ParseError] = list(parse_result.errors)
        checks_performed = 0

        for checker in CHECKERS:
            if not is_enabled(checker, rules):
                continue
            checks_performed += 1
            try:
                violations.extend(checker.run(context))
            except Exception as exc:
                logger.exception("Checker %s failed", checker.name)
                violation, error = _failure(checker, exc)
                violations.append(violation)
                errors.append(error)

        metrics = {
            "total_time_ms": (time.perf_counter() - started) * 1000,
            "parse_time_ms": parse_result.metrics.get("parse_time_ms", 0.0),
            "functions_found": len(extraction.function_calls),
            "errors_found": len(violations),
            "checks_performed": checks_performed,
        }
        logger.debug(
            "Analyzed %d characters: %d violations from %d checks in %.1fms",
            len(source),
            len(violations),
            checks_performed,
            metrics["total_time_ms"],
        )
        return AnalysisResult(
            success=True,
            violations=violations,
            function_calls=extraction.function_calls,
            metrics=metrics,
            errors=errors,
        )
    except Exception as exc:
        logger.exception("Analysis failed")
        return AnalysisResult(
            success=False,
            metrics={
                "total_time_ms": (time.perf_counter() - started) * 1000,
                "parse_time_ms": 0.0,
                "functions_found": 0,
                "errors_found": 1,
                "checks_performed": 0,
            },
            errors=[
                ParseError(
                    code=ErrorCode.UNHANDLED_EXCEPTION,
                    message=str(exc),
                    location=_START,
                    severity=Severity.ERROR,
                    category=ErrorCategory.INTEGRATION,
                )
            ],
        )


# =============================================================================
# Quick single-purpose entry points
# =============================================================================


def _timed(run: Callable[[], list[Violation]]) -> dict[str, Any]:
    started = time.perf_counter()
    violations = run()
    return {
        "violations": violations,
        "metrics": {"validation_time_ms": (time.perf_counter() - started) * 1000},
    }


def _calls(source: str) -> list[CallInfo]:
    return extract_function_parameters(source).function_calls


def quick_short_title_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_short_title(_calls(source)))


def quick_precision_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_range(_calls(source), PRECISION))


def quick_max_bars_back_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_range(_calls(source), MAX_BARS_BACK))


def quick_drawing_limits_check(source: str) -> dict[str, Any]:
    """Check max_lines_count, max_labels_count and max_boxes_count together."""

    def run() -> list[Violation]:
        calls = _calls(source)
        violations: list[Violation] = []
        for rule in DRAWING_LIMITS:
            violations.extend(check_range(calls, rule))
        return violations

    return _timed(run)


def quick_naming_check(
    source: str, documentation: Optional[DocumentationRegistry] = None
) -> dict[str, Any]:
    return _timed(lambda: check_naming(source, documentation))


def quick_na_object_check(source: str) -> dict[str, Any]:
    return _timed(lambda: detect_unsafe_access(source))


def quick_syntax_compatibility_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_syntax_compatibility(source))


def quick_function_signature_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_signatures(info.call for info in _calls(source)))


def quick_input_type_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_input_types(info.call for info in _calls(source)))


def quick_simple_parameter_check(source: str) -> dict[str, Any]:
    """Series values (UDT fields) passed where a simple value is required."""
    return _timed(lambda: check_simple_parameters(_calls(source)))


def quick_builtin_namespace_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_builtin_namespaces(source))


def quick_line_continuation_check(source: str) -> dict[str, Any]:
    return _timed(lambda: check_line_continuation(source))

"""
pinelint semantic checkers.

Each checker implements the ``Checker`` protocol from ``checks.base`` and
also exposes a plain function for direct use.
"""

from pinelint.checks.base import CheckContext, Checker, is_enabled
from pinelint.checks.compatibility import CompatibilityChecker, check_syntax_compatibility
from pinelint.checks.na_objects import NAObjectAnalyzer, NAObjectChecker, detect_unsafe_access
from pinelint.checks.naming import NamingChecker, check_naming
from pinelint.checks.ranges import (
    DRAWING_LIMITS,
    MAX_BARS_BACK,
    PRECISION,
    RANGE_RULES,
    RangeChecker,
    RangeRule,
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

__all__ = [
    # Interface
    "CheckContext",
    "Checker",
    "is_enabled",
    # Always-on
    "NAObjectAnalyzer",
    "NAObjectChecker",
    "detect_unsafe_access",
    "NamingChecker",
    "check_naming",
    # Optional
    "ShortTitleChecker",
    "check_short_title",
    "RangeChecker",
    "RangeRule",
    "check_range",
    "PRECISION",
    "MAX_BARS_BACK",
    "DRAWING_LIMITS",
    "RANGE_RULES",
    "SignatureChecker",
    "check_signatures",
    "InputTypeChecker",
    "check_input_types",
    "SimpleParameterChecker",
    "check_simple_parameters",
    "NamespaceChecker",
    "check_builtin_namespaces",
    "LineContinuationChecker",
    "check_line_continuation",
    "CompatibilityChecker",
    "check_syntax_compatibility",
]

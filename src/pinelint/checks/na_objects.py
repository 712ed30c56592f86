"""
Detection of field access on uninitialized (na) user-defined type objects.

Accessing a field of an na-valued UDT object is a fatal runtime error on
the host platform. The analyzer approximates object state with three
linear passes over the source lines:

1. collect ``type`` declarations and their field names;
2. record object declarations (``var T o = na``, ``T o = na``) and
   constructor assignments (``o = T.new(...)``);
3. report ``o.field`` on objects whose recorded state is na, and every
   ``(o[n]).field`` on a tracked object, since a historical value may be
   na even after the object was initialized.

The analysis is flow-insensitive: branches are ignored and the last
textual assignment to an object determines its state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from pinelint.checks.base import CheckContext, is_comment_line, is_in_string_or_comment
from pinelint.utils.diagnostics import ErrorCategory, Severity, Violation

NA_ACCESS_RULE = "na_object_access"
NA_HISTORY_ACCESS_RULE = "na_object_history_access"

TYPE_HEADER = re.compile(r"^type\s+([A-Z][a-zA-Z0-9_]*)\s*$")
FIELD_DECLARATION = re.compile(
    r"^\s+((?:float|int|bool|string|color|array|matrix|map)\s+)?"
    r"([a-zA-Z_][a-zA-Z0-9_]*)\s*(?:=.*)?$"
)
VAR_NA_DECLARATION = re.compile(
    r"^var\s+([A-Z][a-zA-Z0-9_]*)\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*na\s*$"
)
NA_DECLARATION = re.compile(r"^([A-Z][a-zA-Z0-9_]*)\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*na\s*$")
CONSTRUCTOR_ASSIGNMENT = re.compile(
    r"([a-zA-Z_][a-zA-Z0-9_]*)\s*:?=\s*([A-Z][a-zA-Z0-9_]*)\s*\.\s*new\b"
)
FIELD_ACCESS = re.compile(r"([a-zA-Z_][a-zA-Z0-9_]*)\s*\.\s*([a-zA-Z_][a-zA-Z0-9_]*)")
HISTORICAL_ACCESS = re.compile(
    r"\(\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*\[\s*(\d+)\s*\]\s*\)\s*\.\s*([a-zA-Z_][a-zA-Z0-9_]*)"
)


class InitState(Enum):
    NA = "na"
    INITIALIZED = "initialized"


@dataclass
class ObjectState:
    """Tracked state of one UDT object variable."""

    udt_type: str
    state: InitState
    declaration_line: int
    is_var: bool = False


class NAObjectAnalyzer:
    """
    Single-use analyzer holding the per-call type registry and object states.

    Usage:
        violations = NAObjectAnalyzer().analyze(source)
    """

    def __init__(self) -> None:
        self.udt_types: dict[str, list[str]] = {}
        self.objects: dict[str, ObjectState] = {}

    def analyze(self, source: str) -> list[Violation]:
        lines = source.split("\n")
        self._collect_types(lines)
        self._track_objects(lines)
        return self._detect_violations(lines)

    # -------------------------------------------------------------------------
    # Pass 1: types
    # -------------------------------------------------------------------------

    def _collect_types(self, lines: list[str]) -> None:
        current: str | None = None
        fields: list[str] = []

        for raw in lines:
            header = TYPE_HEADER.match(raw.strip())
            if header and not raw[:1].isspace():
                if current:
                    self.udt_types[current] = fields
                current, fields = header.group(1), []
                continue

            if current is None:
                continue

            field_match = FIELD_DECLARATION.match(raw.rstrip())
            if field_match:
                fields.append(field_match.group(2))
                continue

            # A non-blank, non-indented line closes the type body
            if raw.strip() and not raw[:1].isspace() and not is_comment_line(raw):
                self.udt_types[current] = fields
                current, fields = None, []

        if current:
            self.udt_types[current] = fields

    # -------------------------------------------------------------------------
    # Pass 2: declarations and initializations
    # -------------------------------------------------------------------------

    def _track_objects(self, lines: list[str]) -> None:
        for number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line or line.startswith("//"):
                continue

            var_match = VAR_NA_DECLARATION.match(line)
            if var_match:
                udt_type, name = var_match.groups()
                self.objects[name] = ObjectState(udt_type, InitState.NA, number, is_var=True)
                continue

            na_match = NA_DECLARATION.match(line)
            if na_match:
                udt_type, name = na_match.groups()
                self.objects[name] = ObjectState(udt_type, InitState.NA, number)
                continue

            assignment = CONSTRUCTOR_ASSIGNMENT.search(line)
            if assignment:
                name, udt_type = assignment.groups()
                existing = self.objects.get(name)
                if existing is not None:
                    existing.state = InitState.INITIALIZED
                else:
                    self.objects[name] = ObjectState(udt_type, InitState.INITIALIZED, number)

    # -------------------------------------------------------------------------
    # Pass 3: unsafe accesses
    # -------------------------------------------------------------------------

    def _detect_violations(self, lines: list[str]) -> list[Violation]:
        violations: list[Violation] = []
        if not self.objects:
            return violations

        for number, line in enumerate(lines, start=1):
            if is_comment_line(line):
                continue
            violations.extend(self._direct_access(line, number))
            violations.extend(self._historical_access(line, number))
        return violations

    def _direct_access(self, line: str, number: int) -> list[Violation]:
        found = []
        for match in FIELD_ACCESS.finditer(line):
            name, field_name = match.groups()
            state = self.objects.get(name)
            if state is None or state.state is not InitState.NA:
                continue
            if is_in_string_or_comment(line, match.start()):
                continue
            found.append(
                Violation(
                    rule=NA_ACCESS_RULE,
                    message=(
                        f"Cannot access field '{field_name}' of undefined (na) object "
                        f"'{name}'. Initialize object before accessing fields."
                    ),
                    line=number,
                    column=match.start() + 1,
                    severity=Severity.ERROR,
                    category=ErrorCategory.RUNTIME,
                    metadata={
                        "objectName": name,
                        "fieldName": field_name,
                        "udtType": state.udt_type,
                        "violationType": "direct_na_access",
                        "declarationLine": state.declaration_line,
                        "knownField": self._is_known_field(state.udt_type, field_name),
                    },
                    suggested_fix=(
                        f"Initialize {name} with {state.udt_type}.new() before accessing fields"
                    ),
                )
            )
        return found

    def _is_known_field(self, udt_type: str, field_name: str) -> bool:
        fields = self.udt_types.get(udt_type)
        return not fields or field_name in fields

    def _historical_access(self, line: str, number: int) -> list[Violation]:
        found = []
        for match in HISTORICAL_ACCESS.finditer(line):
            name, index, field_name = match.groups()
            state = self.objects.get(name)
            if state is None:
                continue
            if is_in_string_or_comment(line, match.start()):
                continue
            found.append(
                Violation(
                    rule=NA_HISTORY_ACCESS_RULE,
                    message=(
                        f"Cannot access field '{field_name}' of potentially undefined "
                        f"historical object '{name}[{index}]'. Add na validation check."
                    ),
                    line=number,
                    column=match.start() + 1,
                    severity=Severity.ERROR,
                    category=ErrorCategory.RUNTIME,
                    metadata={
                        "objectName": name,
                        "fieldName": field_name,
                        "historicalIndex": int(index),
                        "udtType": state.udt_type,
                        "violationType": "historical_na_access",
                        "declarationLine": state.declaration_line,
                    },
                    suggested_fix=(
                        f"Add na check: not na({name}[{index}]) ? "
                        f"({name}[{index}]).{field_name} : 0"
                    ),
                )
            )
        return found


def detect_unsafe_access(source: str) -> list[Violation]:
    """Report field accesses on na or historically-indexed UDT objects."""
    return NAObjectAnalyzer().analyze(source)


class NAObjectChecker:
    name = "na_object"
    rule_codes = (NA_ACCESS_RULE, NA_HISTORY_ACCESS_RULE)
    always_on = True

    def run(self, context: CheckContext) -> list[Violation]:
        return detect_unsafe_access(context.source)

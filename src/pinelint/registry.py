"""
Rule and documentation registries.

Both registries are plain objects constructed by the caller and passed
into each analysis call. They are loaded once and treated as read-only
afterwards.

``RuleRegistry`` decides which optional checkers run. It accepts the flat
``errorCodeDefinitions`` format:

    {"errorCodeDefinitions": {"SHORT_TITLE_TOO_LONG": {...}, ...}}

or the legacy nested format:

    {"functionValidationRules": {"fun_indicator": {"argumentConstraints": {
        "shorttitle": {"validation_constraints": {"errorCode": "SHORT_TITLE_TOO_LONG"}}}}}}

``DocumentationRegistry`` maps built-in function names to the set of their
documented parameter names, extracted from a processed language reference.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from pinelint.utils.errors import ConfigurationError, DocumentationNotLoadedError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_RULE_CODES: tuple[str, ...] = ("SHORT_TITLE_TOO_LONG",)


def _read_json(path: PathLike) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e.msg} (line {e.lineno})") from e


# =============================================================================
# Rule Registry
# =============================================================================


class RuleRegistry:
    """Set of enabled error codes, with the definitions they came from."""

    def __init__(
        self,
        codes: Iterable[str] = (),
        definitions: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._codes = frozenset(codes)
        self._definitions = dict(definitions or {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuleRegistry":
        """
        Build a registry from a JSON-shaped rule object.

        Raises:
            ConfigurationError: If ``data`` is not a JSON object
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("Rule registry must be a JSON object")

        codes: set[str] = set()
        definitions: dict[str, Any] = {}

        flat = data.get("errorCodeDefinitions")
        if isinstance(flat, Mapping):
            for code, definition in flat.items():
                codes.add(code)
                definitions[code] = definition

        legacy = data.get("functionValidationRules")
        if isinstance(legacy, Mapping):
            for function_rules in legacy.values():
                constraints = (
                    function_rules.get("argumentConstraints")
                    if isinstance(function_rules, Mapping)
                    else None
                )
                if not isinstance(constraints, Mapping):
                    continue
                for argument in constraints.values():
                    if not isinstance(argument, Mapping):
                        continue
                    validation = argument.get("validation_constraints")
                    if isinstance(validation, Mapping) and validation.get("errorCode"):
                        code = validation["errorCode"]
                        codes.add(code)
                        definitions.setdefault(code, dict(validation))

        return cls(codes, definitions)

    @classmethod
    def from_file(cls, path: PathLike) -> "RuleRegistry":
        registry = cls.from_dict(_read_json(path))
        logger.info("Loaded %d rule codes from %s", len(registry), path)
        return registry

    @classmethod
    def default(cls) -> "RuleRegistry":
        """Registry used when the caller supplies none."""
        return cls(DEFAULT_RULE_CODES)

    def has_rule(self, code: str) -> bool:
        return code in self._codes

    def definition(self, code: str) -> Optional[Any]:
        return self._definitions.get(code)

    @property
    def codes(self) -> frozenset[str]:
        return self._codes

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    def __len__(self) -> int:
        return len(self._codes)

    def __repr__(self) -> str:
        return f"RuleRegistry({sorted(self._codes)!r})"


# =============================================================================
# Documentation Registry
# =============================================================================


class DocumentationRegistry:
    """
    Built-in function parameter names extracted from documentation.

    Queries made before loading return "unknown" answers (False / None) so
    that callers can degrade to their fixed tables. ``require_loaded`` is
    available to callers that prefer to fail instead.
    """

    def __init__(self) -> None:
        self._functions: dict[str, frozenset[str]] = {}
        self._loaded = False

    def initialize(self, source: Union[PathLike, Mapping[str, Any]]) -> bool:
        """
        Load documentation once; later calls are no-ops.

        Args:
            source: Path to a JSON file, or already-decoded JSON data

        Returns:
            True once the registry is loaded
        """
        if self._loaded:
            return True
        if isinstance(source, Mapping):
            self.load_data(source)
        else:
            self.load_file(source)
        return True

    def load_file(self, path: PathLike) -> None:
        started = time.perf_counter()
        self.load_data(_read_json(path))
        stats = self.statistics()
        logger.info(
            "Loaded %d functions with %d parameters from %s in %.1fms",
            stats["functionsLoaded"],
            stats["totalParameters"],
            path,
            (time.perf_counter() - started) * 1000,
        )

    def load_data(self, data: Mapping[str, Any]) -> None:
        """
        Register every ``fun_*`` entry that lists its arguments.

        Accepts either ``{"functions": {...}}`` or a flat mapping of entries.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("Documentation must be a JSON object")

        entries = data.get("functions") if isinstance(data.get("functions"), Mapping) else data
        functions: dict[str, frozenset[str]] = {}

        for function_id, definition in entries.items():
            if not function_id.startswith("fun_") or not isinstance(definition, Mapping):
                continue
            arguments = definition.get("arguments")
            if not arguments:
                continue
            name = definition.get("name") or function_id[len("fun_") :]
            names = set()
            for argument in arguments:
                if isinstance(argument, Mapping) and argument.get("name"):
                    names.add(argument["name"])
                elif isinstance(argument, str):
                    names.add(argument)
            functions[name] = frozenset(names)

        self._functions = functions
        self._loaded = True

    def is_loaded(self) -> bool:
        return self._loaded

    def require_loaded(self) -> None:
        if not self._loaded:
            raise DocumentationNotLoadedError(
                "Documentation not loaded. Call initialize() first."
            )

    def is_valid_parameter(self, function_name: str, parameter_name: str) -> bool:
        parameters = self._functions.get(function_name)
        return parameters is not None and parameter_name in parameters

    def parameters_of(self, function_name: str) -> Optional[frozenset[str]]:
        return self._functions.get(function_name)

    def function_names(self) -> list[str]:
        return list(self._functions)

    def statistics(self) -> dict[str, int]:
        return {
            "functionsLoaded": len(self._functions),
            "totalParameters": sum(len(p) for p in self._functions.values()),
        }

    def reset(self) -> None:
        """Forget loaded documentation (used by tests and reloads)."""
        self._functions = {}
        self._loaded = False

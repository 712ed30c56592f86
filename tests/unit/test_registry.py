"""Tests for the rule and documentation registries."""

import pytest

from pinelint.registry import DocumentationRegistry, RuleRegistry
from pinelint.utils.errors import ConfigurationError, DocumentationNotLoadedError


class TestRuleRegistry:
    """Rule registry loading."""

    def test_flat_format(self) -> None:
        registry = RuleRegistry.from_dict(
            {
                "errorCodeDefinitions": {
                    "SHORT_TITLE_TOO_LONG": {"maxLength": 12},
                    "INVALID_PRECISION": {},
                }
            }
        )

        assert registry.codes == {"SHORT_TITLE_TOO_LONG", "INVALID_PRECISION"}
        assert registry.definition("SHORT_TITLE_TOO_LONG") == {"maxLength": 12}
        assert "INVALID_PRECISION" in registry
        assert len(registry) == 2

    def test_legacy_format(self) -> None:
        registry = RuleRegistry.from_dict(
            {
                "functionValidationRules": {
                    "fun_indicator": {
                        "argumentConstraints": {
                            "shorttitle": {
                                "validation_constraints": {
                                    "errorCode": "SHORT_TITLE_TOO_LONG",
                                    "maxLength": 10,
                                }
                            },
                            "title": {"validation_constraints": {}},
                        }
                    },
                    "fun_plot": "ignored",
                }
            }
        )

        assert registry.codes == {"SHORT_TITLE_TOO_LONG"}
        assert registry.definition("SHORT_TITLE_TOO_LONG")["maxLength"] == 10

    def test_empty_object(self) -> None:
        registry = RuleRegistry.from_dict({})
        assert len(registry) == 0
        assert not registry.has_rule("SHORT_TITLE_TOO_LONG")

    def test_default(self) -> None:
        assert RuleRegistry.default().codes == {"SHORT_TITLE_TOO_LONG"}

    def test_not_an_object(self) -> None:
        with pytest.raises(ConfigurationError):
            RuleRegistry.from_dict([])

    def test_from_file(self, write_json) -> None:
        path = write_json("rules.json", {"errorCodeDefinitions": {"INVALID_PRECISION": {}}})
        assert RuleRegistry.from_file(path).has_rule("INVALID_PRECISION")

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            RuleRegistry.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            RuleRegistry.from_file(path)


class TestDocumentationRegistry:
    """Documentation registry loading and queries."""

    DATA = {
        "functions": {
            "fun_plot": {
                "name": "plot",
                "arguments": [{"name": "series"}, {"name": "linewidth"}],
            },
            "fun_ta.sma": {"arguments": ["source", "length"]},
            "fun_na": {"name": "na", "arguments": []},
            "var_close": {"name": "close", "arguments": [{"name": "x"}]},
        }
    }

    def test_queries_before_loading(self) -> None:
        registry = DocumentationRegistry()

        assert not registry.is_loaded()
        assert not registry.is_valid_parameter("plot", "linewidth")
        assert registry.parameters_of("plot") is None
        with pytest.raises(DocumentationNotLoadedError):
            registry.require_loaded()

    def test_load_data(self) -> None:
        registry = DocumentationRegistry()
        registry.load_data(self.DATA)

        assert registry.is_loaded()
        assert registry.is_valid_parameter("plot", "linewidth")
        assert not registry.is_valid_parameter("plot", "lineWidth")
        assert registry.parameters_of("ta.sma") == {"source", "length"}
        assert sorted(registry.function_names()) == ["plot", "ta.sma"]
        assert registry.statistics() == {"functionsLoaded": 2, "totalParameters": 4}

    def test_flat_entries(self) -> None:
        registry = DocumentationRegistry()
        registry.load_data({"fun_hline": {"arguments": [{"name": "price"}]}})
        assert registry.is_valid_parameter("hline", "price")

    def test_initialize_is_idempotent(self, write_json) -> None:
        registry = DocumentationRegistry()
        registry.initialize(self.DATA)
        path = write_json("docs.json", {"functions": {"fun_x": {"arguments": ["a"]}}})

        assert registry.initialize(path) is True
        assert registry.parameters_of("x") is None

    def test_initialize_from_file(self, write_json) -> None:
        registry = DocumentationRegistry()
        registry.initialize(write_json("docs.json", self.DATA))
        registry.require_loaded()
        assert registry.statistics()["functionsLoaded"] == 2

    def test_reset(self) -> None:
        registry = DocumentationRegistry()
        registry.initialize(self.DATA)
        registry.reset()

        assert not registry.is_loaded()
        assert registry.function_names() == []

    def test_not_an_object(self) -> None:
        with pytest.raises(ConfigurationError):
            DocumentationRegistry().load_data(["fun_plot"])

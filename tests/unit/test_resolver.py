"""Unit tests for the template resolver and mapping validation."""

import json

import pytest

from config_templates.interfaces.template import (
    ConflictingDefinitionError,
    MissingRequiredVariableError,
    PatternValidationError,
    TypeMismatchError,
    UndeclaredVariableError,
    VariableResolutionError,
)
from config_templates.strategies.template_engine.models import (
    MissingVariablesResponse,
    VariableDefinition,
)
from config_templates.strategies.template_engine.resolver import TemplateResolver

VALID_KEY = "tvly-" + "a1B2c3D4" * 4


@pytest.fixture
def resolver():
    """Create a resolver instance."""
    return TemplateResolver()


@pytest.fixture
def definitions():
    """Variable definitions of a published search template."""
    return [
        VariableDefinition(
            name="API_KEY",
            kind="secret",
            validation_pattern="tvly-[a-zA-Z0-9]{32}",
            documentation={"description": "Tavily API key", "howToObtain": "app.tavily.com"},
        ),
        VariableDefinition(name="TIMEOUT", kind="number", required=False, default_value="30"),
        VariableDefinition(
            name="DEPTH",
            kind="enum",
            required=False,
            default_value="basic",
            allowed_values=["basic", "advanced"],
        ),
        VariableDefinition(name="REGION", required=False),
        VariableDefinition(name="VERBOSE", kind="boolean", required=False, default_value="false"),
    ]


@pytest.fixture
def template():
    """A published search template."""
    return {
        "baseUrl": "https://api.tavily.com",
        "endpoints": [
            {
                "path": "/search",
                "headers": {"Authorization": "Bearer {{API_KEY}}"},
                "body": {
                    "search_depth": "{{DEPTH|basic}}",
                    "region": "{{REGION?}}",
                    "verbose": "{{VERBOSE|false}}",
                },
            }
        ],
        "timeout": "{{TIMEOUT|30}}",
        "retries": 3,
    }


# =============================================================================
# Mapping Validation Tests
# =============================================================================


class TestValidateVariableMapping:
    """Test suite for TemplateResolver.validate_variable_mapping."""

    def test_valid_mapping(self, resolver, definitions):
        """Test that a valid mapping has no problems."""
        assert resolver.validate_variable_mapping(definitions, {"API_KEY": VALID_KEY}) == []

    def test_missing_required(self, resolver, definitions):
        """Test that an absent required variable is reported."""
        problems = resolver.validate_variable_mapping(definitions, {})

        assert len(problems) == 1
        assert isinstance(problems[0], MissingRequiredVariableError)
        assert problems[0].variable_name == "API_KEY"

    def test_pattern_must_match_fully(self, resolver, definitions):
        """Test that a partial pattern match is still a problem."""
        problems = resolver.validate_variable_mapping(
            definitions, {"API_KEY": VALID_KEY + "-extra"}
        )
        assert [type(p) for p in problems] == [PatternValidationError]

    def test_pattern_violation(self, resolver):
        """Test the documented API_KEY pattern example."""
        definitions = [
            VariableDefinition(name="API_KEY", validation_pattern="tvly-[a-zA-Z0-9]{32}")
        ]
        problems = resolver.validate_variable_mapping(definitions, {"API_KEY": "bad-key"})

        assert len(problems) == 1
        assert isinstance(problems[0], PatternValidationError)
        assert problems[0].variable_name == "API_KEY"

    def test_enum_membership(self, resolver, definitions):
        """Test that enum values must be allowed."""
        problems = resolver.validate_variable_mapping(
            definitions, {"API_KEY": VALID_KEY, "DEPTH": "deep"}
        )
        assert len(problems) == 1
        assert isinstance(problems[0], TypeMismatchError)
        assert "basic, advanced" in problems[0].message

    @pytest.mark.parametrize("value", ["30", "2.5", "-1", "1e3"])
    def test_number_accepted(self, resolver, definitions, value):
        """Test that numeric text is accepted for number variables."""
        problems = resolver.validate_variable_mapping(
            definitions, {"API_KEY": VALID_KEY, "TIMEOUT": value}
        )
        assert problems == []

    @pytest.mark.parametrize("value", ["thirty", "", "nan", "inf"])
    def test_number_rejected(self, resolver, definitions, value):
        """Test that non-numeric text is rejected for number variables."""
        problems = resolver.validate_variable_mapping(
            definitions, {"API_KEY": VALID_KEY, "TIMEOUT": value}
        )
        assert [p.variable_name for p in problems] == ["TIMEOUT"]

    @pytest.mark.parametrize("value, ok", [("true", True), ("No", True), ("1", True), ("maybe", False)])
    def test_boolean(self, resolver, definitions, value, ok):
        """Test boolean spellings."""
        problems = resolver.validate_variable_mapping(
            definitions, {"API_KEY": VALID_KEY, "VERBOSE": value}
        )
        assert (problems == []) is ok

    def test_non_string_value(self, resolver, definitions):
        """Test that mapping values must be strings."""
        problems = resolver.validate_variable_mapping(
            definitions, {"API_KEY": VALID_KEY, "TIMEOUT": 30}
        )
        assert isinstance(problems[0], TypeMismatchError)

    def test_all_problems_reported(self, resolver, definitions):
        """Test that validation never stops at the first problem."""
        problems = resolver.validate_variable_mapping(
            definitions, {"TIMEOUT": "soon", "DEPTH": "deep", "VERBOSE": "maybe"}
        )
        assert [(p.variable_name, type(p)) for p in problems] == [
            ("API_KEY", MissingRequiredVariableError),
            ("TIMEOUT", TypeMismatchError),
            ("DEPTH", TypeMismatchError),
            ("VERBOSE", TypeMismatchError),
        ]

    def test_pattern_and_kind_both_reported(self, resolver):
        """Test that one variable can carry several problems."""
        definitions = [
            VariableDefinition(name="PORT", kind="number", validation_pattern=r"\d{4}")
        ]
        problems = resolver.validate_variable_mapping(definitions, {"PORT": "abc"})
        assert {type(p) for p in problems} == {PatternValidationError, TypeMismatchError}

    def test_unknown_names_ignored(self, resolver, definitions):
        """Test that extra mapping entries are not problems."""
        problems = resolver.validate_variable_mapping(
            definitions, {"API_KEY": VALID_KEY, "UNUSED": "x"}
        )
        assert problems == []

    def test_problems_never_contain_values(self, resolver, definitions):
        """Test that problem messages do not echo supplied values."""
        leaked = "tvly-leaked-value"
        problems = resolver.validate_variable_mapping(definitions, {"API_KEY": leaked})
        assert problems
        assert all(leaked not in p.message for p in problems)


# =============================================================================
# Resolution Tests
# =============================================================================


class TestResolveVariables:
    """Test suite for TemplateResolver.resolve_variables."""

    def test_resolve_with_defaults(self, resolver, template, definitions):
        """Test substitution and default tracking."""
        result = resolver.resolve_variables(template, definitions, {"API_KEY": VALID_KEY})
        endpoint = result.configuration["endpoints"][0]

        assert endpoint["headers"]["Authorization"] == f"Bearer {VALID_KEY}"
        assert endpoint["body"] == {"search_depth": "basic", "region": "", "verbose": "false"}
        assert result.configuration["timeout"] == "30"
        assert result.configuration["retries"] == 3
        assert result.applied_defaults == {"TIMEOUT", "DEPTH", "REGION", "VERBOSE"}

    def test_mapping_overrides_defaults(self, resolver, template, definitions):
        """Test that mapped values win and are not reported as defaults."""
        result = resolver.resolve_variables(
            template,
            definitions,
            {"API_KEY": VALID_KEY, "TIMEOUT": "60", "DEPTH": "advanced", "REGION": "eu"},
        )
        assert result.configuration["timeout"] == "60"
        assert result.configuration["endpoints"][0]["body"]["region"] == "eu"
        assert result.applied_defaults == {"VERBOSE"}

    def test_template_not_mutated(self, resolver, template, definitions):
        """Test that resolution builds a new tree."""
        before = json.dumps(template)
        resolver.resolve_variables(template, definitions, {"API_KEY": VALID_KEY})
        assert json.dumps(template) == before

    def test_idempotent(self, resolver, template, definitions):
        """Test that the same input yields byte-identical output."""
        mapping = {"API_KEY": VALID_KEY, "REGION": "us"}
        first = resolver.resolve_variables(template, definitions, mapping)
        second = resolver.resolve_variables(template, definitions, mapping)

        assert json.dumps(first.configuration) == json.dumps(second.configuration)
        assert first.applied_defaults == second.applied_defaults

    def test_missing_required_fails_atomically(self, resolver, template, definitions):
        """Test that a missing required variable yields no configuration."""
        with pytest.raises(VariableResolutionError) as exc_info:
            resolver.resolve_variables(template, definitions, {})

        assert exc_info.value.missing == ["API_KEY"]
        assert isinstance(exc_info.value.problems[0], MissingRequiredVariableError)

    def test_invalid_value_is_not_substituted(self, resolver):
        """Test that pattern violations block resolution."""
        definitions = [
            VariableDefinition(name="API_KEY", validation_pattern="tvly-[a-zA-Z0-9]{32}")
        ]
        with pytest.raises(VariableResolutionError) as exc_info:
            resolver.resolve_variables(
                {"auth": "Bearer {{API_KEY}}"}, definitions, {"API_KEY": "bad-key"}
            )
        assert isinstance(exc_info.value.problems[0], PatternValidationError)
        assert "bad-key" not in str(exc_info.value)

    def test_aggregated_error(self, resolver, template, definitions):
        """Test that the raised error carries every problem."""
        with pytest.raises(VariableResolutionError) as exc_info:
            resolver.resolve_variables(template, definitions, {"DEPTH": "deep"})
        assert [p.variable_name for p in exc_info.value.problems] == ["API_KEY", "DEPTH"]

    def test_response_payload(self, resolver, template, definitions):
        """Test the structured payload for the API layer."""
        with pytest.raises(VariableResolutionError) as exc_info:
            resolver.resolve_variables(template, definitions, {"DEPTH": "deep"})

        response = exc_info.value.to_response()
        assert isinstance(response, MissingVariablesResponse)
        assert [p.variable for p in response.missing] == ["API_KEY"]
        assert [(p.variable, p.code) for p in response.invalid] == [("DEPTH", "type_mismatch")]

    def test_injection_not_rescanned(self, resolver):
        """Test that placeholder text inside a value stays literal."""
        definitions = [VariableDefinition(name="A"), VariableDefinition(name="B")]
        result = resolver.resolve_variables(
            {"a": "{{A}}", "b": "{{B}}"}, definitions, {"A": "{{B}}", "B": "b"}
        )
        assert result.configuration == {"a": "{{B}}", "b": "b"}

    def test_structural_errors_checked_first(self, resolver):
        """Test that an invalid template is refused before mapping checks."""
        with pytest.raises(UndeclaredVariableError):
            resolver.resolve_variables({"a": "{{A}}"}, [], {})

    def test_conflicting_template_refused(self, resolver):
        """Test that a template with conflicting defaults cannot be resolved."""
        definitions = [VariableDefinition(name="X", required=False, default_value="a")]
        with pytest.raises(ConflictingDefinitionError):
            resolver.resolve_variables({"a": "{{X|a}}", "b": "{{X|b}}"}, definitions, {})

    def test_scalar_template(self, resolver):
        """Test that a bare string template resolves."""
        definitions = [VariableDefinition(name="HOST")]
        result = resolver.resolve_variables("https://{{HOST}}", definitions, {"HOST": "a.io"})
        assert result.configuration == "https://a.io"

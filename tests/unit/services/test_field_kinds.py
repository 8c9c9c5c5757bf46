from datetime import date
from decimal import Decimal

import pytest

from models import RuleOperator
from schemas.field_type import (
    DateSpec,
    EmailSpec,
    FieldKind,
    MultiSelectSpec,
    NumberSpec,
    PercentageSpec,
    SelectSpec,
    TextSpec,
    UrlSpec,
)
from services.field_kinds import check_rule_condition, coerce, resolve_kind, validate_value


@pytest.mark.unit
class TestCoerce:

    def test_empty_input_is_none(self):
        assert coerce(FieldKind.NUMBER, "  ") is None
        assert coerce(FieldKind.TEXT, None) is None
        assert coerce(FieldKind.MULTI_SELECT, []) is None

    def test_numeric_kinds(self):
        assert coerce(FieldKind.NUMBER, "12.5") == Decimal("12.5")
        assert coerce(FieldKind.CURRENCY, "$2,400.00") == Decimal("2400.00")
        assert coerce(FieldKind.PERCENTAGE, "35%") == Decimal("35")

    @pytest.mark.parametrize("raw", ["abc", "NaN", "Infinity", True])
    def test_rejects_non_numbers(self, raw):
        with pytest.raises(ValueError):
            coerce(FieldKind.NUMBER, raw)

    def test_dates(self):
        assert coerce(FieldKind.DATE, "2027-06-30") == date(2027, 6, 30)
        with pytest.raises(ValueError):
            coerce(FieldKind.DATE, "30/06/2027")

    def test_booleans(self):
        assert coerce(FieldKind.BOOLEAN, "Yes") is True
        assert coerce(FieldKind.BOOLEAN, "0") is False
        with pytest.raises(ValueError):
            coerce(FieldKind.BOOLEAN, "maybe")

    def test_multi_select(self):
        assert coerce(FieldKind.MULTI_SELECT, "ISO Queue, News Media") == ["ISO Queue", "News Media"]
        assert coerce(FieldKind.MULTI_SELECT, ["ISO Queue", ""]) == ["ISO Queue"]

    def test_list_for_single_value_kind(self):
        with pytest.raises(ValueError):
            coerce(FieldKind.SELECT, ["Coal", "Nuclear"])


@pytest.mark.unit
class TestValidateValue:

    def test_number_range(self):
        spec = NumberSpec(min=0, max=2000)
        assert validate_value(spec, "150") == []
        assert validate_value(spec, "-5") == ["must be at least 0"]
        assert validate_value(spec, "abc") == ["'abc' is not a valid number value"]

    def test_percentage_defaults(self):
        assert validate_value(PercentageSpec(), "101") == ["must be at most 100"]

    def test_date_range(self):
        spec = DateSpec(min=date(2020, 1, 1))
        assert validate_value(spec, "2019-12-31") == ["must be at least 2020-01-01"]

    def test_text_length_and_pattern(self):
        spec = TextSpec(max_length=12, pattern=r"PWR-\d{4}-\d{3}")
        assert validate_value(spec, "PWR-2024-001") == []
        errors = validate_value(spec, "PROJECT-2024-0001")
        assert "must be at most 12 characters" in errors
        assert len(errors) == 2

    def test_select_options(self):
        options = ["Solar PV", "Coal"]
        assert validate_value(SelectSpec(), "Coal", options) == []
        assert validate_value(SelectSpec(), "Tidal", options) == ["'Tidal' is not one of the permissible values"]

    def test_multi_select_options_and_counts(self):
        spec = MultiSelectSpec(max_selected=1)
        errors = validate_value(spec, ["ISO Queue", "Rumour"], ["ISO Queue", "News Media"])
        assert len(errors) == 2

    def test_email_and_url(self):
        assert validate_value(EmailSpec(), "ops@gridfield.io") == []
        assert validate_value(EmailSpec(), "not-an-email") != []
        assert validate_value(UrlSpec(), "https://example.com/permits") == []
        assert validate_value(UrlSpec(), "nowhere") != []

    def test_empty_is_accepted(self):
        assert validate_value(NumberSpec(min=10), "") == []


@pytest.mark.unit
class TestRuleConditionCheck:

    def test_ordering_needs_orderable_kind(self):
        attr, reason = check_rule_condition(RuleOperator.GT, FieldKind.TEXT, "5")
        assert attr == "operator"

    def test_ordering_needs_parseable_value(self):
        assert check_rule_condition(RuleOperator.GT, FieldKind.NUMBER, "20") is None
        assert check_rule_condition(RuleOperator.GT, FieldKind.NUMBER, "twenty")[0] == "value"
        assert check_rule_condition(RuleOperator.LTE, FieldKind.DATE, "")[0] == "value"

    def test_equality_against_typed_kinds(self):
        assert check_rule_condition(RuleOperator.EQ, FieldKind.BOOLEAN, "true") is None
        assert check_rule_condition(RuleOperator.EQ, FieldKind.BOOLEAN, "perhaps")[0] == "value"
        assert check_rule_condition(RuleOperator.NE, FieldKind.NUMBER, "") is None
        assert check_rule_condition(RuleOperator.EQ, FieldKind.TEXT, "anything") is None

    def test_in_needs_items(self):
        assert check_rule_condition(RuleOperator.IN, FieldKind.SELECT, "Natural Gas,Coal") is None
        assert check_rule_condition(RuleOperator.NOT_IN, FieldKind.SELECT, " ,")[0] == "value"
        assert check_rule_condition(RuleOperator.IN, FieldKind.NUMBER, "1,two")[0] == "value"

    def test_contains_needs_value(self):
        assert check_rule_condition(RuleOperator.CONTAINS, FieldKind.TEXT, "")[0] == "value"


@pytest.mark.unit
def test_resolve_kind_defaults_to_text():
    assert resolve_kind(None) == FieldKind.TEXT
    assert resolve_kind({"kind": "hologram"}) == FieldKind.TEXT
    assert resolve_kind({"kind": "currency", "min": 0}) == FieldKind.CURRENCY

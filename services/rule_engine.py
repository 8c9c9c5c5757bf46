"""Rule Evaluation Engine - applies field rules to a record of current values.

``evaluate`` is a pure function: it reads the field set, the ordered rules and
the value mapping, and returns a fresh map of derived states. It keeps no
state between calls and never raises for data problems; a rule that cannot be
applied is skipped and reported as a warning.

Evaluation is a single pass in the order the rules are given (the rule store
returns them by priority desc, creation asc). Later rules see the values
written by earlier ones and overwrite the attributes they touch; nothing is
undone when a condition does not hold and no second pass is taken.
"""

from typing import Any, Callable, Iterable, Mapping

from core.logging_config import get_logger
from models.field_rule import RuleAction, RuleOperator
from schemas.evaluation import DerivedState, EvaluationField, EvaluationResult, RuleWarning
from schemas.field_type import FieldKind, ORDERABLE_KINDS
from services.field_kinds import coerce, is_empty, split_list

logger = get_logger(__name__)


class MalformedRule(ValueError):
    """The rule's value cannot be interpreted for the condition field's kind"""


def _parse_expected(kind: FieldKind, raw: str) -> Any:
    try:
        return coerce(kind, raw)
    except ValueError as e:
        raise MalformedRule(str(e))


def _parse_actual(kind: FieldKind, raw: Any) -> Any:
    """Parse a user-entered value; input that does not parse is None"""
    try:
        return coerce(kind, raw)
    except ValueError:
        return None


def _equals(kind: FieldKind, actual: Any, expected: str) -> bool:
    # An empty rule value means "the field is empty"
    if is_empty(expected):
        return is_empty(actual)
    if is_empty(actual):
        return False

    if kind == FieldKind.MULTI_SELECT:
        return set(_parse_actual(kind, actual) or []) == set(split_list(expected))

    right = _parse_expected(kind, expected)
    left = _parse_actual(kind, actual)
    if left is None:
        # Unparseable input never equals a well-formed value of the kind
        return str(actual).strip() == expected.strip()
    return left == right


def _compare(kind: FieldKind, operator: RuleOperator, actual: Any, expected: str) -> bool:
    if kind not in ORDERABLE_KINDS:
        raise MalformedRule(f"operator '{operator.value}' needs a numeric or date field, not {kind.value}")
    right = _parse_expected(kind, expected)
    if right is None:
        raise MalformedRule(f"operator '{operator.value}' needs a value")
    left = _parse_actual(kind, actual)
    if left is None:
        return False
    if operator == RuleOperator.GT:
        return left > right
    if operator == RuleOperator.LT:
        return left < right
    if operator == RuleOperator.GTE:
        return left >= right
    return left <= right


def _contains(kind: FieldKind, actual: Any, expected: str) -> bool:
    needle = expected.strip()
    if not needle:
        raise MalformedRule("contains needs a non-empty value")
    if is_empty(actual):
        return False
    if isinstance(actual, (list, tuple, set)) or kind == FieldKind.MULTI_SELECT:
        items = _parse_actual(FieldKind.MULTI_SELECT, actual) or []
        return needle in items
    return needle in str(actual)


def _member_of(kind: FieldKind, actual: Any, expected: str) -> bool:
    options = split_list(expected)
    if not options:
        raise MalformedRule("in needs at least one comma separated value")
    if is_empty(actual):
        return False

    if kind == FieldKind.MULTI_SELECT or isinstance(actual, (list, tuple, set)):
        items = _parse_actual(FieldKind.MULTI_SELECT, actual) or []
        return any(item in options for item in items)

    if kind in (FieldKind.TEXT, FieldKind.SELECT, FieldKind.EMAIL, FieldKind.URL):
        return str(actual).strip() in options

    parsed_options = [_parse_expected(kind, option) for option in options]
    left = _parse_actual(kind, actual)
    return left is not None and left in parsed_options


def condition_holds(operator: RuleOperator, kind: FieldKind, actual: Any, expected: str) -> bool:
    """
    Evaluate ``actual <operator> expected`` for a condition field of ``kind``.

    Raises MalformedRule when ``expected`` is not usable with the operator and
    kind.
    """
    expected = "" if expected is None else str(expected)
    if operator == RuleOperator.EQ:
        return _equals(kind, actual, expected)
    if operator == RuleOperator.NE:
        return not _equals(kind, actual, expected)
    if operator in (RuleOperator.GT, RuleOperator.LT, RuleOperator.GTE, RuleOperator.LTE):
        return _compare(kind, operator, actual, expected)
    if operator == RuleOperator.CONTAINS:
        return _contains(kind, actual, expected)
    if operator == RuleOperator.NOT_CONTAINS:
        return not _contains(kind, actual, expected)
    if operator == RuleOperator.IN:
        return _member_of(kind, actual, expected)
    return not _member_of(kind, actual, expected)


def _hide(state: DerivedState, rule) -> None:
    state.visible = False


def _disable(state: DerivedState, rule) -> None:
    state.enabled = False


def _enable(state: DerivedState, rule) -> None:
    state.enabled = True


def _require(state: DerivedState, rule) -> None:
    state.required = True


def _optional(state: DerivedState, rule) -> None:
    state.required = False


def _clear(state: DerivedState, rule) -> None:
    state.value = None


def _modify(state: DerivedState, rule) -> None:
    state.value = rule.action_value


ACTIONS: dict[RuleAction, Callable[[DerivedState, Any], None]] = {
    RuleAction.HIDE: _hide,
    RuleAction.DISABLE: _disable,
    RuleAction.ENABLE: _enable,
    RuleAction.REQUIRE: _require,
    RuleAction.OPTIONAL: _optional,
    RuleAction.CLEAR: _clear,
    RuleAction.MODIFY: _modify,
}


def initial_states(fields: Iterable[EvaluationField], values: Mapping[str, Any]) -> dict[str, DerivedState]:
    return {
        field.name: DerivedState(
            visible=True,
            enabled=True,
            required=field.is_required,
            value=values.get(field.name),
        )
        for field in fields
    }


def evaluate(
    fields: Iterable[EvaluationField],
    rules: Iterable[Any],
    values: Mapping[str, Any],
) -> EvaluationResult:
    """
    Apply ``rules`` in order to ``values`` and return the derived state per field.

    ``rules`` are FieldRule rows or any objects with the same attributes;
    ``fields`` is the known field set (unknown names in ``values`` are
    ignored).
    """
    fields = list(fields)
    kinds = {field.name: field.kind for field in fields}
    states = initial_states(fields, values)
    warnings: list[RuleWarning] = []

    def skip(rule, reason: str) -> None:
        rule_id = getattr(rule, "id", None)
        rule_name = getattr(rule, "name", None)
        warnings.append(RuleWarning(rule_id=rule_id, rule_name=rule_name, reason=reason))
        logger.warning_ctx("Skipped field rule", rule_id=str(rule_id), rule_name=rule_name, reason=reason)

    for rule in rules:
        try:
            operator = RuleOperator(rule.operator)
            action = RuleAction(rule.action)
        except ValueError as e:
            skip(rule, str(e))
            continue

        if rule.condition_field not in states:
            skip(rule, f"condition field '{rule.condition_field}' is not an active field")
            continue
        if rule.target_field not in states:
            skip(rule, f"target field '{rule.target_field}' is not an active field")
            continue

        # Live working copy: earlier rules may have cleared or modified it
        actual = states[rule.condition_field].value
        try:
            holds = condition_holds(operator, kinds[rule.condition_field], actual, rule.value)
        except MalformedRule as e:
            skip(rule, str(e))
            continue

        if holds:
            ACTIONS[action](states[rule.target_field], rule)

    return EvaluationResult(states=states, warnings=warnings)

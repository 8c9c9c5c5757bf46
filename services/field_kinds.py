"""Kind-aware parsing and validation of field values.

Shared by the rule store (is a rule's ``value`` well-formed for the condition
field's kind?), the rule engine (kind-aware comparison) and record
validation (does a value satisfy its field type's contract?).
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from pydantic import AnyUrl, EmailStr, TypeAdapter, ValidationError as PydanticValidationError

from models.field_rule import RuleOperator
from schemas.field_type import (
    FieldKind,
    NUMERIC_KINDS,
    ORDERABLE_KINDS,
    ValidationSpec,
    parse_validation_spec,
)

TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "on"})
FALSE_STRINGS = frozenset({"false", "no", "n", "0", "off"})

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(AnyUrl)


def resolve_kind(validation_spec: dict | None) -> FieldKind:
    """Kind of a stored validation document; unknown documents count as text"""
    try:
        return FieldKind(parse_validation_spec(validation_spec).kind)
    except (PydanticValidationError, ValueError):
        return FieldKind.TEXT


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def split_list(raw: str) -> list[str]:
    """Split a comma separated rule value into trimmed, non-empty items"""
    return [item.strip() for item in raw.split(",") if item.strip()]


def _parse_decimal(kind: FieldKind, raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise ValueError(f"expected a {kind.value} value, got a boolean")
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    else:
        text = str(raw).strip()
        if kind == FieldKind.CURRENCY:
            text = text.lstrip("$").replace(",", "")
        elif kind == FieldKind.PERCENTAGE:
            text = text.rstrip("%").strip()
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"'{raw}' is not a valid {kind.value} value")
    if not number.is_finite():
        raise ValueError(f"'{raw}' is not a finite {kind.value} value")
    return number


def _parse_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValueError(f"'{raw}' is not an ISO date")


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError(f"'{raw}' is not a boolean value")


def coerce(kind: FieldKind, raw: Any) -> Any:
    """
    Parse ``raw`` as a value of ``kind``.

    Empty input becomes None. Numeric kinds yield Decimal, dates yield
    ``datetime.date``, booleans yield bool, multi-select yields a list of
    strings and everything else a stripped string. Raises ValueError for
    input that does not parse.
    """
    if is_empty(raw):
        return None
    if kind in NUMERIC_KINDS:
        return _parse_decimal(kind, raw)
    if kind == FieldKind.DATE:
        return _parse_date(raw)
    if kind == FieldKind.BOOLEAN:
        return _parse_bool(raw)
    if kind == FieldKind.MULTI_SELECT:
        if isinstance(raw, (list, tuple, set)):
            return [str(item).strip() for item in raw if not is_empty(item)]
        return split_list(str(raw))
    if isinstance(raw, (list, tuple, set)):
        raise ValueError(f"expected a single {kind.value} value")
    return str(raw).strip()


def _bound(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def validate_value(spec: ValidationSpec, value: Any, options: Iterable[str] = ()) -> list[str]:
    """
    Check ``value`` against a field type's validation contract.

    Returns human readable violations, empty when the value is acceptable.
    Empty values are accepted here; required-ness is decided by the caller.
    ``options`` are the field's permissible values for select kinds.
    """
    kind = FieldKind(spec.kind)
    try:
        parsed = coerce(kind, value)
    except ValueError as e:
        return [str(e)]
    if parsed is None:
        return []

    errors = []
    if kind in NUMERIC_KINDS or kind == FieldKind.DATE:
        if spec.min is not None and parsed < spec.min:
            errors.append(f"must be at least {_bound(spec.min)}")
        if spec.max is not None and parsed > spec.max:
            errors.append(f"must be at most {_bound(spec.max)}")
    elif kind == FieldKind.TEXT:
        if spec.min_length is not None and len(parsed) < spec.min_length:
            errors.append(f"must be at least {spec.min_length} characters")
        if spec.max_length is not None and len(parsed) > spec.max_length:
            errors.append(f"must be at most {spec.max_length} characters")
        if spec.pattern and not re.fullmatch(spec.pattern, parsed):
            errors.append(f"does not match pattern {spec.pattern}")
    elif kind == FieldKind.SELECT:
        allowed = list(options)
        if allowed and parsed not in allowed:
            errors.append(f"'{parsed}' is not one of the permissible values")
    elif kind == FieldKind.MULTI_SELECT:
        allowed = list(options)
        invalid = [item for item in parsed if allowed and item not in allowed]
        if invalid:
            errors.append(f"{', '.join(repr(i) for i in invalid)} not among the permissible values")
        if spec.min_selected is not None and len(parsed) < spec.min_selected:
            errors.append(f"select at least {spec.min_selected} values")
        if spec.max_selected is not None and len(parsed) > spec.max_selected:
            errors.append(f"select at most {spec.max_selected} values")
    elif kind == FieldKind.EMAIL:
        try:
            _email_adapter.validate_python(parsed)
        except PydanticValidationError:
            errors.append(f"'{parsed}' is not a valid e-mail address")
    elif kind == FieldKind.URL:
        try:
            _url_adapter.validate_python(parsed)
        except PydanticValidationError:
            errors.append(f"'{parsed}' is not a valid URL")
    return errors


ORDERING_OPERATORS = frozenset({RuleOperator.GT, RuleOperator.LT, RuleOperator.GTE, RuleOperator.LTE})
TYPED_KINDS = NUMERIC_KINDS | {FieldKind.DATE, FieldKind.BOOLEAN}


def check_rule_condition(operator: RuleOperator, kind: FieldKind, value: str | None) -> tuple[str, str] | None:
    """
    Check that ``operator`` and ``value`` make sense for a condition field of ``kind``.

    Returns ``(attribute, reason)`` for the first problem found, None when
    the condition is well-formed.
    """
    operator = RuleOperator(operator)
    value = value or ""

    if operator in ORDERING_OPERATORS:
        if kind not in ORDERABLE_KINDS:
            return "operator", (
                f"operator '{operator.value}' is only valid for number, currency, "
                f"percentage and date fields, not {kind.value}"
            )
        if is_empty(value):
            return "value", f"operator '{operator.value}' needs a value to compare against"
        try:
            coerce(kind, value)
        except ValueError as e:
            return "value", str(e)
        return None

    if operator in (RuleOperator.EQ, RuleOperator.NE):
        # An empty value tests for an empty field
        if not is_empty(value) and kind in TYPED_KINDS:
            try:
                coerce(kind, value)
            except ValueError as e:
                return "value", str(e)
        return None

    if operator in (RuleOperator.CONTAINS, RuleOperator.NOT_CONTAINS):
        if is_empty(value):
            return "value", f"operator '{operator.value}' needs a non-empty value"
        return None

    items = split_list(value)
    if not items:
        return "value", f"operator '{operator.value}' needs a comma separated list of values"
    if kind in TYPED_KINDS:
        for item in items:
            try:
                coerce(kind, item)
            except ValueError as e:
                return "value", str(e)
    return None

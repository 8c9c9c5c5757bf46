"""Field type schemas, including the validation contract union"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import Field as PydanticField, TypeAdapter, field_validator, model_validator

from schemas.common import CamelModel


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    EMAIL = "email"
    URL = "url"


NUMERIC_KINDS = frozenset({FieldKind.NUMBER, FieldKind.CURRENCY, FieldKind.PERCENTAGE})
ORDERABLE_KINDS = NUMERIC_KINDS | {FieldKind.DATE}
LIST_KINDS = frozenset({FieldKind.SELECT, FieldKind.MULTI_SELECT})


class _RangeSpec(CamelModel):
    @model_validator(mode="after")
    def check_range(self):
        low, high = getattr(self, "min", None), getattr(self, "max", None)
        if low is not None and high is not None and low > high:
            raise ValueError("min must not exceed max")
        return self


class TextSpec(CamelModel):
    kind: Literal["text"] = "text"
    min_length: Optional[int] = PydanticField(None, ge=0)
    max_length: Optional[int] = PydanticField(None, ge=1)
    pattern: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def pattern_compiles(cls, value):
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid pattern: {e}")
        return value

    @model_validator(mode="after")
    def check_lengths(self):
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise ValueError("minLength must not exceed maxLength")
        return self


class NumberSpec(_RangeSpec):
    kind: Literal["number"] = "number"
    min: Optional[float] = None
    max: Optional[float] = None


class CurrencySpec(_RangeSpec):
    kind: Literal["currency"] = "currency"
    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "USD"


class PercentageSpec(_RangeSpec):
    kind: Literal["percentage"] = "percentage"
    min: Optional[float] = 0
    max: Optional[float] = 100


class DateSpec(_RangeSpec):
    kind: Literal["date"] = "date"
    min: Optional[date] = None
    max: Optional[date] = None


class BooleanSpec(CamelModel):
    kind: Literal["boolean"] = "boolean"


class SelectSpec(CamelModel):
    kind: Literal["select"] = "select"
    required: bool = True


class MultiSelectSpec(CamelModel):
    kind: Literal["multi_select"] = "multi_select"
    required: bool = False
    min_selected: Optional[int] = PydanticField(None, ge=0)
    max_selected: Optional[int] = PydanticField(None, ge=1)


class EmailSpec(CamelModel):
    kind: Literal["email"] = "email"


class UrlSpec(CamelModel):
    kind: Literal["url"] = "url"


ValidationSpec = Annotated[
    Union[
        TextSpec, NumberSpec, CurrencySpec, PercentageSpec, DateSpec,
        BooleanSpec, SelectSpec, MultiSelectSpec, EmailSpec, UrlSpec,
    ],
    PydanticField(discriminator="kind"),
]

validation_spec_adapter = TypeAdapter(ValidationSpec)


def parse_validation_spec(raw: dict | None) -> ValidationSpec:
    """Parse a stored validation document; a missing document means plain text"""
    return validation_spec_adapter.validate_python(raw or {"kind": "text"})


def dump_validation_spec(spec) -> dict:
    return spec.model_dump(mode="json", by_alias=True, exclude_none=True)


class FieldTypeCreate(CamelModel):
    name: str = PydanticField(..., min_length=1, max_length=50)
    description: Optional[str] = None
    icon: Optional[str] = PydanticField(None, max_length=100)
    validation_spec: ValidationSpec = PydanticField(default_factory=TextSpec)


class FieldTypeUpdate(CamelModel):
    name: Optional[str] = PydanticField(None, min_length=1, max_length=50)
    description: Optional[str] = None
    icon: Optional[str] = PydanticField(None, max_length=100)
    validation_spec: Optional[ValidationSpec] = None


class FieldTypeRead(CamelModel):
    id: UUID
    name: str
    description: Optional[str]
    icon: Optional[str]
    validation_spec: dict
    is_system: bool
    created_at: datetime
    updated_at: datetime


class FieldTypeUpdateResult(CamelModel):
    field_type: FieldTypeRead
    warnings: list[str] = []

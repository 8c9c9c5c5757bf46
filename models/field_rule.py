"""Field rule model - declarative IF condition THEN action statements"""

import enum
import uuid
from typing import Optional

from sqlalchemy import String, Text, Boolean, Integer, ForeignKey, CheckConstraint, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class RuleOperator(str, enum.Enum):
    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"


class RuleAction(str, enum.Enum):
    CLEAR = "Clear"
    HIDE = "Hide"
    DISABLE = "Disable"
    ENABLE = "Enable"
    MODIFY = "Modify"
    REQUIRE = "Require"
    OPTIONAL = "Optional"


RULE_PRIORITY_MIN = 0
RULE_PRIORITY_MAX = 1000


class FieldRule(Base):
    """
    IF ``condition_field`` <operator> ``value`` THEN ``action`` on ``target_field``.

    Rules are applied in ``priority`` order (highest first, creation order on
    ties). ``project_id`` scopes a rule to one project; NULL means global.
    """
    __tablename__ = "field_rules"

    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    condition_field: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("fields.name", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    operator: Mapped[RuleOperator] = mapped_column(
        SQLEnum(RuleOperator, name="rule_operator", values_callable=lambda x: [e.value for e in x]),
        nullable=False
    )
    value: Mapped[str] = mapped_column(Text, default="", nullable=False)

    action: Mapped[RuleAction] = mapped_column(
        SQLEnum(RuleAction, name="rule_action", values_callable=lambda x: [e.value for e in x]),
        nullable=False
    )
    target_field: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("fields.name", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    action_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    __table_args__ = (
        CheckConstraint(
            f"priority >= {RULE_PRIORITY_MIN} AND priority <= {RULE_PRIORITY_MAX}",
            name="ck_field_rule_priority_range"
        ),
    )

    def __repr__(self):
        return (
            f"<FieldRule(if '{self.condition_field}' {self.operator.value} '{self.value}' "
            f"then {self.action.value} '{self.target_field}')>"
        )

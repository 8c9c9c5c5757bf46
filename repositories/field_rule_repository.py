"""Field Rule Repository - the rule store"""

from uuid import UUID

from fastapi import Depends
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from core.logging_config import get_logger
from db.session import get_db, transaction
from models import FieldRule, RuleAction
from repositories.field_repository import FieldRepository
from repositories.project_repository import ProjectRepository
from schemas.field_rule import FieldRuleCreate
from services.field_kinds import check_rule_condition, resolve_kind

logger = get_logger(__name__)

# Actions a rule may apply to its own condition field
SELF_ACTIONS = frozenset({RuleAction.CLEAR, RuleAction.MODIFY})

VALIDATED_KEYS = frozenset({
    "condition_field", "target_field", "operator", "value", "action", "action_value", "project_id",
})

NULLABLE_KEYS = frozenset({"name", "description", "action_value", "project_id"})


class FieldRuleRepository:
    def __init__(self, session: Session):
        self.session = session
        self.fields = FieldRepository(session)
        self.projects = ProjectRepository(session)

    def get_or_404(self, rule_id: UUID) -> FieldRule:
        rule = self.session.get(FieldRule, rule_id)
        if not rule:
            raise NotFoundError("Field rule", rule_id)
        return rule

    def _ordered(self, stmt):
        # The evaluation order: priority desc, then first created first
        return stmt.order_by(FieldRule.priority.desc(), FieldRule.created_at, FieldRule.id)

    def list_active(self, project_id: UUID | None = None, global_only: bool = False) -> list[FieldRule]:
        """
        Active rules in evaluation order.

        With ``project_id`` the project's rules and the global ones are
        returned; with ``global_only`` only rules without a project.
        """
        stmt = select(FieldRule).where(FieldRule.is_active.is_(True))
        if global_only:
            stmt = stmt.where(FieldRule.project_id.is_(None))
        elif project_id is not None:
            stmt = stmt.where(or_(FieldRule.project_id == project_id, FieldRule.project_id.is_(None)))
        return list(self.session.scalars(self._ordered(stmt)).all())

    def list_all(self, project_id: UUID | None = None) -> list[FieldRule]:
        """All rules including inactive ones, in evaluation order"""
        stmt = select(FieldRule)
        if project_id is not None:
            stmt = stmt.where(or_(FieldRule.project_id == project_id, FieldRule.project_id.is_(None)))
        return list(self.session.scalars(self._ordered(stmt)).all())

    def count_referencing(self, field_name: str) -> int:
        """Rules whose condition or target is ``field_name``"""
        return self.fields.count_rule_references(field_name)

    def create(self, rule_data: FieldRuleCreate) -> FieldRule:
        """Create a rule after checking its field references and condition"""
        values = rule_data.model_dump()
        self._validate(values)

        rule = FieldRule(**values)
        with transaction(self.session):
            self.session.add(rule)
        self.session.refresh(rule)

        logger.info_ctx(
            "Created field rule",
            id=str(rule.id),
            condition_field=rule.condition_field,
            action=rule.action.value,
            target_field=rule.target_field,
        )
        return rule

    def update(self, rule: FieldRule, update_data: dict) -> FieldRule:
        """Update a rule; reference and condition changes are re-validated"""
        update_data = {k: v for k, v in update_data.items() if v is not None or k in NULLABLE_KEYS}
        if VALIDATED_KEYS & update_data.keys():
            candidate = {key: getattr(rule, key) for key in VALIDATED_KEYS}
            candidate.update({k: v for k, v in update_data.items() if k in VALIDATED_KEYS})
            self._validate(candidate)

        with transaction(self.session):
            for key, value in update_data.items():
                if hasattr(rule, key):
                    setattr(rule, key, value)
        self.session.refresh(rule)

        logger.info_ctx("Updated field rule", id=str(rule.id), changed=sorted(update_data))
        return rule

    def delete(self, rule: FieldRule) -> None:
        """Delete a rule; nothing depends on a rule existing"""
        with transaction(self.session):
            self.session.delete(rule)
        logger.info_ctx("Deleted field rule", id=str(rule.id))

    def _validate(self, rule: dict) -> None:
        condition_name = rule["condition_field"]
        target_name = rule["target_field"]
        action = RuleAction(rule["action"])

        condition_field = self.fields.get_by_name(condition_name)
        if not condition_field:
            raise self._reject("condition_field", f"Condition field '{condition_name}' does not exist")
        if condition_field.is_archived:
            raise self._reject("condition_field", f"Condition field '{condition_name}' is archived")

        target_field = self.fields.get_by_name(target_name)
        if not target_field:
            raise self._reject("target_field", f"Target field '{target_name}' does not exist")
        if target_field.is_archived:
            raise self._reject("target_field", f"Target field '{target_name}' is archived")

        if condition_name == target_name and action not in SELF_ACTIONS:
            raise self._reject(
                "target_field",
                f"A {action.value} rule cannot target its own condition field"
            )

        field_type = self.fields.field_types.get_by_exact_name(condition_field.type)
        kind = resolve_kind(field_type.validation_spec if field_type else None)
        problem = check_rule_condition(rule["operator"], kind, rule.get("value"))
        if problem:
            raise self._reject(*problem)

        if action == RuleAction.MODIFY and rule.get("action_value") is None:
            raise self._reject("action_value", "A Modify rule needs an action value")

        project_id = rule.get("project_id")
        if project_id is not None and not self.projects.exists(project_id):
            raise self._reject("project_id", f"Project with ID '{project_id}' does not exist")

    def _reject(self, field: str, reason: str) -> ValidationError:
        logger.warning_ctx("Rejected field rule", field=field, reason=reason)
        return ValidationError(field, reason)


def get_field_rule_repository(db: Session = Depends(get_db)) -> FieldRuleRepository:
    """Dependency for field rule repository"""
    return FieldRuleRepository(db)

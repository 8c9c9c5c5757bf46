from models.project import Project

# Field schema
from models.field_type import FieldType
from models.field import Field, FieldStatus
from models.field_rule import FieldRule, RuleOperator, RuleAction

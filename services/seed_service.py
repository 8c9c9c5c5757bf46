"""Seeding of the system field types and the power-generation demo schema"""

from sqlalchemy.orm import Session

from core.exceptions import ConflictError, ValidationError
from core.logging_config import get_logger
from db.session import transaction
from models import FieldType
from repositories.field_repository import FieldRepository
from repositories.field_rule_repository import FieldRuleRepository
from repositories.field_type_repository import FieldTypeRepository
from schemas.field import FieldCreate
from schemas.field_rule import FieldRuleCreate
from schemas.field_type import dump_validation_spec, parse_validation_spec

logger = get_logger(__name__)

SYSTEM_FIELD_TYPES = [
    {
        "name": "Text",
        "description": "Single-line text input for names, codes, and short descriptions",
        "icon": "📝",
        "validation_spec": {"kind": "text", "maxLength": 255},
    },
    {
        "name": "Number",
        "description": "Numeric input for capacity, voltage, costs, and measurements",
        "icon": "🔢",
        "validation_spec": {"kind": "number", "min": 0},
    },
    {
        "name": "Date",
        "description": "Date picker for milestones, deadlines, and commissioning dates",
        "icon": "📅",
        "validation_spec": {"kind": "date"},
    },
    {
        "name": "Boolean",
        "description": "Yes/No toggle for status flags and conditions",
        "icon": "✅",
        "validation_spec": {"kind": "boolean"},
    },
    {
        "name": "Select",
        "description": "Single-choice dropdown for standardized options",
        "icon": "📋",
        "validation_spec": {"kind": "select", "required": True},
    },
    {
        "name": "Multi-Select",
        "description": "Multiple-choice selection for tags and categories",
        "icon": "🏷️",
        "validation_spec": {"kind": "multi_select", "required": True},
    },
    {
        "name": "Currency",
        "description": "Monetary values with currency symbols",
        "icon": "💰",
        "validation_spec": {"kind": "currency", "min": 0},
    },
    {
        "name": "Percentage",
        "description": "Percentage values from 0-100%",
        "icon": "📊",
        "validation_spec": {"kind": "percentage", "min": 0, "max": 100},
    },
    {
        "name": "Email",
        "description": "Email address validation",
        "icon": "📧",
        "validation_spec": {"kind": "email"},
    },
    {
        "name": "URL",
        "description": "Website and document links",
        "icon": "🔗",
        "validation_spec": {"kind": "url"},
    },
]

# Parents come before their children
DEMO_FIELDS = [
    {"name": "Project Name", "type": "Text", "is_required": True, "is_system": True,
     "description": "Official project name as registered with regulatory authorities"},
    {"name": "Project Code", "type": "Text", "is_required": True, "is_system": True,
     "description": "Unique internal project identifier (e.g., PWR-2024-001)"},
    {"name": "Technology Type", "type": "Select", "is_required": True,
     "description": "Primary generation technology",
     "values": ["Solar PV", "Wind Onshore", "Wind Offshore", "Hydroelectric", "Natural Gas", "Nuclear",
                "Coal", "Battery Storage", "Pumped Storage", "Geothermal", "Biomass", "Fuel Cell",
                "Hybrid Solar+Storage"]},
    {"name": "Nameplate Capacity (MW)", "type": "Number", "parent": "Technology Type", "is_required": True,
     "description": "Maximum electrical output capacity in megawatts"},
    {"name": "Net Capacity (MW)", "type": "Number", "parent": "Nameplate Capacity (MW)",
     "description": "Net electrical output after auxiliary loads"},
    {"name": "Energy Storage Capacity (MWh)", "type": "Number", "parent": "Technology Type",
     "description": "Battery or storage capacity in megawatt-hours"},
    {"name": "Storage Duration (Hours)", "type": "Number", "parent": "Energy Storage Capacity (MWh)",
     "description": "Duration of energy storage at rated power"},
    {"name": "Heat Rate (Btu/kWh)", "type": "Number", "parent": "Technology Type",
     "description": "Thermal efficiency for fossil fuel plants"},
    {"name": "Emissions Rate (lbs CO2/MWh)", "type": "Number",
     "description": "Carbon dioxide emissions per megawatt-hour"},
    {"name": "State/Province", "type": "Select", "is_required": True,
     "description": "Project location state or province",
     "values": ["Arizona", "California", "Colorado", "Nevada", "New Mexico", "New York", "Oregon",
                "Texas", "Utah", "Washington"]},
    {"name": "County", "type": "Text", "parent": "State/Province", "is_required": True,
     "description": "County or parish where project is located"},
    {"name": "Latitude", "type": "Number", "parent": "County", "description": "Geographic latitude coordinate"},
    {"name": "Longitude", "type": "Number", "parent": "County", "description": "Geographic longitude coordinate"},
    {"name": "Project Status", "type": "Select", "is_required": True, "description": "Current development phase",
     "values": ["Conceptual", "Feasibility Study", "Environmental Review", "Permitting", "Financing",
                "Under Construction", "Commissioning", "Commercial Operation", "Decommissioning", "Cancelled"]},
    {"name": "Permit Status", "type": "Select", "description": "Construction and operating permit status",
     "values": ["Not Required", "Application Submitted", "Under Review", "Approved", "Issued", "Expired"]},
    {"name": "Total Project Cost ($M)", "type": "Currency", "description": "Total capital expenditure in millions USD"},
    {"name": "Cost per MW ($M/MW)", "type": "Currency", "parent": "Total Project Cost ($M)",
     "description": "Capital cost per megawatt"},
    {"name": "PPA Status", "type": "Select", "description": "Power Purchase Agreement status",
     "values": ["No PPA", "LOI Signed", "Under Negotiation", "Executed", "Merchant", "Bilateral Contract"]},
    {"name": "PPA Price ($/MWh)", "type": "Currency", "parent": "PPA Status",
     "description": "Power purchase agreement price per MWh"},
    {"name": "Planned COD", "type": "Date", "description": "Planned Commercial Operation Date"},
    {"name": "Construction Start Date", "type": "Date", "parent": "Planned COD",
     "description": "Actual or planned construction start"},
    {"name": "Capacity Factor (%)", "type": "Percentage", "description": "Expected annual capacity factor percentage"},
    {"name": "NERC Compliance Required", "type": "Boolean", "description": "Subject to NERC reliability standards"},
    {"name": "Data Source", "type": "Multi-Select", "is_system": True,
     "description": "Primary source of project information",
     "values": ["Developer Direct", "Utility Filing", "ISO Queue", "Regulatory Filing", "News Media",
                "Industry Report", "Site Visit", "Public Records"]},
    {"name": "Notes", "type": "Text", "description": "Additional project notes and comments"},
]

DEMO_RULES = [
    {"name": "Solar PV Storage Capacity", "description": "Show storage fields only for Solar+Storage projects",
     "condition_field": "Technology Type", "operator": "=", "value": "Hybrid Solar+Storage",
     "action": "Enable", "target_field": "Energy Storage Capacity (MWh)", "priority": 100},
    {"name": "Storage Duration Requirement", "description": "Require storage duration when storage capacity is specified",
     "condition_field": "Energy Storage Capacity (MWh)", "operator": ">", "value": "0",
     "action": "Require", "target_field": "Storage Duration (Hours)", "priority": 90},
    {"name": "Fossil Heat Rate", "description": "Show heat rate field for fossil fuel technologies",
     "condition_field": "Technology Type", "operator": "in", "value": "Natural Gas,Coal",
     "action": "Enable", "target_field": "Heat Rate (Btu/kWh)", "priority": 80},
    {"name": "Renewable Emissions", "description": "Hide emissions rate for renewable technologies",
     "condition_field": "Technology Type", "operator": "in",
     "value": "Solar PV,Wind Onshore,Wind Offshore,Hydroelectric,Geothermal",
     "action": "Hide", "target_field": "Emissions Rate (lbs CO2/MWh)", "priority": 85},
    {"name": "Operational Project COD", "description": "COD is required for commercial operation status",
     "condition_field": "Project Status", "operator": "=", "value": "Commercial Operation",
     "action": "Require", "target_field": "Planned COD", "priority": 95},
    {"name": "Construction Start Requirement", "description": "Construction start date required for active construction",
     "condition_field": "Project Status", "operator": "=", "value": "Under Construction",
     "action": "Require", "target_field": "Construction Start Date", "priority": 90},
    {"name": "Cancelled Project Permits", "description": "Disable permit fields for cancelled projects",
     "condition_field": "Project Status", "operator": "=", "value": "Cancelled",
     "action": "Disable", "target_field": "Permit Status", "priority": 100},
    {"name": "PPA Price Requirement", "description": "PPA price required when PPA is executed",
     "condition_field": "PPA Status", "operator": "=", "value": "Executed",
     "action": "Require", "target_field": "PPA Price ($/MWh)", "priority": 80},
    {"name": "Cost per MW Calculation", "description": "Calculate cost per MW when total cost is available",
     "condition_field": "Total Project Cost ($M)", "operator": ">", "value": "0",
     "action": "Enable", "target_field": "Cost per MW ($M/MW)", "priority": 70},
    {"name": "County Requirement", "description": "County required when state is specified",
     "condition_field": "State/Province", "operator": "!=", "value": "",
     "action": "Require", "target_field": "County", "priority": 85},
    {"name": "Coordinate Pairing", "description": "Longitude required when latitude is provided",
     "condition_field": "Latitude", "operator": "!=", "value": "",
     "action": "Require", "target_field": "Longitude", "priority": 75},
    {"name": "Net Capacity Validation", "description": "Net capacity should not exceed nameplate capacity",
     "condition_field": "Nameplate Capacity (MW)", "operator": ">", "value": "0",
     "action": "Enable", "target_field": "Net Capacity (MW)", "priority": 90},
    {"name": "Large Generator NERC", "description": "NERC compliance required for large generators (>20 MW)",
     "condition_field": "Nameplate Capacity (MW)", "operator": ">", "value": "20",
     "action": "Modify", "target_field": "NERC Compliance Required", "action_value": "true", "priority": 100},
]


def seed_system_field_types(session: Session) -> int:
    """Upsert the system field types; returns how many were created"""
    repo = FieldTypeRepository(session)
    created = 0
    with transaction(session):
        for definition in SYSTEM_FIELD_TYPES:
            spec = dump_validation_spec(parse_validation_spec(definition["validation_spec"]))
            field_type = repo.get_by_name(definition["name"])
            if field_type is None:
                session.add(FieldType(
                    name=definition["name"],
                    description=definition["description"],
                    icon=definition["icon"],
                    validation_spec=spec,
                    is_system=True,
                ))
                created += 1
            else:
                field_type.description = definition["description"]
                field_type.icon = definition["icon"]
                field_type.validation_spec = spec
                field_type.is_system = True
    logger.info_ctx("Seeded system field types", created=created, total=len(SYSTEM_FIELD_TYPES))
    return created


def seed_demo_schema(session: Session) -> tuple[int, int]:
    """Create the demo fields and rules that do not exist yet"""
    seed_system_field_types(session)
    fields = FieldRepository(session)
    rules = FieldRuleRepository(session)

    created_fields = 0
    for definition in DEMO_FIELDS:
        if fields.get_by_name(definition["name"]):
            continue
        fields.create(FieldCreate(**definition))
        created_fields += 1

    existing_rules = {rule.name for rule in rules.list_all()}
    created_rules = 0
    for definition in DEMO_RULES:
        if definition["name"] in existing_rules:
            continue
        try:
            rules.create(FieldRuleCreate(**definition))
            created_rules += 1
        except (ValidationError, ConflictError) as e:
            logger.warning_ctx("Skipped demo rule", rule=definition["name"], reason=e.reason)

    logger.info_ctx("Seeded demo schema", fields=created_fields, rules=created_rules)
    return created_fields, created_rules

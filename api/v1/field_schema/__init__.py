"""Field schema API routes"""

from fastapi import APIRouter
from . import field_types, fields, field_rules

router = APIRouter()

router.include_router(field_types.router, prefix="/field-types", tags=["Field Types"])
router.include_router(fields.router, prefix="/fields", tags=["Fields"])
router.include_router(field_rules.router, prefix="/field-rules", tags=["Field Rules"])

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from quickbite.models.menu_item import utcnow
from quickbite.schemas.menu_item import WIRE_CONFIG


class FieldError(BaseModel):
    field: str
    rejected_value: Any = None
    message: str

    model_config = WIRE_CONFIG


class ErrorResponse(BaseModel):
    code: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    path: str
    field_errors: list[FieldError] | None = None

    model_config = WIRE_CONFIG

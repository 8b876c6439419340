from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

MIN_PRICE = Decimal("0.01")
MAX_PRICE = Decimal("999999.99")
_CENTS = Decimal("0.01")

# camelCase on the wire, snake_case accepted on input
WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


def _check_length(value: str | None, minimum: int, maximum: int, message: str) -> str | None:
    if value is not None and not minimum <= len(value) <= maximum:
        raise PydanticCustomError("string_length", message)
    return value


def _check_not_blank(value: str | None, message: str) -> str | None:
    if value is not None and not value.strip():
        raise PydanticCustomError("string_blank", message)
    return value


def _check_price(value: Decimal | None) -> Decimal | None:
    if value is None:
        return value
    if value < MIN_PRICE:
        raise PydanticCustomError("price_range", "Price must be greater than 0")
    if value > MAX_PRICE:
        raise PydanticCustomError("price_range", "Price must not exceed 999,999.99")
    if value != value.quantize(_CENTS):
        raise PydanticCustomError("price_scale", "Price must have at most 2 decimal places")
    return value


class _MenuItemFields(BaseModel):
    """Field rules shared by the create and update payloads."""

    model_config = WIRE_CONFIG

    @field_validator("name", check_fields=False)
    @classmethod
    def _validate_name(cls, value: str | None) -> str | None:
        _check_not_blank(value, "Menu item name is required")
        return _check_length(value, 2, 100, "Name must be between 2 and 100 characters")

    @field_validator("description", check_fields=False)
    @classmethod
    def _validate_description(cls, value: str | None) -> str | None:
        return _check_length(value, 0, 500, "Description must not exceed 500 characters")

    @field_validator("price", check_fields=False)
    @classmethod
    def _validate_price(cls, value: Decimal | None) -> Decimal | None:
        return _check_price(value)

    @field_validator("category", check_fields=False)
    @classmethod
    def _validate_category(cls, value: str | None) -> str | None:
        _check_not_blank(value, "Category is required")
        return _check_length(value, 2, 50, "Category must be between 2 and 50 characters")

    @field_validator("dietary_tag", check_fields=False)
    @classmethod
    def _validate_dietary_tag(cls, value: str | None) -> str | None:
        return _check_length(value, 0, 100, "Dietary tag must not exceed 100 characters")


class MenuItemCreate(_MenuItemFields):
    name: str
    description: str | None = None
    price: Decimal
    category: str
    dietary_tag: str | None = None


class MenuItemUpdate(_MenuItemFields):
    """Partial update: a field left out (or sent as null) keeps its stored value."""

    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    category: str | None = None
    dietary_tag: str | None = None

    def has_updates(self) -> bool:
        return any(getattr(self, field) is not None for field in type(self).model_fields)


class MenuItemResponse(BaseModel):
    id: int
    name: str
    description: str | None
    price: Decimal
    category: str
    dietary_tag: str | None
    created_at: datetime
    updated_at: datetime

    model_config = WIRE_CONFIG

    @field_serializer("price", when_used="json")
    def _price_as_number(self, price: Decimal) -> float:
        return float(price)

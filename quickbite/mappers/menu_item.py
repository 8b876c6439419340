"""
Conversions between the wire payloads and the MenuItem row.
None of these touch the session; persisting is the service's job.
"""

from quickbite.models.menu_item import MenuItem
from quickbite.schemas.menu_item import MenuItemCreate, MenuItemResponse, MenuItemUpdate

_UPDATABLE_FIELDS = ("name", "description", "price", "category", "dietary_tag")


def to_entity(payload: MenuItemCreate) -> MenuItem:
    return MenuItem(
        name=payload.name,
        description=payload.description,
        price=payload.price,
        category=payload.category,
        dietary_tag=payload.dietary_tag,
    )


def to_response(menu_item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        id=menu_item.id,
        name=menu_item.name,
        description=menu_item.description,
        price=menu_item.price,
        category=menu_item.category,
        dietary_tag=menu_item.dietary_tag,
        created_at=menu_item.created_at,
        updated_at=menu_item.updated_at,
    )


def apply_update(menu_item: MenuItem, payload: MenuItemUpdate) -> MenuItem:
    # An empty string is a value and overwrites; None means "not sent".
    for field in _UPDATABLE_FIELDS:
        value = getattr(payload, field)
        if value is not None:
            setattr(menu_item, field, value)
    return menu_item

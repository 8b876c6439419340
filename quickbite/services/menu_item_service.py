import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quickbite.exceptions import (
    DuplicateMenuItemNameError,
    InvalidArgumentError,
    MenuItemNotFoundError,
)
from quickbite.mappers import menu_item as mapper
from quickbite.models.menu_item import MenuItem
from quickbite.repositories import menu_items as repository
from quickbite.schemas.menu_item import MenuItemCreate, MenuItemResponse, MenuItemUpdate
from quickbite.schemas.page import Page, PageRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_responses(menu_items: list[MenuItem]) -> list[MenuItemResponse]:
    return [mapper.to_response(menu_item) for menu_item in menu_items]


def _to_page(
    rows: tuple[list[MenuItem], int], page_request: PageRequest
) -> Page[MenuItemResponse]:
    menu_items, total = rows
    return Page[MenuItemResponse].of(_to_responses(menu_items), total, page_request)


async def _get_active_or_raise(db: AsyncSession, menu_item_id: int) -> MenuItem:
    menu_item = await repository.find_active_by_id(db, menu_item_id)
    if menu_item is None:
        logger.warning("Menu item not found", extra={"menu_item_id": menu_item_id})
        raise MenuItemNotFoundError(menu_item_id)
    return menu_item


async def _commit_or_duplicate(db: AsyncSession, name: str) -> None:
    """Commit, turning a lost race on the active-name unique index into a duplicate error."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Unique name index rejected write", extra={"menu_item_name": name})
        raise DuplicateMenuItemNameError(name) from exc


def _check_price_range(min_price: Decimal, max_price: Decimal) -> None:
    if min_price > max_price:
        raise InvalidArgumentError("Minimum price cannot be greater than maximum price")


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_menu_item(db: AsyncSession, payload: MenuItemCreate) -> MenuItemResponse:
    logger.info("Creating menu item", extra={"menu_item_name": payload.name})

    if await repository.exists_by_name_ignore_case(db, payload.name):
        logger.warning("Duplicate menu item name on create", extra={"menu_item_name": payload.name})
        raise DuplicateMenuItemNameError(payload.name)

    try:
        menu_item = await repository.insert(db, mapper.to_entity(payload))
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateMenuItemNameError(payload.name) from exc
    await _commit_or_duplicate(db, payload.name)

    logger.info("Menu item created", extra={"menu_item_id": menu_item.id})
    return mapper.to_response(menu_item)


async def update_menu_item(
    db: AsyncSession, menu_item_id: int, payload: MenuItemUpdate
) -> MenuItemResponse:
    logger.info("Updating menu item", extra={"menu_item_id": menu_item_id})

    if not payload.has_updates():
        logger.warning("No update fields provided", extra={"menu_item_id": menu_item_id})
        raise InvalidArgumentError("No update fields provided")

    menu_item = await _get_active_or_raise(db, menu_item_id)

    # Resubmitting the current name in another casing is not a rename.
    if (
        payload.name is not None
        and payload.name.lower() != menu_item.name.lower()
        and await repository.exists_by_name_ignore_case_excluding_id(db, payload.name, menu_item_id)
    ):
        logger.warning("Duplicate menu item name on update", extra={"menu_item_name": payload.name})
        raise DuplicateMenuItemNameError(payload.name)

    name = payload.name or menu_item.name
    try:
        menu_item = await repository.save(db, mapper.apply_update(menu_item, payload))
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateMenuItemNameError(name) from exc
    await _commit_or_duplicate(db, name)

    logger.info("Menu item updated", extra={"menu_item_id": menu_item_id})
    return mapper.to_response(menu_item)


async def delete_menu_item(db: AsyncSession, menu_item_id: int) -> None:
    logger.info("Deleting menu item", extra={"menu_item_id": menu_item_id})

    menu_item = await _get_active_or_raise(db, menu_item_id)
    menu_item.is_active = False
    await repository.save(db, menu_item)
    await db.commit()

    logger.info("Menu item soft-deleted", extra={"menu_item_id": menu_item_id})


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_menu_item(db: AsyncSession, menu_item_id: int) -> MenuItemResponse:
    logger.debug("Fetching menu item", extra={"menu_item_id": menu_item_id})
    return mapper.to_response(await _get_active_or_raise(db, menu_item_id))


async def list_menu_items(db: AsyncSession) -> list[MenuItemResponse]:
    logger.debug("Listing active menu items")
    return _to_responses(await repository.list_active(db))


async def list_menu_items_page(
    db: AsyncSession, page_request: PageRequest
) -> Page[MenuItemResponse]:
    logger.debug("Listing active menu items", extra={"page_request": repr(page_request)})
    return _to_page(await repository.list_active_page(db, page_request), page_request)


async def search_menu_items(db: AsyncSession, term: str | None) -> list[MenuItemResponse]:
    if term is None or not term.strip():
        return await list_menu_items(db)
    logger.debug("Searching menu items", extra={"term": term})
    return _to_responses(await repository.search_by_name_or_description(db, term.strip()))


async def search_menu_items_page(
    db: AsyncSession, term: str | None, page_request: PageRequest
) -> Page[MenuItemResponse]:
    if term is None or not term.strip():
        return await list_menu_items_page(db, page_request)
    logger.debug("Searching menu items", extra={"term": term, "page_request": repr(page_request)})
    rows = await repository.search_by_name_or_description_page(db, term.strip(), page_request)
    return _to_page(rows, page_request)


async def list_by_category(db: AsyncSession, category: str) -> list[MenuItemResponse]:
    logger.debug("Listing menu items by category", extra={"category": category})
    return _to_responses(await repository.find_by_category(db, category))


async def list_by_category_page(
    db: AsyncSession, category: str, page_request: PageRequest
) -> Page[MenuItemResponse]:
    rows = await repository.find_by_category_page(db, category, page_request)
    return _to_page(rows, page_request)


async def list_by_dietary_tag(db: AsyncSession, dietary_tag: str) -> list[MenuItemResponse]:
    logger.debug("Listing menu items by dietary tag", extra={"dietary_tag": dietary_tag})
    return _to_responses(await repository.find_by_dietary_tag(db, dietary_tag))


async def list_by_dietary_tag_page(
    db: AsyncSession, dietary_tag: str, page_request: PageRequest
) -> Page[MenuItemResponse]:
    rows = await repository.find_by_dietary_tag_page(db, dietary_tag, page_request)
    return _to_page(rows, page_request)


async def list_by_price_range(
    db: AsyncSession, min_price: Decimal, max_price: Decimal
) -> list[MenuItemResponse]:
    logger.debug(
        "Listing menu items by price range",
        extra={"min_price": str(min_price), "max_price": str(max_price)},
    )
    _check_price_range(min_price, max_price)
    return _to_responses(await repository.find_by_price_between(db, min_price, max_price))


async def list_by_price_range_page(
    db: AsyncSession, min_price: Decimal, max_price: Decimal, page_request: PageRequest
) -> Page[MenuItemResponse]:
    _check_price_range(min_price, max_price)
    rows = await repository.find_by_price_between_page(db, min_price, max_price, page_request)
    return _to_page(rows, page_request)


async def list_categories(db: AsyncSession) -> list[str]:
    return await repository.list_distinct_categories(db)


async def list_dietary_tags(db: AsyncSession) -> list[str]:
    return await repository.list_distinct_dietary_tags(db)

"""
Queries over the menu_items table.

Every lookup is scoped to active rows. The unpaged variants return plain
lists; the paged ones return ``(rows, total_elements)`` for the requested
slice. All user input reaches the database as bound parameters.
"""

from decimal import Decimal

from sqlalchemy import ColumnElement, Select, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quickbite.exceptions import InvalidArgumentError
from quickbite.models.menu_item import MenuItem, utcnow
from quickbite.schemas.page import PageRequest

SORTABLE_COLUMNS = {
    "id": MenuItem.id,
    "name": MenuItem.name,
    "description": MenuItem.description,
    "price": MenuItem.price,
    "category": MenuItem.category,
    "dietaryTag": MenuItem.dietary_tag,
    "dietary_tag": MenuItem.dietary_tag,
    "createdAt": MenuItem.created_at,
    "created_at": MenuItem.created_at,
    "updatedAt": MenuItem.updated_at,
    "updated_at": MenuItem.updated_at,
}


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _active() -> ColumnElement[bool]:
    return MenuItem.is_active.is_(True)


def _active_items() -> Select[tuple[MenuItem]]:
    return select(MenuItem).where(_active())


def _by_category(category: str) -> Select[tuple[MenuItem]]:
    return _active_items().where(func.lower(MenuItem.category) == func.lower(category))


def _by_dietary_tag(dietary_tag: str) -> Select[tuple[MenuItem]]:
    return _active_items().where(MenuItem.dietary_tag.icontains(dietary_tag, autoescape=True))


def _by_price(min_price: Decimal, max_price: Decimal) -> Select[tuple[MenuItem]]:
    return _active_items().where(MenuItem.price >= min_price, MenuItem.price <= max_price)


def _by_name_or_description(term: str) -> Select[tuple[MenuItem]]:
    return _active_items().where(
        MenuItem.name.icontains(term, autoescape=True)
        | MenuItem.description.icontains(term, autoescape=True)
    )


def _name_taken(name: str) -> ColumnElement[bool]:
    return func.lower(MenuItem.name) == func.lower(name)


# ---------------------------------------------------------------------------
# Execution helpers
# ---------------------------------------------------------------------------


def _sort_column(sort_by: str):
    try:
        return SORTABLE_COLUMNS[sort_by]
    except KeyError:
        raise InvalidArgumentError(
            f"Cannot sort by '{sort_by}'. Allowed fields: "
            f"{', '.join(sorted(k for k in SORTABLE_COLUMNS if '_' not in k))}"
        ) from None


async def _all(db: AsyncSession, stmt: Select[tuple[MenuItem]]) -> list[MenuItem]:
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _page(
    db: AsyncSession, stmt: Select[tuple[MenuItem]], page_request: PageRequest
) -> tuple[list[MenuItem], int]:
    column = _sort_column(page_request.sort_by)
    ordering = column.desc() if page_request.descending else column.asc()

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
    result = await db.execute(
        stmt.order_by(ordering, MenuItem.id.asc())
        .offset(page_request.offset)
        .limit(page_request.size)
    )
    return list(result.scalars().all()), total or 0


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def find_active_by_id(db: AsyncSession, menu_item_id: int) -> MenuItem | None:
    result = await db.execute(_active_items().where(MenuItem.id == menu_item_id))
    return result.scalars().first()


async def list_active(db: AsyncSession) -> list[MenuItem]:
    return await _all(db, _active_items().order_by(MenuItem.id))


async def list_active_page(
    db: AsyncSession, page_request: PageRequest
) -> tuple[list[MenuItem], int]:
    return await _page(db, _active_items(), page_request)


async def find_by_category(db: AsyncSession, category: str) -> list[MenuItem]:
    return await _all(db, _by_category(category).order_by(MenuItem.id))


async def find_by_category_page(
    db: AsyncSession, category: str, page_request: PageRequest
) -> tuple[list[MenuItem], int]:
    return await _page(db, _by_category(category), page_request)


async def find_by_dietary_tag(db: AsyncSession, dietary_tag: str) -> list[MenuItem]:
    return await _all(db, _by_dietary_tag(dietary_tag).order_by(MenuItem.id))


async def find_by_dietary_tag_page(
    db: AsyncSession, dietary_tag: str, page_request: PageRequest
) -> tuple[list[MenuItem], int]:
    return await _page(db, _by_dietary_tag(dietary_tag), page_request)


async def find_by_price_between(
    db: AsyncSession, min_price: Decimal, max_price: Decimal
) -> list[MenuItem]:
    stmt = _by_price(min_price, max_price).order_by(MenuItem.price.asc(), MenuItem.id.asc())
    return await _all(db, stmt)


async def find_by_price_between_page(
    db: AsyncSession, min_price: Decimal, max_price: Decimal, page_request: PageRequest
) -> tuple[list[MenuItem], int]:
    return await _page(db, _by_price(min_price, max_price), page_request)


async def search_by_name_or_description(db: AsyncSession, term: str) -> list[MenuItem]:
    return await _all(db, _by_name_or_description(term).order_by(MenuItem.id))


async def search_by_name_or_description_page(
    db: AsyncSession, term: str, page_request: PageRequest
) -> tuple[list[MenuItem], int]:
    return await _page(db, _by_name_or_description(term), page_request)


async def list_distinct_categories(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(MenuItem.category).where(_active()).distinct().order_by(MenuItem.category)
    )
    return list(result.scalars().all())


async def list_distinct_dietary_tags(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(MenuItem.dietary_tag)
        .where(_active(), MenuItem.dietary_tag.is_not(None))
        .distinct()
        .order_by(MenuItem.dietary_tag)
    )
    return list(result.scalars().all())


async def exists_by_name_ignore_case(db: AsyncSession, name: str) -> bool:
    return bool(await db.scalar(select(exists().where(_active(), _name_taken(name)))))


async def exists_by_name_ignore_case_excluding_id(
    db: AsyncSession, name: str, menu_item_id: int
) -> bool:
    return bool(
        await db.scalar(
            select(exists().where(_active(), _name_taken(name), MenuItem.id != menu_item_id))
        )
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def insert(db: AsyncSession, menu_item: MenuItem) -> MenuItem:
    now = utcnow()
    menu_item.created_at = now
    menu_item.updated_at = now
    menu_item.is_active = True
    db.add(menu_item)
    await db.flush()  # assigns menu_item.id
    return menu_item


async def save(db: AsyncSession, menu_item: MenuItem) -> MenuItem:
    menu_item.updated_at = max(utcnow(), menu_item.created_at)
    db.add(menu_item)
    await db.flush()
    return menu_item

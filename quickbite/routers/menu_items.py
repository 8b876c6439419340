import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Path, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from quickbite.config import settings
from quickbite.database import get_db
from quickbite.schemas.menu_item import MIN_PRICE, MenuItemCreate, MenuItemResponse, MenuItemUpdate
from quickbite.schemas.page import Page, PageRequest
from quickbite.services import menu_item_service

router = APIRouter()
logger = logging.getLogger(__name__)

MenuItemListing = list[MenuItemResponse] | Page[MenuItemResponse]

# ids are a 32-bit INTEGER column; page * size must fit a signed 64-bit OFFSET
MAX_MENU_ITEM_ID = 2**31 - 1
MAX_PAGE = (2**63 - 1) // settings.max_page_size


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _page_request(default_sort: str):
    def dependency(
        page: int = Query(0, ge=0, le=MAX_PAGE, description="Page number (0-based)"),
        size: int = Query(
            settings.default_page_size, ge=1, le=settings.max_page_size, description="Page size"
        ),
        sort_by: str = Query(default_sort, alias="sortBy", description="Sort by field"),
        sort_dir: str = Query("asc", alias="sortDir", description="Sort direction (asc or desc)"),
    ) -> PageRequest:
        return PageRequest(page=page, size=size, sort_by=sort_by, sort_dir=sort_dir)

    return dependency


_by_name = _page_request("name")
_by_price = _page_request("price")


# ---------------------------------------------------------------------------
# Collection endpoints (declared before /{menu_item_id} so they win the match)
# ---------------------------------------------------------------------------


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    body: MenuItemCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    logger.info(
        "Received create_menu_item request",
        extra={"request_id": _request_id(request), "menu_item_name": body.name},
    )
    return await menu_item_service.create_menu_item(db, body)


@router.get("", response_model=MenuItemListing)
async def list_menu_items(
    paginated: bool = Query(False, description="Enable pagination"),
    page_request: PageRequest = Depends(_by_name),
    db: AsyncSession = Depends(get_db),
):
    if paginated:
        return await menu_item_service.list_menu_items_page(db, page_request)
    return await menu_item_service.list_menu_items(db)


@router.get("/search", response_model=MenuItemListing)
async def search_menu_items(
    q: str = Query(..., description="Search term matched against name and description"),
    paginated: bool = Query(False, description="Enable pagination"),
    page_request: PageRequest = Depends(_by_name),
    db: AsyncSession = Depends(get_db),
):
    if paginated:
        return await menu_item_service.search_menu_items_page(db, q, page_request)
    return await menu_item_service.search_menu_items(db, q)


@router.get("/category/{category}", response_model=MenuItemListing)
async def list_by_category(
    category: str,
    paginated: bool = Query(False, description="Enable pagination"),
    page_request: PageRequest = Depends(_by_name),
    db: AsyncSession = Depends(get_db),
):
    if paginated:
        return await menu_item_service.list_by_category_page(db, category, page_request)
    return await menu_item_service.list_by_category(db, category)


@router.get("/dietary-tag/{dietary_tag}", response_model=MenuItemListing)
async def list_by_dietary_tag(
    dietary_tag: str,
    paginated: bool = Query(False, description="Enable pagination"),
    page_request: PageRequest = Depends(_by_name),
    db: AsyncSession = Depends(get_db),
):
    if paginated:
        return await menu_item_service.list_by_dietary_tag_page(db, dietary_tag, page_request)
    return await menu_item_service.list_by_dietary_tag(db, dietary_tag)


@router.get("/price-range", response_model=MenuItemListing)
async def list_by_price_range(
    min_price: Decimal = Query(..., alias="minPrice", ge=MIN_PRICE),
    max_price: Decimal = Query(..., alias="maxPrice", ge=MIN_PRICE),
    paginated: bool = Query(False, description="Enable pagination"),
    page_request: PageRequest = Depends(_by_price),
    db: AsyncSession = Depends(get_db),
):
    if paginated:
        return await menu_item_service.list_by_price_range_page(
            db, min_price, max_price, page_request
        )
    return await menu_item_service.list_by_price_range(db, min_price, max_price)


@router.get("/categories", response_model=list[str])
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[str]:
    return await menu_item_service.list_categories(db)


@router.get("/dietary-tags", response_model=list[str])
async def list_dietary_tags(db: AsyncSession = Depends(get_db)) -> list[str]:
    return await menu_item_service.list_dietary_tags(db)


# ---------------------------------------------------------------------------
# Single item endpoints
# ---------------------------------------------------------------------------


@router.get("/{menu_item_id}", response_model=MenuItemResponse)
async def get_menu_item(
    menu_item_id: int = Path(..., gt=0, le=MAX_MENU_ITEM_ID),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    return await menu_item_service.get_menu_item(db, menu_item_id)


@router.put("/{menu_item_id}", response_model=MenuItemResponse)
@router.patch("/{menu_item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    body: MenuItemUpdate,
    request: Request,
    menu_item_id: int = Path(..., gt=0, le=MAX_MENU_ITEM_ID),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    logger.info(
        "Received update_menu_item request",
        extra={
            "request_id": _request_id(request),
            "menu_item_id": menu_item_id,
            "method": request.method,
        },
    )
    return await menu_item_service.update_menu_item(db, menu_item_id, body)


@router.delete("/{menu_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_menu_item(
    request: Request,
    menu_item_id: int = Path(..., gt=0, le=MAX_MENU_ITEM_ID),
    db: AsyncSession = Depends(get_db),
) -> Response:
    logger.info(
        "Received delete_menu_item request",
        extra={"request_id": _request_id(request), "menu_item_id": menu_item_id},
    )
    await menu_item_service.delete_menu_item(db, menu_item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

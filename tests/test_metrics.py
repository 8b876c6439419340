import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError

from quickbite.middleware.metrics import normalise_path
from quickbite.services import menu_item_service


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/api/v1/menu-items/42", "/api/v1/menu-items/{menu_item_id}"),
        ("/api/v1/menu-items/category/Main%20Course", "/api/v1/menu-items/category/{category}"),
        ("/api/v1/menu-items/dietary-tag/vegan", "/api/v1/menu-items/dietary-tag/{dietary_tag}"),
        ("/api/v1/menu-items/categories", "/api/v1/menu-items/categories"),
        ("/api/v1/menu-items/price-range", "/api/v1/menu-items/price-range"),
        ("/health", "/health"),
    ],
)
def test_normalise_path(path, expected):
    assert normalise_path(path) == expected


@pytest.mark.asyncio
async def test_requests_are_counted_under_their_route_template(client):
    labels = {"method": "GET", "path": "/api/v1/menu-items/{menu_item_id}", "status": "404"}
    before = REGISTRY.get_sample_value("http_requests_total", labels) or 0.0

    await client.get("/api/v1/menu-items/12345")

    assert REGISTRY.get_sample_value("http_requests_total", labels) == before + 1


@pytest.mark.asyncio
async def test_unhandled_errors_are_counted_as_500(client, monkeypatch):
    async def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(menu_item_service, "list_categories", _boom)
    labels = {"method": "GET", "path": "/api/v1/menu-items/categories", "status": "500"}
    before = REGISTRY.get_sample_value("http_requests_total", labels) or 0.0

    resp = await client.get("/api/v1/menu-items/categories")

    assert resp.status_code == 500
    assert REGISTRY.get_sample_value("http_requests_total", labels) == before + 1
    assert REGISTRY.get_sample_value("http_requests_in_progress", {"method": "GET"}) == 0

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from quickbite.services import menu_item_service
from tests.conftest import API


@pytest.mark.asyncio
async def test_malformed_json_body(client: AsyncClient) -> None:
    resp = await client.post(
        API, content=b'{"name": "Soup",', headers={"Content-Type": "application/json"}
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "MALFORMED_REQUEST_BODY"
    assert body["message"] == "Invalid request body format"
    assert body["path"] == API
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_body_that_is_not_an_object(client: AsyncClient) -> None:
    resp = await client.post(API, json=["Soup"])

    assert resp.status_code == 400
    assert resp.json()["code"] == "MALFORMED_REQUEST_BODY"


@pytest.mark.asyncio
async def test_non_numeric_id_is_invalid_parameter_type(client: AsyncClient) -> None:
    resp = await client.get(f"{API}/abc")

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "INVALID_PARAMETER_TYPE"
    assert body["message"] == (
        "Invalid value 'abc' for parameter 'menu_item_id'. Expected type: int"
    )


@pytest.mark.asyncio
async def test_non_numeric_price_is_invalid_parameter_type(client: AsyncClient) -> None:
    resp = await client.get(f"{API}/price-range", params={"minPrice": "cheap", "maxPrice": 10})

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_PARAMETER_TYPE"


@pytest.mark.asyncio
async def test_non_positive_id_is_validation_error(client: AsyncClient) -> None:
    resp = await client.delete(f"{API}/0")

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["message"] == "Invalid request parameters"
    assert body["fieldErrors"][0]["field"] == "menu_item_id"
    assert body["fieldErrors"][0]["rejectedValue"] == "0"


@pytest.mark.asyncio
async def test_missing_search_term_is_validation_error(client: AsyncClient) -> None:
    resp = await client.get(f"{API}/search")

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["fieldErrors"] == [
        {"field": "q", "rejectedValue": None, "message": "Field required"}
    ]


@pytest.mark.asyncio
async def test_store_failure_is_500_without_detail(client: AsyncClient, monkeypatch) -> None:
    async def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(menu_item_service, "list_categories", _boom)

    resp = await client.get(f"{API}/categories")

    assert resp.status_code == 500
    body = resp.json()
    assert body["code"] == "INTERNAL_SERVER_ERROR"
    assert body["message"] == "An unexpected error occurred. Please try again later."
    assert "connection refused" not in resp.text


@pytest.mark.asyncio
async def test_id_beyond_integer_column_is_rejected(client: AsyncClient) -> None:
    resp = await client.get(f"{API}/99999999999999999999")

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["fieldErrors"][0]["field"] == "menu_item_id"


@pytest.mark.asyncio
async def test_page_whose_offset_overflows_is_rejected(client: AsyncClient) -> None:
    resp = await client.get(
        API, params={"paginated": "true", "page": "10000000000000000000", "size": 10}
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["fieldErrors"][0]["field"] == "page"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Soup", "price": "abc", "category": "Starters"},
        {"name": 123, "price": 4.5, "category": "Starters"},
    ],
)
async def test_body_field_of_wrong_json_type_is_malformed(client: AsyncClient, payload) -> None:
    resp = await client.post(API, json=payload)

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "MALFORMED_REQUEST_BODY"
    assert "fieldErrors" not in body


@pytest.mark.asyncio
async def test_update_with_non_numeric_price_is_malformed(client: AsyncClient) -> None:
    resp = await client.patch(f"{API}/1", json={"price": "abc"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "MALFORMED_REQUEST_BODY"


@pytest.mark.asyncio
async def test_500_keeps_the_request_id(client: AsyncClient, monkeypatch) -> None:
    async def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(menu_item_service, "list_dietary_tags", _boom)

    resp = await client.get(f"{API}/dietary-tags", headers={"X-Request-ID": "req-500"})

    assert resp.status_code == 500
    assert resp.headers["X-Request-ID"] == "req-500"

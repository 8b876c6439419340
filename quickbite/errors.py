"""
Translation of domain failures and request validation errors into the
JSON error envelope ``{code, message, timestamp, path, fieldErrors?}``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from quickbite.exceptions import (
    DuplicateMenuItemNameError,
    InvalidArgumentError,
    MenuItemNotFoundError,
)
from quickbite.middleware.request_id import REQUEST_ID_HEADER
from quickbite.schemas.error import ErrorResponse, FieldError

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
MALFORMED_REQUEST_BODY = "MALFORMED_REQUEST_BODY"
INVALID_PARAMETER_TYPE = "INVALID_PARAMETER_TYPE"

# pydantic error types raised when the body as a whole is unusable
_MALFORMED_BODY_TYPES = {
    "json_invalid",
    "model_type",
    "model_attributes_type",
    "dict_type",
    "missing",
}

# pydantic error types raised when a path/query value cannot be parsed at all
_PARSING_TYPES = {
    "int_parsing": "int",
    "int_type": "int",
    "int_from_float": "int",
    "decimal_parsing": "Decimal",
    "decimal_type": "Decimal",
    "bool_parsing": "bool",
    "bool_type": "bool",
    "float_parsing": "float",
}

# a body field whose JSON value has the wrong type makes the body unreadable
_MALFORMED_BODY_FIELD_TYPES = set(_PARSING_TYPES) | {"string_type", "float_type"}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def error_response(
    status_code: int,
    code: str,
    message: str,
    request: Request,
    field_errors: list[FieldError] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        code=code,
        message=message,
        path=request.url.path,
        field_errors=field_errors,
    )
    content = body.model_dump(mode="json", by_alias=True, exclude={"field_errors"})
    if field_errors is not None:
        content["fieldErrors"] = [
            {
                "field": error.field,
                "rejectedValue": jsonable_encoder(error.rejected_value),
                "message": error.message,
            }
            for error in field_errors
        ]
    return JSONResponse(status_code=status_code, content=content)


def _field_error(error: dict[str, Any]) -> FieldError:
    loc = [str(part) for part in error.get("loc", ())]
    # loc is ("body", "name") or ("query", "minPrice"); drop the source prefix
    field = ".".join(loc[1:]) if len(loc) > 1 else (loc[0] if loc else "")
    rejected = None if error.get("type") == "missing" else error.get("input")
    return FieldError(field=field, rejected_value=rejected, message=error.get("msg", ""))


async def _handle_not_found(request: Request, exc: MenuItemNotFoundError) -> JSONResponse:
    logger.warning(
        "Menu item not found: %s", exc, extra={"request_id": _request_id(request)}
    )
    return error_response(status.HTTP_404_NOT_FOUND, "MENU_ITEM_NOT_FOUND", str(exc), request)


async def _handle_duplicate(request: Request, exc: DuplicateMenuItemNameError) -> JSONResponse:
    logger.warning(
        "Duplicate menu item name: %s", exc, extra={"request_id": _request_id(request)}
    )
    return error_response(status.HTTP_409_CONFLICT, "DUPLICATE_MENU_ITEM_NAME", str(exc), request)


async def _handle_invalid_argument(request: Request, exc: InvalidArgumentError) -> JSONResponse:
    logger.warning("Illegal argument: %s", exc, extra={"request_id": _request_id(request)})
    return error_response(status.HTTP_400_BAD_REQUEST, "INVALID_ARGUMENT", str(exc), request)


async def _handle_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = list(exc.errors())
    logger.warning(
        "Request validation failed",
        extra={"request_id": _request_id(request), "error_count": len(errors)},
    )

    for error in errors:
        loc = tuple(error.get("loc", ()))
        if loc[:1] != ("body",):
            continue
        kind = error.get("type")
        whole_body = len(loc) == 1 or kind == "json_invalid"
        if (whole_body and kind in _MALFORMED_BODY_TYPES) or (
            len(loc) == 2 and kind in _MALFORMED_BODY_FIELD_TYPES
        ):
            return error_response(
                status.HTTP_400_BAD_REQUEST,
                MALFORMED_REQUEST_BODY,
                "Invalid request body format",
                request,
            )

    for error in errors:
        loc = tuple(error.get("loc", ()))
        expected = _PARSING_TYPES.get(error.get("type", ""))
        if expected and loc[:1] in (("path",), ("query",)):
            name = loc[-1]
            return error_response(
                status.HTTP_400_BAD_REQUEST,
                INVALID_PARAMETER_TYPE,
                f"Invalid value '{error.get('input')}' for parameter '{name}'. "
                f"Expected type: {expected}",
                request,
            )

    from_body = any(tuple(error.get("loc", ()))[:1] == ("body",) for error in errors)
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        VALIDATION_ERROR,
        "Invalid request data" if from_body else "Invalid request parameters",
        request,
        field_errors=[_field_error(error) for error in errors],
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unexpected error occurred",
        extra={"request_id": _request_id(request), "path": request.url.path},
    )
    response = error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred. Please try again later.",
        request,
    )
    # rendered outside the middleware stack, so RequestIDMiddleware never sees it
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MenuItemNotFoundError, _handle_not_found)
    app.add_exception_handler(DuplicateMenuItemNameError, _handle_duplicate)
    app.add_exception_handler(InvalidArgumentError, _handle_invalid_argument)
    app.add_exception_handler(RequestValidationError, _handle_validation)
    app.add_exception_handler(Exception, _handle_unexpected)

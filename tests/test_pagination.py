import pytest
from fastapi import status

from core.errors import (
    ConflictError, ForbiddenError, NotFoundError, RateLimitedError, UnauthorizedError, ValidationError,
)
from dependencies import get_pagination
from models import PaginationMeta, PaginationParams


@pytest.mark.parametrize("page, limit, expected", [
    (1, 10, (1, 10)),
    (0, 10, (1, 10)),
    (-3, 0, (1, 1)),
    (2, 1000, (2, 100)),
    ("abc", "x", (1, 10)),
    ("2.5", " 7 ", (2, 7)),
    ("-1", "20items", (1, 20)),
    (None, None, (1, 10)),
])
def test_get_pagination_clamps(page, limit, expected):
    params = get_pagination(page=page, limit=limit)
    assert (params.page, params.limit) == expected


def test_skip_and_total_pages():
    params = PaginationParams(page=3, limit=20)
    assert params.skip == 40

    meta = PaginationMeta.build(params, 41)
    assert meta.total_pages == 3
    assert meta.model_dump(by_alias=True) == {"page": 3, "limit": 20, "total": 41, "totalPages": 3}
    assert PaginationMeta.build(params, 0).total_pages == 0


@pytest.mark.parametrize("error_class, status_code, kind", [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "validation"),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED, "unauthorized"),
    (ForbiddenError, status.HTTP_403_FORBIDDEN, "forbidden"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (ConflictError, status.HTTP_409_CONFLICT, "conflict"),
    (RateLimitedError, status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited"),
])
def test_error_kinds_map_to_statuses(error_class, status_code, kind):
    error = error_class("boom")
    assert error.status_code == status_code
    assert error.kind.value == kind
    assert error.message == "boom"

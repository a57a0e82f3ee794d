"""Pagination helpers.

Two shapes coexist:

* ``StandardResultsSetPagination``: DRF page-number pagination used by the
  admin product list (``count`` / ``next`` / ``previous`` / ``results``).
* ``page_envelope``: the ``{data, total, page, limit, lastPage}`` envelope
  the storefront and the admin order list consume.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

from rest_framework.pagination import PageNumberPagination

from modules.core.exceptions import BadRequest


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


def parse_page_params(
    raw_page: Any,
    raw_limit: Any,
    default_limit: int = 20,
    max_limit: int = 100,
) -> tuple[int, int]:
    """Coerce ``page``/``limit`` query values into positive integers.

    Raises:
        BadRequest: a value is not an integer or is below 1.
    """
    try:
        page = int(raw_page) if raw_page not in (None, "") else 1
        limit = int(raw_limit) if raw_limit not in (None, "") else default_limit
    except (TypeError, ValueError) as exc:
        raise BadRequest("page and limit must be integers.") from exc
    if page < 1 or limit < 1:
        raise BadRequest("page and limit must be greater than zero.")
    return page, min(limit, max_limit)


def page_envelope(
    data: Sequence[Any], total: int, page: int, limit: int
) -> dict[str, Any]:
    return {
        "data": list(data),
        "total": total,
        "page": page,
        "limit": limit,
        "lastPage": math.ceil(total / limit) if limit else 0,
    }

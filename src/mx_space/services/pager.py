"""Page/size arithmetic shared by every listing endpoint."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Final

DEFAULT_PAGE_SIZE: Final[int] = 10
MAX_PAGE_SIZE: Final[int] = 50
# Largest offset a signed 64-bit SQL integer holds.
MAX_SKIP: Final[int] = 2**63 - 1


@dataclass(frozen=True)
class PageWindow:
    """Offset/limit pair derived from a page number and a page size."""

    skip: int
    limit: int


@dataclass(frozen=True)
class Pagination:
    """Page metadata returned alongside a page of results."""

    total: int
    current_page: int
    total_page: int
    size: int
    has_next_page: bool
    has_prev_page: bool

    def to_dict(self) -> dict[str, int | bool]:
        return asdict(self)


def clamp_size(size: int | None, *, default_size: int = DEFAULT_PAGE_SIZE, max_size: int = MAX_PAGE_SIZE) -> int:
    """Return ``size`` forced into ``[1, max_size]``; ``None`` selects the default."""
    if size is None:
        size = default_size
    return max(1, min(int(size), max_size))


def paginate(
    page: int | None = 1,
    size: int | None = None,
    *,
    default_size: int = DEFAULT_PAGE_SIZE,
    max_size: int = MAX_PAGE_SIZE,
) -> PageWindow:
    """Translate a 1-based page number and a page size into skip/limit.

    Malformed input is clamped rather than rejected so listing endpoints keep
    answering: pages below 1 become 1, sizes are forced into ``[1, max_size]``
    and pages so far out that ``skip`` would overflow a 64-bit column are
    pulled back to the last page that still fits.

    Args:
        page: 1-based page number; ``None`` means the first page.
        size: Rows per page; ``None`` selects ``default_size``.
        default_size: Endpoint-specific default page size.
        max_size: Upper bound for ``size``.

    Returns:
        The ``PageWindow`` with ``skip == (page - 1) * size`` and ``limit == size``.
    """
    limit = clamp_size(size, default_size=default_size, max_size=max_size)
    current = max(1, min(int(page or 1), MAX_SKIP // limit + 1))
    return PageWindow(skip=(current - 1) * limit, limit=limit)


def build_pagination(total: int, skip: int, limit: int | None) -> Pagination:
    """Shape page metadata for ``total`` matches viewed through skip/limit."""
    size = limit if limit else max(total, 1)
    current_page = skip // size + 1
    total_page = max(1, math.ceil(total / size)) if total else 1
    return Pagination(
        total=total,
        current_page=current_page,
        total_page=total_page,
        size=size,
        has_next_page=current_page < total_page,
        has_prev_page=current_page > 1,
    )

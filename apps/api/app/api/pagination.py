from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.core.config import get_settings


T = TypeVar("T")


def resolve_limit(limit: int | None) -> int:
    settings = get_settings()
    if limit is None:
        return settings.default_page_size
    return max(1, min(limit, settings.max_page_size))


def page_meta(total: int, per_page: int, current_page: int) -> dict[str, int]:
    return {
        "total": total,
        "per_page": per_page,
        "current_page": current_page,
        "last_page": max(1, math.ceil(total / per_page)),
    }


def paginate(session: Session, stmt: Select[Any], *, page: int, limit: int | None) -> tuple[list[Any], dict[str, int]]:
    """Run ``stmt`` for one page and return the rows with ``{total, per_page, current_page, last_page}``."""

    per_page = resolve_limit(limit)
    current_page = max(page, 1)

    total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = list(session.scalars(stmt.offset((current_page - 1) * per_page).limit(per_page)).all())
    return rows, page_meta(total, per_page, current_page)


def paginate_items(items: Sequence[T], *, page: int, limit: int | None) -> tuple[list[T], dict[str, int]]:
    per_page = resolve_limit(limit)
    current_page = max(page, 1)
    start = (current_page - 1) * per_page
    return list(items[start : start + per_page]), page_meta(len(items), per_page, current_page)

"""Success envelopes shared by all routes."""

import math
from typing import Any, Optional

from app.services.SideEffects import DispatchReport


def success_response(message: str, data: Any = None, **extra) -> dict:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def with_report(body: dict, report: Optional[DispatchReport]) -> dict:
    """Attach delivery flags so callers can tell a silent email failure apart."""
    if report is not None:
        body["email_sent"] = report.email_sent
        body["notification_created"] = report.notification_created
    return body


def paginated_response(message: str, items: list, total: int, limit: int, offset: int, **extra) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    page = offset // limit + 1 if limit else 1
    return success_response(
        message,
        items,
        pagination={
            "total": total,
            "limit": limit,
            "offset": offset,
            "page": page,
            "total_pages": total_pages,
            "has_next": offset + limit < total,
            "has_previous": offset > 0,
        },
        **extra,
    )

from typing import Any, Optional


def success(data: Any, message: Optional[str] = None) -> dict:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def paginated(items: list, pagination: Any) -> dict:
    return {"success": True, "data": {"items": items, "pagination": pagination}}

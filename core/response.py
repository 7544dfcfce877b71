"""
Standardized API response helpers for consistent data structure
"""
from typing import Any, Dict, List, Optional
from datetime import datetime


def success_response(data: Any = None, message: str = "OK") -> Dict[str, Any]:
    """Envelope for mutations that have no resource-specific payload"""
    body = {"success": True, "message": message, "timestamp": datetime.utcnow().isoformat()}
    if data is not None:
        body["data"] = data
    return body


def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create an error response.

    ``error`` mirrors ``message`` so storefront clients reading either key
    get the human-readable reason.
    """
    return {
        "success": False,
        "message": message,
        "error": message,
        "error_code": error_code,
        "details": details,
        "timestamp": datetime.utcnow().isoformat()
    }


def pagination_meta(page: int, limit: int, total_items: int) -> Dict[str, Any]:
    """Build pagination metadata for list endpoints"""
    total_pages = (total_items + limit - 1) // limit if limit else 0

    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_items": total_items,
        "limit": limit,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1
    }


def paginated_response(
    key: str,
    data: List[Any],
    page: int,
    limit: int,
    total_items: int
) -> Dict[str, Any]:
    """Create a paginated response keyed by resource name"""
    return {
        "success": True,
        key: data,
        "pagination": pagination_meta(page, limit, total_items),
        "timestamp": datetime.utcnow().isoformat()
    }

"""Response error extraction for load test observability.

Handles the two error shapes the storefront API returns:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Domain errors (400/404): {"error": {"field": ["msg", ...]}} or {"error": "msg"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Compact, human-readable error string for Locust failure messages."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if "detail" in body and isinstance(body["detail"], list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            parts = []
            for name, messages in error.items():
                if isinstance(messages, list):
                    messages = "; ".join(str(m) for m in messages)
                parts.append(f"{name}: {messages}")
            return " | ".join(parts)
        return str(error)

    return str(body)[:300]


def is_stock_conflict(response: Response) -> bool:
    """True for a 400 caused by another shopper taking the last units."""
    if response.status_code != 400:
        return False
    try:
        error = response.json().get("error")
    except ValueError:
        return False
    return isinstance(error, dict) and ("stock" in error or "quantity" in error)

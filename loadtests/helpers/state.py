"""Per-user state tracking for Locust load test scenarios.

Each Locust user is one shopper session; nothing is shared across users.
"""

import uuid
from dataclasses import dataclass, field


@dataclass
class ShopperState:
    """Cart lines and checkout progress for one simulated shopper."""

    session_id: str = field(default_factory=lambda: f"lt-{uuid.uuid4().hex[:12]}")
    cart_item_ids: list[str] = field(default_factory=list)
    checkout_id: str | None = None
    order_id: str | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {"X-Session-Id": self.session_id}

"""Payment gateway port and adapters.

- FakeGateway for development and testing
- Real processor adapters implement PaymentGateway and are injected by the
  application shell
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import IntentResult, PaymentGateway

__all__ = ["FakeGateway", "IntentResult", "PaymentGateway"]

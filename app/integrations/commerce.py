"""
Commerce collaborator: creates a payable product link for an enrollment.

No store integration is wired up yet. StubCommerceClient always answers "no link",
which callers must treat as a normal outcome (payment stays REQUESTED).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class CommerceProduct:
    product_id: Optional[str] = None
    product_url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_link(self) -> bool:
        return bool(self.product_url)


@dataclass
class PaymentVerification:
    verified: bool
    raw: Dict[str, Any] = field(default_factory=dict)


class CommerceClient:
    """Interface for the external store. Implementations may raise on transport failure."""

    async def create_product(self, title: str, amount: Decimal, enrollment_id: int) -> CommerceProduct:
        raise NotImplementedError

    async def verify_payment(self, enrollment_id: int) -> PaymentVerification:
        raise NotImplementedError


class StubCommerceClient(CommerceClient):
    async def create_product(self, title: str, amount: Decimal, enrollment_id: int) -> CommerceProduct:
        return CommerceProduct(raw={"reason": "NOT_IMPLEMENTED"})

    async def verify_payment(self, enrollment_id: int) -> PaymentVerification:
        return PaymentVerification(verified=False, raw={"reason": "NOT_IMPLEMENTED"})


_default_client = StubCommerceClient()


def get_commerce_client() -> CommerceClient:
    """FastAPI dependency; override in tests or when a real store client exists."""
    return _default_client

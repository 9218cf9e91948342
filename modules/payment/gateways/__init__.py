"""
Payment Gateway Abstraction
=============================
Each gateway implements create_payment() and get_status().
Registry pattern for gateway lookup by name.

Business refusals come back as unsuccessful results; network and 5xx
failures raise TransportError carrying the underlying error text.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, List
from dataclasses import dataclass

from modules.payment.models import PaymentStatus

logger = logging.getLogger("umc.gateway")


# Raw gateway statuses that mean money has actually settled
SETTLEMENT_STATUSES = frozenset({"settlement", "capture"})


@dataclass
class GatewayPaymentRequest:
    """Input for creating a payment."""
    amount: Decimal
    order_ref: str              # unique per payment attempt
    description: str
    finish_url: str = ""
    customer_id: Optional[int] = None


@dataclass
class GatewayCreateResult:
    """Result of create_payment()."""
    success: bool
    redirect_url: Optional[str] = None
    token: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class GatewayStatusResult:
    """Result of get_status(). payment_status is authoritative."""
    success: bool
    payment_status: Optional[PaymentStatus] = None
    gateway_status: Optional[str] = None    # raw, as reported
    settled_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def is_settlement(self) -> bool:
        return (self.gateway_status or "").lower() in SETTLEMENT_STATUSES


class BaseGateway:
    """Abstract gateway interface."""
    name: str = ""
    label: str = ""

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        raise NotImplementedError

    def get_status(self, order_ref: str) -> GatewayStatusResult:
        raise NotImplementedError


# ── Registry ──

_GATEWAYS: Dict[str, BaseGateway] = {}


def register_gateway(gw: BaseGateway):
    _GATEWAYS[gw.name] = gw
    logger.debug(f"Gateway registered: {gw.name}")


def get_gateway(name: str) -> Optional[BaseGateway]:
    return _GATEWAYS.get(name)


def get_all_gateway_names() -> List[str]:
    return list(_GATEWAYS.keys())

"""
Midtrans Gateway
=================
Snap API for creating the hosted checkout page, Core API for status polls.
Sandbox is used unless MIDTRANS_IS_PRODUCTION=true.
"""

import httpx
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from config.settings import MIDTRANS_SERVER_KEY, MIDTRANS_IS_PRODUCTION, GATEWAY_TIMEOUT
from common.exceptions import TransportError
from modules.payment.models import PaymentStatus
from modules.payment.gateways import (
    BaseGateway, GatewayPaymentRequest, GatewayCreateResult,
    GatewayStatusResult, register_gateway,
)

logger = logging.getLogger("umc.gateway.midtrans")

SNAP_URL = {
    True: "https://app.midtrans.com/snap/v1/transactions",
    False: "https://app.sandbox.midtrans.com/snap/v1/transactions",
}
STATUS_URL = {
    True: "https://api.midtrans.com/v2/{order_id}/status",
    False: "https://api.sandbox.midtrans.com/v2/{order_id}/status",
}

# Midtrans reports settlement times in WIB
WIB = timezone(timedelta(hours=7))

_STATUS_MAP = {
    "settlement": PaymentStatus.PAID,
    "pending": PaymentStatus.PENDING,
    "authorize": PaymentStatus.PENDING,
    "deny": PaymentStatus.FAILED,
    "cancel": PaymentStatus.FAILED,
    "expire": PaymentStatus.FAILED,
    "failure": PaymentStatus.FAILED,
    "refund": PaymentStatus.REFUNDED,
    "partial_refund": PaymentStatus.REFUNDED,
    "chargeback": PaymentStatus.REFUNDED,
    "partial_chargeback": PaymentStatus.REFUNDED,
}


def map_transaction_status(transaction_status: str, fraud_status: Optional[str] = None) -> Optional[PaymentStatus]:
    """Translate a raw Midtrans transaction_status into a PaymentStatus."""
    raw = (transaction_status or "").lower()
    if raw == "capture":
        # Card payments flagged for review stay pending until accepted
        if (fraud_status or "accept").lower() == "accept":
            return PaymentStatus.PAID
        return PaymentStatus.PENDING
    return _STATUS_MAP.get(raw)


def _parse_wib(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d %H:%M:%S").replace(tzinfo=WIB).astimezone(timezone.utc)
    except ValueError:
        return None


class MidtransGateway(BaseGateway):
    name = "midtrans"
    label = "Midtrans"

    def __init__(self, server_key: str = MIDTRANS_SERVER_KEY, production: bool = MIDTRANS_IS_PRODUCTION,
                 timeout: float = GATEWAY_TIMEOUT):
        self.server_key = server_key
        self.production = production
        self.timeout = timeout

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = httpx.request(
                method, url,
                auth=(self.server_key, ""),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.error(f"Midtrans {method} {url} failed: {e}")
            raise TransportError(str(e))
        if resp.status_code >= 500:
            logger.error(f"Midtrans {method} {url} -> HTTP {resp.status_code}: {resp.text}")
            raise TransportError(f"HTTP {resp.status_code}: {resp.text}")
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> dict:
        try:
            return resp.json()
        except ValueError:
            return {}

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        payload = {
            "transaction_details": {
                "order_id": req.order_ref,
                "gross_amount": int(req.amount),
            },
            "item_details": [{
                "id": req.order_ref,
                "price": int(req.amount),
                "quantity": 1,
                "name": req.description[:50],
            }],
        }
        if req.finish_url:
            payload["callbacks"] = {"finish": req.finish_url}

        resp = self._request("POST", SNAP_URL[self.production], json=payload)
        data = self._json(resp)
        logger.info(f"Midtrans create [{req.order_ref}]: HTTP {resp.status_code}")

        if resp.status_code in (200, 201) and data.get("redirect_url"):
            return GatewayCreateResult(
                success=True,
                redirect_url=data["redirect_url"],
                token=data.get("token"),
            )
        messages = data.get("error_messages") or [f"HTTP {resp.status_code}"]
        return GatewayCreateResult(success=False, error_message="; ".join(messages))

    def get_status(self, order_ref: str) -> GatewayStatusResult:
        resp = self._request("GET", STATUS_URL[self.production].format(order_id=order_ref))
        data = self._json(resp)
        logger.info(f"Midtrans status [{order_ref}]: {data.get('transaction_status')}")

        raw = data.get("transaction_status")
        if not raw:
            return GatewayStatusResult(
                success=False,
                error_message=data.get("status_message") or f"HTTP {resp.status_code}",
            )

        mapped = map_transaction_status(raw, data.get("fraud_status"))
        if mapped is None:
            return GatewayStatusResult(
                success=False, gateway_status=raw,
                error_message=f"Status gateway tidak dikenal: {raw}",
            )
        return GatewayStatusResult(
            success=True,
            payment_status=mapped,
            gateway_status=raw,
            settled_at=_parse_wib(data.get("settlement_time") or data.get("transaction_time")),
        )


register_gateway(MidtransGateway())

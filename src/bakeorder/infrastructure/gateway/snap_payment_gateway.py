"""Payment gateway adapter for a Snap-style hosted payment page API.

``create_transaction`` posts the itemised request and returns the hosted
page URL; ``fetch_status`` asks the core API for the current status.
Both authenticate with HTTP basic auth using the server key as user name.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from bakeorder.application.ports import (
    PaymentGatewayClient,
    PaymentRequest,
    PaymentResponse,
)
from bakeorder.domain.exceptions import PaymentGatewayError, ValidationError
from bakeorder.domain.model.transaction import TransactionStatus

logger = structlog.get_logger(__name__)


class SnapPaymentGateway(PaymentGatewayClient):

    def __init__(
        self,
        base_url: str,
        status_base_url: str,
        server_key: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._status_base_url = status_base_url.rstrip("/")
        self._client = client or httpx.Client(
            timeout=timeout,
            auth=httpx.BasicAuth(server_key, ""),
            headers={"Accept": "application/json"},
        )

    def create_transaction(self, request: PaymentRequest) -> PaymentResponse:
        body = self._to_body(request)
        data = self._call("POST", f"{self._base_url}/snap/v1/transactions", json=body)

        redirect_url = data.get("redirect_url")
        if not redirect_url:
            raise PaymentGatewayError("Payment gateway response has no redirect URL")
        reference_id = data.get("transaction_id") or request.order_id

        logger.info(
            "payment_created",
            order_id=request.order_id,
            purchase_id=request.purchase_id,
            gross_amount=request.gross_amount,
        )
        return PaymentResponse(redirect_url=redirect_url, reference_id=str(reference_id))

    def fetch_status(self, reference_id: str) -> TransactionStatus:
        data = self._call("GET", f"{self._status_base_url}/v2/{reference_id}/status")
        raw_status = data.get("transaction_status")
        if not raw_status:
            raise PaymentGatewayError(
                f"Payment gateway reported no status for '{reference_id}'"
            )
        try:
            return TransactionStatus.from_name(raw_status)
        except ValidationError as exc:
            raise PaymentGatewayError(str(exc)) from exc

    def close(self) -> None:
        self._client.close()

    # --- Internal helpers -----------------------------------------------------

    def _call(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("payment_gateway_unreachable", url=url, error=str(exc))
            raise PaymentGatewayError(f"Payment gateway unreachable: {exc}") from exc

        if response.status_code >= 400:
            detail = self._error_detail(response)
            logger.warning(
                "payment_gateway_error", url=url, status_code=response.status_code, detail=detail
            )
            raise PaymentGatewayError(
                f"Payment gateway returned {response.status_code}: {detail}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise PaymentGatewayError("Payment gateway returned invalid JSON") from exc

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:200]
        messages = data.get("error_messages") or data.get("status_message")
        if isinstance(messages, list):
            return "; ".join(str(m) for m in messages)
        return str(messages or data)

    @staticmethod
    def _to_body(request: PaymentRequest) -> dict:
        return {
            "transaction_details": {
                "order_id": request.order_id,
                "gross_amount": request.gross_amount,
            },
            "item_details": [
                {
                    "id": line.id,
                    "name": line.name[:50],
                    "price": line.price,
                    "quantity": line.quantity,
                }
                for line in request.items
            ],
            "customer_details": {
                "first_name": request.customer.first_name,
                "email": request.customer.email,
                "phone": request.customer.phone,
            },
            "expiry": {
                "unit": request.expiry.unit,
                "duration": request.expiry.duration,
            },
            "currency": request.currency,
            "custom_field1": str(request.purchase_id),
        }

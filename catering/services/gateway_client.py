# catering/services/gateway_client.py
from dataclasses import dataclass

import requests

from catering.domain.errors import GatewayError
from catering.utils.retry import http_retry
from catering.utils.settings import (
    GATEWAY_BASE_URL,
    GATEWAY_SERVER_KEY,
    GATEWAY_TIMEOUT_SECONDS,
    GATEWAY_EXPIRY_MINUTES,
)
from catering.utils.logging import get_logger

logger = get_logger(__name__)

# bramka odrzuca dluzsze identyfikatory i nazwy pozycji
MAX_FIELD_LENGTH = 50


@dataclass(frozen=True)
class GatewayTransaction:
    token: str
    redirect_url: str | None


def line_item(item_id, price: int, quantity: int, name: str) -> dict:
    return {
        "id": str(item_id)[:MAX_FIELD_LENGTH],
        "price": int(price),
        "quantity": int(quantity),
        "name": str(name)[:MAX_FIELD_LENGTH],
    }


class GatewayClient:
    """
    Klient Snap API: jedna operacja, otwarcie transakcji QRIS.
    Retry tylko na bledy transportu; odrzucenie przez bramke leci od razu jako GatewayError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        server_key: str | None = None,
        timeout: int = GATEWAY_TIMEOUT_SECONDS,
        expiry_minutes: int = GATEWAY_EXPIRY_MINUTES,
    ):
        self.base_url = (base_url or GATEWAY_BASE_URL).rstrip("/")
        self.server_key = server_key if server_key is not None else GATEWAY_SERVER_KEY
        self.timeout = timeout
        self.expiry_minutes = expiry_minutes

    def build_payload(self, gateway_order_id: str, gross_amount: int, customer: dict, items: list[dict]) -> dict:
        return {
            "transaction_details": {
                "order_id": gateway_order_id,
                "gross_amount": int(gross_amount),
            },
            "customer_details": customer,
            "item_details": items,
            "enabled_payments": ["other_qris"],
            "expiry": {"unit": "minutes", "duration": self.expiry_minutes},
        }

    @http_retry()
    def _post(self, payload: dict) -> requests.Response:
        url = f"{self.base_url}/snap/v1/transactions"
        logger.info(f"GatewayClient POST {url} order_id={payload['transaction_details']['order_id']}")
        return requests.post(
            url,
            json=payload,
            auth=(self.server_key, ""),
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )

    def create_transaction(
        self,
        gateway_order_id: str,
        gross_amount: int,
        customer: dict,
        items: list[dict],
    ) -> GatewayTransaction:
        if not self.server_key:
            raise GatewayError("Payment gateway server key not configured")

        payload = self.build_payload(gateway_order_id, gross_amount, customer, items)

        try:
            resp = self._post(payload)
        except requests.RequestException as e:
            logger.error(f"Gateway unreachable for {gateway_order_id}: {e}")
            raise GatewayError(f"Payment gateway unreachable: {e}") from e

        if resp.status_code >= 400:
            logger.error(f"Gateway rejected {gateway_order_id}: HTTP {resp.status_code} {resp.text}")
            raise GatewayError(f"Payment gateway rejected the transaction: HTTP {resp.status_code}", resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise GatewayError("Invalid response from payment gateway") from e

        token = data.get("token")
        if not token:
            raise GatewayError("No transaction token received from payment gateway")

        return GatewayTransaction(token=token, redirect_url=data.get("redirect_url"))

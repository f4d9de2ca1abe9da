import logging
from typing import Any, Dict, Optional

import httpx

from wifmart.core.config import settings
from wifmart.core.exceptions import ExternalServiceError

logger = logging.getLogger("wifmart.gateway")


class FlutterwaveClient:
    """Server-side half of the Flutterwave checkout: transaction verification."""

    def __init__(
        self,
        secret_key: str,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def verify_transaction(self, transaction_id: str) -> Dict[str, Any]:
        """
        Fetch the gateway's record of transaction_id.

        Returns the decoded body ({"status": ..., "data": {...}}). Raises
        ExternalServiceError when the gateway cannot be reached or answers
        with an error status.
        """
        url = f"{self.base_url}/transactions/{transaction_id}/verify"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Flutterwave request for transaction {transaction_id} failed: {e}")
            raise ExternalServiceError("Payment verification failed, please try again")

        if response.status_code >= 400:
            logger.error(f"Flutterwave API error {response.status_code}: {response.text}")
            raise ExternalServiceError("Payment verification failed, please try again")

        try:
            return response.json()
        except ValueError:
            logger.error(f"Flutterwave returned a non-JSON body for transaction {transaction_id}")
            raise ExternalServiceError("Payment verification failed, please try again")


def get_payment_gateway() -> FlutterwaveClient:
    return FlutterwaveClient(
        secret_key=settings.FLUTTERWAVE_SECRET_KEY,
        base_url=settings.FLUTTERWAVE_BASE_URL,
        timeout=settings.REQUEST_TIMEOUT_S,
    )

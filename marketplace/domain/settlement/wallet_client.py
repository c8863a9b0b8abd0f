import logging
from typing import Any, Optional

import httpx

from ...config import WALLET_SERVICE_TOKEN, WALLET_SERVICE_URL, WALLET_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class WalletNotConfigured(Exception):
    pass


class WalletClient:
    """Client for the wallet service that credits provider earnings"""

    def __init__(
        self,
        base_url: Optional[str] = WALLET_SERVICE_URL,
        token: Optional[str] = WALLET_SERVICE_TOKEN,
        timeout: float = WALLET_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.token = token
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def process_earning(self, provider_id: int, session_id: int, amount: float, currency: str) -> dict[str, Any]:
        """
        Credit a provider for a completed session.

        The wallet deduplicates on session id, so repeating a call for the
        same session does not credit twice.

        Raises:
            WalletNotConfigured: If no wallet URL is set
            httpx.HTTPError: On transport failures or non-2xx responses
        """
        if not self.is_configured:
            raise WalletNotConfigured("WALLET_SERVICE_URL is not set")

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        payload = {
            "providerId": provider_id,
            "sessionId": session_id,
            "amount": amount,
            "currency": currency,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(f"{self.base_url}/wallet/earnings", json=payload, headers=headers)

            if response.status_code >= 400:
                logger.error(f"❌ Wallet earning failed for session {session_id}: {response.status_code}")
                logger.error(f"❌ Error response: {response.text}")

            response.raise_for_status()
            return response.json() if response.content else {}

"""Dodo Payments service - subscription checkout and customer portal sessions"""

import logging
from typing import Any, Optional

from dodopayments import AsyncDodoPayments  # type: ignore

from ... import config

logger = logging.getLogger(__name__)


class BillingNotConfiguredError(Exception):
    """Raised when no Dodo Payments API key is configured"""


class BillingProviderError(Exception):
    """Raised when a Dodo Payments call fails"""


def normalize_dodo_environment(env: Optional[str]) -> str:
    """Normalize Dodo environment value to expected format"""
    value = (env or "test_mode").strip().lower()
    if value in {"live", "production", "prod"}:
        return "live_mode"
    if value in {"test", "sandbox", "staging", "dev", "development"}:
        return "test_mode"
    if value in {"test_mode", "live_mode"}:
        return value
    logger.warning(f"Unknown DODO environment '{env}', defaulting to test_mode")
    return "test_mode"


def _field(response: Any, *names: str) -> Optional[str]:
    """Read the first present attribute/key from an SDK model or dict"""
    for name in names:
        value = getattr(response, name, None)
        if value is None and isinstance(response, dict):
            value = response.get(name)
        if value:
            return value
    return None


class DodoPaymentsService:
    """Thin async wrapper over AsyncDodoPayments"""

    def __init__(self, api_key: Optional[str] = None, environment: Optional[str] = None):
        self.api_key = api_key if api_key is not None else config.DODO_PAYMENTS_API_KEY
        self.environment = normalize_dodo_environment(environment or config.DODO_PAYMENTS_ENVIRONMENT)
        self.client: Optional[AsyncDodoPayments] = None

        if not self.api_key:
            logger.warning("DODO_PAYMENTS_API_KEY not set; billing endpoints will fail until configured")
        else:
            self.client = AsyncDodoPayments(bearer_token=self.api_key, environment=self.environment)
            logger.info(f"Dodo Payments client initialized (env={self.environment})")

    def is_available(self) -> bool:
        return self.client is not None

    def _require_client(self) -> AsyncDodoPayments:
        if not self.client:
            raise BillingNotConfiguredError("Dodo Payments client not initialized")
        return self.client

    async def create_customer(self, email: str, name: str) -> str:
        """Create a processor customer and return its id"""
        client = self._require_client()
        try:
            response = await client.customers.create(email=email, name=name)
        except Exception as e:
            logger.error(f"Failed to create Dodo customer for {email}: {e}")
            raise BillingProviderError(str(e)) from e

        customer_id = _field(response, "customer_id", "id")
        if not customer_id:
            raise BillingProviderError("Customer response did not include an id")
        return customer_id

    async def create_checkout_session(
        self,
        product_id: str,
        customer_id: str,
        return_url: str,
        metadata: Optional[dict] = None,
    ) -> str:
        """Create a checkout session and return its URL"""
        client = self._require_client()
        try:
            response = await client.checkout_sessions.create(
                product_cart=[{"product_id": product_id, "quantity": 1}],
                customer={"customer_id": customer_id},
                return_url=return_url,
                metadata=metadata or {},
            )
        except Exception as e:
            logger.error(f"Failed to create checkout session: {e}")
            raise BillingProviderError(str(e)) from e

        url = _field(response, "checkout_url", "url")
        if not url:
            raise BillingProviderError("Checkout response did not include a URL")
        return url

    async def create_portal_session(self, customer_id: str) -> str:
        """Create a customer portal session and return its link"""
        client = self._require_client()
        try:
            response = await client.customers.customer_portal.create(customer_id=customer_id)
        except Exception as e:
            logger.error(f"Failed to create portal session for {customer_id}: {e}")
            raise BillingProviderError(str(e)) from e

        url = _field(response, "link", "url")
        if not url:
            raise BillingProviderError("Portal response did not include a link")
        return url


_dodo_service: Optional[DodoPaymentsService] = None


def get_dodo_service() -> DodoPaymentsService:
    """FastAPI dependency returning the shared service instance"""
    global _dodo_service
    if _dodo_service is None:
        _dodo_service = DodoPaymentsService()
    return _dodo_service

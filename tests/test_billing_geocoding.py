import httpx
import pytest

from cleanmanager import config
from cleanmanager.domain.billing.dodo_service import (
    BillingProviderError,
    get_dodo_service,
    normalize_dodo_environment,
)
from cleanmanager.main import app
from cleanmanager.models import Company
from cleanmanager.routes import geocoding


class FakeDodo:
    def __init__(self, available=True, fail=False):
        self.available = available
        self.fail = fail
        self.customers = []
        self.checkouts = []

    def is_available(self):
        return self.available

    async def create_customer(self, email, name):
        self.customers.append((email, name))
        return "cus_123"

    async def create_checkout_session(self, product_id, customer_id, return_url, metadata):
        if self.fail:
            raise BillingProviderError("boom")
        self.checkouts.append((product_id, customer_id, metadata))
        return "https://checkout.example/session"

    async def create_portal_session(self, customer_id):
        return f"https://billing.example/{customer_id}"


@pytest.fixture
def dodo(monkeypatch):
    fake = FakeDodo()
    monkeypatch.setattr(config, "DODO_STARTER_PRODUCT_ID", "prod_starter")
    app.dependency_overrides[get_dodo_service] = lambda: fake
    return fake


def test_normalize_dodo_environment():
    assert normalize_dodo_environment("live") == "live_mode"
    assert normalize_dodo_environment("production") == "live_mode"
    assert normalize_dodo_environment(None) == "test_mode"
    assert normalize_dodo_environment("sandbox") == "test_mode"


def test_checkout_creates_processor_customer_once(admin, db, dodo):
    first = admin.post("/api/billing/checkout", json={"planKey": "starter"})
    second = admin.post("/api/billing/checkout", json={"planKey": "starter"})

    assert first.status_code == 200
    assert first.json() == {"url": "https://checkout.example/session"}
    assert second.status_code == 200
    assert dodo.customers == [("office@acme.co.uk", "Acme Cleaning")]
    product_id, customer_id, metadata = dodo.checkouts[0]
    assert (product_id, customer_id, metadata["planKey"]) == ("prod_starter", "cus_123", "starter")
    assert db.query(Company).one().processor_customer_id == "cus_123"


def test_checkout_rejects_unknown_or_unconfigured_plans(admin, dodo):
    assert admin.post("/api/billing/checkout", json={"planKey": "gold"}).json()["detail"] == "Invalid plan"
    assert admin.post("/api/billing/checkout", json={"planKey": "enterprise"}).json()["detail"] == "Plan is not available"


def test_checkout_without_billing_configured(admin, dodo):
    dodo.available = False

    response = admin.post("/api/billing/checkout", json={"planKey": "starter"})

    assert response.status_code == 503


def test_checkout_provider_failure(admin, dodo):
    dodo.fail = True

    response = admin.post("/api/billing/checkout", json={"planKey": "starter"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to create checkout session"


def test_billing_portal_needs_subscription(admin, dodo):
    assert admin.post("/api/billing/portal").status_code == 404

    admin.post("/api/billing/checkout", json={"planKey": "starter"})
    response = admin.post("/api/billing/portal")

    assert response.json() == {"url": "https://billing.example/cus_123"}


class FakeAsyncClient:
    calls = []
    payload = {
        "results": [
            {
                "place_id": "abc",
                "formatted": "10 Downing Street, London SW1A 2AA, United Kingdom",
                "address_line1": "10 Downing Street",
                "address_line2": "London SW1A 2AA",
                "town": "London",
                "postcode": "SW1A 2AA",
                "country": "United Kingdom",
            },
            {},
        ]
    }

    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def get(self, url, params=None, headers=None):
        FakeAsyncClient.calls.append((url, params))
        return httpx.Response(200, json=self.payload, request=httpx.Request("GET", url))


def test_autocomplete_maps_results(client, monkeypatch):
    monkeypatch.setattr(config, "GEOAPIFY_API_KEY", "geo-key")
    monkeypatch.setattr(geocoding.httpx, "AsyncClient", FakeAsyncClient)
    FakeAsyncClient.calls = []

    response = client.get("/api/geoapify/autocomplete", params={"text": "10 Downing", "limit": 50})

    assert response.status_code == 200
    results = response.json()["results"]
    assert len(results) == 1
    assert results[0]["city"] == "London"
    assert results[0]["address"] == "10 Downing Street"
    url, params = FakeAsyncClient.calls[0]
    assert url.endswith("/v1/geocode/autocomplete")
    assert params["limit"] == "10"
    assert params["filter"] == "countrycode:gb"


def test_autocomplete_short_text_skips_provider(client, monkeypatch):
    monkeypatch.setattr(geocoding.httpx, "AsyncClient", FakeAsyncClient)
    FakeAsyncClient.calls = []

    response = client.get("/api/geoapify/autocomplete", params={"text": "ab"})

    assert response.json() == {"results": []}
    assert FakeAsyncClient.calls == []


def test_autocomplete_requires_api_key(client, monkeypatch):
    monkeypatch.setattr(config, "GEOAPIFY_API_KEY", None)

    response = client.get("/api/geoapify/autocomplete", params={"text": "Baker Street"})

    assert response.status_code == 500

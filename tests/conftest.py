import os
from pathlib import Path
from uuid import uuid4

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Pin the config overlay and the in-memory adapters before any domain
    module is imported.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["PAYMENT_GATEWAY_ADAPTER"] = "fake"
    os.environ["EMAIL_ADAPTER"] = "fake"


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from notifications.channel import reset_channels
    from ordering.catalog import reset_catalog
    from ordering.settings import reset_settings
    from payments.gateway import reset_gateways
    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_gateways()
    reset_channels()
    reset_catalog()
    reset_settings()


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalog():
    """A small perfume catalog: 49.00, 79.90 and 5.00 variants plus a retired one."""
    from ordering.catalog import set_catalog
    from ordering.catalog.in_memory import InMemoryCatalog

    catalog = InMemoryCatalog()
    catalog.add_variant("prod-edp", "50ml", "Eau de Parfum 50ml", 4900)
    catalog.add_variant("prod-edp", "100ml", "Eau de Parfum 100ml", 7990)
    catalog.add_variant("prod-sample", "2ml", "Sample 2ml", 500)
    catalog.add_variant("prod-retired", "30ml", "Retired Scent 30ml", 3900, sellable=False)
    set_catalog(catalog)
    return catalog


@pytest.fixture()
def email():
    """The in-memory email adapter notifications are delivered through."""
    from notifications.channel import get_channel
    from notifications.kinds import NotificationChannel

    return get_channel(NotificationChannel.EMAIL.value)


@pytest.fixture()
def address():
    return {
        "name": "Jane Doe",
        "street": "Hauptstr. 1",
        "city": "Berlin",
        "postal_code": "10115",
        "country": "DE",
    }


# ---------------------------------------------------------------------------
# Checkout fixtures
# ---------------------------------------------------------------------------
def make_request(
    lines=None,
    payment_method="bank_transfer",
    guest_email="guest@example.com",
    customer_id=None,
    email=None,
    idempotency_key=None,
    shipping_address=None,
    **overrides,
):
    from ordering.checkout.pricing import CartLine
    from ordering.checkout.results import CheckoutRequest, CustomerIdentity

    if lines is None:
        lines = [("prod-edp", "50ml", 1)]
    return CheckoutRequest(
        lines=[CartLine(product_id=p, variant_id=v, quantity=q) for p, v, q in lines],
        customer=CustomerIdentity(
            customer_id=customer_id,
            guest_email=guest_email,
            email=email,
            name="Jane Doe",
        ),
        payment_method=payment_method,
        idempotency_key=idempotency_key or f"key-{uuid4().hex}",
        shipping_address=shipping_address
        or {
            "name": "Jane Doe",
            "street": "Hauptstr. 1",
            "city": "Berlin",
            "postal_code": "10115",
            "country": "DE",
        },
        **overrides,
    )


@pytest.fixture()
def service(catalog):
    from ordering.checkout.service import CheckoutService

    return CheckoutService()


@pytest.fixture()
def checkout_request():
    """Factory for checkout requests: one 49.00 bank-transfer line by default."""
    return make_request


@pytest.fixture()
def approved_partner():
    """An approved referral partner with code SCENT at the default 2.5% rate."""
    from ordering.commission.partner import Partner
    from protean import current_domain

    partner = Partner.register(code="SCENT", name="Scent Club", email="club@example.com")
    partner.approve()
    current_domain.repository_for(Partner).add(partner)
    return partner

from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from fakes import (
    ADMIN_ID, CUSTOMER_ID, OTHER_CUSTOMER_ID, FakeCatalog, FakeIdentity, FakePublisher, FrozenClock,
    InMemoryDatabase, InMemoryUnitOfWork, ManualTimer
)
from storefront.application.place_order import CartLineDTO, PlaceOrderDTO
from storefront.application.store_settings import StoreSettingsService
from storefront.domain.models import Actor, CustomerContact, PaymentMethod, Product, StoreSettings, UserRole
from storefront.presentation.dependencies import ServiceContainer


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def uow(db):
    return InMemoryUnitOfWork(db)


@pytest.fixture
def customer():
    return Actor(id=CUSTOMER_ID, role=UserRole.CUSTOMER, full_name="Asha Verma")


@pytest.fixture
def other_customer():
    return Actor(id=OTHER_CUSTOMER_ID, role=UserRole.CUSTOMER, full_name="Ravi Kumar")


@pytest.fixture
def admin():
    return Actor(id=ADMIN_ID, role=UserRole.ADMIN, full_name="Store Admin")


@pytest.fixture
def products():
    return [
        Product(id="atta-5kg", name="Aashirvaad Atta", localized_name="आटा", unit="kg", price=Decimal("20")),
        Product(id="mustard-oil", name="Mustard Oil", localized_name="सरसों तेल", unit="l", price=Decimal("50")),
        Product(id="toor-dal", name="Toor Dal", localized_name="अरहर दाल", unit="kg", price=Decimal("140")),
    ]


@pytest.fixture
def catalog(products):
    return FakeCatalog(products)


@pytest.fixture
def identity(customer, other_customer, admin):
    return FakeIdentity(
        actors={"customer-token": customer, "other-token": other_customer, "admin-token": admin},
        admin_ids=[ADMIN_ID],
        contacts={CUSTOMER_ID: CustomerContact(id=CUSTOMER_ID, full_name="Asha Verma", phone="9876543210")},
    )


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def settings_service(uow, timer):
    return StoreSettingsService(uow, StoreSettings(delivery_fee=Decimal("20")), ttl=60, clock=timer)


@pytest.fixture
def container(uow, catalog, identity, settings_service, clock):
    return ServiceContainer(
        uow, catalog, identity, settings_service, clock=clock, store_timezone=ZoneInfo("Asia/Kolkata")
    )


def make_order_dto(method=PaymentMethod.CASH_ON_DELIVERY, proof=None, lines=None):
    return PlaceOrderDTO(
        items=[CartLineDTO(product_id=p, quantity=q) for p, q in (lines or [("atta-5kg", 3), ("mustard-oil", 1)])],
        address="12, Gandhi Nagar, Near Hanuman Mandir",
        phone="9876543210",
        delivery_instructions="Ring the bell twice",
        payment_method=method,
        payment_proof_url=proof,
    )


@pytest.fixture
def place_cod_order(container, customer):
    async def _place(**kwargs):
        return await container.place_order()(customer, make_order_dto(PaymentMethod.CASH_ON_DELIVERY, **kwargs))
    return _place


@pytest.fixture
def place_qr_order(container, customer):
    async def _place(proof="https://cdn.example.com/payment-proofs/proof.jpg", **kwargs):
        return await container.place_order()(customer, make_order_dto(PaymentMethod.QR_CODE, proof, **kwargs))
    return _place


@pytest.fixture
def order_dto():
    return make_order_dto

from decimal import Decimal

import pytest

from rest_framework.test import APIClient

from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, ShippingAddressDTO
from modules.orders.events import OrderCreated, OrderDeleted, OrderStatusChanged
from modules.orders.notifications import IOrderNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from shared.infrastructure.bus import InMemoryEventBus


class RecordingNotifier(IOrderNotifier):
    def __init__(self) -> None:
        self.sent = []

    def send_order_status_update(self, to, order_id, previous_status, new_status):
        self.sent.append(
            {
                "to": to,
                "order_id": order_id,
                "previous_status": previous_status,
                "new_status": new_status,
            }
        )


class RecordingHandler:
    def __init__(self) -> None:
        self.events = []

    def handle(self, event) -> None:
        self.events.append(event)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def user(django_user_model):
    return django_user_model.objects.create_user(
        username="customer", email="customer@example.com", password="testpass123"
    )


@pytest.fixture()
def other_user(django_user_model):
    return django_user_model.objects.create_user(
        username="someone-else", email="other@example.com", password="testpass123"
    )


@pytest.fixture()
def make_product():
    def _make(name="Widget", price="10.00", stock=10, image_urls=None):
        return Product.objects.create(
            name=name,
            price=Decimal(price),
            stock=stock,
            image_urls=image_urls or [],
        )

    return _make


@pytest.fixture()
def shipping_address():
    return {
        "full_name": "Ada Lovelace",
        "street": "12 Analytical Row",
        "city": "London",
        "state": "Greater London",
        "postal_code": "N1 9GU",
        "country": "UK",
    }


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def event_bus():
    return InMemoryEventBus()


@pytest.fixture()
def published(event_bus):
    """Events delivered through ``event_bus``, in publish order."""
    handler = RecordingHandler()
    for event_class in (OrderCreated, OrderStatusChanged, OrderDeleted):
        event_bus.subscribe(event_class, handler)
    return handler.events


@pytest.fixture()
def order_service(notifier, event_bus):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        notifier=notifier,
        event_bus=event_bus,
    )


@pytest.fixture()
def make_order(order_service, make_product, user, shipping_address):
    """Create an order through the service; ``items`` is ``[(product, qty)]``."""

    def _make(items=None, owner=None, payment_method=PaymentMethod.CREDIT_CARD):
        owner = owner or user
        if items is None:
            items = [(make_product(), 1)]
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(product_id=str(product.id), quantity=quantity)
                for product, quantity in items
            ],
            payment_method=payment_method,
            shipping_address=ShippingAddressDTO(**shipping_address),
        )
        return order_service.create_order(dto, str(owner.pk), owner.email)

    return _make

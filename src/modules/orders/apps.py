from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import OrderCreated, OrderDeleted, OrderStatusChanged
        from modules.orders.handlers import (
            OrderCreatedHandler,
            OrderDeletedHandler,
            OrderStatusChangedHandler,
        )
        from shared.infrastructure.bus import InMemoryEventBus

        self.event_bus = InMemoryEventBus()
        self.event_bus.subscribe(OrderCreated, OrderCreatedHandler())
        self.event_bus.subscribe(OrderStatusChanged, OrderStatusChangedHandler())
        self.event_bus.subscribe(OrderDeleted, OrderDeletedHandler())

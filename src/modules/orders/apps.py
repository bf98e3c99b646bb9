from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            OrderCreated,
            OrderPurged,
            OrderRecovered,
            OrderSoftDeleted,
        )
        from modules.orders.handlers import (
            order_created_handler,
            order_purged_handler,
            order_recovered_handler,
            order_soft_deleted_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderCreated, order_created_handler)
        event_bus.subscribe(OrderSoftDeleted, order_soft_deleted_handler)
        event_bus.subscribe(OrderRecovered, order_recovered_handler)
        event_bus.subscribe(OrderPurged, order_purged_handler)

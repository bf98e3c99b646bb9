"""Order URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.orders.views import DeletedOrderViewSet, OrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")
router.register("deleted-orders", DeletedOrderViewSet, basename="deleted-order")

urlpatterns = router.urls

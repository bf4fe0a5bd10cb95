"""Export-order and cancel-request URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.orders.views import CancelRequestViewSet, ExportOrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("export-orders", ExportOrderViewSet, basename="export-order")
router.register("cancel-requests", CancelRequestViewSet, basename="cancel-request")

urlpatterns = router.urls

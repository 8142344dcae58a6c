"""Return URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.returns.views import OrderReturnViewSet, ReturnViewSet

router = DefaultRouter(trailing_slash=True)
router.register("returns", ReturnViewSet, basename="return")

order_returns = OrderReturnViewSet.as_view({"get": "list", "post": "create"})

urlpatterns = [
    path("orders/<str:order_id>/returns/", order_returns, name="order-returns"),
    *router.urls,
]

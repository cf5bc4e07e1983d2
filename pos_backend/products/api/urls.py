# products/api/urls.py

from django.urls import path

from products.api.views import (
    LedgerCheckView,
    LowStockAlertView,
    RestockView,
    StockAdjustmentView,
)

urlpatterns = [
    path("adjustments/", StockAdjustmentView.as_view(), name="inventory-adjustments"),
    path("restocks/", RestockView.as_view(), name="inventory-restocks"),
    path(
        "products/<uuid:product_id>/ledger-check/",
        LedgerCheckView.as_view(),
        name="inventory-ledger-check",
    ),
    path("alerts/low-stock/", LowStockAlertView.as_view(), name="inventory-low-stock"),
]

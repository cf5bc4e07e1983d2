# sales/api/urls.py

"""
Mounted at /api/sales/ by backend/urls.py.
"""

from django.urls import path

from sales.api.views import (
    SaleCancelView,
    SaleCompleteView,
    SaleDetailView,
    SaleListCreateView,
    SaleReturnCreateView,
)

urlpatterns = [
    path("", SaleListCreateView.as_view(), name="sales-list"),
    path("<uuid:sale_id>/", SaleDetailView.as_view(), name="sales-detail"),
    path("<uuid:sale_id>/complete/", SaleCompleteView.as_view(), name="sales-complete"),
    path("<uuid:sale_id>/cancel/", SaleCancelView.as_view(), name="sales-cancel"),
    path("<uuid:sale_id>/returns/", SaleReturnCreateView.as_view(), name="sales-returns"),
]

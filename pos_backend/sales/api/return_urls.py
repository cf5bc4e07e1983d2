# sales/api/return_urls.py

"""
Mounted at /api/returns/ by backend/urls.py.
"""

from django.urls import path

from sales.api.views import SaleReturnApproveView, SaleReturnDetailView, SaleReturnRejectView

urlpatterns = [
    path("<uuid:return_id>/", SaleReturnDetailView.as_view(), name="returns-detail"),
    path("<uuid:return_id>/approve/", SaleReturnApproveView.as_view(), name="returns-approve"),
    path("<uuid:return_id>/reject/", SaleReturnRejectView.as_view(), name="returns-reject"),
]

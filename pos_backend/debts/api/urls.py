# debts/api/urls.py

from django.urls import path

from debts.api.views import (
    DebtCancelView,
    DebtDetailView,
    DebtListView,
    DebtPaymentView,
    DebtReturnCreditView,
)

urlpatterns = [
    path("", DebtListView.as_view(), name="debts-list"),
    path("<uuid:debt_id>/", DebtDetailView.as_view(), name="debts-detail"),
    path("<uuid:debt_id>/payments/", DebtPaymentView.as_view(), name="debts-payments"),
    path("<uuid:debt_id>/cancel/", DebtCancelView.as_view(), name="debts-cancel"),
    path(
        "<uuid:debt_id>/return-credits/",
        DebtReturnCreditView.as_view(),
        name="debts-return-credits",
    ),
]

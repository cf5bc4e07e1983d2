# debts/api/views.py

"""
DEBT ENDPOINTS

- GET  /api/debts/                          open debts (?phone=, ?status=)
- GET  /api/debts/<uuid>/
- POST /api/debts/<uuid>/payments/          CASH / CARD collection
- POST /api/debts/<uuid>/cancel/            write-off
- POST /api/debts/<uuid>/return-credits/    reduce by an approved return

Debts are never created here; completing a sale with a DEBT tender opens one.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api import engine_error_response
from core.exceptions import EngineError, NotFoundError
from debts.api.serializers import (
    DebtCancelInputSerializer,
    DebtPaymentInputSerializer,
    DebtSerializer,
    ReturnCreditInputSerializer,
)
from debts.models import Debt
from debts.services.debt_tracker import apply_return_credit, cancel_debt, record_payment


def _debt_queryset():
    return Debt.objects.select_related("sale").prefetch_related("payments")


def _fetch_debt(debt_id) -> Debt:
    debt = _debt_queryset().filter(pk=debt_id).first()
    if debt is None:
        raise NotFoundError(f"Debt {debt_id} not found", entity="Debt", entity_id=str(debt_id))
    return debt


class DebtListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["debts"],
        parameters=[
            OpenApiParameter("phone", str, required=False),
            OpenApiParameter("status", str, required=False),
        ],
        responses=DebtSerializer(many=True),
    )
    def get(self, request):
        qs = _debt_queryset()

        status_filter = (request.query_params.get("status") or "").strip().upper()
        if status_filter:
            qs = qs.filter(status=status_filter)
        else:
            qs = qs.filter(status__in=Debt.OPEN_STATUSES)

        phone = (request.query_params.get("phone") or "").strip()
        if phone:
            qs = qs.filter(debtor_phone=phone)

        return Response(DebtSerializer(qs, many=True).data)


class DebtDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["debts"], responses=DebtSerializer)
    def get(self, request, debt_id):
        try:
            debt = _fetch_debt(debt_id)
        except EngineError as exc:
            return engine_error_response(exc)
        return Response(DebtSerializer(debt).data)


class DebtPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["debts"],
        request=DebtPaymentInputSerializer,
        responses={201: DebtSerializer},
    )
    def post(self, request, debt_id):
        s = DebtPaymentInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            debt = record_payment(
                debt_id=debt_id,
                amount=s.validated_data["amount"],
                method=s.validated_data["method"],
                note=s.validated_data["note"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(DebtSerializer(_fetch_debt(debt.pk)).data, status=status.HTTP_201_CREATED)


class DebtCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["debts"], request=DebtCancelInputSerializer, responses=DebtSerializer)
    def post(self, request, debt_id):
        s = DebtCancelInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            debt = cancel_debt(
                debt_id=debt_id,
                reason=s.validated_data["reason"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(DebtSerializer(_fetch_debt(debt.pk)).data)


class DebtReturnCreditView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["debts"], request=ReturnCreditInputSerializer, responses=DebtSerializer)
    def post(self, request, debt_id):
        s = ReturnCreditInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            debt = apply_return_credit(
                debt_id=debt_id,
                return_id=s.validated_data["return_id"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(DebtSerializer(_fetch_debt(debt.pk)).data)

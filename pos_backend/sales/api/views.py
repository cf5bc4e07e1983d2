# sales/api/views.py

"""
SALES ENDPOINTS

- GET   /api/sales/                        recent sales (?status=)
- POST  /api/sales/                        create draft
- GET   /api/sales/<uuid>/                 sale with items, payments, debt, returns
- PATCH /api/sales/<uuid>/                 re-price draft lines / notes
- POST  /api/sales/<uuid>/complete/        tenders (+ debtor) -> COMPLETED
- POST  /api/sales/<uuid>/cancel/          DRAFT -> CANCELLED
- POST  /api/sales/<uuid>/returns/         open a PENDING return
- GET   /api/returns/<uuid>/
- POST  /api/returns/<uuid>/approve/
- POST  /api/returns/<uuid>/reject/

Views translate HTTP <-> service calls only. Engine errors are rendered
through core.api.engine_error_response.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api import engine_error_response
from core.exceptions import EngineError, NotFoundError
from sales.api.serializers import (
    ReturnCreateInputSerializer,
    ReturnRejectInputSerializer,
    SaleCancelInputSerializer,
    SaleCompleteInputSerializer,
    SaleCreateInputSerializer,
    SaleReturnSerializer,
    SaleSerializer,
    SaleUpdateInputSerializer,
)
from sales.models import Sale, SaleReturn
from sales.services.return_service import approve_return, create_return, reject_return
from sales.services.sale_service import (
    cancel_sale,
    complete_sale,
    create_draft_sale,
    update_draft_sale,
)

RECENT_SALES_LIMIT = 100


def _sale_queryset():
    return Sale.objects.select_related("created_by", "debt").prefetch_related(
        "items", "payments", "returns", "returns__items"
    )


def _fetch_sale(sale_id) -> Sale:
    sale = _sale_queryset().filter(pk=sale_id).first()
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found", entity="Sale", entity_id=str(sale_id))
    return sale


def _fetch_return(return_id) -> SaleReturn:
    sale_return = (
        SaleReturn.objects.select_related("sale")
        .prefetch_related("items")
        .filter(pk=return_id)
        .first()
    )
    if sale_return is None:
        raise NotFoundError(
            f"Return {return_id} not found", entity="SaleReturn", entity_id=str(return_id)
        )
    return sale_return


# ======================================================
# SALES
# ======================================================


class SaleListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["sales"],
        parameters=[OpenApiParameter("status", str, required=False)],
        responses=SaleSerializer(many=True),
    )
    def get(self, request):
        qs = _sale_queryset()
        status_filter = (request.query_params.get("status") or "").strip().upper()
        if status_filter:
            qs = qs.filter(status=status_filter)
        return Response(SaleSerializer(qs[:RECENT_SALES_LIMIT], many=True).data)

    @extend_schema(
        tags=["sales"],
        request=SaleCreateInputSerializer,
        responses={201: SaleSerializer},
    )
    def post(self, request):
        s = SaleCreateInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            sale = create_draft_sale(
                user=request.user,
                items=s.validated_data["items"],
                notes=s.validated_data["notes"],
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(SaleSerializer(_fetch_sale(sale.pk)).data, status=status.HTTP_201_CREATED)


class SaleDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["sales"], responses=SaleSerializer)
    def get(self, request, sale_id):
        try:
            sale = _fetch_sale(sale_id)
        except EngineError as exc:
            return engine_error_response(exc)
        return Response(SaleSerializer(sale).data)

    @extend_schema(tags=["sales"], request=SaleUpdateInputSerializer, responses=SaleSerializer)
    def patch(self, request, sale_id):
        s = SaleUpdateInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            sale = update_draft_sale(
                sale_id=sale_id,
                lines=s.validated_data.get("lines"),
                notes=s.validated_data.get("notes"),
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(SaleSerializer(_fetch_sale(sale.pk)).data)


class SaleCompleteView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["sales"], request=SaleCompleteInputSerializer, responses=SaleSerializer)
    def post(self, request, sale_id):
        s = SaleCompleteInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            sale = complete_sale(
                sale_id=sale_id,
                tenders=s.validated_data["tenders"],
                debtor=s.validated_data.get("debtor"),
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(SaleSerializer(_fetch_sale(sale.pk)).data)


class SaleCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["sales"], request=SaleCancelInputSerializer, responses=SaleSerializer)
    def post(self, request, sale_id):
        s = SaleCancelInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            sale = cancel_sale(
                sale_id=sale_id,
                reason=s.validated_data["reason"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(SaleSerializer(_fetch_sale(sale.pk)).data)


# ======================================================
# RETURNS
# ======================================================


class SaleReturnCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["returns"],
        request=ReturnCreateInputSerializer,
        responses={201: SaleReturnSerializer},
    )
    def post(self, request, sale_id):
        s = ReturnCreateInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            sale_return = create_return(
                sale_id=sale_id,
                items=s.validated_data["items"],
                reason=s.validated_data["reason"],
                notes=s.validated_data["notes"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(
            SaleReturnSerializer(_fetch_return(sale_return.pk)).data,
            status=status.HTTP_201_CREATED,
        )


class SaleReturnDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["returns"], responses=SaleReturnSerializer)
    def get(self, request, return_id):
        try:
            sale_return = _fetch_return(return_id)
        except EngineError as exc:
            return engine_error_response(exc)
        return Response(SaleReturnSerializer(sale_return).data)


class SaleReturnApproveView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["returns"], request=None, responses=SaleReturnSerializer)
    def post(self, request, return_id):
        try:
            sale_return = approve_return(return_id=return_id, user=request.user)
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(SaleReturnSerializer(_fetch_return(sale_return.pk)).data)


class SaleReturnRejectView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["returns"], request=ReturnRejectInputSerializer, responses=SaleReturnSerializer)
    def post(self, request, return_id):
        s = ReturnRejectInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            sale_return = reject_return(
                return_id=return_id,
                note=s.validated_data["note"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(SaleReturnSerializer(_fetch_return(sale_return.pk)).data)

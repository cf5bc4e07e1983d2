# products/api/views.py

"""
INVENTORY ENDPOINTS

- POST /api/inventory/adjustments/                    manual correction (signed delta)
- POST /api/inventory/restocks/                       goods received
- GET  /api/inventory/products/<uuid>/ledger-check/   replay + chain verification
- GET  /api/inventory/alerts/low-stock/               stock <= min_stock_limit

Stock is never written here; every mutation goes through the stock ledger.
"""

from django.db.models import F
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api import engine_error_response
from core.exceptions import EngineError
from products.api.serializers import (
    InventoryTransactionSerializer,
    LedgerCheckSerializer,
    ProductStockSerializer,
    RestockInputSerializer,
    StockAdjustmentInputSerializer,
)
from products.models import Product
from products.services.catalog import get_product
from products.services.stock_ledger import adjust, restock, verify_ledger


class StockAdjustmentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["inventory"],
        request=StockAdjustmentInputSerializer,
        responses={201: InventoryTransactionSerializer},
    )
    def post(self, request):
        s = StockAdjustmentInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            row = adjust(
                product_id=s.validated_data["product_id"],
                delta=s.validated_data["delta"],
                note=s.validated_data["note"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(
            InventoryTransactionSerializer(row).data, status=status.HTTP_201_CREATED
        )


class RestockView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["inventory"],
        request=RestockInputSerializer,
        responses={201: InventoryTransactionSerializer},
    )
    def post(self, request):
        s = RestockInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            row = restock(
                product_id=s.validated_data["product_id"],
                quantity=s.validated_data["quantity"],
                note=s.validated_data["note"],
                user=request.user,
            )
        except EngineError as exc:
            return engine_error_response(exc)

        return Response(
            InventoryTransactionSerializer(row).data, status=status.HTTP_201_CREATED
        )


class LedgerCheckView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["inventory"], responses=LedgerCheckSerializer)
    def get(self, request, product_id):
        try:
            product = get_product(product_id)
        except EngineError as exc:
            return engine_error_response(exc)

        check = verify_ledger(product)
        return Response(
            LedgerCheckSerializer(
                {
                    "product_id": check.product_id,
                    "opening_stock": check.opening_stock,
                    "replayed_stock": check.replayed_stock,
                    "live_stock": check.live_stock,
                    "row_count": check.row_count,
                    "broken_at_position": check.broken_at_position,
                    "is_consistent": check.is_consistent,
                }
            ).data,
            status=status.HTTP_200_OK,
        )


class LowStockAlertView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["inventory"], responses=ProductStockSerializer(many=True))
    def get(self, request):
        """
        Sellable products at or below their min_stock_limit.
        """
        qs = (
            Product.objects.sellable()
            .filter(stock_quantity__lte=F("min_stock_limit"))
            .order_by("name")
        )
        data = ProductStockSerializer(qs, many=True).data
        return Response({"count": len(data), "results": data})

# products/api/serializers.py

from rest_framework import serializers

from products.models import InventoryTransaction, Product


class InventoryTransactionSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = InventoryTransaction
        fields = [
            "id",
            "product",
            "product_name",
            "type",
            "position",
            "quantity",
            "stock_before",
            "stock_after",
            "reference_type",
            "reference_id",
            "notes",
            "performed_by",
            "created_at",
        ]
        read_only_fields = fields


class ProductStockSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "unit",
            "sale_price",
            "stock_quantity",
            "min_stock_limit",
            "is_low_stock",
        ]
        read_only_fields = fields


class StockAdjustmentInputSerializer(serializers.Serializer):
    """
    delta: signed, non-zero. Negative removes stock.
    """

    product_id = serializers.UUIDField()
    delta = serializers.DecimalField(max_digits=12, decimal_places=2)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class RestockInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class LedgerCheckSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    opening_stock = serializers.DecimalField(max_digits=12, decimal_places=2)
    replayed_stock = serializers.DecimalField(max_digits=12, decimal_places=2)
    live_stock = serializers.DecimalField(max_digits=12, decimal_places=2)
    row_count = serializers.IntegerField()
    broken_at_position = serializers.IntegerField(allow_null=True)
    is_consistent = serializers.BooleanField()

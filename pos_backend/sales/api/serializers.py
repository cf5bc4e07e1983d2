# sales/api/serializers.py

"""
Read serializers render persisted state only; every money figure comes from
the frozen snapshot columns, never from the live catalog.

Command serializers (*InputSerializer) validate request shape and touch no
database rows. Business rules live in sales.services.
"""

from rest_framework import serializers

from sales.models import Payment, ReturnItem, Sale, SaleItem, SaleReturn
from sales.services import return_service


# ======================================================
# READ
# ======================================================


class SaleItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = SaleItem
        fields = [
            "id",
            "position",
            "product",
            "product_name_snapshot",
            "category_snapshot",
            "unit_snapshot",
            "base_unit_price",
            "custom_unit_price",
            "purchase_price_snapshot",
            "quantity",
            "base_total",
            "custom_total",
            "discount_amount",
            "line_total",
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ["id", "method", "amount", "debt", "note", "received_by", "created_at"]
        read_only_fields = fields


class ReturnItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReturnItem
        fields = ["id", "sale_item", "quantity", "refund_unit_price", "refund_total", "reason"]
        read_only_fields = fields


class SaleReturnSerializer(serializers.ModelSerializer):
    items = ReturnItemSerializer(many=True, read_only=True)
    sale_number = serializers.CharField(source="sale.sale_number", read_only=True)

    class Meta:
        model = SaleReturn
        fields = [
            "id",
            "return_number",
            "sale",
            "sale_number",
            "status",
            "refund_amount",
            "reason",
            "notes",
            "items",
            "created_by",
            "created_at",
            "decided_by",
            "decided_at",
            "decision_note",
            "debt_credit_amount",
            "debt_credited_at",
        ]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    items = SaleItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    returns = SaleReturnSerializer(many=True, read_only=True)
    debt = serializers.SerializerMethodField()
    is_fully_returned = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = [
            "id",
            "sale_number",
            "status",
            "subtotal",
            "total_discount",
            "grand_total",
            "gross_profit",
            "net_profit",
            "notes",
            "items",
            "payments",
            "debt",
            "returns",
            "is_fully_returned",
            "created_by",
            "created_at",
            "updated_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
        ]
        read_only_fields = fields

    def get_is_fully_returned(self, obj) -> bool:
        # Only a sale with an approved return can be fully returned.
        if obj.status != Sale.Status.RETURNED:
            return False
        return return_service.is_fully_returned(obj)

    def get_debt(self, obj):
        debt = getattr(obj, "debt", None)
        if debt is None:
            return None
        return {
            "id": str(debt.pk),
            "status": debt.status,
            "original_amount": str(debt.original_amount),
            "remaining_amount": str(debt.remaining_amount),
        }


# ======================================================
# COMMANDS
# ======================================================


class SaleLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)
    custom_unit_price = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    discount_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )


class SaleCreateInputSerializer(serializers.Serializer):
    items = SaleLineInputSerializer(many=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value


class DraftLineUpdateSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    custom_unit_price = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    discount_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )


class SaleUpdateInputSerializer(serializers.Serializer):
    lines = DraftLineUpdateSerializer(many=True, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TenderInputSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=Payment.Method.choices)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class DebtorInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=32)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class SaleCompleteInputSerializer(serializers.Serializer):
    tenders = TenderInputSerializer(many=True)
    debtor = DebtorInputSerializer(required=False, allow_null=True)


class SaleCancelInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ReturnLineInputSerializer(serializers.Serializer):
    sale_item_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ReturnCreateInputSerializer(serializers.Serializer):
    items = ReturnLineInputSerializer(many=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value


class ReturnRejectInputSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, default="")

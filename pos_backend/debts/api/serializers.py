# debts/api/serializers.py

from rest_framework import serializers

from debts.models import Debt
from sales.api.serializers import PaymentSerializer
from sales.models import Payment


class DebtSerializer(serializers.ModelSerializer):
    sale_number = serializers.CharField(source="sale.sale_number", read_only=True)
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Debt
        fields = [
            "id",
            "sale",
            "sale_number",
            "debtor_name",
            "debtor_phone",
            "original_amount",
            "remaining_amount",
            "paid_amount",
            "status",
            "due_date",
            "notes",
            "payments",
            "created_by",
            "created_at",
            "updated_at",
            "cancelled_at",
            "cancellation_reason",
        ]
        read_only_fields = fields


class DebtPaymentInputSerializer(serializers.Serializer):
    """
    Collection against an open debt. DEBT is not a collection method.
    """

    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    method = serializers.ChoiceField(
        choices=[(Payment.Method.CASH, "Cash"), (Payment.Method.CARD, "Card")]
    )
    note = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")


class DebtCancelInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ReturnCreditInputSerializer(serializers.Serializer):
    return_id = serializers.UUIDField()

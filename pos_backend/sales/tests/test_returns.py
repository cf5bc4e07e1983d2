# sales/tests/test_returns.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from audit.models import AuditLog
from core.exceptions import InvalidInputError, InvalidStateError, NotFoundError, OverReturnError
from products.models import InventoryTransaction, Product
from sales.models import ReturnItem, Sale, SaleReturn
from sales.services.return_service import (
    approve_return,
    create_return,
    is_fully_returned,
    reject_return,
    returned_quantity,
)
from sales.services.sale_service import complete_sale
from sales.tests.helpers import draft_sale, make_product, make_user


class ReturnTests(TestCase):
    """
    GUARANTEES:
    - refunds are priced from the frozen sale line, never the live catalog
    - approved returns never exceed what was sold, per line
    - approval restores stock through the ledger and flags the sale RETURNED
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product()
        self.sale = draft_sale(self.user, (self.product, 3))
        complete_sale(
            sale_id=self.sale.pk,
            tenders=[{"method": "CASH", "amount": "3000"}],
            user=self.user,
        )
        self.item = self.sale.items.get()

    def _return(self, qty, **kwargs):
        return create_return(
            sale_id=self.sale.pk,
            items=[{"sale_item_id": self.item.pk, "quantity": qty}],
            user=self.user,
            **kwargs,
        )

    # =====================================================
    # CREATE
    # =====================================================

    def test_refund_uses_sold_price_after_catalog_change(self):
        Product.objects.filter(pk=self.product.pk).update(sale_price=Decimal("1500.00"))

        sale_return = self._return(1, reason="defective")

        self.assertEqual(sale_return.status, SaleReturn.Status.PENDING)
        self.assertEqual(sale_return.refund_amount, Decimal("1000.00"))
        self.assertEqual(sale_return.reason, "defective")
        self.assertTrue(sale_return.return_number.startswith("RET-"))

    def test_pending_return_moves_nothing(self):
        self._return(1)

        self.product.refresh_from_db()
        self.sale.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, Decimal("7.00"))
        self.assertEqual(self.sale.status, Sale.Status.COMPLETED)

    def test_cannot_return_more_than_sold(self):
        with self.assertRaises(OverReturnError) as ctx:
            self._return(4)

        self.assertEqual(ctx.exception.context["returnable"], "3.00")
        self.assertFalse(SaleReturn.objects.exists())

    def test_draft_sale_cannot_be_returned(self):
        draft = draft_sale(self.user, (self.product, 1))

        with self.assertRaises(InvalidStateError):
            create_return(
                sale_id=draft.pk,
                items=[{"sale_item_id": draft.items.get().pk, "quantity": 1}],
                user=self.user,
            )

    def test_item_from_another_sale_is_not_found(self):
        with self.assertRaises(NotFoundError):
            create_return(
                sale_id=self.sale.pk,
                items=[{"sale_item_id": uuid.uuid4(), "quantity": 1}],
                user=self.user,
            )

    def test_empty_or_zero_return_is_invalid(self):
        with self.assertRaises(InvalidInputError):
            create_return(sale_id=self.sale.pk, items=[], user=self.user)

        with self.assertRaises(InvalidInputError):
            self._return(0)

    def test_duplicate_lines_are_merged(self):
        sale_return = create_return(
            sale_id=self.sale.pk,
            items=[
                {"sale_item_id": self.item.pk, "quantity": 1},
                {"sale_item_id": str(self.item.pk), "quantity": 1},
            ],
            user=self.user,
        )

        line = sale_return.items.get()
        self.assertEqual(line.quantity, Decimal("2.00"))
        self.assertEqual(sale_return.refund_amount, Decimal("2000.00"))

    def test_line_discount_is_not_deducted_from_refund(self):
        sale = draft_sale(self.user, (self.product, 2, None, "200.00"))
        complete_sale(
            sale_id=sale.pk,
            tenders=[{"method": "CASH", "amount": "1800"}],
            user=self.user,
        )

        sale_return = create_return(
            sale_id=sale.pk,
            items=[{"sale_item_id": sale.items.get().pk, "quantity": 1}],
            user=self.user,
        )
        self.assertEqual(sale_return.refund_amount, Decimal("1000.00"))

    # =====================================================
    # APPROVE / REJECT
    # =====================================================

    def test_approve_restores_stock_and_flags_sale(self):
        sale_return = self._return(1)

        with self.captureOnCommitCallbacks(execute=True):
            approve_return(return_id=sale_return.pk, user=self.user)

        sale_return.refresh_from_db()
        self.sale.refresh_from_db()
        self.product.refresh_from_db()

        self.assertEqual(sale_return.status, SaleReturn.Status.APPROVED)
        self.assertEqual(sale_return.decided_by, self.user)
        self.assertEqual(self.sale.status, Sale.Status.RETURNED)
        self.assertEqual(self.product.stock_quantity, Decimal("8.00"))

        row = InventoryTransaction.objects.get(type=InventoryTransaction.Type.RETURN)
        self.assertEqual(row.reference_type, InventoryTransaction.ReferenceType.RETURN)
        self.assertEqual(row.reference_id, sale_return.pk)

        log = AuditLog.objects.get(action=AuditLog.Action.RETURN_APPROVED)
        self.assertEqual(log.after_snapshot["sale_status"], Sale.Status.RETURNED)

    def test_returned_sale_accepts_further_partial_returns(self):
        approve_return(return_id=self._return(1).pk, user=self.user)
        approve_return(return_id=self._return(2).pk, user=self.user)

        self.assertEqual(returned_quantity(sale_item=self.item), Decimal("3.00"))
        self.sale.refresh_from_db()
        self.assertTrue(is_fully_returned(self.sale))

        with self.assertRaises(OverReturnError):
            self._return(1)

    def test_overlapping_pending_returns_are_rechecked_on_approval(self):
        first = self._return(2)
        second = self._return(2)

        approve_return(return_id=first.pk, user=self.user)

        with self.assertRaises(OverReturnError):
            approve_return(return_id=second.pk, user=self.user)

        second.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(second.status, SaleReturn.Status.PENDING)
        self.assertEqual(self.product.stock_quantity, Decimal("9.00"))

    def test_reject_has_no_side_effects(self):
        sale_return = self._return(1)

        reject_return(return_id=sale_return.pk, note="no receipt", user=self.user)

        sale_return.refresh_from_db()
        self.sale.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(sale_return.status, SaleReturn.Status.REJECTED)
        self.assertEqual(sale_return.decision_note, "no receipt")
        self.assertEqual(self.sale.status, Sale.Status.COMPLETED)
        self.assertEqual(self.product.stock_quantity, Decimal("7.00"))

    def test_decided_return_cannot_be_decided_again(self):
        sale_return = self._return(1)
        reject_return(return_id=sale_return.pk, user=self.user)

        with self.assertRaises(InvalidStateError):
            approve_return(return_id=sale_return.pk, user=self.user)

        with self.assertRaises(InvalidStateError):
            reject_return(return_id=sale_return.pk, user=self.user)

    def test_rejected_quantity_stays_returnable(self):
        reject_return(return_id=self._return(3).pk, user=self.user)

        sale_return = self._return(3)
        self.assertEqual(sale_return.refund_amount, Decimal("3000.00"))

    def test_approved_return_is_frozen(self):
        sale_return = self._return(1)
        approve_return(return_id=sale_return.pk, user=self.user)
        sale_return.refresh_from_db()

        sale_return.refund_amount = Decimal("1.00")
        with self.assertRaises(ValidationError):
            sale_return.save()

        line = ReturnItem.objects.get(sale_return=sale_return)
        with self.assertRaises(ValidationError):
            line.delete()

# sales/tests/test_sale_engine.py

import uuid
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from audit.models import AuditLog
from core.exceptions import (
    InsufficientStockError,
    InvalidAmountError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    UnbalancedPaymentError,
)
from debts.models import Debt
from products.models import InventoryTransaction, Product
from products.services import stock_ledger
from sales.models import Payment, Sale
from sales.services.sale_service import (
    cancel_sale,
    complete_sale,
    create_draft_sale,
    update_draft_sale,
)
from sales.tests.helpers import draft_sale, make_product, make_user

DEBTOR = {"name": "Ali", "phone": "+998901234567"}


class DraftSaleTests(TestCase):
    """
    GUARANTEES:
    - a draft freezes catalog values per line
    - drafting moves no stock and records no money
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product(category="Power tools")

    def test_draft_snapshots_catalog_values(self):
        sale = draft_sale(self.user, (self.product, 3))

        item = sale.items.get()
        self.assertEqual(sale.status, Sale.Status.DRAFT)
        self.assertEqual(item.product_name_snapshot, "Drill")
        self.assertEqual(item.category_snapshot, "Power tools")
        self.assertEqual(item.unit_snapshot, Product.Unit.PIECE)
        self.assertEqual(item.base_unit_price, Decimal("1000.00"))
        self.assertEqual(item.custom_unit_price, Decimal("1000.00"))
        self.assertEqual(item.purchase_price_snapshot, Decimal("600.00"))
        self.assertEqual(item.base_total, Decimal("3000.00"))

        self.assertEqual(sale.grand_total, Decimal("3000.00"))
        self.assertEqual(sale.gross_profit, Decimal("0.00"))

    def test_draft_does_not_touch_stock(self):
        draft_sale(self.user, (self.product, 3))

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, Decimal("10.00"))
        self.assertFalse(InventoryTransaction.objects.exists())
        self.assertFalse(Payment.objects.exists())

    def test_sale_numbers_are_sequential_per_day(self):
        first = draft_sale(self.user, (self.product, 1))
        second = draft_sale(self.user, (self.product, 1))

        today = timezone.localdate().strftime("%Y%m%d")
        self.assertEqual(first.sale_number, f"SALE-{today}-0001")
        self.assertEqual(second.sale_number, f"SALE-{today}-0002")

    def test_empty_item_list_is_rejected(self):
        with self.assertRaises(InvalidInputError):
            create_draft_sale(user=self.user, items=[])

    def test_unknown_or_deleted_product_is_not_found(self):
        with self.assertRaises(NotFoundError):
            create_draft_sale(
                user=self.user, items=[{"product_id": uuid.uuid4(), "quantity": 1}]
            )

        self.product.soft_delete()
        with self.assertRaises(NotFoundError):
            draft_sale(self.user, (self.product, 1))

    def test_non_positive_quantity_is_rejected(self):
        with self.assertRaises(InvalidInputError):
            draft_sale(self.user, (self.product, 0))

    def test_cashier_cannot_go_below_price_floor(self):
        with self.assertRaises(InvalidInputError) as ctx:
            draft_sale(self.user, (self.product, 1, "400.00"))

        self.assertEqual(ctx.exception.context["minimum_price"], "500.00")

    def test_staff_may_sell_below_price_floor(self):
        manager = make_user("manager", is_staff=True)

        sale = draft_sale(manager, (self.product, 1, "400.00"))
        self.assertEqual(sale.grand_total, Decimal("400.00"))

    def test_discount_cannot_exceed_line_total(self):
        with self.assertRaises(InvalidInputError):
            draft_sale(self.user, (self.product, 1, None, "1000.01"))

    def test_totals_and_profit_formulae(self):
        cable = make_product("Cable", price="50.00", cost="30.00")
        sale = draft_sale(
            self.user,
            (self.product, 3, None, "100.00"),
            (cable, 2),
        )

        complete_sale(
            sale_id=sale.pk,
            tenders=[{"method": "CARD", "amount": "3000.00"}],
            user=self.user,
        )
        sale.refresh_from_db()

        self.assertEqual(sale.subtotal, Decimal("3100.00"))
        self.assertEqual(sale.total_discount, Decimal("100.00"))
        self.assertEqual(sale.grand_total, Decimal("3000.00"))
        # (3000 - 1800) + (100 - 60)
        self.assertEqual(sale.gross_profit, Decimal("1240.00"))
        self.assertEqual(sale.net_profit, Decimal("1140.00"))


class UpdateDraftSaleTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product()
        self.sale = draft_sale(self.user, (self.product, 2))
        self.item = self.sale.items.get()

    def test_reprice_and_discount_recompute_totals(self):
        sale = update_draft_sale(
            sale_id=self.sale.pk,
            lines=[
                {
                    "item_id": self.item.pk,
                    "custom_unit_price": "900.00",
                    "discount_amount": "50.00",
                }
            ],
            notes="regular customer",
            user=self.user,
        )

        self.item.refresh_from_db()
        self.assertEqual(self.item.custom_unit_price, Decimal("900.00"))
        self.assertEqual(self.item.base_unit_price, Decimal("1000.00"))
        self.assertEqual(sale.subtotal, Decimal("1800.00"))
        self.assertEqual(sale.grand_total, Decimal("1750.00"))
        self.assertEqual(sale.notes, "regular customer")

    def test_unknown_line_is_not_found(self):
        with self.assertRaises(NotFoundError):
            update_draft_sale(
                sale_id=self.sale.pk,
                lines=[{"item_id": uuid.uuid4(), "custom_unit_price": "900"}],
                user=self.user,
            )

    def test_completed_sale_cannot_be_edited(self):
        complete_sale(
            sale_id=self.sale.pk,
            tenders=[{"method": "CASH", "amount": "2000"}],
            user=self.user,
        )

        with self.assertRaises(InvalidStateError):
            update_draft_sale(sale_id=self.sale.pk, notes="late edit", user=self.user)


class CompleteSaleTests(TestCase):
    """
    GUARANTEES:
    - completion commits stock, payments, debt and status together
    - any failure leaves the draft and stock exactly as they were
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product()
        self.sale = draft_sale(self.user, (self.product, 3))

    def test_cash_and_debt_split(self):
        with self.captureOnCommitCallbacks(execute=True):
            sale = complete_sale(
                sale_id=self.sale.pk,
                tenders=[
                    {"method": "CASH", "amount": "2000"},
                    {"method": "DEBT", "amount": "1000"},
                ],
                debtor=DEBTOR,
                user=self.user,
            )

        self.assertEqual(sale.status, Sale.Status.COMPLETED)
        self.assertIsNotNone(sale.completed_at)
        self.assertEqual(sale.grand_total, Decimal("3000.00"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, Decimal("7.00"))

        row = InventoryTransaction.objects.get(product=self.product)
        self.assertEqual(row.type, InventoryTransaction.Type.SALE)
        self.assertEqual(row.reference_type, InventoryTransaction.ReferenceType.SALE)
        self.assertEqual(row.reference_id, sale.pk)

        payment = Payment.objects.get(sale=sale)
        self.assertEqual(payment.method, Payment.Method.CASH)
        self.assertEqual(payment.amount, Decimal("2000.00"))

        debt = Debt.objects.get(sale=sale)
        self.assertEqual(debt.debtor_name, "Ali")
        self.assertEqual(debt.debtor_phone, "+998901234567")
        self.assertEqual(debt.original_amount, Decimal("1000.00"))
        self.assertEqual(debt.remaining_amount, Decimal("1000.00"))
        self.assertEqual(debt.status, Debt.Status.PENDING)

        log = AuditLog.objects.get(action=AuditLog.Action.SALE_COMPLETED)
        self.assertEqual(log.entity_id, str(sale.pk))
        self.assertEqual(log.after_snapshot["debt_id"], str(debt.pk))
        self.assertEqual(log.before_snapshot["status"], Sale.Status.DRAFT)

    def test_unbalanced_tenders_leave_draft_untouched(self):
        with self.assertRaises(UnbalancedPaymentError) as ctx:
            complete_sale(
                sale_id=self.sale.pk,
                tenders=[{"method": "CASH", "amount": "2000"}],
                user=self.user,
            )

        self.assertEqual(ctx.exception.context["expected"], "3000.00")
        self.assertEqual(ctx.exception.context["tendered"], "2000.00")

        self.sale.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(self.sale.status, Sale.Status.DRAFT)
        self.assertEqual(self.product.stock_quantity, Decimal("10.00"))
        self.assertFalse(Payment.objects.exists())
        self.assertFalse(Debt.objects.exists())

    def test_overpayment_is_unbalanced_too(self):
        with self.assertRaises(UnbalancedPaymentError):
            complete_sale(
                sale_id=self.sale.pk,
                tenders=[{"method": "CASH", "amount": "3000.01"}],
                user=self.user,
            )

    def test_zero_tender_is_invalid_amount(self):
        with self.assertRaises(InvalidAmountError):
            complete_sale(
                sale_id=self.sale.pk,
                tenders=[
                    {"method": "CASH", "amount": "3000"},
                    {"method": "CARD", "amount": "0"},
                ],
                user=self.user,
            )

    def test_debt_requires_debtor_details(self):
        with self.assertRaises(InvalidInputError):
            complete_sale(
                sale_id=self.sale.pk,
                tenders=[{"method": "DEBT", "amount": "3000"}],
                debtor={"name": "Ali", "phone": ""},
                user=self.user,
            )

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.status, Sale.Status.DRAFT)

    def test_full_debt_sale(self):
        complete_sale(
            sale_id=self.sale.pk,
            tenders=[{"method": "DEBT", "amount": "3000"}],
            debtor=DEBTOR,
            user=self.user,
        )

        self.assertFalse(Payment.objects.filter(sale=self.sale).exists())
        self.assertEqual(Debt.objects.get(sale=self.sale).original_amount, Decimal("3000.00"))

    def test_insufficient_stock_rejects_whole_sale(self):
        other = make_product("Saw", price="100.00", stock="5.00")
        sale = draft_sale(self.user, (other, 1), (self.product, 11))

        with self.assertRaises(InsufficientStockError) as ctx:
            complete_sale(
                sale_id=sale.pk,
                tenders=[{"method": "CASH", "amount": "11100"}],
                user=self.user,
            )

        self.assertEqual(ctx.exception.product_id, self.product.pk)
        other.refresh_from_db()
        self.assertEqual(other.stock_quantity, Decimal("5.00"))
        self.assertFalse(InventoryTransaction.objects.exists())

    def test_failure_after_stock_check_rolls_everything_back(self):
        other = make_product("Saw", price="100.00", stock="5.00")
        sale = draft_sale(self.user, (self.product, 3), (other, 1))
        real_decrement = stock_ledger.decrement
        calls = []

        def failing_decrement(**kwargs):
            calls.append(kwargs["product_id"])
            if len(calls) == 2:
                raise RuntimeError("ledger write failed")
            return real_decrement(**kwargs)

        with mock.patch(
            "sales.services.sale_service.decrement", side_effect=failing_decrement
        ):
            with self.captureOnCommitCallbacks(execute=True):
                with self.assertRaises(RuntimeError):
                    complete_sale(
                        sale_id=sale.pk,
                        tenders=[
                            {"method": "CASH", "amount": "2000"},
                            {"method": "DEBT", "amount": "1100"},
                        ],
                        debtor=DEBTOR,
                        user=self.user,
                    )

        self.assertEqual(len(calls), 2)

        sale.refresh_from_db()
        self.product.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(sale.status, Sale.Status.DRAFT)
        self.assertIsNone(sale.completed_at)
        self.assertEqual(self.product.stock_quantity, Decimal("10.00"))
        self.assertEqual(other.stock_quantity, Decimal("5.00"))
        self.assertFalse(Payment.objects.filter(sale=sale).exists())
        self.assertFalse(Debt.objects.filter(sale=sale).exists())
        self.assertFalse(InventoryTransaction.objects.exists())
        self.assertFalse(
            AuditLog.objects.filter(action=AuditLog.Action.SALE_COMPLETED).exists()
        )

    def test_repeated_product_lines_are_checked_together(self):
        sale = draft_sale(self.user, (self.product, 6), (self.product, 6))

        with self.assertRaises(InsufficientStockError) as ctx:
            complete_sale(
                sale_id=sale.pk,
                tenders=[{"method": "CASH", "amount": "12000"}],
                user=self.user,
            )

        self.assertEqual(ctx.exception.context["requested"], "12.00")

    def test_completion_uses_snapshot_not_current_catalog_price(self):
        Product.objects.filter(pk=self.product.pk).update(sale_price=Decimal("1500.00"))

        sale = complete_sale(
            sale_id=self.sale.pk,
            tenders=[{"method": "CASH", "amount": "3000"}],
            user=self.user,
        )
        self.assertEqual(sale.grand_total, Decimal("3000.00"))

    def test_deleted_product_blocks_completion(self):
        self.product.soft_delete()

        with self.assertRaises(NotFoundError):
            complete_sale(
                sale_id=self.sale.pk,
                tenders=[{"method": "CASH", "amount": "3000"}],
                user=self.user,
            )

    def test_deactivated_product_blocks_completion(self):
        Product.objects.filter(pk=self.product.pk).update(is_active=False)

        with self.assertRaises(NotFoundError):
            complete_sale(
                sale_id=self.sale.pk,
                tenders=[{"method": "CASH", "amount": "3000"}],
                user=self.user,
            )

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.status, Sale.Status.DRAFT)
        self.assertFalse(InventoryTransaction.objects.exists())

    def test_second_completion_is_invalid_state(self):
        tenders = [{"method": "CASH", "amount": "3000"}]
        complete_sale(sale_id=self.sale.pk, tenders=tenders, user=self.user)

        with self.assertRaises(InvalidStateError):
            complete_sale(sale_id=self.sale.pk, tenders=tenders, user=self.user)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, Decimal("7.00"))

    def test_unknown_sale_is_not_found(self):
        with self.assertRaises(NotFoundError):
            complete_sale(
                sale_id=uuid.uuid4(),
                tenders=[{"method": "CASH", "amount": "1"}],
                user=self.user,
            )

    def test_completed_sale_is_immutable(self):
        complete_sale(
            sale_id=self.sale.pk,
            tenders=[{"method": "CASH", "amount": "3000"}],
            user=self.user,
        )
        sale = Sale.objects.get(pk=self.sale.pk)

        sale.grand_total = Decimal("1.00")
        with self.assertRaises(ValidationError):
            sale.save()

        item = sale.items.get()
        item.custom_unit_price = Decimal("1.00")
        with self.assertRaises(ValidationError):
            item.save()

    def test_payments_are_immutable(self):
        complete_sale(
            sale_id=self.sale.pk,
            tenders=[{"method": "CASH", "amount": "3000"}],
            user=self.user,
        )
        payment = Payment.objects.get(sale=self.sale)

        with self.assertRaises(ValidationError):
            payment.save()
        with self.assertRaises(ValidationError):
            payment.delete()


class CancelSaleTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product()
        self.sale = draft_sale(self.user, (self.product, 1))

    def test_cancel_draft(self):
        with self.captureOnCommitCallbacks(execute=True):
            sale = cancel_sale(sale_id=self.sale.pk, reason="customer left", user=self.user)

        self.assertEqual(sale.status, Sale.Status.CANCELLED)
        self.assertEqual(sale.cancellation_reason, "customer left")
        self.assertIsNotNone(sale.cancelled_at)
        self.assertTrue(
            AuditLog.objects.filter(
                action=AuditLog.Action.SALE_CANCELLED, entity_id=str(sale.pk)
            ).exists()
        )

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, Decimal("10.00"))

    def test_cancelled_sale_is_terminal(self):
        cancel_sale(sale_id=self.sale.pk, user=self.user)

        with self.assertRaises(InvalidStateError):
            cancel_sale(sale_id=self.sale.pk, user=self.user)

        with self.assertRaises(InvalidStateError):
            complete_sale(
                sale_id=self.sale.pk,
                tenders=[{"method": "CASH", "amount": "1000"}],
                user=self.user,
            )

    def test_completed_sale_cannot_be_cancelled(self):
        complete_sale(
            sale_id=self.sale.pk,
            tenders=[{"method": "CASH", "amount": "1000"}],
            user=self.user,
        )

        with self.assertRaises(InvalidStateError):
            cancel_sale(sale_id=self.sale.pk, user=self.user)

# debts/tests/test_debt_tracker.py

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from audit.models import AuditLog
from core.exceptions import (
    AlreadySettledError,
    DuplicateDebtError,
    InvalidAmountError,
    InvalidInputError,
    InvalidStateError,
    OverPaymentError,
)
from debts.models import Debt
from debts.services.debt_tracker import (
    apply_return_credit,
    cancel_debt,
    open_debt,
    record_payment,
)
from products.models import InventoryTransaction
from sales.models import Payment
from sales.services.payment_allocator import DebtorInfo
from sales.services.return_service import approve_return, create_return
from sales.services.sale_service import complete_sale
from sales.tests.helpers import draft_sale, make_product, make_user


class DebtTrackerTests(TestCase):
    """
    GUARANTEES:
    - 0 <= remaining_amount <= original_amount, remaining never grows
    - status follows the amounts: PENDING -> PARTIALLY_PAID -> PAID
    - PAID / CANCELLED debts accept nothing further
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product()
        self.sale = draft_sale(self.user, (self.product, 3))
        complete_sale(
            sale_id=self.sale.pk,
            tenders=[
                {"method": "CASH", "amount": "2000"},
                {"method": "DEBT", "amount": "1000"},
            ],
            debtor={
                "name": "Ali",
                "phone": "+998901234567",
                "due_date": date(2030, 1, 31),
                "notes": "pays on Fridays",
            },
            user=self.user,
        )
        self.debt = Debt.objects.get(sale=self.sale)

    def test_debt_keeps_due_date_and_notes(self):
        self.assertEqual(self.debt.due_date, date(2030, 1, 31))
        self.assertEqual(self.debt.notes, "pays on Fridays")

    # =====================================================
    # PAYMENTS
    # =====================================================

    def test_partial_then_full_payment(self):
        debt = record_payment(debt_id=self.debt.pk, amount="400", method="CASH", user=self.user)
        self.assertEqual(debt.status, Debt.Status.PARTIALLY_PAID)
        self.assertEqual(debt.remaining_amount, Decimal("600.00"))
        self.assertEqual(debt.paid_amount, Decimal("400.00"))

        with self.captureOnCommitCallbacks(execute=True):
            debt = record_payment(
                debt_id=self.debt.pk, amount="600", method="card", note="settled", user=self.user
            )

        self.assertEqual(debt.status, Debt.Status.PAID)
        self.assertEqual(debt.remaining_amount, Decimal("0.00"))
        self.assertIn("settled", debt.notes)

        collections = Payment.objects.filter(debt=self.debt)
        self.assertCountEqual(
            [(p.method, p.amount) for p in collections],
            [(Payment.Method.CASH, Decimal("400.00")), (Payment.Method.CARD, Decimal("600.00"))],
        )
        self.assertTrue(all(p.sale_id == self.sale.pk for p in collections))

        log = AuditLog.objects.get(action=AuditLog.Action.DEBT_PAYMENT)
        self.assertEqual(log.after_snapshot["status"], Debt.Status.PAID)

    def test_overpayment_is_rejected(self):
        with self.assertRaises(OverPaymentError):
            record_payment(debt_id=self.debt.pk, amount="1000.01", method="CASH")

        self.debt.refresh_from_db()
        self.assertEqual(self.debt.remaining_amount, Decimal("1000.00"))
        self.assertFalse(Payment.objects.filter(debt=self.debt).exists())

    def test_non_positive_payment_is_invalid_amount(self):
        with self.assertRaises(InvalidAmountError):
            record_payment(debt_id=self.debt.pk, amount="0", method="CASH")

        with self.assertRaises(InvalidAmountError):
            record_payment(debt_id=self.debt.pk, amount="-5", method="CASH")

    def test_debt_is_not_a_collection_method(self):
        with self.assertRaises(InvalidInputError):
            record_payment(debt_id=self.debt.pk, amount="100", method="DEBT")

    def test_paid_debt_accepts_nothing(self):
        record_payment(debt_id=self.debt.pk, amount="1000", method="CASH")

        with self.assertRaises(AlreadySettledError):
            record_payment(debt_id=self.debt.pk, amount="1", method="CASH")

        with self.assertRaises(AlreadySettledError):
            cancel_debt(debt_id=self.debt.pk)

    # =====================================================
    # CANCEL
    # =====================================================

    def test_cancel_writes_off_without_touching_stock(self):
        rows_before = InventoryTransaction.objects.count()

        debt = cancel_debt(debt_id=self.debt.pk, reason="customer moved away", user=self.user)

        self.assertEqual(debt.status, Debt.Status.CANCELLED)
        self.assertEqual(debt.remaining_amount, Decimal("1000.00"))
        self.assertEqual(debt.cancellation_reason, "customer moved away")
        self.assertEqual(InventoryTransaction.objects.count(), rows_before)

        with self.assertRaises(AlreadySettledError):
            record_payment(debt_id=self.debt.pk, amount="100", method="CASH")

    # =====================================================
    # ONE DEBT PER SALE / MODEL GUARDS
    # =====================================================

    def test_second_debt_for_sale_is_rejected(self):
        with self.assertRaises(DuplicateDebtError):
            open_debt(
                sale=self.sale,
                amount="10",
                debtor=DebtorInfo(name="Ali", phone="+998901234567"),
            )

    def test_remaining_amount_cannot_increase(self):
        record_payment(debt_id=self.debt.pk, amount="400", method="CASH")
        debt = Debt.objects.get(pk=self.debt.pk)

        debt.remaining_amount = Decimal("900.00")
        with self.assertRaises(ValidationError):
            debt.save()

    def test_status_cannot_be_chosen_by_hand(self):
        debt = Debt.objects.get(pk=self.debt.pk)
        debt.status = Debt.Status.PAID
        with self.assertRaises(ValidationError):
            debt.save()

    # =====================================================
    # RETURN CREDIT
    # =====================================================

    def _approved_return(self, qty):
        sale_return = create_return(
            sale_id=self.sale.pk,
            items=[{"sale_item_id": self.sale.items.get().pk, "quantity": qty}],
            user=self.user,
        )
        return approve_return(return_id=sale_return.pk, user=self.user)

    def test_return_credit_reduces_debt(self):
        sale_return = self._approved_return(1)

        with self.captureOnCommitCallbacks(execute=True):
            debt = apply_return_credit(
                debt_id=self.debt.pk, return_id=sale_return.pk, user=self.user
            )

        # refund 1000 clears the whole 1000 debt
        self.assertEqual(debt.remaining_amount, Decimal("0.00"))
        self.assertEqual(debt.status, Debt.Status.PAID)

        sale_return.refresh_from_db()
        self.assertEqual(sale_return.debt_credit_amount, Decimal("1000.00"))
        self.assertIsNotNone(sale_return.debt_credited_at)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.Action.DEBT_REDUCED).exists())

    def test_return_credit_is_capped_at_remaining(self):
        record_payment(debt_id=self.debt.pk, amount="700", method="CASH")
        sale_return = self._approved_return(1)

        debt = apply_return_credit(debt_id=self.debt.pk, return_id=sale_return.pk)

        sale_return.refresh_from_db()
        self.assertEqual(debt.status, Debt.Status.PAID)
        self.assertEqual(sale_return.debt_credit_amount, Decimal("300.00"))

    def test_return_credit_applies_once(self):
        record_payment(debt_id=self.debt.pk, amount="100", method="CASH")
        approved = self._approved_return(Decimal("0.5"))

        apply_return_credit(debt_id=self.debt.pk, return_id=approved.pk)

        with self.assertRaises(InvalidStateError):
            apply_return_credit(debt_id=self.debt.pk, return_id=approved.pk)

    def test_pending_return_cannot_be_credited(self):
        pending = create_return(
            sale_id=self.sale.pk,
            items=[{"sale_item_id": self.sale.items.get().pk, "quantity": 1}],
            user=self.user,
        )

        with self.assertRaises(InvalidStateError):
            apply_return_credit(debt_id=self.debt.pk, return_id=pending.pk)

    def test_return_from_another_sale_is_rejected(self):
        other = draft_sale(self.user, (self.product, 1))
        complete_sale(
            sale_id=other.pk,
            tenders=[{"method": "CASH", "amount": "1000"}],
            user=self.user,
        )
        foreign = create_return(
            sale_id=other.pk,
            items=[{"sale_item_id": other.items.get().pk, "quantity": 1}],
            user=self.user,
        )
        approve_return(return_id=foreign.pk, user=self.user)

        with self.assertRaises(InvalidInputError):
            apply_return_credit(debt_id=self.debt.pk, return_id=foreign.pk)

    def test_approving_a_return_alone_leaves_debt_unchanged(self):
        self._approved_return(1)

        self.debt.refresh_from_db()
        self.assertEqual(self.debt.remaining_amount, Decimal("1000.00"))
        self.assertEqual(self.debt.status, Debt.Status.PENDING)

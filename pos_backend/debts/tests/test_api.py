# debts/tests/test_api.py

import uuid

from django.test import TestCase
from rest_framework.test import APIClient

from debts.models import Debt
from sales.services.return_service import approve_return, create_return
from sales.services.sale_service import complete_sale
from sales.tests.helpers import draft_sale, make_product, make_user


class DebtApiTests(TestCase):
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
            debtor={"name": "Ali", "phone": "+998901234567"},
            user=self.user,
        )
        self.debt = Debt.objects.get(sale=self.sale)

        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def _pay(self, amount, method="CASH"):
        return self.client.post(
            f"/api/debts/{self.debt.pk}/payments/",
            {"amount": amount, "method": method},
            format="json",
        )

    def test_get_debt(self):
        res = self.client.get(f"/api/debts/{self.debt.pk}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["debtor_name"], "Ali")
        self.assertEqual(res.data["sale_number"], self.sale.sale_number)
        self.assertEqual(res.data["remaining_amount"], "1000.00")

    def test_open_debts_by_phone(self):
        res = self.client.get("/api/debts/", {"phone": "+998901234567"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual([d["id"] for d in res.data], [str(self.debt.pk)])

        res = self.client.get("/api/debts/", {"phone": "+10000000000"})
        self.assertEqual(res.data, [])

    def test_partial_payment(self):
        res = self._pay("250.00")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["status"], Debt.Status.PARTIALLY_PAID)
        self.assertEqual(res.data["remaining_amount"], "750.00")
        self.assertEqual(len(res.data["payments"]), 1)

    def test_over_payment_is_400(self):
        res = self._pay("1500.00")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "OVER_PAYMENT")

    def test_debt_method_is_rejected_by_request_validation(self):
        res = self._pay("10.00", method="DEBT")
        self.assertEqual(res.status_code, 400)

    def test_settled_debt_is_409(self):
        self._pay("1000.00")

        res = self._pay("1.00")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "ALREADY_SETTLED")

    def test_cancel(self):
        res = self.client.post(
            f"/api/debts/{self.debt.pk}/cancel/", {"reason": "write-off"}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Debt.Status.CANCELLED)
        self.assertEqual(res.data["cancellation_reason"], "write-off")

    def test_return_credit(self):
        sale_return = create_return(
            sale_id=self.sale.pk,
            items=[{"sale_item_id": self.sale.items.get().pk, "quantity": "0.5"}],
            user=self.user,
        )
        approve_return(return_id=sale_return.pk, user=self.user)

        res = self.client.post(
            f"/api/debts/{self.debt.pk}/return-credits/",
            {"return_id": str(sale_return.pk)},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["remaining_amount"], "500.00")
        self.assertEqual(res.data["status"], Debt.Status.PARTIALLY_PAID)

    def test_unknown_debt_is_404(self):
        res = self.client.get(f"/api/debts/{uuid.uuid4()}/")
        self.assertEqual(res.status_code, 404)

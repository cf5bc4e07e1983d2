# sales/services/pricing.py

"""
PRICING SNAPSHOT

Freezes catalog values into a line at draft time and computes sale totals
from frozen values only.

Rules:
- base_unit_price / purchase_price / category / unit come from the catalog
  exactly once, when the line is snapshotted
- custom_unit_price defaults to base_unit_price
- 0 <= discount_amount <= custom_total
- cashiers without staff rights cannot go below
  CUSTOM_PRICE_FLOOR_RATIO * base_unit_price

Totals:
    subtotal       = sum(custom_total)
    total_discount = sum(discount_amount)
    grand_total    = subtotal - total_discount
    gross_profit   = sum(custom_total - purchase_price * quantity)
    net_profit     = gross_profit - total_discount
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

from core.exceptions import InvalidInputError
from core.money import ZERO, money, quantity as to_quantity
from products.services.catalog import category_name


@dataclass(frozen=True)
class LineSnapshot:
    product_id: object
    product_name: str
    category_name: str
    unit: str
    base_unit_price: Decimal
    custom_unit_price: Decimal
    purchase_price: Decimal
    quantity: Decimal
    discount_amount: Decimal

    @property
    def base_total(self) -> Decimal:
        return money(self.base_unit_price * self.quantity)

    @property
    def custom_total(self) -> Decimal:
        return money(self.custom_unit_price * self.quantity)

    @property
    def cost_total(self) -> Decimal:
        return self.purchase_price * self.quantity

    @property
    def line_total(self) -> Decimal:
        return self.custom_total - self.discount_amount


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    total_discount: Decimal
    grand_total: Decimal
    gross_profit: Decimal
    net_profit: Decimal


def _price_floor_ratio() -> Decimal:
    return Decimal(str(getattr(settings, "CUSTOM_PRICE_FLOOR_RATIO", "0.5")))


def validate_line_pricing(
    *,
    base_unit_price: Decimal,
    custom_unit_price: Decimal,
    quantity: Decimal,
    discount_amount: Decimal,
    user=None,
    product_name: str = "",
):
    if custom_unit_price < ZERO:
        raise InvalidInputError(
            f"Price for '{product_name}' cannot be negative",
            custom_unit_price=str(custom_unit_price),
        )

    if not getattr(user, "is_staff", False):
        floor = money(base_unit_price * _price_floor_ratio())
        if custom_unit_price < floor:
            raise InvalidInputError(
                f"Price for '{product_name}' cannot go below {floor}",
                custom_unit_price=str(custom_unit_price),
                minimum_price=str(floor),
            )

    custom_total = money(custom_unit_price * quantity)
    if discount_amount < ZERO or discount_amount > custom_total:
        raise InvalidInputError(
            f"Discount for '{product_name}' must be between 0 and {custom_total}",
            discount_amount=str(discount_amount),
            line_total=str(custom_total),
        )


def snapshot_line(
    *,
    product,
    quantity,
    custom_unit_price=None,
    discount_amount=None,
    user=None,
) -> LineSnapshot:
    qty = to_quantity(quantity)
    if qty <= ZERO:
        raise InvalidInputError(
            f"Quantity for '{product.name}' must be greater than zero",
            product_id=str(product.pk),
            quantity=str(qty),
        )

    base_price = money(product.sale_price)
    custom_price = base_price if custom_unit_price is None else money(
        custom_unit_price, field="custom_unit_price"
    )
    discount = money(discount_amount, field="discount_amount")

    validate_line_pricing(
        base_unit_price=base_price,
        custom_unit_price=custom_price,
        quantity=qty,
        discount_amount=discount,
        user=user,
        product_name=product.name,
    )

    return LineSnapshot(
        product_id=product.pk,
        product_name=product.name,
        category_name=category_name(product),
        unit=product.unit,
        base_unit_price=base_price,
        custom_unit_price=custom_price,
        purchase_price=money(product.purchase_price),
        quantity=qty,
        discount_amount=discount,
    )


def compute_totals(lines) -> SaleTotals:
    """
    lines: LineSnapshot or SaleItem instances (same attribute names).
    """
    subtotal = ZERO
    total_discount = ZERO
    gross_profit = ZERO

    for line in lines:
        subtotal += money(line.custom_total)
        total_discount += money(line.discount_amount)
        gross_profit += Decimal(line.custom_total) - Decimal(line.cost_total)

    subtotal = money(subtotal)
    total_discount = money(total_discount)
    gross_profit = money(gross_profit)

    return SaleTotals(
        subtotal=subtotal,
        total_discount=total_discount,
        grand_total=subtotal - total_discount,
        gross_profit=gross_profit,
        net_profit=gross_profit - total_discount,
    )

# sales/tests/helpers.py

from decimal import Decimal

from django.contrib.auth import get_user_model

from products.models import Category, Product
from sales.services.sale_service import create_draft_sale

User = get_user_model()


def make_user(username="cashier", *, is_staff=False):
    return User.objects.create_user(username=username, password="pass", is_staff=is_staff)


def make_product(name="Drill", *, price="1000.00", cost="600.00", stock="10.00", category=None):
    if category is not None and not isinstance(category, Category):
        category, _ = Category.objects.get_or_create(name=category)

    return Product.objects.create(
        name=name,
        category=category,
        sale_price=Decimal(price),
        purchase_price=Decimal(cost),
        stock_quantity=Decimal(stock),
    )


def draft_sale(user, *lines, notes=""):
    """
    lines: (product, quantity) or (product, quantity, custom_unit_price, discount_amount)
    """
    items = []
    for line in lines:
        product, qty, *rest = line
        item = {"product_id": product.pk, "quantity": qty}
        if rest:
            item["custom_unit_price"] = rest[0]
        if len(rest) > 1:
            item["discount_amount"] = rest[1]
        items.append(item)

    return create_draft_sale(user=user, items=items, notes=notes)

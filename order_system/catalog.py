"""
Product catalog - fixed, read-only list of products for sale.

Product ids match the inventory ledger's seed stock (1-5).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from order_system.domain.value_objects import Money


class Product(BaseModel):
    """Immutable product record."""

    id: int
    name: str
    price: Money
    description: str = ""

    class Config:
        frozen = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Product name cannot be null or empty")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Money) -> Money:
        if v.is_negative:
            raise ValueError("Product price cannot be negative")
        return v


def _product(id: int, name: str, price: str, description: str) -> Product:
    return Product(id=id, name=name, price=Money(amount=Decimal(price)), description=description)


PRODUCTS: tuple[Product, ...] = (
    _product(1, "Laptop Lenovo ThinkPad", "899.99", '14" business laptop, Intel i5, 16GB RAM'),
    _product(2, "Smartphone Samsung Galaxy", "599.00", '6.1" AMOLED display, 128GB, 5G'),
    _product(3, "Wireless Headphones Sony", "179.99", "Noise cancelling, 30h battery, Bluetooth 5.0"),
    _product(4, "Book 'Clean Code'", "45.50", "Robert C. Martin, a programming classic"),
    _product(5, "Coffee Machine DeLonghi", "299.00", "Automatic espresso machine with built-in grinder"),
)

_BY_ID = {product.id: product for product in PRODUCTS}


def all_products() -> tuple[Product, ...]:
    return PRODUCTS


def get_product(product_id: int) -> Optional[Product]:
    """Product by id, or None."""
    return _BY_ID.get(product_id)


def product_exists(product_id: int) -> bool:
    return product_id in _BY_ID

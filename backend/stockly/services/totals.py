# Overview: Derived money fields for invoices, estimates, and their line items.

"""
Document totals

Money is stored as float on the models and in backups, but every derived
amount is computed here in Decimal. Line totals, subtotal, discount and
tax carry full precision; only the document total is rounded to the cent
with ROUND_HALF_UP.

    subtotal      = sum(line totals)
    discount      = subtotal * pct / 100   (percentage)
                  = flat amount            (fixed, clamped to subtotal)
    after_discount = subtotal - discount
    tax           = after_discount * tax_rate / 100
    total         = after_discount + tax
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    NONE = "none"

    @classmethod
    def parse(cls, value) -> "DiscountType":
        """
        Map stored/legacy spellings onto a discount type.

        Older data carries "Fixed", "None", "amount", etc. Anything that is
        not recognisably a percentage is a flat amount, matching how those
        documents were originally totalled.
        """
        if isinstance(value, DiscountType):
            return value
        text = str(value or "").strip().lower()
        if text in {"percentage", "percent", "pct", "%"}:
            return cls.PERCENTAGE
        if text in {"none", ""}:
            return cls.NONE
        return cls.FIXED


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity, unit_price, tax_pct=0, discount_pct=0) -> Decimal:
    gross = to_decimal(quantity) * to_decimal(unit_price)
    after_discount = gross - gross * to_decimal(discount_pct) / HUNDRED
    return after_discount + after_discount * to_decimal(tax_pct) / HUNDRED


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    discount_amount: Decimal
    after_discount: Decimal
    tax: Decimal
    total: Decimal

    def as_floats(self) -> dict[str, float]:
        return {
            "subtotal": float(self.subtotal),
            "discount_amount": float(self.discount_amount),
            "after_discount": float(self.after_discount),
            "tax": float(self.tax),
            "total": float(self.total),
        }


def compute_totals(subtotal, discount=0, discount_type=DiscountType.PERCENTAGE, tax_rate=0) -> DocumentTotals:
    subtotal = to_decimal(subtotal)
    discount_type = DiscountType.parse(discount_type)

    if discount_type is DiscountType.PERCENTAGE:
        discount_amount = subtotal * to_decimal(discount) / HUNDRED
    elif discount_type is DiscountType.FIXED:
        discount_amount = to_decimal(discount)
    else:
        discount_amount = Decimal("0")

    # Never discount below zero
    if discount_amount > subtotal:
        discount_amount = subtotal
    if discount_amount < 0:
        discount_amount = Decimal("0")

    after_discount = subtotal - discount_amount
    tax = after_discount * to_decimal(tax_rate) / HUNDRED
    total = round_money(after_discount + tax)
    return DocumentTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        after_discount=after_discount,
        tax=tax,
        total=total,
    )


def document_totals(line_totals: Iterable, discount=0, discount_type=DiscountType.PERCENTAGE, tax_rate=0) -> DocumentTotals:
    subtotal = sum((to_decimal(t) for t in line_totals), Decimal("0"))
    return compute_totals(subtotal, discount, discount_type, tax_rate)

"""Invoice money totals — line items, discount and tax in integer cents.

Every amount is an integer count of minor currency units. Arithmetic runs on
``Decimal`` and each rounding step is half-up, so the same inputs always give
the same cents regardless of float representation.

Malformed numbers (``None``, non-numeric strings, NaN, negatives) are treated
as zero instead of raising, and so are amounts too large for a BIGINT column.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext

from src.core.models.enums import DiscountType

_HUNDRED = Decimal(100)
_MAX_CENTS = 2**63 - 1
# Wide enough for the product of two in-range amounts.
_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineItem:
    quantity: Decimal | int | float | str | None
    unit_price_cents: int | Decimal | float | str | None


@dataclass(frozen=True)
class DiscountPolicy:
    kind: DiscountType
    value: Decimal | int | float | str | None


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int
    amount_paid_cents: int
    amount_due_cents: int


def to_decimal(value: object) -> Decimal:
    """Coerce *value* to a non-negative Decimal, falling back to zero."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not number.is_finite() or number < 0 or number > _MAX_CENTS:
        return Decimal(0)
    return number


def round_cents(value: Decimal) -> int:
    cents = int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP, context=_CONTEXT))
    return cents if cents <= _MAX_CENTS else 0


def line_amount_cents(item: LineItem) -> int:
    """Rounded amount for a single line: ``round(quantity * unit_price)``."""
    with localcontext(_CONTEXT):
        return round_cents(to_decimal(item.quantity) * to_decimal(item.unit_price_cents))


def compute_discount_cents(subtotal_cents: int, discount: DiscountPolicy | None) -> int:
    if discount is None or discount.value is None:
        return 0
    value = to_decimal(discount.value)
    with localcontext(_CONTEXT):
        if discount.kind == DiscountType.percentage:
            cents = round_cents(Decimal(subtotal_cents) * value / _HUNDRED)
        else:
            cents = round_cents(value)
    return min(max(cents, 0), subtotal_cents)


def compute_totals(
    line_items: Iterable[LineItem] | None,
    discount: DiscountPolicy | None = None,
    tax_rate: Decimal | int | float | str | None = None,
    amount_paid_cents: int | None = None,
) -> InvoiceTotals:
    """Compute invoice totals from line items, an optional discount and tax rate.

    Each line is rounded on its own before summing so rounding error does not
    build up across many lines. The discount is clamped to ``[0, subtotal]``
    and tax applies to the discounted base.
    """
    subtotal_cents = sum(line_amount_cents(item) for item in line_items or ())
    discount_cents = compute_discount_cents(subtotal_cents, discount)
    taxable_cents = subtotal_cents - discount_cents

    tax_cents = 0
    if tax_rate is not None:
        with localcontext(_CONTEXT):
            tax_cents = round_cents(Decimal(taxable_cents) * to_decimal(tax_rate) / _HUNDRED)

    total_cents = taxable_cents + tax_cents
    paid_cents = round_cents(to_decimal(amount_paid_cents))

    return InvoiceTotals(
        subtotal_cents=subtotal_cents,
        discount_cents=discount_cents,
        tax_cents=tax_cents,
        total_cents=total_cents,
        amount_paid_cents=paid_cents,
        amount_due_cents=max(0, total_cents - paid_cents),
    )

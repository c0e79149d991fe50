"""
Tax Estimator

Kenyan resident income tax estimate over the taxable income the
recalculation engine reports. The figure is informational; nothing in the
ledger depends on it.

Taxable income is spread evenly over twelve months, each month is taxed on
progressive monthly bands, and the monthly personal relief is subtracted.
"""

from decimal import Decimal
from typing import NamedTuple, Optional, Sequence

from rf_manager.models.common import ZERO
from rf_manager.models.snapshot import DerivedSnapshot
from rf_manager.models.state import TaxBracket


DEFAULT_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(min=Decimal("0"), max=Decimal("24000"), rate=Decimal("0.10")),
    TaxBracket(min=Decimal("24001"), max=Decimal("32333"), rate=Decimal("0.25")),
    TaxBracket(min=Decimal("32334"), max=Decimal("500000"), rate=Decimal("0.30")),
    TaxBracket(min=Decimal("500001"), max=Decimal("800000"), rate=Decimal("0.325")),
    TaxBracket(min=Decimal("800001"), max=None, rate=Decimal("0.35")),
)

MONTHLY_PERSONAL_RELIEF_KES = Decimal("2400")
MONTHS_PER_YEAR = 12


class TaxSummary(NamedTuple):
    taxable_income_usd: Decimal
    taxable_income_kes: Decimal
    monthly_tax_kes: Decimal
    annual_tax_kes: Decimal


def estimate_kenyan_tax(
    monthly_income_kes: Decimal,
    brackets: Optional[Sequence[TaxBracket]] = None,
) -> Decimal:
    """Monthly tax in KES after personal relief, never below zero."""
    remaining = monthly_income_kes
    tax = ZERO
    for bracket in brackets or DEFAULT_TAX_BRACKETS:
        if remaining <= 0:
            break
        if bracket.max is None:
            in_band = remaining
        else:
            # Bands are inclusive on both ends: 0..24000 holds 24001 shillings
            in_band = min(remaining, bracket.max - bracket.min + 1)
        tax += in_band * bracket.rate
        remaining -= in_band
    return max(ZERO, tax - MONTHLY_PERSONAL_RELIEF_KES)


def summarize_tax(
    snapshot: DerivedSnapshot,
    brackets: Optional[Sequence[TaxBracket]] = None,
) -> TaxSummary:
    monthly = estimate_kenyan_tax(snapshot.taxable_income_kes / MONTHS_PER_YEAR, brackets)
    return TaxSummary(
        taxable_income_usd=snapshot.taxable_income_usd,
        taxable_income_kes=snapshot.taxable_income_kes,
        monthly_tax_kes=monthly,
        annual_tax_kes=monthly * MONTHS_PER_YEAR,
    )

"""Portfolio-level helpers: aggregation, timelines and edits.

A portfolio is simply a list of ``Mortgage`` values. The functions here never
mutate their input; edits return a new list with new ``Mortgage`` values so
that the engine always calculates on a stable snapshot.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date
from typing import Any, List, Optional, Sequence

from .data_models import ANNUITY, Mortgage, PortfolioSummary, SinglePayment, TimelineEntry
from .engine import (
    calculate_monthly_payment,
    calculate_mortgage_details,
    calculate_new_term_and_total_paid,
    calculate_total_interest,
    is_valid_mortgage,
    iter_schedule,
)
from .utils import current_month

logger = logging.getLogger(__name__)


def default_mortgage(today: Optional[date] = None) -> Mortgage:
    return Mortgage(
        id="mortgage-1",
        name="Primary Mortgage",
        amount=300000.0,
        interest_rate=3.5,
        term=30,
        extra_payment=200.0,
        start_date=current_month(today),
        single_payments=(),
        type=ANNUITY,
    )


def default_portfolio(today: Optional[date] = None) -> List[Mortgage]:
    """The portfolio shown when no shared state is available."""
    return [default_mortgage(today)]


def summarize_portfolio(mortgages: Sequence[Mortgage]) -> PortfolioSummary:
    """Sum the per-mortgage results and compute amount-weighted averages.

    Terms and interest rates are averaged using each mortgage's amount as
    weight. When the total amount is zero the averages are reported as
    zero instead of dividing.
    """
    mortgage_amount = 0.0
    monthly_payment = 0.0
    new_monthly_payment = 0.0
    extra_payment = 0.0
    total_interest = 0.0
    interest_saved = 0.0
    actual_total_paid = 0.0
    new_total_interest = 0.0
    weighted_term = 0.0
    weighted_new_term = 0.0
    weighted_rate = 0.0

    for mortgage in mortgages:
        payment = calculate_monthly_payment(
            mortgage.amount, mortgage.interest_rate, mortgage.term, mortgage.type
        )
        interest = calculate_total_interest(mortgage, payment)
        result = calculate_new_term_and_total_paid(mortgage, payment)
        mortgage_new_interest = result.total_paid_with_extras - mortgage.amount

        mortgage_amount += mortgage.amount
        monthly_payment += payment
        new_monthly_payment += payment + mortgage.extra_payment
        extra_payment += mortgage.extra_payment
        total_interest += interest
        actual_total_paid += result.total_paid_with_extras
        # Invalid mortgages report no savings, same as calculate_mortgage_details.
        if is_valid_mortgage(mortgage):
            new_total_interest += mortgage_new_interest
            interest_saved += interest - mortgage_new_interest
        weighted_term += mortgage.term * mortgage.amount
        weighted_new_term += result.new_term * mortgage.amount
        weighted_rate += mortgage.interest_rate * mortgage.amount

    return PortfolioSummary(
        mortgage_amount=mortgage_amount,
        monthly_payment=monthly_payment,
        new_monthly_payment=new_monthly_payment,
        extra_payment=extra_payment,
        total_interest=total_interest,
        interest_saved=interest_saved,
        actual_total_paid=actual_total_paid,
        new_total_interest=new_total_interest,
        total_cost=mortgage_amount + total_interest,
        new_total_cost=actual_total_paid,
        term=weighted_term / mortgage_amount if mortgage_amount > 0 else 0.0,
        new_term=weighted_new_term / mortgage_amount if mortgage_amount > 0 else 0.0,
        interest_rate=weighted_rate / mortgage_amount if mortgage_amount > 0 else 0.0,
    )


def interest_saved_percentage(summary: PortfolioSummary) -> float:
    if summary.total_interest == 0:
        return 0.0
    return summary.interest_saved / summary.total_interest * 100


def cost_saved_percentage(summary: PortfolioSummary) -> float:
    if summary.total_cost == 0:
        return 0.0
    return (summary.total_cost - summary.new_total_cost) / summary.total_cost * 100


def unified_timeline(mortgages: Sequence[Mortgage]) -> List[TimelineEntry]:
    """Merge the schedules of all mortgages into one list ordered by date."""
    entries: List[TimelineEntry] = []
    for mortgage in mortgages:
        for row in iter_schedule(mortgage):
            entries.append(
                TimelineEntry(
                    date=row.date,
                    mortgage_id=mortgage.id,
                    mortgage_name=mortgage.name,
                    payment=row.payment,
                    principal=row.principal,
                    interest=row.interest,
                    extra_payment=row.extra_payment,
                    single_payment=row.single_payment,
                    total_payment=row.total_payment,
                    balance=row.balance,
                )
            )
    # sorted() is stable: rows in the same month keep portfolio order
    return sorted(entries, key=lambda e: e.date)


def portfolio_details(mortgages: Sequence[Mortgage], schedule_for: Optional[str] = None):
    """Return ``(mortgage, details)`` pairs, building one schedule at most.

    Only the mortgage whose id equals ``schedule_for`` gets its full
    schedule; the others are calculated without it.
    """
    return [
        (m, calculate_mortgage_details(m, include_schedule=m.id == schedule_for))
        for m in mortgages
    ]


def add_mortgage(mortgages: Sequence[Mortgage], today: Optional[date] = None) -> List[Mortgage]:
    """Append a new mortgage with the standard defaults."""
    index = len(mortgages) + 1
    new_id = f"mortgage-{index}"
    existing_ids = {m.id for m in mortgages}
    while new_id in existing_ids:
        index += 1
        new_id = f"mortgage-{index}"
    new_mortgage = Mortgage(
        id=new_id,
        name=f"Mortgage {len(mortgages) + 1}",
        amount=200000.0,
        interest_rate=3.5,
        term=30,
        extra_payment=100.0,
        start_date=current_month(today),
        single_payments=(),
        type=ANNUITY,
    )
    logger.debug("Adding mortgage %s", new_id)
    return [*mortgages, new_mortgage]


def remove_mortgage(mortgages: Sequence[Mortgage], mortgage_id: str) -> List[Mortgage]:
    """Remove a mortgage. The last remaining mortgage is never removed."""
    if len(mortgages) <= 1:
        return list(mortgages)
    return [m for m in mortgages if m.id != mortgage_id]


def update_mortgage(mortgages: Sequence[Mortgage], mortgage_id: str, **changes: Any) -> List[Mortgage]:
    """Return a new portfolio where the given mortgage has ``changes`` applied.

    Raises ``TypeError`` for a field that ``Mortgage`` does not have.
    """
    return [dataclasses.replace(m, **changes) if m.id == mortgage_id else m for m in mortgages]


def add_single_payment(
    mortgages: Sequence[Mortgage],
    mortgage_id: str,
    amount: float,
    payment_date: date,
    payment_id: Optional[str] = None,
) -> List[Mortgage]:
    updated: List[Mortgage] = []
    for m in mortgages:
        if m.id == mortgage_id:
            new_id = payment_id or f"payment-{len(m.single_payments) + 1}"
            existing_ids = {p.id for p in m.single_payments}
            suffix = len(m.single_payments) + 1
            while new_id in existing_ids:
                suffix += 1
                new_id = f"payment-{suffix}"
            payment = SinglePayment(id=new_id, amount=amount, date=payment_date)
            m = dataclasses.replace(m, single_payments=(*m.single_payments, payment))
        updated.append(m)
    return updated


def remove_single_payment(mortgages: Sequence[Mortgage], mortgage_id: str, payment_id: str) -> List[Mortgage]:
    return [
        dataclasses.replace(
            m, single_payments=tuple(p for p in m.single_payments if p.id != payment_id)
        )
        if m.id == mortgage_id
        else m
        for m in mortgages
    ]

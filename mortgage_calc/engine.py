"""Core calculation engine for the mortgage calculator.

This module implements the financial logic behind the calculator: the monthly
payment for annuity and linear mortgages, the baseline total interest, and a
month-by-month simulation that applies a recurring extra payment and
one-time extra payments until the balance is repaid or the scheduled term
runs out.

Every function here is pure. Invalid inputs never raise; they produce safe
zero or neutral results so callers can recalculate on every keystroke.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, Iterator, List, Optional

from .data_models import (
    LINEAR,
    Mortgage,
    MortgageCalculationResult,
    MortgageDetails,
    ScheduleEntry,
)
from .utils import add_months, months_between, normalize_to_month_start


def _is_nan(*values: float) -> bool:
    return any(math.isnan(v) for v in values)


def calculate_monthly_payment(
    principal: float,
    rate: float,
    years: float,
    type: str = "annuity",
) -> float:
    """Return the monthly payment for a mortgage.

    The annuity formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` the monthly interest rate
    (``rate / 100 / 12``) and ``n`` the number of payments. When the
    interest rate is zero, the payment simplifies to ``P / n``.

    Linear mortgages repay a fixed principal slice every month, so their
    payment declines over time; the returned value is the first month's
    payment (principal slice plus interest on the full balance).

    Returns ``0.0`` when no payment can be computed: NaN inputs, a
    non-positive principal or term, or a negative rate.
    """
    if _is_nan(principal, rate, years) or principal <= 0 or rate < 0 or years <= 0:
        return 0.0

    monthly_rate = rate / 100 / 12
    number_of_payments = years * 12

    if type == LINEAR:
        return principal / number_of_payments + principal * monthly_rate

    if monthly_rate == 0:
        return principal / number_of_payments
    factor = (1 + monthly_rate) ** number_of_payments
    return principal * monthly_rate * factor / (factor - 1)


def calculate_total_interest(mortgage: Mortgage, monthly_payment: float) -> float:
    """Return the interest paid over the original schedule, without extras.

    Linear mortgages use the arithmetic series of the monthly interest
    amounts, ``P * i * (n + 1) / 2``; annuity mortgages use
    ``payment * n - P``. Both are zero when the payment inputs are invalid.
    """
    if calculate_monthly_payment(
        mortgage.amount, mortgage.interest_rate, mortgage.term, mortgage.type
    ) == 0:
        return 0.0
    monthly_rate = mortgage.interest_rate / 100 / 12
    number_of_payments = mortgage.number_of_payments
    if mortgage.type == LINEAR:
        return mortgage.amount * monthly_rate * (number_of_payments + 1) / 2
    return monthly_payment * number_of_payments - mortgage.amount


def is_valid_mortgage(mortgage: Mortgage) -> bool:
    """Return True when the mortgage can be simulated."""
    if _is_nan(mortgage.amount, mortgage.interest_rate, mortgage.term, mortgage.extra_payment):
        return False
    return (
        mortgage.amount > 0
        and mortgage.interest_rate > 0
        and mortgage.term > 0
        and mortgage.extra_payment >= 0
    )


def calculate_single_payments_by_month(
    mortgage: Mortgage,
    start_date: date,
    number_of_payments: float,
) -> Dict[int, float]:
    """Map month index (0 = start month) to the one-time payments due then.

    Payments dated before ``start_date`` or in a month at or beyond the
    scheduled term are dropped. Payments falling in the same month are
    summed.
    """
    mapping: Dict[int, float] = {}
    for payment in mortgage.single_payments:
        if not payment.amount > 0:
            continue
        months_diff = months_between(start_date, payment.date)
        if 0 <= months_diff < number_of_payments:
            mapping[months_diff] = mapping.get(months_diff, 0.0) + payment.amount
    return mapping


def iter_schedule(
    mortgage: Mortgage,
    monthly_payment: Optional[float] = None,
) -> Iterator[ScheduleEntry]:
    """Yield the simulated amortization schedule one month at a time.

    The loop runs while the balance is positive and the scheduled number of
    payments has not been reached. Each month the regular principal, the
    recurring extra payment and any one-time payment for that month are
    applied; the balance never drops below zero, so the last payment may be
    smaller than requested.

    A one-time payment whose month comes after the loan is already repaid is
    never applied.

    Nothing is yielded for an invalid mortgage.
    """
    if not is_valid_mortgage(mortgage):
        return
    if monthly_payment is None:
        monthly_payment = calculate_monthly_payment(
            mortgage.amount, mortgage.interest_rate, mortgage.term, mortgage.type
        )

    monthly_rate = mortgage.interest_rate / 100 / 12
    number_of_payments = mortgage.number_of_payments
    start_date = normalize_to_month_start(mortgage.start_date)
    single_payments_by_month = calculate_single_payments_by_month(
        mortgage, start_date, number_of_payments
    )

    balance = mortgage.amount
    month = 0
    while balance > 0 and month < number_of_payments:
        interest = balance * monthly_rate
        if mortgage.type == LINEAR:
            regular_principal = mortgage.amount / number_of_payments
            scheduled_payment = regular_principal + interest
        else:
            regular_principal = monthly_payment - interest
            scheduled_payment = monthly_payment

        single_payment = single_payments_by_month.get(month, 0.0)
        requested_principal = regular_principal + mortgage.extra_payment + single_payment
        new_balance = max(0.0, balance - requested_principal)

        yield ScheduleEntry(
            month=month + 1,
            date=add_months(start_date, month),
            payment=scheduled_payment,
            principal=regular_principal,
            interest=interest,
            extra_payment=mortgage.extra_payment,
            single_payment=single_payment,
            total_payment=interest + (balance - new_balance),
            balance=new_balance,
        )

        balance = new_balance
        month += 1


def calculate_new_term_and_total_paid(
    mortgage: Mortgage,
    monthly_payment: float,
) -> MortgageCalculationResult:
    """Simulate the mortgage and return the key metrics only.

    For an invalid mortgage the original term is returned with zero totals.
    """
    if not is_valid_mortgage(mortgage):
        return MortgageCalculationResult(
            new_term=mortgage.term,
            total_paid_with_extras=0.0,
            total_interest_paid=0.0,
            months_saved=0,
        )

    months = 0
    total_paid = 0.0
    total_interest_paid = 0.0
    for entry in iter_schedule(mortgage, monthly_payment):
        months += 1
        total_paid += entry.total_payment
        total_interest_paid += entry.interest

    return MortgageCalculationResult(
        new_term=months / 12,
        total_paid_with_extras=total_paid,
        total_interest_paid=total_interest_paid,
        months_saved=mortgage.number_of_payments - months,
    )


def calculate_mortgage_details(
    mortgage: Mortgage,
    include_schedule: bool = False,
) -> MortgageDetails:
    """Compute the payment, interest and payoff metrics for a mortgage.

    Parameters
    ----------
    mortgage: Mortgage
        The mortgage to calculate.
    include_schedule: bool
        Whether to materialize the month-by-month schedule. The schedule is
        proportional to the term, so callers that only need the summary
        should leave this off.

    Returns
    -------
    MortgageDetails
        ``interest_saved`` compares the baseline interest (no extras) with
        the interest actually paid under the accelerated schedule, i.e. the
        total cash paid minus the principal. Invalid mortgages report the
        original term, no savings and an empty schedule.
    """
    monthly_payment = calculate_monthly_payment(
        mortgage.amount, mortgage.interest_rate, mortgage.term, mortgage.type
    )
    total_interest = calculate_total_interest(mortgage, monthly_payment)
    new_monthly_payment = monthly_payment + mortgage.extra_payment

    if not is_valid_mortgage(mortgage):
        return MortgageDetails(
            monthly_payment=monthly_payment,
            total_interest=total_interest,
            new_monthly_payment=new_monthly_payment,
            new_term=mortgage.term,
            interest_saved=0.0,
            schedule=[],
        )

    schedule: List[ScheduleEntry] = []
    months = 0
    total_paid_with_extras = 0.0
    for entry in iter_schedule(mortgage, monthly_payment):
        months += 1
        total_paid_with_extras += entry.total_payment
        if include_schedule:
            schedule.append(entry)

    return MortgageDetails(
        monthly_payment=monthly_payment,
        total_interest=total_interest,
        new_monthly_payment=new_monthly_payment,
        new_term=months / 12,
        interest_saved=total_interest - (total_paid_with_extras - mortgage.amount),
        schedule=schedule,
    )

"""Data models for the mortgage calculator.

This module defines dataclasses representing the entities used by the
calculator: one-time extra payments, the mortgage itself, individual
schedule entries and the aggregate results produced by the engine. Mortgages
are frozen so that a calculation always works on a stable snapshot; edits
produce new values (see ``mortgage_calc.portfolio``).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Tuple

ANNUITY = "annuity"
LINEAR = "linear"
MORTGAGE_TYPES = (ANNUITY, LINEAR)


@dataclass(frozen=True)
class SinglePayment:
    """A one-time extra principal payment.

    Attributes
    ----------
    id: str
        Identifier used by the presentation layer to edit or remove the
        payment. The engine ignores it.
    amount: float
        The amount applied to the principal. Only positive amounts count.
    date: date
        The month in which the payment is applied. The day is ignored.
    """

    id: str
    amount: float
    date: date


@dataclass(frozen=True)
class Mortgage:
    """A single mortgage as entered by the user.

    ``interest_rate`` is the nominal annual rate in percent (3.5 means
    3.5 %) and ``term`` is expressed in years. Values outside the valid
    range (non-positive amount, rate or term, negative extra payment) are
    allowed: the engine treats them as a degenerate mortgage rather than an
    error, because a form field being edited is often transiently empty.
    """

    id: str
    name: str
    amount: float
    interest_rate: float
    term: float
    extra_payment: float
    start_date: date
    single_payments: Tuple[SinglePayment, ...] = ()
    type: str = ANNUITY  # 'annuity' or 'linear'

    @property
    def number_of_payments(self) -> float:
        return self.term * 12


@dataclass
class ScheduleEntry:
    """One month of a simulated amortization schedule.

    ``payment`` and ``principal`` are the scheduled (nominal) figures, while
    ``total_payment`` is what was actually paid after the final-month
    overpayment clamp.
    """

    month: int
    date: date
    payment: float
    principal: float
    interest: float
    extra_payment: float
    single_payment: float
    total_payment: float
    balance: float


@dataclass
class MortgageDetails:
    monthly_payment: float
    total_interest: float
    new_monthly_payment: float
    new_term: float
    interest_saved: float
    schedule: List[ScheduleEntry] = field(default_factory=list)


@dataclass
class MortgageCalculationResult:
    """Key metrics of a simulation without the month-by-month schedule."""

    new_term: float
    total_paid_with_extras: float
    total_interest_paid: float
    months_saved: float


@dataclass
class TimelineEntry:
    """A schedule row tagged with the mortgage it belongs to.

    Used to merge the schedules of several mortgages into one payment
    timeline ordered by date.
    """

    date: date
    mortgage_id: str
    mortgage_name: str
    payment: float
    principal: float
    interest: float
    extra_payment: float
    single_payment: float
    total_payment: float
    balance: float


@dataclass
class PortfolioSummary:
    """Totals and amount-weighted averages across several mortgages."""

    mortgage_amount: float
    monthly_payment: float
    new_monthly_payment: float
    extra_payment: float
    total_interest: float
    interest_saved: float
    actual_total_paid: float
    new_total_interest: float
    total_cost: float
    new_total_cost: float
    term: float  # weighted by amount
    new_term: float  # weighted by amount
    interest_rate: float  # weighted by amount

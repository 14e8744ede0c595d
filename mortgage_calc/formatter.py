"""Output helpers for the mortgage calculator.

This module provides number formatting in the Dutch/Euro convention the
calculator was designed for (``€ 1.234,56``) and simple functions that
render details, schedules and portfolio summaries in a tabular text format.
Rounding happens only here; the engine never rounds.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence, Tuple

from .data_models import Mortgage, MortgageDetails, PortfolioSummary, ScheduleEntry, TimelineEntry


def _is_missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


def _dutch_separators(text: str) -> str:
    # 1,234.56 -> 1.234,56
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(amount: Optional[float]) -> str:
    """Format an amount as euros, e.g. ``€ 1.234,56``."""
    if _is_missing(amount):
        return "€0"
    sign = "-" if amount < 0 else ""
    return f"€ {sign}{_dutch_separators(f'{abs(amount):,.2f}')}"


def format_number(value: Optional[float], decimals: int = 1) -> str:
    if _is_missing(value):
        return "0"
    return f"{value:.{decimals}f}"


def format_percentage(value: Optional[float], decimals: int = 1) -> str:
    """Format a percentage value (3.5 means 3.5 %) as ``3.5%``."""
    if _is_missing(value):
        return "0%"
    return f"{value:.{decimals}f}%"


def format_with_thousand_separator(value: Optional[float]) -> str:
    """Format a number with Dutch thousands separators (at most 3 decimals)."""
    if _is_missing(value):
        return "0"
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return _dutch_separators(text)


def format_years(years: float) -> str:
    """Render a fractional term as whole years and months, e.g. ``24y 7m``."""
    if _is_missing(years):
        return "0y 0m"
    months = int(round(years * 12))
    return f"{months // 12}y {months % 12}m"


def print_details(mortgage: Mortgage, details: MortgageDetails) -> None:
    """Print the summary metrics of one mortgage in a human-readable format."""
    print(f"Summary: {mortgage.name}")
    print("-" * 72)
    print(f"Mortgage amount    : {format_currency(mortgage.amount)}")
    print(f"Interest rate      : {format_percentage(mortgage.interest_rate, 2)}")
    print(f"Type               : {mortgage.type}")
    print(f"Monthly payment    : {format_currency(details.monthly_payment)}")
    if mortgage.extra_payment:
        print(f"With extra payment : {format_currency(details.new_monthly_payment)}")
    if mortgage.single_payments:
        total_single = sum(p.amount for p in mortgage.single_payments if p.amount > 0)
        print(f"One-time payments  : {format_currency(total_single)}")
    print(f"Total interest     : {format_currency(details.total_interest)}")
    print(f"Original term      : {format_years(mortgage.term)}")
    print(f"New term           : {format_years(details.new_term)}")
    print(f"Interest saved     : {format_currency(details.interest_saved)}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = [
        "Month",
        "Date",
        "Payment",
        "Principal",
        "Interest",
        "Extra",
        "Single",
        "Total",
        "Balance",
    ]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.month),
            entry.date.strftime("%Y-%m"),
            f"{entry.payment:.2f}",
            f"{entry.principal:.2f}",
            f"{entry.interest:.2f}",
            f"{entry.extra_payment:.2f}",
            f"{entry.single_payment:.2f}",
            f"{entry.total_payment:.2f}",
            f"{entry.balance:.2f}",
        ]
        print("\t".join(row))


def print_timeline(timeline: Iterable[TimelineEntry]) -> None:
    """Print the merged payment timeline of several mortgages."""
    print("\t".join(["Date", "Mortgage", "Total", "Interest", "Balance"]))
    for entry in timeline:
        print(
            "\t".join(
                [
                    entry.date.strftime("%Y-%m"),
                    entry.mortgage_name,
                    f"{entry.total_payment:.2f}",
                    f"{entry.interest:.2f}",
                    f"{entry.balance:.2f}",
                ]
            )
        )


def print_portfolio(
    rows: Sequence[Tuple[Mortgage, MortgageDetails]],
    summary: PortfolioSummary,
    interest_saved_pct: float,
    cost_saved_pct: float,
) -> None:
    """Print one line per mortgage followed by the portfolio totals."""
    print("Mortgages")
    print("=" * 72)
    print(f"{'Name':20s} {'Amount':>14s} {'Monthly':>12s} {'New term':>10s} {'Saved':>12s}")
    for mortgage, details in rows:
        print(
            f"{mortgage.name[:20]:20s} {mortgage.amount:14.2f} {details.monthly_payment:12.2f} "
            f"{format_years(details.new_term):>10s} {details.interest_saved:12.2f}"
        )
    print("=" * 72)
    print(f"Total amount       : {format_currency(summary.mortgage_amount)}")
    print(f"Monthly payment    : {format_currency(summary.monthly_payment)}")
    print(f"With extra payments: {format_currency(summary.new_monthly_payment)}")
    print(f"Avg interest rate  : {summary.interest_rate:.2f}%")
    print(f"Avg term           : {format_years(summary.term)}")
    print(f"Avg new term       : {format_years(summary.new_term)}")
    print(f"Total interest     : {format_currency(summary.total_interest)}")
    print(
        f"Interest saved     : {format_currency(summary.interest_saved)}"
        f" ({format_percentage(interest_saved_pct)})"
    )
    print(f"Total cost         : {format_currency(summary.total_cost)}")
    print(
        f"New total cost     : {format_currency(summary.new_total_cost)}"
        f" ({format_percentage(cost_saved_pct)} saved)"
    )
    print("-" * 72)


def print_comparison(
    first: Tuple[Mortgage, MortgageDetails],
    second: Tuple[Mortgage, MortgageDetails],
) -> None:
    """Print two mortgages side by side.

    The difference column is scenario2 - scenario1; a negative difference
    means the second scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    (m1, d1), (m2, d2) = first, second
    metrics = [
        ("monthly_payment", d1.monthly_payment, d2.monthly_payment),
        ("new_monthly_payment", d1.new_monthly_payment, d2.new_monthly_payment),
        ("total_interest", d1.total_interest, d2.total_interest),
        ("interest_saved", d1.interest_saved, d2.interest_saved),
        ("term", float(m1.term), float(m2.term)),
        ("new_term", d1.new_term, d2.new_term),
    ]
    for key, v1, v2 in metrics:
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {v2 - v1:15.2f}")
    print("=" * 72)

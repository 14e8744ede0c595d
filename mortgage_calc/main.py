"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute the effect of extra payments on a mortgage,
print or export the amortization schedule, compare two mortgages, build a
shareable link and inspect a shared portfolio of several mortgages.
"""

from __future__ import annotations

import csv
import json
import logging
import shlex
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .data_models import ANNUITY, MORTGAGE_TYPES, Mortgage, MortgageDetails, ScheduleEntry, SinglePayment
from .engine import calculate_mortgage_details
from .formatter import print_comparison, print_details, print_portfolio, print_schedule, print_timeline
from .portfolio import (
    cost_saved_percentage,
    interest_saved_percentage,
    portfolio_details,
    summarize_portfolio,
    unified_timeline,
)
from .share import build_share_url, encode_portfolio, load_shared_portfolio
from .utils import current_month, parse_year_month

logger = logging.getLogger(__name__)

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("300000", "300,000") and shorthand with
    ``k``/``m`` suffixes (e.g., "300k" meaning 300_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        return float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_single_payment_strings(values: Tuple[str, ...]) -> Tuple[SinglePayment, ...]:
    payments: List[SinglePayment] = []
    for index, item in enumerate(values):
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(
                f"Single payment must be in YYYY-MM:AMOUNT format; got {item}"
            )
        ym, amt_str = parts
        try:
            dt = parse_year_month(ym)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        payments.append(SinglePayment(id=f"payment-{index + 1}", amount=parse_amount(amt_str), date=dt))
    return tuple(payments)


def build_mortgage_from_options(
    amount: str,
    rate: float,
    term: float,
    mortgage_type: str = ANNUITY,
    start_date: Optional[str] = None,
    extra: Optional[str] = None,
    single_payment: Tuple[str, ...] = (),
    name: Optional[str] = None,
    mortgage_id: str = "mortgage-1",
) -> Mortgage:
    if start_date:
        try:
            start_dt = parse_year_month(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    else:
        start_dt = current_month()
    if mortgage_type.lower() not in MORTGAGE_TYPES:
        raise click.BadParameter(f"Mortgage type must be one of {', '.join(MORTGAGE_TYPES)}")
    return Mortgage(
        id=mortgage_id,
        name=name or "Mortgage",
        amount=parse_amount(amount),
        interest_rate=float(rate),
        term=float(term),
        extra_payment=parse_amount(extra) if extra else 0.0,
        start_date=start_dt,
        single_payments=parse_single_payment_strings(single_payment) if single_payment else (),
        type=mortgage_type.lower(),
    )


def entry_to_dict(e: ScheduleEntry) -> Dict[str, Any]:
    return {
        "month": e.month,
        "date": e.date.strftime("%Y-%m"),
        "payment": e.payment,
        "principal": e.principal,
        "interest": e.interest,
        "extra_payment": e.extra_payment,
        "single_payment": e.single_payment,
        "total_payment": e.total_payment,
        "balance": e.balance,
    }


def details_to_dict(details: MortgageDetails) -> Dict[str, Any]:
    return {
        "monthly_payment": details.monthly_payment,
        "total_interest": details.total_interest,
        "new_monthly_payment": details.new_monthly_payment,
        "new_term": details.new_term,
        "interest_saved": details.interest_saved,
    }


def export_to_json(path: Path, details: MortgageDetails) -> None:
    """Export details and schedule to a JSON file."""
    data = {
        "summary": details_to_dict(details),
        "schedule": [entry_to_dict(e) for e in details.schedule],
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Month",
        "Date",
        "Payment",
        "Principal",
        "Interest",
        "Extra_Payment",
        "Single_Payment",
        "Total_Payment",
        "Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.month,
                    e.date.strftime("%Y-%m"),
                    e.payment,
                    e.principal,
                    e.interest,
                    e.extra_payment,
                    e.single_payment,
                    e.total_payment,
                    e.balance,
                ]
            )


def mortgage_options(func: Callable) -> Callable:
    """Attach the options that describe a single mortgage."""
    options = [
        click.option("--amount", "-a", "amount", required=True, help="Mortgage amount (e.g. 300000 or 300k)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=float, help="Mortgage term in years"),
        click.option("--extra", "-e", "extra", help="Recurring extra payment every month"),
        click.option("--type", "mortgage_type", type=click.Choice(list(MORTGAGE_TYPES)), default=ANNUITY, help="Mortgage type"),
        click.option("--start-date", "-s", "start_date", help="Start month (YYYY-MM); defaults to the current month"),
        click.option("--single-payment", "single_payment", multiple=True, help="One-time payment in YYYY-MM:AMOUNT format"),
        click.option("--name", "name", help="Display name of the mortgage"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line calculator for the effect of extra mortgage payments."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@mortgage_options
def details(
    amount: str,
    rate: float,
    term: float,
    extra: Optional[str],
    mortgage_type: str,
    start_date: Optional[str],
    single_payment: Tuple[str, ...],
    name: Optional[str],
) -> None:
    """Compute and print the payment, interest and payoff metrics."""
    mortgage = build_mortgage_from_options(
        amount, rate, term, mortgage_type, start_date, extra, single_payment, name
    )
    print_details(mortgage, calculate_mortgage_details(mortgage))


@cli.command()
@mortgage_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    amount: str,
    rate: float,
    term: float,
    extra: Optional[str],
    mortgage_type: str,
    start_date: Optional[str],
    single_payment: Tuple[str, ...],
    name: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    mortgage = build_mortgage_from_options(
        amount, rate, term, mortgage_type, start_date, extra, single_payment, name
    )
    result = calculate_mortgage_details(mortgage, include_schedule=True)
    if output:
        path = Path(output)
        logger.debug("Exporting %d schedule rows to %s", len(result.schedule), path)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result.schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return

    print_details(mortgage, result)
    # Limit schedule length printed to avoid flooding the terminal
    if len(result.schedule) > MAX_PRINTED_ROWS:
        click.echo(
            f"Schedule has {len(result.schedule)} rows; showing first {MAX_PRINTED_ROWS} rows."
        )
        print_schedule(result.schedule[:MAX_PRINTED_ROWS])
    else:
        print_schedule(result.schedule)


def parse_scenario_opts(opts: str, mortgage_id: str) -> Mortgage:
    """Build a mortgage from an option string such as ``"-a 300k -r 3.5 -t 30"``."""
    tokens = shlex.split(opts)
    params: Dict[str, Any] = {
        "amount": None,
        "rate": None,
        "term": None,
        "mortgage_type": ANNUITY,
        "start_date": None,
        "extra": None,
        "single_payment": [],
        "name": None,
    }
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if i + 1 >= len(tokens):
            raise click.BadParameter(f"Missing value for option {token}")
        value = tokens[i + 1]
        if token in ("-a", "--amount"):
            params["amount"] = value
        elif token in ("-r", "--rate"):
            params["rate"] = value
        elif token in ("-t", "--term"):
            params["term"] = value
        elif token in ("-e", "--extra"):
            params["extra"] = value
        elif token == "--type":
            params["mortgage_type"] = value
        elif token in ("-s", "--start-date"):
            params["start_date"] = value
        elif token == "--single-payment":
            params["single_payment"].append(value)
        elif token == "--name":
            params["name"] = value
        else:
            raise click.BadParameter(f"Unknown option in scenario: {token}")
        i += 2
    for required in ("amount", "rate", "term"):
        if params[required] is None:
            raise click.BadParameter(f"Scenario missing required option {required}")
    try:
        params["rate"] = float(params["rate"])
        params["term"] = float(params["term"])
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    params["single_payment"] = tuple(params["single_payment"])
    return build_mortgage_from_options(mortgage_id=mortgage_id, **params)


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two mortgages.

    Scenarios are provided as quoted option strings, for example:

        mortgage-calc compare --scenario1 "-a 300k -r 3.5 -t 30" --scenario2 "-a 300k -r 3.5 -t 30 -e 200"
    """
    m1 = parse_scenario_opts(scenario1, "mortgage-1")
    m2 = parse_scenario_opts(scenario2, "mortgage-2")
    print_comparison(
        (m1, calculate_mortgage_details(m1)),
        (m2, calculate_mortgage_details(m2)),
    )


@cli.command()
@mortgage_options
@click.option("--base-url", "base_url", help="Prefix the payload with this URL to build a share link")
def share(
    amount: str,
    rate: float,
    term: float,
    extra: Optional[str],
    mortgage_type: str,
    start_date: Optional[str],
    single_payment: Tuple[str, ...],
    name: Optional[str],
    base_url: Optional[str],
) -> None:
    """Print the shareable payload (or link) for a mortgage."""
    mortgage = build_mortgage_from_options(
        amount, rate, term, mortgage_type, start_date, extra, single_payment, name
    )
    if base_url:
        click.echo(build_share_url(base_url, [mortgage]))
    else:
        click.echo(encode_portfolio([mortgage]))


@cli.command()
@click.option("--data", "data", required=True, help="Shared portfolio payload (base64 JSON)")
@click.option("--timeline", "timeline", is_flag=True, help="Also print the merged payment timeline")
def portfolio(data: str, timeline: bool) -> None:
    """Print per-mortgage and aggregate results of a shared portfolio."""
    mortgages, error = load_shared_portfolio(data)
    if error:
        click.echo(f"Warning: {error}; showing the default mortgage.", err=True)
    rows = portfolio_details(mortgages)
    summary = summarize_portfolio(mortgages)
    print_portfolio(rows, summary, interest_saved_percentage(summary), cost_saved_percentage(summary))
    if timeline:
        print_timeline(unified_timeline(mortgages))


if __name__ == "__main__":
    cli()

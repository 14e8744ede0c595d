"""Canonical mortgages used across the test suite.

Fixture: EUR 300K annuity mortgage, 3.5 %, 30 years, EUR 200 extra per month,
starting March 2024.
"""

from datetime import date

import pytest

from mortgage_calc.data_models import ANNUITY, LINEAR, Mortgage, SinglePayment


def make_mortgage(**overrides) -> Mortgage:
    values = dict(
        id="mortgage-1",
        name="Primary Mortgage",
        amount=300000.0,
        interest_rate=3.5,
        term=30,
        extra_payment=200.0,
        start_date=date(2024, 3, 15),
        single_payments=(),
        type=ANNUITY,
    )
    values.update(overrides)
    return Mortgage(**values)


@pytest.fixture
def canonical_mortgage() -> Mortgage:
    return make_mortgage()


@pytest.fixture
def baseline_mortgage() -> Mortgage:
    """Same loan without any extra payments."""
    return make_mortgage(extra_payment=0.0)


@pytest.fixture
def linear_mortgage() -> Mortgage:
    """EUR 120K linear mortgage, 6 %, 10 years: EUR 1,000 principal per month."""
    return make_mortgage(
        amount=120000.0, interest_rate=6.0, term=10, extra_payment=0.0, type=LINEAR
    )


@pytest.fixture
def lump_sum_mortgage() -> Mortgage:
    """EUR 200K, 4 %, 20 years with EUR 50K paid in the start month."""
    return make_mortgage(
        amount=200000.0,
        interest_rate=4.0,
        term=20,
        extra_payment=0.0,
        single_payments=(SinglePayment(id="payment-1", amount=50000.0, date=date(2024, 3, 15)),),
    )

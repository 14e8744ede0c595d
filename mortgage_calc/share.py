"""Shareable portfolio state.

A portfolio is shared as a single URL query parameter: the list of mortgages
serialized to JSON and base64-encoded. Decoding is tolerant of older or
hand-edited payloads (missing ids, missing single payments, dates with or
without a time component) but rejects anything that is not a non-empty list
of mortgage records.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from .data_models import ANNUITY, MORTGAGE_TYPES, Mortgage, SinglePayment
from .portfolio import default_portfolio
from .utils import parse_iso_date

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load shared data"


class ShareStateError(ValueError):
    """Raised when a shared-state payload cannot be decoded."""


def _mortgage_to_record(mortgage: Mortgage) -> Dict[str, Any]:
    return {
        "id": mortgage.id,
        "name": mortgage.name,
        "amount": mortgage.amount,
        "interestRate": mortgage.interest_rate,
        "term": mortgage.term,
        "extraPayment": mortgage.extra_payment,
        "type": mortgage.type,
        "startDate": mortgage.start_date.isoformat(),
        "singlePayments": [
            {"id": p.id, "amount": p.amount, "date": p.date.isoformat()}
            for p in mortgage.single_payments
        ],
    }


def encode_portfolio(mortgages: Sequence[Mortgage]) -> str:
    """Serialize mortgages to the base64 JSON share payload."""
    records = [_mortgage_to_record(m) for m in mortgages]
    raw = json.dumps(records, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def build_share_url(base_url: str, mortgages: Sequence[Mortgage]) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}data={quote(encode_portfolio(mortgages), safe='')}"


def _number(record: Dict[str, Any], key: str) -> float:
    value = record.get(key, 0)
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise ShareStateError(f"Field {key!r} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ShareStateError(f"Field {key!r} must be a number") from exc
    if math.isinf(number):
        raise ShareStateError(f"Field {key!r} must be finite")
    return number


def _date(value: Any, field_name: str) -> date:
    if not isinstance(value, str):
        raise ShareStateError(f"Field {field_name!r} must be an ISO-8601 string")
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise ShareStateError(str(exc)) from exc


def _record_to_mortgage(record: Any, index: int) -> Mortgage:
    if not isinstance(record, dict):
        raise ShareStateError(f"Mortgage #{index + 1} is not an object")

    raw_payments = record.get("singlePayments") or []
    if not isinstance(raw_payments, list):
        raise ShareStateError(f"Mortgage #{index + 1} has invalid single payments")
    payments: List[SinglePayment] = []
    for p_index, raw in enumerate(raw_payments):
        if not isinstance(raw, dict):
            raise ShareStateError(f"Single payment #{p_index + 1} is not an object")
        payments.append(
            SinglePayment(
                id=str(raw.get("id") or f"payment-{p_index + 1}"),
                amount=_number(raw, "amount"),
                date=_date(raw.get("date"), "date"),
            )
        )

    start_raw = record.get("startDate")
    start_date = _date(start_raw, "startDate") if start_raw else date.today()
    mortgage_type = record.get("type") or ANNUITY
    if mortgage_type not in MORTGAGE_TYPES:
        mortgage_type = ANNUITY

    return Mortgage(
        id=str(record.get("id") or f"mortgage-{index + 1}"),
        name=str(record.get("name") or f"Mortgage {index + 1}"),
        amount=_number(record, "amount"),
        interest_rate=_number(record, "interestRate"),
        term=_number(record, "term"),
        extra_payment=_number(record, "extraPayment"),
        start_date=start_date,
        single_payments=tuple(payments),
        type=mortgage_type,
    )


def decode_portfolio(payload: str) -> List[Mortgage]:
    """Decode a share payload back into mortgages.

    Raises
    ------
    ShareStateError
        If the payload is not valid base64 JSON, or does not describe a
        non-empty list of mortgage records.
    """
    # Query-string decoding turns '+' into ' '; padding may be stripped.
    text = payload.strip().replace(" ", "+")
    text += "=" * (-len(text) % 4)
    try:
        raw = base64.b64decode(text, validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise ShareStateError("Shared data is not valid base64-encoded JSON") from exc

    if not isinstance(data, list) or not data:
        raise ShareStateError("Shared data must be a non-empty list of mortgages")
    return [_record_to_mortgage(record, index) for index, record in enumerate(data)]


def load_shared_portfolio(
    payload: Optional[str],
    today: Optional[date] = None,
) -> Tuple[List[Mortgage], Optional[str]]:
    """Load a portfolio from a share payload, falling back to the default.

    Returns the mortgages together with a user-facing error message, which
    is ``None`` when the payload was decoded (or there was none).
    """
    if not payload:
        return default_portfolio(today), None
    try:
        mortgages = decode_portfolio(payload)
    except ShareStateError as exc:
        logger.warning("Error loading shared data: %s", exc)
        return default_portfolio(today), LOAD_ERROR_MESSAGE
    logger.debug("Loaded %d shared mortgage(s)", len(mortgages))
    return mortgages, None

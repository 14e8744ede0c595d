import logging
import math
import os
from dataclasses import asdict
from typing import List, Optional

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from mortgage_calc.data_models import MORTGAGE_TYPES, Mortgage
from mortgage_calc.engine import iter_schedule
from mortgage_calc.formatter import format_currency, format_percentage, format_years
from mortgage_calc.main import details_to_dict, entry_to_dict
from mortgage_calc.portfolio import (
    add_mortgage,
    add_single_payment,
    cost_saved_percentage,
    interest_saved_percentage,
    portfolio_details,
    remove_mortgage,
    remove_single_payment,
    summarize_portfolio,
    update_mortgage,
)
from mortgage_calc.share import ShareStateError, decode_portfolio, encode_portfolio, load_shared_portfolio
from mortgage_calc.utils import float_from_str, parse_year_month

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
app.jinja_env.filters["currency"] = format_currency
app.jinja_env.filters["percentage"] = format_percentage
app.jinja_env.filters["years"] = format_years

NUMERIC_FIELDS = ("amount", "interest_rate", "term", "extra_payment")


class FormError(ValueError):
    """Raised when a submitted form value cannot be used."""


def _load_portfolio(payload: Optional[str]) -> List[Mortgage]:
    mortgages, error = load_shared_portfolio(payload)
    if error:
        flash(error, "error")
    return mortgages


def _redirect_to(mortgages: List[Mortgage], schedule_for: Optional[str] = None):
    params = {"data": encode_portfolio(mortgages)}
    if schedule_for:
        params["schedule"] = schedule_for
    return redirect(url_for("index", **params))


def _form_number(form, key: str) -> float:
    """Read a numeric form field; an emptied field counts as zero."""
    try:
        value = float_from_str(form.get(key, ""))
    except ValueError as exc:
        raise FormError(str(exc)) from exc
    if math.isnan(value) or math.isinf(value):
        raise FormError(f"Invalid numeric value: {form.get(key)}")
    return value


def _form_changes(form) -> dict:
    changes = {}
    for key in NUMERIC_FIELDS:
        if key in form:
            changes[key] = _form_number(form, key)
    if "name" in form:
        changes["name"] = form.get("name", "").strip() or "Mortgage"
    if "type" in form:
        mortgage_type = form.get("type", "").lower()
        if mortgage_type not in MORTGAGE_TYPES:
            raise FormError(f"Unknown mortgage type: {mortgage_type}")
        changes["type"] = mortgage_type
    if form.get("start_date"):
        try:
            changes["start_date"] = parse_year_month(form["start_date"])
        except ValueError as exc:
            raise FormError(str(exc)) from exc
    return changes


@app.route("/", methods=["GET"])
def index():
    mortgages = _load_portfolio(request.args.get("data"))
    schedule_for = request.args.get("schedule")
    rows = portfolio_details(mortgages, schedule_for=schedule_for)
    summary = summarize_portfolio(mortgages)
    payload = encode_portfolio(mortgages)
    schedule_row = next(((m, d) for m, d in rows if m.id == schedule_for), None)

    return render_template(
        "index.html",
        rows=rows,
        summary=summary,
        interest_saved_pct=interest_saved_percentage(summary),
        cost_saved_pct=cost_saved_percentage(summary),
        payload=payload,
        share_url=url_for("index", data=payload, _external=True),
        schedule_row=schedule_row,
        mortgage_types=MORTGAGE_TYPES,
        asset_version=app.config["ASSET_VERSION"],
    )


@app.post("/mortgage/add")
def add_mortgage_view():
    mortgages = _load_portfolio(request.form.get("data"))
    return _redirect_to(add_mortgage(mortgages))


@app.post("/mortgage/remove")
def remove_mortgage_view():
    mortgages = _load_portfolio(request.form.get("data"))
    return _redirect_to(remove_mortgage(mortgages, request.form.get("mortgage_id", "")))


@app.post("/mortgage/update")
def update_mortgage_view():
    mortgages = _load_portfolio(request.form.get("data"))
    mortgage_id = request.form.get("mortgage_id", "")
    try:
        mortgages = update_mortgage(mortgages, mortgage_id, **_form_changes(request.form))
    except FormError as exc:
        flash(str(exc), "error")
    return _redirect_to(mortgages, request.form.get("schedule") or None)


@app.post("/payments/add")
def add_payment_view():
    mortgages = _load_portfolio(request.form.get("data"))
    mortgage_id = request.form.get("mortgage_id", "")
    try:
        amount = _form_number(request.form, "amount")
        payment_date = parse_year_month(request.form.get("date", ""))
    except ValueError as exc:
        flash(str(exc), "error")
    else:
        mortgages = add_single_payment(mortgages, mortgage_id, amount, payment_date)
        flash("Extra payments updated!", "success")
    return _redirect_to(mortgages, request.form.get("schedule") or None)


@app.post("/payments/remove")
def remove_payment_view():
    mortgages = _load_portfolio(request.form.get("data"))
    mortgages = remove_single_payment(
        mortgages, request.form.get("mortgage_id", ""), request.form.get("payment_id", "")
    )
    return _redirect_to(mortgages, request.form.get("schedule") or None)


@app.get("/api/portfolio")
def portfolio_api():
    payload = request.args.get("data")
    if not payload:
        return jsonify({"error": "Missing data parameter"}), 400
    try:
        mortgages = decode_portfolio(payload)
    except ShareStateError as exc:
        logger.warning("Rejected shared data: %s", exc)
        return jsonify({"error": str(exc)}), 400

    include_schedule = request.args.get("schedule") == "1"
    result = []
    for mortgage, details in portfolio_details(mortgages):
        entry = {"id": mortgage.id, "name": mortgage.name, **details_to_dict(details)}
        if include_schedule:
            entry["schedule"] = [entry_to_dict(e) for e in iter_schedule(mortgage)]
        result.append(entry)
    summary = summarize_portfolio(mortgages)
    return jsonify({"mortgages": result, "summary": asdict(summary)})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting Mortgage Calculator web app...")
    app.run(host="0.0.0.0", port=int(os.environ.get("MORTGAGE_CALC_PORT", "8710")), debug=True)

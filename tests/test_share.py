import base64
import json
from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest

from conftest import make_mortgage
from mortgage_calc.data_models import ANNUITY, LINEAR, SinglePayment
from mortgage_calc.share import (
    LOAD_ERROR_MESSAGE,
    ShareStateError,
    build_share_url,
    decode_portfolio,
    encode_portfolio,
    load_shared_portfolio,
)


def _encode_raw(data) -> str:
    return base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")


class TestEncodeDecode:
    def test_round_trip_keeps_calculation_inputs(self):
        mortgage = make_mortgage(
            type=LINEAR,
            start_date=date(2024, 3, 1),
            single_payments=(SinglePayment("payment-1", 5000.0, date(2026, 1, 1)),),
        )
        second = make_mortgage(id="mortgage-2", name="Second", amount=150000.0)
        decoded = decode_portfolio(encode_portfolio([mortgage, second]))
        assert decoded[0] == mortgage
        assert decoded[1].id == "mortgage-2"
        assert decoded[1].amount == 150000.0

    def test_payload_is_json_list(self):
        payload = encode_portfolio([make_mortgage()])
        data = json.loads(base64.b64decode(payload))
        assert isinstance(data, list)
        assert data[0]["interestRate"] == 3.5
        assert data[0]["extraPayment"] == 200.0
        assert data[0]["singlePayments"] == []

    def test_browser_payload_is_tolerated(self):
        payload = _encode_raw(
            [
                {
                    "name": "Primary Mortgage",
                    "amount": 300000,
                    "interestRate": 3.5,
                    "term": 30,
                    "extraPayment": 200,
                    "startDate": "2024-03-15T10:20:30.000Z",
                },
                {
                    "id": "custom",
                    "name": "Second",
                    "amount": 100000,
                    "interestRate": 4,
                    "term": 20,
                    "extraPayment": 0,
                    "startDate": "2024-05-01T00:00:00.000Z",
                    "singlePayments": [{"amount": 1000, "date": "2025-01-10T00:00:00.000Z"}],
                },
            ]
        )
        first, second = decode_portfolio(payload)
        assert first.id == "mortgage-1"
        assert first.single_payments == ()
        assert first.start_date == date(2024, 3, 15)
        assert first.type == ANNUITY
        assert second.id == "custom"
        assert second.single_payments[0].id == "payment-1"
        assert second.single_payments[0].date == date(2025, 1, 10)

    def test_query_string_mangling_is_tolerated(self):
        payload = encode_portfolio([make_mortgage(name="Home ~ sweet ~ home >>> ???")])
        mangled = payload.replace("+", " ").rstrip("=")
        assert decode_portfolio(mangled) == decode_portfolio(payload)

    def test_missing_start_date_defaults_to_today(self):
        payload = _encode_raw([{"amount": 1000, "interestRate": 1, "term": 1, "extraPayment": 0}])
        assert decode_portfolio(payload)[0].start_date == date.today()

    @pytest.mark.parametrize(
        "payload",
        [
            "not base64 at all!!",
            base64.b64encode(b"{not json").decode("ascii"),
            _encode_raw({"amount": 1}),
            _encode_raw([]),
            _encode_raw([1, 2]),
            _encode_raw([{"amount": "a lot"}]),
            _encode_raw([{"amount": 1, "startDate": "yesterday"}]),
            _encode_raw([{"amount": 1, "singlePayments": [{"amount": 1}]}]),
        ],
    )
    def test_malformed_payload_is_rejected(self, payload):
        with pytest.raises(ShareStateError):
            decode_portfolio(payload)


class TestLoadSharedPortfolio:
    def test_no_payload_gives_default(self):
        mortgages, error = load_shared_portfolio(None, today=date(2024, 6, 20))
        assert error is None
        assert len(mortgages) == 1
        assert mortgages[0].name == "Primary Mortgage"
        assert mortgages[0].start_date == date(2024, 6, 1)

    def test_bad_payload_falls_back_with_notice(self, caplog):
        mortgages, error = load_shared_portfolio("garbage!!", today=date(2024, 6, 20))
        assert error == LOAD_ERROR_MESSAGE
        assert mortgages[0].id == "mortgage-1"
        assert "Error loading shared data" in caplog.text

    def test_good_payload(self):
        mortgages, error = load_shared_portfolio(encode_portfolio([make_mortgage(name="Mine")]))
        assert error is None
        assert mortgages[0].name == "Mine"


def test_build_share_url():
    mortgage = make_mortgage()
    url = build_share_url("https://example.test/calc", [mortgage])
    query = parse_qs(urlparse(url).query)
    assert url.startswith("https://example.test/calc?data=")
    assert decode_portfolio(query["data"][0]) == [mortgage]

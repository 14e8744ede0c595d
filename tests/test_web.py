from urllib.parse import parse_qs, urlparse

import pytest

from conftest import make_mortgage
from mortgage_calc.share import decode_portfolio, encode_portfolio
from mortgage_calc_web.app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def _redirect_payload(response):
    assert response.status_code == 302
    query = parse_qs(urlparse(response.headers["Location"]).query)
    return decode_portfolio(query["data"][0])


class TestIndex:
    def test_default_portfolio(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "Mortgage (Extra) Payment Calculator" in body
        assert "Primary Mortgage" in body
        assert "€ 1.347,13" in body

    def test_shared_portfolio(self, client):
        payload = encode_portfolio([make_mortgage(name="Shared Home")])
        body = client.get("/", query_string={"data": payload}).get_data(as_text=True)
        assert "Shared Home" in body
        assert "Failed to load shared data" not in body

    def test_bad_payload_flashes_and_falls_back(self, client):
        response = client.get("/", query_string={"data": "garbage!!"})
        body = response.get_data(as_text=True)
        assert response.status_code == 200
        assert "Failed to load shared data" in body
        assert "Primary Mortgage" in body

    def test_schedule_for_one_mortgage(self, client):
        payload = encode_portfolio([make_mortgage(amount=10000.0, interest_rate=6.0, term=1, extra_payment=0.0)])
        body = client.get("/", query_string={"data": payload, "schedule": "mortgage-1"}).get_data(as_text=True)
        assert "Amortization schedule" in body
        assert "2025-02" in body


class TestEdits:
    def test_add_mortgage(self, client):
        payload = encode_portfolio([make_mortgage()])
        mortgages = _redirect_payload(client.post("/mortgage/add", data={"data": payload}))
        assert [m.id for m in mortgages] == ["mortgage-1", "mortgage-2"]

    def test_remove_mortgage(self, client):
        payload = encode_portfolio([make_mortgage(), make_mortgage(id="mortgage-2")])
        response = client.post("/mortgage/remove", data={"data": payload, "mortgage_id": "mortgage-1"})
        assert [m.id for m in _redirect_payload(response)] == ["mortgage-2"]

    def test_update_mortgage(self, client):
        payload = encode_portfolio([make_mortgage()])
        response = client.post(
            "/mortgage/update",
            data={
                "data": payload,
                "mortgage_id": "mortgage-1",
                "amount": "250,000",
                "interest_rate": "4.1",
                "term": "25",
                "extra_payment": "",
                "type": "linear",
                "start_date": "2025-01",
                "name": "Updated",
            },
        )
        (mortgage,) = _redirect_payload(response)
        assert mortgage.amount == 250000.0
        assert mortgage.interest_rate == 4.1
        assert mortgage.term == 25.0
        assert mortgage.extra_payment == 0.0
        assert mortgage.type == "linear"
        assert mortgage.start_date.isoformat() == "2025-01-01"
        assert mortgage.name == "Updated"

    def test_update_with_bad_number_keeps_state(self, client):
        original = make_mortgage()
        payload = encode_portfolio([original])
        response = client.post(
            "/mortgage/update", data={"data": payload, "mortgage_id": "mortgage-1", "amount": "abc"}
        )
        assert _redirect_payload(response) == [original]
        body = client.get(response.headers["Location"]).get_data(as_text=True)
        assert "Invalid numeric value" in body

    def test_add_and_remove_single_payment(self, client):
        payload = encode_portfolio([make_mortgage()])
        response = client.post(
            "/payments/add",
            data={"data": payload, "mortgage_id": "mortgage-1", "amount": "10000", "date": "2026-06"},
        )
        (mortgage,) = _redirect_payload(response)
        assert len(mortgage.single_payments) == 1
        payment = mortgage.single_payments[0]
        assert payment.amount == 10000.0

        response = client.post(
            "/payments/remove",
            data={"data": encode_portfolio([mortgage]), "mortgage_id": "mortgage-1", "payment_id": payment.id},
        )
        (mortgage,) = _redirect_payload(response)
        assert mortgage.single_payments == ()


class TestApi:
    def test_portfolio_json(self, client):
        payload = encode_portfolio([make_mortgage(), make_mortgage(id="mortgage-2", amount=100000.0)])
        response = client.get("/api/portfolio", query_string={"data": payload})
        assert response.status_code == 200
        data = response.get_json()
        assert len(data["mortgages"]) == 2
        assert data["mortgages"][0]["monthly_payment"] == pytest.approx(1347.13, abs=0.005)
        assert "schedule" not in data["mortgages"][0]
        assert data["summary"]["mortgage_amount"] == 400000.0

    def test_portfolio_json_with_schedule(self, client):
        payload = encode_portfolio([make_mortgage(amount=10000.0, interest_rate=6.0, term=1, extra_payment=0.0)])
        data = client.get("/api/portfolio", query_string={"data": payload, "schedule": "1"}).get_json()
        assert len(data["mortgages"][0]["schedule"]) == 12

    def test_bad_payload(self, client):
        response = client.get("/api/portfolio", query_string={"data": "garbage!!"})
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_missing_payload(self, client):
        assert client.get("/api/portfolio").status_code == 400

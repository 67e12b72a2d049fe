# tests/test_api_cash_on_cash.py
import pytest


def test_defaults_reproduce_reference_deal(client):
    payload = {"purchase_price": 290000, "monthly_property_tax": 157, "monthly_gross_rent": 2400}
    r = client.post("/cash-on-cash", json=payload)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["loan"] == pytest.approx(217500.0)
    assert data["initial_investment"] == pytest.approx(84100.0)
    assert data["cash_on_cash"] == pytest.approx(6.075521290469965, rel=1e-9)


def test_percent_string_overrides(client):
    payload = {
        "purchase_price": "290000",
        "monthly_property_tax": "157",
        "monthly_gross_rent": "2400",
        "assumptions": {"down_payment": "20%", "loan_interest": "6.5%"},
    }
    r = client.post("/cash-on-cash", json=payload)
    assert r.status_code == 200, r.text
    assert r.json()["loan"] == pytest.approx(232000.0)


def test_zero_down_and_closing_is_422(client):
    payload = {
        "purchase_price": 290000,
        "monthly_property_tax": 157,
        "monthly_gross_rent": 2400,
        "assumptions": {"down_payment": 0, "closing_cost": 0},
    }
    r = client.post("/cash-on-cash", json=payload)
    assert r.status_code == 422
    assert "closing_cost" in r.json()["detail"]


def test_missing_price_is_422(client):
    r = client.post("/cash-on-cash", json={"monthly_property_tax": 157, "monthly_gross_rent": 2400})
    assert r.status_code == 422

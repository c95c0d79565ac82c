"""
Tests for exchange rate fetch, storage and conversion.
"""
from decimal import Decimal

import pytest
import requests

from app.db.models.currency_rate import CurrencyRate
from app.services import currency_service
from app.services.currency_service import (
    CurrencyServiceError,
    convert_to_inr,
    fetch_latest_rates,
    get_all_rates,
    refresh_currency_rates,
    upsert_currency_rates,
)


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body or {}
        self.text = str(self._body)

    def json(self):
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def app_id(monkeypatch):
    monkeypatch.setattr(currency_service, "OPENEXCHANGE_APP_ID", "test-app-id")


def test_fetch_latest_rates():
    session = FakeSession(FakeResponse(body={"base": "USD", "timestamp": 1, "rates": {"INR": 83.2}}))

    fetched = fetch_latest_rates(session)

    assert fetched["rates"] == {"INR": 83.2}
    assert session.calls[0][1]["app_id"] == "test-app-id"


def test_fetch_without_app_id(monkeypatch):
    monkeypatch.setattr(currency_service, "OPENEXCHANGE_APP_ID", None)

    with pytest.raises(CurrencyServiceError):
        fetch_latest_rates(FakeSession())


def test_fetch_http_error():
    with pytest.raises(CurrencyServiceError):
        fetch_latest_rates(FakeSession(FakeResponse(status_code=401, body={"error": True})))


def test_fetch_network_error():
    with pytest.raises(CurrencyServiceError):
        fetch_latest_rates(FakeSession(error=requests.ConnectionError("down")))


def test_upsert_inserts_then_updates(db):
    upsert_currency_rates(db, {"INR": 83.0, "eur": 0.92})
    upsert_currency_rates(db, {"INR": 84.5})

    assert db.query(CurrencyRate).count() == 2
    assert get_all_rates(db) == {"INR": 84.5, "EUR": 0.92}


def test_convert_to_inr(db):
    upsert_currency_rates(db, {"USD": 1, "INR": 80, "EUR": 0.8})

    assert convert_to_inr(db, "10", "USD") == Decimal("800.00")
    assert convert_to_inr(db, "10", "EUR") == Decimal("1000.00")
    assert convert_to_inr(db, "10", "INR") == Decimal("10.00")
    assert convert_to_inr(db, 0, "USD") == Decimal("0.00")


def test_convert_unknown_currency_falls_back(db):
    upsert_currency_rates(db, {"INR": 80})

    assert convert_to_inr(db, "12.5", "CAD") == Decimal("12.50")


def test_refresh_never_raises(db):
    summary = refresh_currency_rates(db, FakeSession(error=requests.Timeout("slow")))

    assert summary.success is False
    assert "slow" in summary.message


def test_refresh_stores_rates(db):
    session = FakeSession(FakeResponse(body={"rates": {"INR": 83.2, "USD": 1}}))

    summary = refresh_currency_rates(db, session)

    assert summary.success is True
    assert summary.count == 2
    assert db.query(CurrencyRate).count() == 2

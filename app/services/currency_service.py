"""
Currency rates: fetch from Open Exchange Rates, store latest per code,
convert subscription prices to INR for reporting.
"""
import logging
import time
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

import requests
from sqlalchemy.orm import Session

from app.core.config import (
    OPENEXCHANGE_APP_ID,
    CURRENCY_BASE,
    CURRENCY_API_URL,
    CURRENCY_API_TIMEOUT,
)
from app.db.models.currency_rate import CurrencyRate
from app.schemas.jobs import CurrencyUpdateSummary

logger = logging.getLogger(__name__)

if not OPENEXCHANGE_APP_ID:
    logger.warning("OPENEXCHANGE_APP_ID not configured - currency refresh disabled")


class CurrencyServiceError(Exception):
    """Raised when rates cannot be fetched."""


def fetch_latest_rates(session: Optional[requests.Session] = None) -> Dict:
    """
    Fetch latest rates relative to CURRENCY_BASE.

    Returns:
        Dictionary with base, timestamp and rates {code: rate}

    Raises:
        CurrencyServiceError: If the app id is missing or the request fails
    """
    if not OPENEXCHANGE_APP_ID:
        raise CurrencyServiceError("OPENEXCHANGE_APP_ID not configured")

    http = session or requests
    try:
        response = http.get(
            CURRENCY_API_URL,
            params={"app_id": OPENEXCHANGE_APP_ID, "base": CURRENCY_BASE},
            timeout=CURRENCY_API_TIMEOUT,
        )
    except requests.RequestException as e:
        raise CurrencyServiceError(f"Failed to reach rates API: {e}") from e

    if not response.ok:
        raise CurrencyServiceError(f"Failed to fetch rates: {response.status_code} {response.text}")

    body = response.json()
    return {
        "base": body.get("base") or CURRENCY_BASE,
        "timestamp": body.get("timestamp") or int(time.time()),
        "rates": body.get("rates") or {},
    }


def upsert_currency_rates(db: Session, rates: Dict[str, float]) -> int:
    """Insert or update every rate in one transaction."""
    if not rates:
        return 0

    now = datetime.utcnow()
    try:
        existing = {
            row.currency_code: row
            for row in db.query(CurrencyRate).filter(
                CurrencyRate.currency_code.in_([code.upper() for code in rates])
            )
        }
        for code, rate in rates.items():
            code = code.upper()
            value = Decimal(str(rate))
            row = existing.get(code)
            if row is None:
                db.add(CurrencyRate(currency_code=code, exchange_rate=value, updated_at=now))
            else:
                row.exchange_rate = value
                row.updated_at = now
        db.commit()
    except Exception:
        db.rollback()
        raise

    return len(rates)


def get_latest_rate(db: Session, currency_code: str) -> Optional[Decimal]:
    row = (
        db.query(CurrencyRate.exchange_rate)
        .filter(CurrencyRate.currency_code == currency_code.upper())
        .first()
    )
    return Decimal(str(row.exchange_rate)) if row else None


def get_all_rates(db: Session) -> Dict[str, float]:
    return {
        row.currency_code: float(row.exchange_rate)
        for row in db.query(CurrencyRate.currency_code, CurrencyRate.exchange_rate)
    }


def convert_to_inr(db: Session, amount, currency: Optional[str] = None) -> Decimal:
    """
    Convert an amount to INR through the stored base-relative rates.

    Unknown currencies and lookup failures fall back to a factor of 1.
    """
    if not amount:
        return Decimal("0.00")

    amount = Decimal(str(amount))
    code = (currency or "INR").upper()
    factor = Decimal("1")
    if code != "INR":
        try:
            source_rate = get_latest_rate(db, code)
            inr_rate = get_latest_rate(db, "INR")
            if source_rate and inr_rate:
                factor = inr_rate / source_rate
        except Exception as e:
            logger.warning(f"Rate lookup failed for {code}, using amount as-is: {e}")

    return (amount * factor).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def refresh_currency_rates(db: Session, session: Optional[requests.Session] = None) -> CurrencyUpdateSummary:
    """Fetch and store latest rates. Errors are reported in the summary."""
    logger.info("Starting currency update")
    try:
        fetched = fetch_latest_rates(session)
        rates = fetched["rates"]
        if not rates:
            logger.warning("No rates returned from API")
            return CurrencyUpdateSummary(success=False, count=0, message="No rates returned")

        count = upsert_currency_rates(db, rates)
        logger.info(f"Currency rates updated: {count} entries")
        return CurrencyUpdateSummary(success=True, count=count, message="Updated successfully")
    except Exception as e:
        logger.error(f"Currency update failed: {e}")
        return CurrencyUpdateSummary(success=False, count=0, message=str(e) or "Unknown error")

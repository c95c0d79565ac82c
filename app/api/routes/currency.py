import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_permission
from app.core.config import CURRENCY_BASE
from app.db.models.user import User
from app.services.currency_service import (
    get_all_rates,
    fetch_latest_rates,
    refresh_currency_rates,
    CurrencyServiceError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/currency", tags=["Currency"])


@router.get("/latest")
def latest_rates(db: Session = Depends(get_db)):
    """Stored rates, or a live fetch when nothing is stored yet."""
    rates = get_all_rates(db)
    if rates:
        return {
            "success": True,
            "source": "db",
            "base": CURRENCY_BASE,
            "rates": rates,
            "timestamp": datetime.utcnow().isoformat(),
        }

    try:
        fetched = fetch_latest_rates()
    except CurrencyServiceError as e:
        logger.error(f"Live rate fetch failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch rates from API")

    return {
        "success": True,
        "source": "remote",
        "base": fetched["base"],
        "rates": fetched["rates"],
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.post("/update")
def update_rates(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("currency_update")),
):
    logger.info(f"Manual currency update triggered by user_id={user.id}")
    summary = refresh_currency_rates(db)
    return {**summary.model_dump(), "timestamp": datetime.utcnow().isoformat()}

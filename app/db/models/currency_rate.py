from sqlalchemy import Column, Integer, String, DateTime, Numeric
from sqlalchemy.sql import func
from app.db.base import Base


class CurrencyRate(Base):
    """Latest exchange rate per currency code, relative to CURRENCY_BASE."""
    __tablename__ = "currency_rates"

    id = Column(Integer, primary_key=True, index=True)
    currency_code = Column(String(10), nullable=False, unique=True)
    exchange_rate = Column(Numeric(14, 6), nullable=False, default=1.0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

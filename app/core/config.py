import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./subscriptions.db")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
RESET_TOKEN_SECRET = os.getenv("RESET_TOKEN_SECRET", SECRET_KEY)
RESET_TOKEN_EXPIRE_MINUTES = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "15"))

# ✅ Encryption (OTP codes at rest)
ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY", "defaultsecretkeydefaultsecretkey")

# ✅ Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ✅ Frontend
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# ✅ Email
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
EMAIL_FROM = os.getenv("EMAIL_FROM", SMTP_USER)
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")

# ✅ Scheduler
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "1") == "1"
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Kolkata")
REMINDER_OFFSETS = os.getenv("REMINDER_OFFSETS", "7,3,0")
REMINDER_CRON_HOUR = int(os.getenv("REMINDER_CRON_HOUR", "9"))
REMINDER_CRON_MINUTE = int(os.getenv("REMINDER_CRON_MINUTE", "0"))
STATUS_UPDATE_INTERVAL_MINUTES = int(os.getenv("STATUS_UPDATE_INTERVAL_MINUTES", "12"))
CURRENCY_UPDATE_CRON_HOUR = int(os.getenv("CURRENCY_UPDATE_CRON_HOUR", "0"))

# ✅ Open Exchange Rates
OPENEXCHANGE_APP_ID = os.getenv("OPENEXCHANGE_APP_ID")
CURRENCY_BASE = os.getenv("CURRENCY_BASE", "USD")
CURRENCY_API_URL = os.getenv("CURRENCY_API_URL", "https://openexchangerates.org/api/latest.json")
CURRENCY_API_TIMEOUT = int(os.getenv("CURRENCY_API_TIMEOUT", "15"))

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import auth, users, subscriptions, currency, jobs, health
from app.core import config
from app.core.logging_config import setup_logging, sanitize_log_data
from app.jobs.scheduler import start_scheduler, shutdown_scheduler

logger = logging.getLogger(__name__)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Department Subscription Management")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(users.roles_router)
app.include_router(subscriptions.router)
app.include_router(subscriptions.departments_router)
app.include_router(currency.router)
app.include_router(jobs.router)


@app.get("/")
def root():
    return {"message": "Department Subscription Backend Running"}


# ============================================
# ✅ STARTUP / SHUTDOWN
# ============================================

@app.on_event("startup")
def on_startup():
    setup_logging(config.LOG_LEVEL)
    settings = sanitize_log_data({
        "database_url": config.DATABASE_URL,
        "smtp_host": config.SMTP_HOST,
        "smtp_password": config.SMTP_PASSWORD,
        "timezone": config.APP_TIMEZONE,
        "reminder_offsets": config.REMINDER_OFFSETS,
    })
    logger.info(f"Starting with settings: {settings}")

    if config.RUN_MIGRATIONS:
        from app.db.migrate import run_migrations
        run_migrations()
    else:
        from app.db.init_db import init_db
        init_db()

    from app.db.init_db import seed_defaults
    seed_defaults()

    if config.SCHEDULER_ENABLED:
        start_scheduler()
    else:
        logger.info("SCHEDULER_ENABLED=0 -> background jobs disabled")


@app.on_event("shutdown")
def on_shutdown():
    shutdown_scheduler()

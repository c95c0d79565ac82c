"""
Periodic job contract.

The scheduler and the manual trigger endpoint both call Job.run(), which owns
its database session and never raises: any failure aborts the current cycle,
is logged, and is reported in the JobResult. The next scheduled cycle retries.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.base import BaseScheduler
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import APP_TIMEZONE
from app.db.session import SessionLocal
from app.schemas.jobs import JobResult

logger = logging.getLogger(__name__)


class Job(ABC):
    name: str = "job"
    run_on_start: bool = False

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    @abstractmethod
    def execute(self, db: Session) -> BaseModel:
        """Do one cycle of work and return its summary."""

    @abstractmethod
    def trigger(self):
        """APScheduler trigger describing this job's cadence."""

    def is_success(self, summary: BaseModel) -> bool:
        return True

    def run(self) -> JobResult:
        started_at = datetime.utcnow()
        logger.info(f"[job:{self.name}] starting")

        db = None
        try:
            db = self.session_factory()
            summary = self.execute(db)
        except Exception as e:
            logger.exception(f"[job:{self.name}] failed")
            return JobResult(
                job=self.name,
                success=False,
                started_at=started_at,
                finished_at=datetime.utcnow(),
                error=str(e) or e.__class__.__name__,
            )
        finally:
            if db is not None:
                db.close()

        result = JobResult(
            job=self.name,
            success=self.is_success(summary),
            started_at=started_at,
            finished_at=datetime.utcnow(),
            summary=summary.model_dump(),
        )
        logger.info(f"[job:{self.name}] finished: {result.summary}")
        return result

    def schedule(self, scheduler: BaseScheduler, run_now: Optional[bool] = None) -> None:
        """Register this job; optionally fire once immediately."""
        run_now = self.run_on_start if run_now is None else run_now
        kwargs = {}
        if run_now:
            kwargs["next_run_time"] = datetime.now(ZoneInfo(APP_TIMEZONE))

        # replace_existing does not dedupe jobs added before the scheduler starts
        if scheduler.get_job(self.name) is not None:
            scheduler.remove_job(self.name)

        scheduler.add_job(
            self.run,
            trigger=self.trigger(),
            id=self.name,
            name=self.name,
            replace_existing=True,
            coalesce=True,
            **kwargs,
        )
        logger.info(f"[job:{self.name}] scheduled: {self.trigger()}")

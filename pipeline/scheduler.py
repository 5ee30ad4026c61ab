"""Recurring jobs: the weekly payout batch and the stale-offer reaper.

The payout period covers the ``period_days`` ending at the schedule's latest
fire time, so every run between two fires settles the same period.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config_loader import SettlementConfig
from core.dispatch import AssignmentLedger
from core.settlement import PayoutBatchProcessor, PayoutBatchReport
from core.utils import ensure_utc

logger = logging.getLogger(__name__)

PAYOUT_JOB_ID = "weekly_payout_batch"
OFFER_REAPER_JOB_ID = "offer_reaper"
MAX_LOOKBACK_DAYS = 31


def last_fire_time(trigger: CronTrigger, now: datetime, lookback: timedelta) -> Optional[datetime]:
    """Latest fire time of ``trigger`` in [now - lookback, now], or None."""
    last = None
    fire = trigger.get_next_fire_time(None, now - lookback)
    while fire is not None and fire <= now:
        last = fire
        fire = trigger.get_next_fire_time(fire, fire + timedelta(seconds=1))
    return last


def settlement_period(config: SettlementConfig, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    The ``period_days`` ending at the schedule's most recent fire time.

    Any run between two fires, including a retry after a crash, gets the
    same period and therefore the same payout idempotency keys.
    """
    now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
    trigger = CronTrigger.from_crontab(config.schedule, timezone=config.timezone)

    end = None
    for lookback_days in (config.period_days, MAX_LOOKBACK_DAYS):
        end = last_fire_time(trigger, now, timedelta(days=lookback_days))
        if end is not None:
            break

    if end is None:
        logger.warning(f"Schedule '{config.schedule}' has not fired recently; period ends at midnight UTC")
        end = now.replace(hour=0, minute=0, second=0, microsecond=0)

    end = end.astimezone(timezone.utc)
    return end - timedelta(days=config.period_days), end


class PayoutScheduler:
    """
    Wraps an APScheduler scheduler with the dispatch recurring jobs.

    Args:
        processor: PayoutBatchProcessor run on each trigger
        config: SettlementConfig (cron schedule, timezone, period length)
        ledger: Optional AssignmentLedger; when given, stale offers are reaped
        reaper_interval_minutes: How often the reaper runs
        blocking: Use a BlockingScheduler (CLI) instead of a background one (web app)
    """

    def __init__(
        self,
        processor: PayoutBatchProcessor,
        config: SettlementConfig,
        ledger: Optional[AssignmentLedger] = None,
        reaper_interval_minutes: int = 5,
        blocking: bool = False
    ):
        self.processor = processor
        self.config = config
        self.ledger = ledger
        self.reaper_interval_minutes = reaper_interval_minutes

        scheduler_cls = BlockingScheduler if blocking else BackgroundScheduler
        self.scheduler = scheduler_cls(timezone=config.timezone)
        self.last_report: Optional[PayoutBatchReport] = None

    def run_payout_batch(self, now: Optional[datetime] = None) -> PayoutBatchReport:
        period_start, period_end = settlement_period(self.config, now)
        report = self.processor.run(period_start, period_end)
        self.last_report = report
        return report

    def reap_offers(self) -> int:
        expired = self.ledger.expire_stale_offers()
        if expired:
            logger.info(f"Expired {expired} stale offers")
        return expired

    def configure(self) -> None:
        trigger = CronTrigger.from_crontab(self.config.schedule, timezone=self.config.timezone)
        self.scheduler.add_job(
            self.run_payout_batch,
            trigger,
            id=PAYOUT_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        logger.info(f"Payout batch scheduled: '{self.config.schedule}' ({self.config.timezone})")

        if self.ledger is not None:
            self.scheduler.add_job(
                self.reap_offers,
                "interval",
                minutes=self.reaper_interval_minutes,
                id=OFFER_REAPER_JOB_ID,
                replace_existing=True,
                max_instances=1
            )
            logger.info(f"Offer reaper scheduled every {self.reaper_interval_minutes} minutes")

    def start(self) -> None:
        self.configure()
        self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

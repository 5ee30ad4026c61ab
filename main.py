import time
import logging
import signal
import argparse

from tenacity import retry, stop_after_attempt, wait_fixed
from core.app_context import AppContext
from core.config_loader import load_config
from database import database
from pipeline.scheduler import PayoutScheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global flag for graceful shutdown
running = True

def signal_handler(sig, frame):
    global running
    logger.info("Shutdown signal received")
    running = False


@retry(stop=stop_after_attempt(5), wait=wait_fixed(3), reraise=True)
def init_db():
    """Create tables, waiting for the database to come up."""
    logger.info("Initializing database schema")
    database.init_db()


def run_payouts_once(ctx: AppContext):
    scheduler = PayoutScheduler(ctx.payout_processor, ctx.config.settlement)
    report = scheduler.run_payout_batch()

    logger.info("=" * 60)
    logger.info(f"PAID: {len(report.paid)} (${report.total_paid})")
    logger.info(f"SKIPPED (below minimum): {len(report.skipped)}")
    logger.info(f"FAILED: {len(report.failed)}")
    logger.info(f"MISSING ACCOUNT: {len(report.missing_account)}")
    if report.error:
        logger.error(f"Batch error: {report.error}")
    logger.info("=" * 60)
    return 1 if report.error else 0


def run_scheduler(ctx: AppContext, reaper_interval_minutes: int):
    scheduler = PayoutScheduler(
        ctx.payout_processor,
        ctx.config.settlement,
        ledger=ctx.ledger,
        reaper_interval_minutes=reaper_interval_minutes
    )
    scheduler.start()
    logger.info("Scheduler running. Press Ctrl+C to stop.")

    try:
        while running:
            time.sleep(1)
    finally:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Dispatch Main Driver")
    parser.add_argument('--config', type=str, default='config.yaml', help='Path to config.yaml')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('init-db', help='Create database tables')

    payouts = subparsers.add_parser('payouts', help='Weekly payout batch')
    payouts.add_argument('--once', action='store_true',
                         help='Run a single batch for the period ending now and exit')
    payouts.add_argument('--reaper-interval', type=int, default=5,
                         help='Minutes between stale-offer sweeps while scheduling')

    subparsers.add_parser('reap-offers', help='Expire pending offers past their TTL')

    dispatch = subparsers.add_parser('dispatch', help='Rank and offer a job to the top contractors')
    dispatch.add_argument('job_id')

    metrics = subparsers.add_parser('metrics', help='Recompute a contractor\'s rates')
    metrics.add_argument('contractor_id')

    args = parser.parse_args()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    config = load_config(args.config)
    database.configure_engine(config.database.url, pool_pre_ping=True)

    if args.command == 'init-db':
        init_db()
        return 0

    ctx = AppContext.build(config)

    if args.command == 'payouts':
        if args.once:
            return run_payouts_once(ctx)
        return run_scheduler(ctx, args.reaper_interval)

    if args.command == 'reap-offers':
        expired = ctx.ledger.expire_stale_offers()
        logger.info(f"Expired {expired} stale offers")
        return 0

    if args.command == 'dispatch':
        result = ctx.dispatch_flow.on_job_created(args.job_id)
        if result.needs_manual_review:
            logger.warning(f"Job {args.job_id} needs manual review: {result.error or 'no eligible contractors'}")
            return 1
        return 0

    if args.command == 'metrics':
        snapshot = ctx.metrics.recompute(args.contractor_id)
        logger.info(f"Contractor {args.contractor_id}: {snapshot}")
        return 0

    return 0

if __name__ == "__main__":
    raise SystemExit(main())

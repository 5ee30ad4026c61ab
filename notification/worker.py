#!/usr/bin/env python3
"""
RQ worker for offer notifications.

Drains the queue filled by ``OfferNotifier``. Redis URL and queue name
come from the ``notifications`` section of config.yaml; REDIS_URL still
overrides the URL.

Usage:
    python -m notification.worker
    python -m notification.worker --burst
    python -m notification.worker --config /etc/dispatch/config.yaml --verbose
"""

import sys
import argparse
import logging
from typing import List, Optional

from redis import Redis
from rq import Worker

from core.config_loader import NotificationConfig, load_config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL = 'redis://localhost:6379/0'


def start_worker(config: NotificationConfig, burst: bool = False, queues: Optional[List[str]] = None) -> int:
    """Run an RQ worker until interrupted (or until the queues drain in burst mode)."""
    redis_url = config.redis_url or DEFAULT_REDIS_URL
    queues = queues or [config.queue_name]

    logger.info(f"Starting offer notification worker on {', '.join(queues)} (burst={burst})")

    try:
        redis_conn = Redis.from_url(redis_url)
        redis_conn.ping()
    except Exception as e:
        logger.error(f"Cannot reach Redis at {redis_url}: {e}")
        return 1

    worker = Worker(queues, connection=redis_conn)
    try:
        worker.work(burst=burst)
    except KeyboardInterrupt:
        logger.info("Worker stopped")
    return 0


def main():
    parser = argparse.ArgumentParser(description='Dispatch offer notification worker')
    parser.add_argument('--config', type=str, default='config.yaml', help='Path to config.yaml')
    parser.add_argument('--burst', action='store_true', help='Process queued jobs and exit')
    parser.add_argument('--queues', nargs='+', help='Queues to listen on (default: notifications.queue_name)')
    parser.add_argument('--verbose', action='store_true')

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args.config)
    return start_worker(config.notifications, burst=args.burst, queues=args.queues)


if __name__ == '__main__':
    sys.exit(main())

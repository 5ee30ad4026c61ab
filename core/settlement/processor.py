#!/usr/bin/env python3
"""
Payout Batch Processor - weekly settlement of completed jobs.

Flow per run:
1. Collect COMPLETED + UNSETTLED jobs with an accepted contractor
2. Group by contractor, net = total_price * (1 - platform fee - insurance fee)
3. Skip groups below the minimum payout (jobs stay UNSETTLED for next cycle)
4. One transfer per remaining group, keyed by contractor + period
5. Record the Payout and mark the group's jobs SETTLED in one transaction

Failures are isolated per contractor: a failed transfer or write is logged,
reported, and the batch moves on. A crash between a successful transfer and
step 5 leaves the jobs UNSETTLED; a retry for the same period re-sends the
same idempotency key, which the gateway deduplicates. A period that already
has a Payout for the contractor is never transferred to again.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from core.config_loader import SettlementConfig
from core.errors import ConflictError, ExternalServiceError, ValidationError
from core.settlement.models import ContractorGroup, PaidPayout, PayoutBatchReport
from core.utils import to_minor_units, to_money
from database.uow import dispatch_uow
from payments.gateway import TransferGateway

logger = logging.getLogger(__name__)


def idempotency_key(contractor_id, period_start: datetime, period_end: datetime) -> str:
    return f"payout:{contractor_id}:{period_start.isoformat()}:{period_end.isoformat()}"


class PayoutBatchProcessor:
    """
    Settles completed jobs into per-contractor payouts.

    Args:
        config: SettlementConfig with fees, threshold and parallelism
        gateway: TransferGateway used to move money
        uow_factory: Callable returning a unit-of-work context manager
    """

    def __init__(
        self,
        config: SettlementConfig,
        gateway: TransferGateway,
        uow_factory: Callable = dispatch_uow
    ):
        self.config = config
        self.gateway = gateway
        self.uow_factory = uow_factory

        self._payout_share = Decimal("1") - Decimal(str(config.platform_fee_pct)) - Decimal(str(config.insurance_fee_pct))
        self._min_payout = to_money(config.min_payout_amount)

    def net_amount(self, total_price) -> Decimal:
        """Contractor's share of a job price after platform and insurance fees, in cents."""
        return to_money(Decimal(str(total_price)) * self._payout_share)

    def collect_groups(self, period_end: datetime) -> Tuple[List[ContractorGroup], List]:
        """
        Group eligible jobs by contractor.

        Returns:
            (groups ordered by contractor id, contractor ids lacking a payable account)
        """
        groups: Dict = {}
        missing_account = []

        with self.uow_factory() as repo:
            for job, contractor in repo.jobs.get_settlement_candidates(period_end):
                if contractor is None:
                    logger.warning(f"Job {job.id} skipped: completed without an accepted contractor")
                    continue

                if not contractor.payout_account_id:
                    logger.warning(f"Job {job.id} skipped: contractor {contractor.id} has no payable account linked")
                    if contractor.id not in missing_account:
                        missing_account.append(contractor.id)
                    continue

                group = groups.get(contractor.id)
                if group is None:
                    group = ContractorGroup(
                        contractor_id=contractor.id,
                        payout_account_id=contractor.payout_account_id
                    )
                    groups[contractor.id] = group

                group.job_ids.append(job.id)
                group.net_amount += self.net_amount(job.total_price)

        ordered = sorted(groups.values(), key=lambda g: str(g.contractor_id))
        return ordered, missing_account

    def run(self, period_start: datetime, period_end: datetime) -> PayoutBatchReport:
        """
        Run one settlement batch. Never raises for per-contractor failures.

        Raises:
            ValidationError: period_start is not before period_end
        """
        if period_start >= period_end:
            raise ValidationError("period_start must be before period_end")

        report = PayoutBatchReport(period_start=period_start, period_end=period_end)

        logger.info("=" * 60)
        logger.info(f"STARTING PAYOUT BATCH {period_start.isoformat()} -> {period_end.isoformat()}")
        logger.info("=" * 60)

        try:
            groups, missing_account = self.collect_groups(period_end)
        except Exception as e:
            logger.error(f"Payout batch aborted while collecting jobs: {e}", exc_info=True)
            report.error = str(e)
            return report

        report.missing_account.extend(missing_account)

        if not groups:
            logger.info("No eligible jobs found for payout.")
            return report

        eligible = []
        for group in groups:
            if group.net_amount < self._min_payout:
                logger.info(
                    f"Skipping contractor {group.contractor_id}: below minimum "
                    f"(${group.net_amount} < ${self._min_payout}, {len(group.job_ids)} jobs stay unsettled)"
                )
                report.skipped.append(group.contractor_id)
            else:
                eligible.append(group)

        if self.config.max_workers > 1 and len(eligible) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                results = list(executor.map(
                    lambda g: self._settle_group(g, period_start, period_end), eligible
                ))
        else:
            results = [self._settle_group(g, period_start, period_end) for g in eligible]

        for group, paid in zip(eligible, results):
            if paid is None:
                report.failed.append(group.contractor_id)
            else:
                report.paid.append(paid)

        logger.info(
            f"Payout batch finished: paid={len(report.paid)} (${report.total_paid}), "
            f"skipped={len(report.skipped)}, failed={len(report.failed)}, "
            f"missing_account={len(report.missing_account)}"
        )
        return report

    def _settle_group(
        self,
        group: ContractorGroup,
        period_start: datetime,
        period_end: datetime
    ) -> Optional[PaidPayout]:
        """Transfer and record one contractor's payout. Returns None on failure."""
        key = idempotency_key(group.contractor_id, period_start, period_end)
        currency = self.config.currency

        logger.info(
            f"Processing payout for contractor {group.contractor_id} "
            f"(${group.net_amount}, {len(group.job_ids)} jobs)"
        )

        try:
            with self.uow_factory() as repo:
                existing = repo.payouts.get_by_idempotency_key(key)
                existing_id = existing.id if existing is not None else None
        except Exception as e:
            logger.error(f"Could not check earlier payouts for contractor {group.contractor_id}: {e}")
            return None

        if existing_id is not None:
            # One payout per contractor and period; later jobs wait for the next period
            logger.error(
                f"Contractor {group.contractor_id} already has payout {existing_id} for this period "
                f"(key {key}); {len(group.job_ids)} jobs stay unsettled, no transfer sent"
            )
            return None

        try:
            transfer_id = self.gateway.create_transfer(
                destination_account=group.payout_account_id,
                amount_minor_units=to_minor_units(group.net_amount),
                currency=currency,
                idempotency_key=key
            )
        except ExternalServiceError as e:
            logger.error(f"Failed payout for contractor {group.contractor_id}: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error transferring to contractor {group.contractor_id}: {e}", exc_info=True)
            return None

        try:
            with self.uow_factory() as repo:
                payout = repo.payouts.create(
                    contractor_id=group.contractor_id,
                    amount=group.net_amount,
                    currency=currency,
                    transfer_id=transfer_id,
                    idempotency_key=key,
                    period_start=period_start,
                    period_end=period_end,
                    job_count=len(group.job_ids)
                )
                settled = repo.jobs.mark_settled(group.job_ids, payout.id)
                if settled != len(group.job_ids):
                    raise ConflictError(
                        f"expected to settle {len(group.job_ids)} jobs, {settled} were still unsettled"
                    )
                payout_id = payout.id
        except Exception as e:
            logger.error(
                f"Transfer {transfer_id} sent to contractor {group.contractor_id} but settlement was not "
                f"recorded ({e}); jobs stay unsettled and will be retried with key {key}"
            )
            return None

        logger.info(f"Payout {payout_id} created for contractor {group.contractor_id} (transfer {transfer_id})")
        return PaidPayout(
            payout_id=payout_id,
            contractor_id=group.contractor_id,
            amount=group.net_amount,
            currency=currency,
            transfer_id=transfer_id,
            job_ids=list(group.job_ids),
            period_start=period_start,
            period_end=period_end
        )

"""Tests for the offer/claim protocol and post-claim job progress."""

import uuid
import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from core.config_loader import DispatchConfig
from core.dispatch import AssignmentLedger
from core.errors import ConflictError, NotFoundError
from core.utils import ensure_utc, utcnow
from database.models import AssignmentStatus, ContractorProfile, Job, JobStatus
from tests.fixtures.dispatch_fixtures import DispatchDbTestCase


@pytest.mark.db
class TestOffers(DispatchDbTestCase):

    def setUp(self):
        super().setUp()
        self.notifier = MagicMock()
        self.ledger = AssignmentLedger(DispatchConfig(), uow_factory=self.uow, notifier=self.notifier)

    def test_offer_creates_pending_assignments(self):
        job_id = self.add_job()
        a = self.add_contractor()
        b = self.add_contractor()

        before = utcnow()
        assignment_ids = self.ledger.offer(job_id, [a, b])

        self.assertEqual(len(assignment_ids), 2)
        rows = self.assignments_for(job_id)
        self.assertEqual({r.contractor_id for r in rows}, {a, b})
        for row in rows:
            self.assertEqual(row.status, AssignmentStatus.PENDING)
            self.assertAlmostEqual((ensure_utc(row.expires_at) - before).total_seconds(), 15 * 60, delta=5)

        self.assertEqual(self.get(Job, job_id).status, JobStatus.OFFERED)
        self.assertEqual(self.get(ContractorProfile, a).offered_count, 1)

    def test_offer_deduplicates_candidates(self):
        job_id = self.add_job()
        a = self.add_contractor()

        self.assertEqual(len(self.ledger.offer(job_id, [a, str(a)])), 1)
        self.assertEqual(self.get(ContractorProfile, a).offered_count, 1)

    def test_offer_notifies_each_candidate(self):
        job_id = self.add_job()
        a = self.add_contractor()
        b = self.add_contractor()

        assignment_ids = self.ledger.offer(job_id, [a, b])

        self.assertEqual(self.notifier.notify_job_offered.call_count, 2)
        first = self.notifier.notify_job_offered.call_args_list[0].kwargs
        self.assertEqual(first['job_id'], job_id)
        self.assertEqual(first['contractor_id'], a)
        self.assertEqual(first['assignment_id'], assignment_ids[0])

    def test_notification_failure_does_not_fail_offer(self):
        self.notifier.notify_job_offered.side_effect = RuntimeError("redis down")
        job_id = self.add_job()
        a = self.add_contractor()

        self.assertEqual(len(self.ledger.offer(job_id, [a])), 1)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.OFFERED)

    def test_offer_unknown_job(self):
        a = self.add_contractor()
        with self.assertRaises(NotFoundError):
            self.ledger.offer(uuid.uuid4(), [a])

    def test_offer_unknown_contractor_rolls_back(self):
        job_id = self.add_job()
        a = self.add_contractor()

        with self.assertRaises(NotFoundError):
            self.ledger.offer(job_id, [a, uuid.uuid4()])

        self.assertEqual(self.assignments_for(job_id), [])
        self.assertEqual(self.get(Job, job_id).status, JobStatus.CREATED)
        self.assertEqual(self.get(ContractorProfile, a).offered_count, 0)

    def test_offer_on_claimed_job_conflicts(self):
        job_id = self.add_job(status=JobStatus.CLAIMED)
        a = self.add_contractor()
        with self.assertRaises(ConflictError):
            self.ledger.offer(job_id, [a])

    def test_reoffer_keeps_job_offered(self):
        job_id = self.add_job()
        a = self.add_contractor()
        b = self.add_contractor()

        self.ledger.offer(job_id, [a])
        self.ledger.offer(job_id, [b])

        self.assertEqual(len(self.assignments_for(job_id)), 2)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.OFFERED)


@pytest.mark.db
class TestClaim(DispatchDbTestCase):

    def setUp(self):
        super().setUp()
        self.metrics = MagicMock()
        self.ledger = AssignmentLedger(DispatchConfig(), uow_factory=self.uow, metrics=self.metrics)

    def test_claim_with_offer_accepts_it(self):
        job_id = self.add_job()
        a = self.add_contractor()
        [assignment_id] = self.ledger.offer(job_id, [a])

        record = self.ledger.claim(job_id, a)

        self.assertEqual(record.id, assignment_id)
        self.assertEqual(record.status, AssignmentStatus.ACCEPTED)
        self.assertIsNotNone(record.responded_at)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.CLAIMED)
        self.assertEqual(self.get(ContractorProfile, a).accepted_count, 1)

    def test_claim_refreshes_metrics(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.claim(job_id, a)
        self.metrics.recompute.assert_called_once_with(a)

    def test_metrics_failure_does_not_undo_claim(self):
        self.metrics.recompute.side_effect = RuntimeError("boom")
        job_id = self.add_job()
        a = self.add_contractor()

        record = self.ledger.claim(job_id, a)

        self.assertEqual(record.status, AssignmentStatus.ACCEPTED)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.CLAIMED)

    def test_second_claim_conflicts(self):
        job_id = self.add_job()
        a = self.add_contractor()
        b = self.add_contractor()
        self.ledger.offer(job_id, [a, b])

        self.ledger.claim(job_id, a)
        with self.assertRaises(ConflictError) as ctx:
            self.ledger.claim(job_id, b)

        self.assertEqual(str(ctx.exception), "job no longer available")
        accepted = [r for r in self.assignments_for(job_id) if r.status == AssignmentStatus.ACCEPTED]
        self.assertEqual([r.contractor_id for r in accepted], [a])
        self.assertEqual(self.get(ContractorProfile, b).accepted_count, 0)

    def test_open_board_claim_without_offer(self):
        job_id = self.add_job()
        a = self.add_contractor()

        record = self.ledger.claim(job_id, a)

        self.assertEqual(record.status, AssignmentStatus.ACCEPTED)
        self.assertEqual(len(self.assignments_for(job_id)), 1)

    def test_expired_offer_rejected_and_recorded(self):
        job_id = self.add_job()
        a = self.add_contractor()
        [assignment_id] = self.ledger.offer(job_id, [a])

        later = utcnow() + timedelta(minutes=16)
        with patch('core.dispatch.ledger.utcnow', return_value=later):
            with self.assertRaises(ConflictError) as ctx:
                self.ledger.claim(job_id, a)

        self.assertEqual(str(ctx.exception), "offer expired")
        [row] = self.assignments_for(job_id)
        self.assertEqual(row.id, assignment_id)
        self.assertEqual(row.status, AssignmentStatus.EXPIRED)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.OFFERED)
        self.metrics.recompute.assert_not_called()

    def test_retry_after_expiry_still_rejected(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.offer(job_id, [a])

        later = utcnow() + timedelta(minutes=16)
        with patch('core.dispatch.ledger.utcnow', return_value=later):
            with self.assertRaises(ConflictError):
                self.ledger.claim(job_id, a)
            with self.assertRaises(ConflictError) as ctx:
                self.ledger.claim(job_id, a)

        self.assertEqual(str(ctx.exception), "offer expired")
        self.assertEqual(
            [r.status for r in self.assignments_for(job_id)], [AssignmentStatus.EXPIRED]
        )
        self.assertEqual(self.get(Job, job_id).status, JobStatus.OFFERED)
        self.assertEqual(self.get(ContractorProfile, a).accepted_count, 0)

    def test_claim_after_reaper_matches_lazy_expiry(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.offer(job_id, [a])
        self.assertEqual(self.ledger.expire_stale_offers(utcnow() + timedelta(minutes=20)), 1)

        with self.assertRaises(ConflictError) as ctx:
            self.ledger.claim(job_id, a)

        self.assertEqual(str(ctx.exception), "offer expired")
        self.assertEqual(self.get(Job, job_id).status, JobStatus.OFFERED)

    def test_other_contractor_can_claim_after_expiry(self):
        job_id = self.add_job()
        a = self.add_contractor()
        b = self.add_contractor()
        self.ledger.offer(job_id, [a])
        self.ledger.expire_stale_offers(utcnow() + timedelta(minutes=20))

        record = self.ledger.claim(job_id, b)

        self.assertEqual(record.contractor_id, b)
        self.assertEqual(record.status, AssignmentStatus.ACCEPTED)

    def test_fresh_offer_after_expiry_can_be_claimed(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.offer(job_id, [a])
        self.ledger.expire_stale_offers(utcnow() + timedelta(minutes=20))
        [new_offer] = self.ledger.offer(job_id, [a])

        record = self.ledger.claim(job_id, a)

        self.assertEqual(record.id, new_offer)

    def test_claim_unknown_job(self):
        a = self.add_contractor()
        with self.assertRaises(NotFoundError):
            self.ledger.claim(uuid.uuid4(), a)

    def test_claim_unknown_contractor(self):
        job_id = self.add_job()
        with self.assertRaises(NotFoundError):
            self.ledger.claim(job_id, uuid.uuid4())

    def test_claim_cancelled_job_conflicts(self):
        job_id = self.add_job(status=JobStatus.CANCELLED)
        a = self.add_contractor()
        with self.assertRaises(ConflictError):
            self.ledger.claim(job_id, a)


@pytest.mark.db
class TestDeclineAndExpiry(DispatchDbTestCase):

    def setUp(self):
        super().setUp()
        self.ledger = AssignmentLedger(DispatchConfig(), uow_factory=self.uow)

    def test_decline_rejects_offer(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.offer(job_id, [a])

        record = self.ledger.decline(job_id, a)

        self.assertEqual(record.status, AssignmentStatus.REJECTED)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.OFFERED)

    def test_decline_after_expiry_records_expired(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.offer(job_id, [a])

        with patch('core.dispatch.ledger.utcnow', return_value=utcnow() + timedelta(hours=1)):
            record = self.ledger.decline(job_id, a)

        self.assertEqual(record.status, AssignmentStatus.EXPIRED)

    def test_decline_without_offer(self):
        job_id = self.add_job()
        a = self.add_contractor()
        with self.assertRaises(NotFoundError):
            self.ledger.decline(job_id, a)

    def test_declined_contractor_can_still_claim_open_job(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.offer(job_id, [a])
        self.ledger.decline(job_id, a)

        record = self.ledger.claim(job_id, a)
        self.assertEqual(record.status, AssignmentStatus.ACCEPTED)

    def test_expire_stale_offers(self):
        job_id = self.add_job()
        a = self.add_contractor()
        b = self.add_contractor()
        self.ledger.offer(job_id, [a, b])

        self.assertEqual(self.ledger.expire_stale_offers(), 0)
        self.assertEqual(self.ledger.expire_stale_offers(utcnow() + timedelta(minutes=20)), 2)
        self.assertTrue(all(r.status == AssignmentStatus.EXPIRED for r in self.assignments_for(job_id)))


@pytest.mark.db
class TestJobProgress(DispatchDbTestCase):

    def setUp(self):
        super().setUp()
        self.metrics = MagicMock()
        self.ledger = AssignmentLedger(DispatchConfig(), uow_factory=self.uow, metrics=self.metrics)

    def test_start_then_complete(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.claim(job_id, a)

        self.ledger.start(job_id, a)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.IN_PROGRESS)

        self.ledger.complete(job_id, a)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.COMPLETED)
        self.assertEqual(self.get(ContractorProfile, a).completed_count, 1)

    def test_complete_directly_from_claimed(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.claim(job_id, a)

        self.ledger.complete(job_id, a)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.COMPLETED)
        self.assertEqual(self.metrics.recompute.call_count, 2)

    def test_complete_by_other_contractor_conflicts(self):
        job_id = self.add_job()
        a = self.add_contractor()
        b = self.add_contractor()
        self.ledger.claim(job_id, a)

        with self.assertRaises(ConflictError):
            self.ledger.complete(job_id, b)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.CLAIMED)

    def test_complete_twice_conflicts(self):
        job_id = self.add_job()
        a = self.add_contractor()
        self.ledger.claim(job_id, a)
        self.ledger.complete(job_id, a)

        with self.assertRaises(ConflictError):
            self.ledger.complete(job_id, a)
        self.assertEqual(self.get(ContractorProfile, a).completed_count, 1)

    def test_complete_unclaimed_job(self):
        job_id = self.add_job()
        a = self.add_contractor()
        with self.assertRaises(NotFoundError):
            self.ledger.complete(job_id, a)


if __name__ == '__main__':
    unittest.main()

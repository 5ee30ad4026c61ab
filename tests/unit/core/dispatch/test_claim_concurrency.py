"""Claim exclusivity under concurrent callers, each with its own connection."""

import os
import shutil
import tempfile
import threading
import unittest

import pytest

from core.config_loader import DispatchConfig
from core.dispatch import AssignmentLedger
from core.errors import ConflictError
from database.models import AssignmentStatus, ContractorProfile, Job, JobStatus
from tests.fixtures.dispatch_fixtures import DispatchDbTestCase

CONTENDERS = 8


@pytest.mark.db
class TestConcurrentClaims(DispatchDbTestCase):

    def setUp(self):
        if os.environ.get("TEST_DATABASE_URL"):
            self.database_url = os.environ["TEST_DATABASE_URL"]
            self.tmp_dir = None
        else:
            # In-memory SQLite shares one connection; threads need a real file
            self.tmp_dir = tempfile.mkdtemp()
            self.database_url = f"sqlite:///{os.path.join(self.tmp_dir, 'claims.db')}"
        super().setUp()
        self.ledger = AssignmentLedger(DispatchConfig(), uow_factory=self.uow)

    def tearDown(self):
        super().tearDown()
        if self.tmp_dir:
            shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def _race(self, job_id, contractor_ids):
        barrier = threading.Barrier(len(contractor_ids))
        winners, losers, errors = [], [], []
        lock = threading.Lock()

        def attempt(contractor_id):
            barrier.wait()
            try:
                record = self.ledger.claim(job_id, contractor_id)
                with lock:
                    winners.append(record)
            except ConflictError:
                with lock:
                    losers.append(contractor_id)
            except Exception as e:
                with lock:
                    errors.append(e)

        threads = [threading.Thread(target=attempt, args=(cid,)) for cid in contractor_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        return winners, losers, errors

    def test_exactly_one_offered_contractor_wins(self):
        job_id = self.add_job()
        contractor_ids = [self.add_contractor() for _ in range(CONTENDERS)]
        self.ledger.offer(job_id, contractor_ids)

        winners, losers, errors = self._race(job_id, contractor_ids)

        self.assertEqual(errors, [])
        self.assertEqual(len(winners), 1)
        self.assertEqual(len(losers), CONTENDERS - 1)

        accepted = [r for r in self.assignments_for(job_id) if r.status == AssignmentStatus.ACCEPTED]
        self.assertEqual(len(accepted), 1)
        self.assertEqual(accepted[0].contractor_id, winners[0].contractor_id)
        self.assertEqual(self.get(Job, job_id).status, JobStatus.CLAIMED)

        total_accepted = sum(self.get(ContractorProfile, cid).accepted_count for cid in contractor_ids)
        self.assertEqual(total_accepted, 1)

    def test_exactly_one_open_board_claim_wins(self):
        job_id = self.add_job()
        contractor_ids = [self.add_contractor() for _ in range(CONTENDERS)]

        winners, losers, errors = self._race(job_id, contractor_ids)

        self.assertEqual(errors, [])
        self.assertEqual(len(winners), 1)
        self.assertEqual(len(self.assignments_for(job_id)), 1)


if __name__ == '__main__':
    unittest.main()

"""Tests for the offer notification RQ worker entry point."""

import unittest
from unittest.mock import patch

from core.config_loader import NotificationConfig
from notification.worker import start_worker


class TestStartWorker(unittest.TestCase):

    @patch('notification.worker.Worker')
    @patch('notification.worker.Redis')
    def test_listens_on_configured_queue(self, mock_redis, mock_worker):
        config = NotificationConfig(redis_url='redis://cache:6379/3', queue_name='offers-eu')

        self.assertEqual(start_worker(config, burst=True), 0)

        mock_redis.from_url.assert_called_once_with('redis://cache:6379/3')
        mock_worker.assert_called_once_with(['offers-eu'], connection=mock_redis.from_url.return_value)
        mock_worker.return_value.work.assert_called_once_with(burst=True)

    @patch('notification.worker.Worker')
    @patch('notification.worker.Redis')
    def test_explicit_queues(self, mock_redis, mock_worker):
        start_worker(NotificationConfig(), queues=['a', 'b'])
        self.assertEqual(mock_worker.call_args.args[0], ['a', 'b'])

    @patch('notification.worker.Worker')
    @patch('notification.worker.Redis')
    def test_unreachable_redis(self, mock_redis, mock_worker):
        mock_redis.from_url.return_value.ping.side_effect = ConnectionError("refused")

        self.assertEqual(start_worker(NotificationConfig()), 1)
        mock_worker.assert_not_called()


if __name__ == '__main__':
    unittest.main()

"""Tests for the HTTP transfer gateway: idempotency header, retries and error mapping."""

import unittest
from unittest.mock import MagicMock, patch

import requests

from core.config_loader import TransferGatewayConfig
from core.errors import ConfigurationError, ExternalServiceError
from payments.gateway import HttpTransferGateway, _is_retryable_error


def _response(status_code=200, json_data=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {'id': 'tr_123'}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error", response=response)
    else:
        response.raise_for_status.return_value = None
    return response


class TestRetryableErrors(unittest.TestCase):

    def test_timeout_is_retryable(self):
        self.assertTrue(_is_retryable_error(requests.Timeout()))

    def test_connection_error_is_retryable(self):
        self.assertTrue(_is_retryable_error(requests.ConnectionError()))

    def test_server_error_is_retryable(self):
        self.assertTrue(_is_retryable_error(requests.HTTPError(response=_response(503))))

    def test_client_error_is_final(self):
        self.assertFalse(_is_retryable_error(requests.HTTPError(response=_response(402))))

    def test_other_errors_not_retried(self):
        self.assertFalse(_is_retryable_error(ValueError("bad payload")))


class TestHttpTransferGateway(unittest.TestCase):

    def setUp(self):
        self.gateway = HttpTransferGateway(
            base_url="http://payments.local/",
            api_key="sk_test",
            max_attempts=3,
            retry_wait_seconds=0
        )

    def _transfer(self):
        return self.gateway.create_transfer(
            destination_account="acct_1",
            amount_minor_units=13280,
            currency="usd",
            idempotency_key="payout:c1:start:end"
        )

    def test_requires_url(self):
        with self.assertRaises(ConfigurationError):
            HttpTransferGateway(base_url=None)

    def test_from_config(self):
        gateway = HttpTransferGateway.from_config(
            TransferGatewayConfig(url="http://payments.local", api_key="k", timeout_seconds=5, max_attempts=2)
        )
        self.assertEqual(gateway.timeout_seconds, 5)
        self.assertEqual(gateway.max_attempts, 2)
        self.assertEqual(gateway.session.headers['Authorization'], "Bearer k")

    def test_sends_idempotency_key_and_amount(self):
        with patch.object(self.gateway.session, 'post', return_value=_response()) as mock_post:
            transfer_id = self._transfer()

        self.assertEqual(transfer_id, 'tr_123')
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "http://payments.local/transfers")
        self.assertEqual(kwargs['headers']['Idempotency-Key'], "payout:c1:start:end")
        self.assertEqual(kwargs['json'], {'destination': 'acct_1', 'amount': 13280, 'currency': 'usd'})

    def test_client_error_not_retried(self):
        with patch.object(self.gateway.session, 'post', return_value=_response(400)) as mock_post:
            with self.assertRaises(ExternalServiceError):
                self._transfer()
        self.assertEqual(mock_post.call_count, 1)

    def test_server_error_retried_until_exhausted(self):
        with patch.object(self.gateway.session, 'post', return_value=_response(503)) as mock_post:
            with self.assertRaises(ExternalServiceError):
                self._transfer()
        self.assertEqual(mock_post.call_count, 3)

    def test_timeout_then_success(self):
        side_effects = [requests.Timeout("slow"), _response(json_data={'id': 'tr_after_retry'})]
        with patch.object(self.gateway.session, 'post', side_effect=side_effects) as mock_post:
            transfer_id = self._transfer()

        self.assertEqual(transfer_id, 'tr_after_retry')
        self.assertEqual(mock_post.call_count, 2)
        for call in mock_post.call_args_list:
            self.assertEqual(call.kwargs['headers']['Idempotency-Key'], "payout:c1:start:end")

    def test_response_without_id(self):
        with patch.object(self.gateway.session, 'post', return_value=_response(json_data={'status': 'ok'})):
            with self.assertRaises(ExternalServiceError):
                self._transfer()


if __name__ == '__main__':
    unittest.main()

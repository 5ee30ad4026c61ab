"""Transfer gateway client with connection reuse, idempotency keys and retry logic."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_fixed,
    retry_if_exception,
    before_sleep_log,
    RetryError,
)

from core.config_loader import TransferGatewayConfig
from core.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)


def _is_retryable_error(exc: Exception) -> bool:
    """
    Determine if a gateway exception is retryable.

    Only retries on timeouts, connection errors and 5xx responses. Client
    errors (4xx) are final.
    """
    if isinstance(exc, requests.Timeout):
        return True

    if isinstance(exc, requests.RequestException):
        response = getattr(exc, 'response', None)
        if response is not None and 400 <= response.status_code < 500:
            return False
        return True

    return False


class TransferGateway(ABC):
    """Outbound money movement to a contractor's payable account."""

    @abstractmethod
    def create_transfer(
        self,
        destination_account: str,
        amount_minor_units: int,
        currency: str,
        idempotency_key: str
    ) -> str:
        """
        Issue a transfer.

        Returns:
            The gateway's transfer id

        Raises:
            ExternalServiceError: transfer could not be created
        """
        pass


class HttpTransferGateway(TransferGateway):
    """
    HTTP client for the payments service.

    Responsibilities:
    - Own a requests.Session for connection reuse
    - Send the idempotency key with every attempt so retries (and re-run
      batches) cannot move money twice
    - Translate failures into ExternalServiceError
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: int = 30,
        max_attempts: int = 3,
        retry_wait_seconds: float = 2
    ):
        if not base_url:
            raise ConfigurationError("Transfer gateway URL is not configured")

        self.base_url = base_url.rstrip('/')
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.retry_wait_seconds = retry_wait_seconds

        self.session = requests.Session()
        if api_key:
            self.session.headers['Authorization'] = f"Bearer {api_key}"

        logger.info(f"HttpTransferGateway initialized: base_url={self.base_url}, max_attempts={max_attempts}")

    @classmethod
    def from_config(cls, config: TransferGatewayConfig) -> "HttpTransferGateway":
        return cls(
            base_url=config.url,
            api_key=config.api_key,
            timeout_seconds=config.timeout_seconds,
            max_attempts=config.max_attempts
        )

    def create_transfer(
        self,
        destination_account: str,
        amount_minor_units: int,
        currency: str,
        idempotency_key: str
    ) -> str:
        payload = {
            'destination': destination_account,
            'amount': amount_minor_units,
            'currency': currency,
        }

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_wait_seconds),
            retry=retry_if_exception(_is_retryable_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

        try:
            data = retrying(self._post_transfer, payload, idempotency_key)
        except RetryError as e:
            raise ExternalServiceError(f"Transfer {idempotency_key} failed after retries") from e
        except requests.RequestException as e:
            raise ExternalServiceError(f"Transfer {idempotency_key} failed: {e}") from e

        transfer_id = data.get('id')
        if not transfer_id:
            raise ExternalServiceError(f"Transfer {idempotency_key}: gateway response has no id")
        return transfer_id

    def _post_transfer(self, payload: dict, idempotency_key: str) -> dict:
        response = self.session.post(
            f"{self.base_url}/transfers",
            json=payload,
            headers={'Idempotency-Key': idempotency_key},
            timeout=self.timeout_seconds
        )
        response.raise_for_status()
        return response.json()

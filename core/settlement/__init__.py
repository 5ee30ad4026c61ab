from core.settlement.models import ContractorGroup, PaidPayout, PayoutBatchReport
from core.settlement.processor import PayoutBatchProcessor, idempotency_key
from core.settlement.earnings import EarningsService, EarningsSummary

__all__ = [
    'ContractorGroup',
    'PaidPayout',
    'PayoutBatchReport',
    'PayoutBatchProcessor',
    'idempotency_key',
    'EarningsService',
    'EarningsSummary',
]

from core.dispatch.models import AssignmentRecord
from core.dispatch.ledger import AssignmentLedger

__all__ = [
    'AssignmentRecord',
    'AssignmentLedger',
]

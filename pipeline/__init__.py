"""Pipeline execution modules for dispatch."""

from .dispatch import DispatchFlow, DispatchResult
from .scheduler import PayoutScheduler, settlement_period

__all__ = ['DispatchFlow', 'DispatchResult', 'PayoutScheduler', 'settlement_period']

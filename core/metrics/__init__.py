from core.metrics.service import (
    MetricsRecalculator,
    ContractorMetrics,
    acceptance_rate,
    completion_rate,
    quality_score,
)

__all__ = [
    'MetricsRecalculator',
    'ContractorMetrics',
    'acceptance_rate',
    'completion_rate',
    'quality_score',
]

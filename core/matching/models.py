#!/usr/bin/env python3
"""
Matching Models - Data structures for ranking results.
"""

import uuid
from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class RankedCandidate:
    """One eligible contractor for a job, with its score breakdown."""
    contractor_id: uuid.UUID
    score: float
    distance_km: float
    components: Dict[str, float] = field(default_factory=dict, compare=False)

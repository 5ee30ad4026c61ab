from core.matching.geo import haversine_km, proximity_score, EARTH_RADIUS_KM
from core.matching.availability import day_of_week, is_available
from core.matching.models import RankedCandidate
from core.matching.service import MatchEngine, calculate_score, score_components, rank_contractors

__all__ = [
    'haversine_km',
    'proximity_score',
    'EARTH_RADIUS_KM',
    'day_of_week',
    'is_available',
    'RankedCandidate',
    'MatchEngine',
    'calculate_score',
    'score_components',
    'rank_contractors',
]

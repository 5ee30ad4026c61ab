from database.repositories.base import BaseRepository
from database.repositories.job import JobRepository
from database.repositories.contractor import ContractorRepository
from database.repositories.assignment import AssignmentRepository
from database.repositories.review import ReviewRepository
from database.repositories.payout import PayoutRepository

__all__ = [
    'BaseRepository',
    'JobRepository',
    'ContractorRepository',
    'AssignmentRepository',
    'ReviewRepository',
    'PayoutRepository',
]

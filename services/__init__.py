"""
Level Up Dashboard Services Package
Scoring aggregation, point allocation, session and gateway services
"""

from .scoring import ScoringService, PointSummary, summarize_points
from .allocation import AllocationForm, AllocationDraft, AllocationState
from .session import SessionHolder
from .gateway import ScoringGateway

__all__ = [
    'ScoringService', 'PointSummary', 'summarize_points',
    'AllocationForm', 'AllocationDraft', 'AllocationState',
    'SessionHolder', 'ScoringGateway',
]

"""
Scoring Service
Attempt score = sum of points_awarded over the attempt's full answer set
"""
import math

from examcore.extensions import db
from examcore.models import Answer


class ScoringService:
    """Score aggregation; always recomputed, never incremented"""

    @staticmethod
    def aggregate(answers):
        """Sum awarded points over answer rows (or dicts)"""
        total = math.fsum(
            float(a['points_awarded'] if isinstance(a, dict) else a.points_awarded or 0)
            for a in answers
        )
        return total

    @staticmethod
    def attempt_total(attempt_id):
        """Re-read every stored answer of the attempt and aggregate them"""
        rows = db.session.query(Answer.points_awarded).filter(
            Answer.attempt_id == attempt_id
        ).all()
        return ScoringService.aggregate(rows)

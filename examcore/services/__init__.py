"""
Services Package
"""
from examcore.services.grading_service import AnswerGrader, GradeResult
from examcore.services.scoring_service import ScoringService
from examcore.services.attempt_service import AttemptService
from examcore.services.anti_cheat_service import AntiCheatService
from examcore.services.override_service import OverrideService
from examcore.services.review_service import ReviewService
from examcore.services.analytics_service import AnalyticsService

__all__ = [
    'AnswerGrader', 'GradeResult', 'ScoringService', 'AttemptService',
    'AntiCheatService', 'OverrideService', 'ReviewService', 'AnalyticsService',
]

"""
Models Package
Exports all database models
"""
from examcore.models.user import User
from examcore.models.quiz import Quiz, AnswerVisibility
from examcore.models.question import Question, Option, QuestionKind
from examcore.models.attempt import Attempt, AttemptStatus
from examcore.models.answer import Answer
from examcore.models.anti_cheat_event import AntiCheatEvent, AntiCheatKind

__all__ = [
    'User', 'Quiz', 'AnswerVisibility', 'Question', 'Option', 'QuestionKind',
    'Attempt', 'AttemptStatus', 'Answer', 'AntiCheatEvent', 'AntiCheatKind',
]

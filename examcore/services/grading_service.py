"""
Grading Service
Pure per-question grading: (question, options, submission) -> (correct, points)
"""
import logging
from collections import namedtuple

from examcore.models.question import QuestionKind

log = logging.getLogger(__name__)

GradeResult = namedtuple('GradeResult', ['correct', 'awarded'])


def as_int_id(raw):
    """Integer row id from a client value, or None; fractional numbers are never truncated"""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def coerce_option_ids(raw_ids):
    """Integer ids from a client payload; anything unusable is dropped"""
    if not isinstance(raw_ids, (list, tuple, set)):
        return set()
    ids = (as_int_id(raw) for raw in raw_ids)
    return {option_id for option_id in ids if option_id is not None}


class AnswerGrader:
    """Exact-match grading, one rule per question kind"""

    @staticmethod
    def filter_selection(options, submission):
        """Selected ids restricted to options that belong to this question"""
        raw = (submission or {}).get('selected_option_ids')
        own_ids = {o.id for o in options}
        return coerce_option_ids(raw) & own_ids

    @staticmethod
    def grade(question, options, submission):
        """
        Grade one submission

        Args:
            question: object with ``kind`` and ``points``
            options: the question's options (``id``, ``is_correct``)
            submission: dict with ``selected_option_ids`` / ``short_text``,
                or None for an unanswered question

        Returns:
            GradeResult: correct is None for short answers (manual grading)
        """
        kind = QuestionKind(question.kind)
        points = float(question.points or 0)

        if kind is QuestionKind.SHORT:
            return GradeResult(None, 0.0)

        correct_ids = {o.id for o in options if o.is_correct}
        selected = AnswerGrader.filter_selection(options, submission)

        if kind in (QuestionKind.SINGLE, QuestionKind.BOOLEAN):
            if len(correct_ids) != 1:
                log.debug("Question %s has %d correct options; never gradable as correct",
                          getattr(question, 'id', None), len(correct_ids))
            correct = len(selected) == 1 and len(correct_ids) == 1 and selected == correct_ids
        elif kind is QuestionKind.MULTIPLE:
            # No partial credit
            correct = selected == correct_ids
        else:
            raise ValueError(f"Unhandled question kind: {kind}")

        return GradeResult(correct, points if correct else 0.0)

"""
Time Enforcer
Pure deadline arithmetic over stored timestamps
"""
from collections import namedtuple
from datetime import timedelta

from examcore.utils.helpers import as_utc, now_utc

TimeStatus = namedtuple('TimeStatus', ['remaining_seconds', 'deadline_passed', 'deadline'])


def evaluate(started_at, duration_seconds, end_at=None, now=None):
    """
    Remaining time and deadline status for an attempt

    remaining_seconds = max(0, duration - whole elapsed seconds)
    deadline_passed   = elapsed > duration, or now past end_at when set
    deadline          = personal deadline, capped by end_at
    """
    now = as_utc(now) if now is not None else now_utc()
    started_at = as_utc(started_at)
    end_at = as_utc(end_at)
    duration = timedelta(seconds=int(duration_seconds or 0))

    elapsed = now - started_at
    elapsed_whole = max(0, int(elapsed.total_seconds()))
    remaining = max(0, int(duration_seconds or 0) - elapsed_whole)

    over_duration = elapsed > duration
    past_due = end_at is not None and now > end_at

    deadline = started_at + duration
    if end_at is not None and end_at < deadline:
        deadline = end_at

    return TimeStatus(remaining, over_duration or past_due, deadline)


def for_attempt(attempt, quiz, now=None):
    """Authoritative evaluation from the stored attempt and quiz rows"""
    return evaluate(attempt.started_at, quiz.duration_seconds, quiz.end_at, now)

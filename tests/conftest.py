import threading
from datetime import timedelta
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from examcore import create_app
from examcore.extensions import db
from examcore.models import Option, Question, Quiz, User
from examcore.utils import now_utc


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def file_app(tmp_path):
    """SQLite file shared by several connections, for tests that race threads"""
    app = create_app('testing', test_config={
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'exam.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {
            'connect_args': {'timeout': 30, 'check_same_thread': False},
        },
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def make_user(app):
    def _make(username, role='student'):
        user = User(username=username, password=generate_password_hash('secret'), role=role)
        db.session.add(user)
        db.session.commit()
        return user.id
    return _make


@pytest.fixture
def admin_id(make_user):
    return make_user('instructor', 'admin')


@pytest.fixture
def student_id(make_user):
    return make_user('alice')


@pytest.fixture
def other_student_id(make_user):
    return make_user('bob')


@pytest.fixture
def make_quiz(app):
    """
    Quiz with one question of every kind:
      single   (2 pts)  A*, B
      multiple (3 pts)  A*, B, C*
      boolean  (1 pt)   True*, False
      short    (5 pts)
    """
    def _make(owner_id, duration_seconds=600, allow_tab_switches=1,
              show_correct_answers='never', end_at=None, title='Midterm'):
        quiz = Quiz(
            title=title,
            created_by=owner_id,
            duration_seconds=duration_seconds,
            allow_tab_switches=allow_tab_switches,
            show_correct_answers=show_correct_answers,
            end_at=end_at,
        )
        db.session.add(quiz)
        db.session.flush()

        def question(kind, points, order_index, labels=()):
            q = Question(quiz_id=quiz.id, kind=kind, prompt=f'{kind} question',
                         points=points, order_index=order_index)
            db.session.add(q)
            db.session.flush()
            opts = {}
            for idx, (label, is_correct) in enumerate(labels):
                o = Option(question_id=q.id, label=label, is_correct=is_correct, order_index=idx)
                db.session.add(o)
                db.session.flush()
                opts[label] = o.id
            return q.id, opts

        single_id, single_opts = question('single', 2, 0, [('A', True), ('B', False)])
        multi_id, multi_opts = question('multiple', 3, 1, [('A', True), ('B', False), ('C', True)])
        bool_id, bool_opts = question('boolean', 1, 2, [('True', True), ('False', False)])
        short_id, _ = question('short', 5, 3)
        db.session.commit()

        return SimpleNamespace(
            id=quiz.id,
            single=SimpleNamespace(id=single_id, opts=single_opts),
            multiple=SimpleNamespace(id=multi_id, opts=multi_opts),
            boolean=SimpleNamespace(id=bool_id, opts=bool_opts),
            short=SimpleNamespace(id=short_id),
        )
    return _make


@pytest.fixture
def quiz(make_quiz, admin_id):
    return make_quiz(admin_id)


@pytest.fixture
def perfect_answers(quiz):
    return [
        {'question_id': quiz.single.id, 'selected_option_ids': [quiz.single.opts['A']]},
        {'question_id': quiz.multiple.id,
         'selected_option_ids': [quiz.multiple.opts['A'], quiz.multiple.opts['C']]},
        {'question_id': quiz.boolean.id, 'selected_option_ids': [quiz.boolean.opts['True']]},
        {'question_id': quiz.short.id, 'short_text': 'A thoughtful essay'},
    ]


def backdate(attempt, seconds):
    """Move an attempt's start into the past"""
    attempt.started_at = now_utc() - timedelta(seconds=seconds)
    db.session.commit()


def login(client, user_id, role='student'):
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['role'] = role
    return client


def run_concurrently(app, count, call):
    """
    Run call() from count threads released together, each in its own app context
    Returns what each call returned or raised
    """
    barrier = threading.Barrier(count)
    outcomes = []
    guard = threading.Lock()

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                outcome = call()
            except Exception as exc:
                outcome = exc
            with guard:
                outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return outcomes

import pytest

from conftest import backdate, login
from examcore.extensions import db
from examcore.models import Attempt


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def student(client, student_id):
    return login(client, student_id)


@pytest.fixture
def admin(app, admin_id):
    return login(app.test_client(), admin_id, role='admin')


def _start(client, quiz_id):
    return client.post(f'/student/quizzes/{quiz_id}/attempt')


def _submit(client, attempt_id, answers, auto=False):
    return client.post(f'/student/attempts/{attempt_id}/submit', json={'answers': answers, 'auto': auto})


class TestAuth:
    def test_register_login_me_logout(self, client):
        res = client.post('/register', json={'username': 'carol', 'password': 'pw'})
        assert res.status_code == 201

        taken = client.post('/register', json={'username': 'carol', 'password': 'pw'})
        assert taken.status_code == 409
        assert taken.get_json()['code'] == 'username_taken'
        assert client.post('/login', json={'username': 'carol', 'password': 'nope'}).status_code == 401

        res = client.post('/login', json={'username': 'carol', 'password': 'pw'})
        assert res.status_code == 200
        assert res.get_json()['role'] == 'student'
        me = client.get('/me').get_json()
        assert me['username'] == 'carol'
        assert me['is_admin'] is False

        client.post('/logout')
        assert client.get('/me').status_code == 401

    def test_register_rejects_unknown_role(self, client):
        res = client.post('/register', json={'username': 'eve', 'password': 'pw', 'role': 'root'})
        assert res.status_code == 400

    def test_student_routes_need_a_session(self, client, quiz):
        res = _start(client, quiz.id)
        assert res.status_code == 401
        assert res.get_json()['code'] == 'unauthenticated'


class TestStudentFlow:
    def test_start_then_resume(self, student, quiz):
        first = _start(student, quiz.id)
        assert first.status_code == 201
        body = first.get_json()
        assert body['resumed'] is False
        assert body['remaining_seconds'] <= 600
        assert [q['kind'] for q in body['questions']] == ['single', 'multiple', 'boolean', 'short']
        for question in body['questions']:
            for option in question.get('options', []):
                assert 'is_correct' not in option

        second = _start(student, quiz.id)
        assert second.status_code == 200
        assert second.get_json()['resumed'] is True
        assert second.get_json()['attempt']['id'] == body['attempt']['id']

    def test_unknown_quiz(self, student, app):
        res = _start(student, 999)
        assert res.status_code == 404
        assert res.get_json()['code'] == 'quiz_not_found'

    def test_status(self, student, quiz):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        backdate(db.session.get(Attempt, attempt_id), 60)

        body = student.get(f'/student/attempts/{attempt_id}/status').get_json()
        assert body['status'] == 'in_progress'
        assert 539 <= body['remaining_seconds'] <= 540
        assert body['deadline_passed'] is False

    def test_status_of_foreign_attempt(self, student, quiz, other_student_id):
        from examcore.services import AttemptService
        attempt, _ = AttemptService.create_or_resume(quiz.id, other_student_id)
        assert student.get(f'/student/attempts/{attempt.id}/status').status_code == 404

    def test_events(self, student, quiz):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        url = f'/student/attempts/{attempt_id}/events'

        assert student.post(url, json={'kind': 'tab_blur'}).get_json() == {
            'ok': True, 'limitExceeded': False, 'tabSwitchCount': 1,
        }
        assert student.post(url, json={'kind': 'tab_blur'}).get_json()['limitExceeded'] is True
        assert student.post(url, json={'kind': 'paste', 'meta': {'chars': 12}}).get_json()['tabSwitchCount'] == 2
        assert student.post(url, json={}).status_code == 400
        assert student.post(url, json={'kind': 'nope'}).status_code == 400

    def test_submit_once(self, student, quiz, perfect_answers):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']

        res = _submit(student, attempt_id, perfect_answers)
        assert res.status_code == 200
        assert res.get_json() == {'ok': True, 'score': 6.0, 'status': 'submitted'}

        again = _submit(student, attempt_id, perfect_answers, auto=True)
        assert again.status_code == 409
        assert again.get_json()['code'] == 'already_submitted_or_not_found'

    def test_auto_flag(self, student, quiz):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        assert _submit(student, attempt_id, [], auto=True).get_json()['status'] == 'auto_submitted'

    @pytest.mark.parametrize('body', [{}, {'answers': 'x'}, {'answers': {'question_id': 1}}, ['answers']])
    def test_submit_requires_answer_list(self, student, quiz, body):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        res = student.post(f'/student/attempts/{attempt_id}/submit', json=body)
        assert res.status_code == 400
        assert res.get_json()['code'] == 'invalid_payload'
        assert db.session.get(Attempt, attempt_id).status == 'in_progress'

    def test_review_waits_for_submission(self, student, quiz):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        assert student.get(f'/student/attempts/{attempt_id}/review').status_code == 409

    def test_review_hides_answers_by_default(self, student, quiz, perfect_answers):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        _submit(student, attempt_id, perfect_answers)

        body = student.get(f'/student/attempts/{attempt_id}/review').get_json()
        assert body['answers_revealed'] is False
        assert body['correct_count'] == 3
        assert body['graded_count'] == 3
        assert all('correct_option_ids' not in q for q in body['questions'])

    def test_review_reveals_when_policy_allows(self, student, make_quiz, admin_id):
        quiz = make_quiz(admin_id, show_correct_answers='immediate')
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        _submit(student, attempt_id, [])

        body = student.get(f'/student/attempts/{attempt_id}/review').get_json()
        assert body['answers_revealed'] is True
        by_id = {q['id']: q for q in body['questions']}
        assert by_id[quiz.multiple.id]['correct_option_ids'] == sorted(
            [quiz.multiple.opts['A'], quiz.multiple.opts['C']]
        )
        assert 'correct_option_ids' not in by_id[quiz.short.id]

    def test_history(self, student, quiz):
        first = _start(student, quiz.id).get_json()['attempt']['id']
        _submit(student, first, [])
        second = _start(student, quiz.id).get_json()['attempt']['id']

        attempts = student.get('/student/attempts').get_json()['attempts']
        assert {a['id'] for a in attempts} == {first, second}
        assert all(a['quiz_title'] == 'Midterm' for a in attempts)


class TestAdmin:
    def _graded(self, student, quiz, answers):
        attempt_id = _start(student, quiz.id).get_json()['attempt']['id']
        _submit(student, attempt_id, answers)
        return attempt_id

    def test_students_cannot_grade(self, student, quiz, perfect_answers):
        attempt_id = self._graded(student, quiz, perfect_answers)
        res = student.post(f'/admin/attempts/{attempt_id}/grade',
                           json={'questionId': quiz.short.id, 'points_awarded': 5})
        assert res.status_code == 403

    def test_grade_clamps_and_rescores(self, admin, student, quiz, perfect_answers):
        attempt_id = self._graded(student, quiz, perfect_answers)
        res = admin.post(f'/admin/attempts/{attempt_id}/grade',
                         json={'questionId': quiz.short.id, 'points_awarded': 50, 'correct': True})
        assert res.status_code == 200
        assert res.get_json() == {'ok': True, 'score': 11.0, 'points_awarded': 5.0, 'correct': True}

    def test_grade_rejects_bad_points(self, admin, student, quiz, perfect_answers):
        attempt_id = self._graded(student, quiz, perfect_answers)
        res = admin.post(f'/admin/attempts/{attempt_id}/grade',
                         json={'questionId': quiz.short.id, 'points_awarded': 'lots'})
        assert res.status_code == 400

    def test_grade_by_non_owner(self, app, make_user, student, quiz, perfect_answers):
        attempt_id = self._graded(student, quiz, perfect_answers)
        stranger = login(app.test_client(), make_user('stranger', 'admin'), role='admin')
        res = stranger.post(f'/admin/attempts/{attempt_id}/grade',
                            json={'questionId': quiz.short.id, 'points_awarded': 5})
        assert res.status_code == 403

    def test_roster_and_detail(self, admin, student, quiz, perfect_answers):
        attempt_id = self._graded(student, quiz, perfect_answers)

        roster = admin.get(f'/admin/quizzes/{quiz.id}/attempts').get_json()['attempts']
        assert len(roster) == 1
        assert roster[0]['username'] == 'alice'
        assert roster[0]['event_count'] == 0

        detail = admin.get(f'/admin/attempts/{attempt_id}').get_json()
        short = next(q for q in detail['questions'] if q['id'] == quiz.short.id)
        assert short['answer']['short_text'] == 'A thoughtful essay'
        assert detail['events'] == []

    def test_analytics(self, admin, student, quiz, perfect_answers):
        self._graded(student, quiz, perfect_answers)
        _start(student, quiz.id)

        body = admin.get(f'/admin/quizzes/{quiz.id}/analytics').get_json()
        assert body['attempts'] == {'in_progress': 1, 'submitted': 1, 'auto_submitted': 0}
        assert body['finished_attempts'] == 1
        assert body['average_score'] == 6.0
        assert body['total_possible'] == 11.0

        by_id = {q['id']: q for q in body['questions']}
        assert by_id[quiz.single.id]['correct'] == 1
        assert by_id[quiz.short.id]['pending'] == 1
        counts = {o['label']: o['count'] for o in by_id[quiz.multiple.id]['option_selections']}
        assert counts == {'A': 1, 'B': 0, 'C': 1}

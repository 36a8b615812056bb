from __future__ import annotations

import pytest
from conftest import FIXED_NOW, fixed_clock

from quizzify.core.errors import QuizNotFoundError, QuizValidationError, SessionStateError, StorageError
from quizzify.core.models import MultiAnswer, SingleAnswer
from quizzify.core.services.quiz_session import (
    Navigate,
    QuizSession,
    RecordAnswer,
    SessionState,
    Submit,
    Tick,
)


@pytest.fixture
def session(store, identifiers, scenario_quiz) -> QuizSession:
    quiz_session = QuizSession(store, identifiers=identifiers, clock=fixed_clock)
    quiz_session.load("AB12CD")
    return quiz_session


def test_load_starts_countdown(store, scenario_quiz):
    quiz_session = QuizSession(store)
    assert quiz_session.state is SessionState.LOADING

    quiz = quiz_session.load("ab12cd")

    assert quiz.id == scenario_quiz.id
    assert quiz_session.state is SessionState.ACTIVE
    assert quiz_session.remaining_seconds == 60
    assert quiz_session.cursor == 0
    assert quiz_session.get_answers() == {}


def test_load_unknown_code(store, scenario_quiz):
    quiz_session = QuizSession(store)

    with pytest.raises(QuizNotFoundError):
        quiz_session.load("ZZZZZZ")
    assert quiz_session.state is SessionState.LOADING


def test_submit_before_load_is_rejected(store):
    with pytest.raises(SessionStateError):
        QuizSession(store).submit()


def test_navigation_is_clamped(session):
    assert session.navigate(-1) == 0
    assert session.navigate(1) == 1
    assert session.navigate(1) == 2
    assert session.navigate(1) == 2
    assert session.navigate(-1) == 1


def test_navigation_rejects_other_steps(session):
    with pytest.raises(ValueError):
        session.navigate(2)


def test_record_answer_does_not_move_cursor(session):
    session.record_answer("q1", "A")

    assert session.cursor == 0
    assert session.get_answers() == {"q1": SingleAnswer("A")}


def test_changing_answer_after_navigating_back_overwrites(session):
    session.record_answer("q1", "B")
    session.navigate(1)
    session.record_answer("q2", "True")
    session.navigate(-1)
    session.record_answer("q1", "A")

    assert session.get_answers() == {"q1": SingleAnswer("A"), "q2": SingleAnswer("True")}


def test_free_entry_is_accepted(session):
    session.record_answer("q1", "not an option")
    session.record_answer("q3", ["multi", "part"])

    assert session.get_answers()["q1"] == SingleAnswer("not an option")
    assert session.get_answers()["q3"] == MultiAnswer(("multi", "part"))


def test_unknown_question_is_rejected(session):
    with pytest.raises(QuizValidationError):
        session.record_answer("q99", "A")


def test_submit_persists_scored_attempt(session, store):
    session.record_answer("q1", "A")
    session.record_answer("q2", "False")
    for _ in range(15):
        session.tick()

    attempt_id = session.submit()

    assert session.state is SessionState.FINISHED
    attempt = store.find_attempt(attempt_id)
    assert attempt.score == 1
    assert attempt.total_marks == 4
    assert attempt.time_taken_seconds == 15
    assert attempt.completed_at == FIXED_NOW
    assert attempt.user_id == store.load_user().id
    assert attempt.answers == {"q1": SingleAnswer("A"), "q2": SingleAnswer("False")}
    assert attempt.topic_performance == {"Scenarios": 1}


def test_submit_updates_quiz_and_profile(session, store):
    session.record_answer("q3", "X")
    session.submit()

    assert store.find_quiz("quiz-1").attempts_count == 1
    user = store.load_user()
    assert user.xp == 20
    assert user.streak == 1


def test_double_submit_stores_one_attempt(session, store):
    first = session.submit()
    second = session.submit()

    assert first == second
    assert len(store.load_attempts()) == 1
    assert store.load_user().streak == 1
    assert store.find_quiz("quiz-1").attempts_count == 1


def test_countdown_exhaustion_submits_once(session, store):
    results = [session.tick() for _ in range(59)]
    assert results == [None] * 59
    assert session.state is SessionState.ACTIVE

    attempt_id = session.tick()

    assert attempt_id is not None
    assert session.state is SessionState.FINISHED
    assert session.remaining_seconds == 0
    assert store.find_attempt(attempt_id).time_taken_seconds == 60

    # A late manual submit or stray tick races the timeout.
    assert session.submit() == attempt_id
    assert session.tick() == attempt_id
    assert len(store.load_attempts()) == 1


def test_finished_session_ignores_further_events(session, store):
    session.record_answer("q1", "A")
    attempt_id = session.submit()

    session.record_answer("q1", "B")
    session.navigate(1)
    session.tick()

    assert session.get_answers() == {"q1": SingleAnswer("A")}
    assert session.cursor == 0
    assert session.remaining_seconds == 60
    assert store.find_attempt(attempt_id).answers == {"q1": SingleAnswer("A")}


def test_dispatch_accepts_event_objects(session):
    session.dispatch(RecordAnswer("q2", SingleAnswer("True")))
    session.dispatch(Navigate(1))
    session.dispatch(Tick())

    assert session.cursor == 1
    assert session.remaining_seconds == 59

    attempt_id = session.dispatch(Submit())
    assert session.snapshot().attempt_id == attempt_id


def test_on_finished_runs_once(store, scenario_quiz):
    finished = []
    quiz_session = QuizSession(store, on_finished=finished.append)
    quiz_session.load("AB12CD")

    quiz_session.submit()
    quiz_session.submit()

    assert finished == [quiz_session]


def test_snapshot_exposes_current_question(session):
    session.navigate(1)
    session.record_answer("q2", "True")

    snapshot = session.snapshot()

    assert snapshot.state is SessionState.ACTIVE
    assert snapshot.current_question.id == "q2"
    assert snapshot.answers == {"q2": SingleAnswer("True")}
    assert snapshot.attempt_id is None


def test_loading_twice_is_rejected(session):
    with pytest.raises(SessionStateError):
        session.load("AB12CD")


def test_quiz_counter_failure_still_updates_profile(session, store, monkeypatch):
    def fail(quiz_id):
        raise StorageError("quizzes file is read-only")

    monkeypatch.setattr(store, "increment_attempts_count", fail)
    session.record_answer("q3", "X")

    with pytest.raises(StorageError):
        session.submit()

    assert session.state is SessionState.FINISHED
    assert len(store.load_attempts()) == 1
    user = store.load_user()
    assert user.xp == 20
    assert user.streak == 1


def test_profile_failure_still_counts_attempt(store, scenario_quiz):
    class FailingProgression:
        def apply(self, attempt):
            raise StorageError("user file is read-only")

    quiz_session = QuizSession(store, progression=FailingProgression())
    quiz_session.load("AB12CD")

    with pytest.raises(StorageError):
        quiz_session.submit()

    assert store.find_quiz("quiz-1").attempts_count == 1
    assert len(store.load_attempts()) == 1

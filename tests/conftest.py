import pytest

from trivia_quiz.models import Question
from trivia_quiz.state import session_store


class StubSource:
    """Question source that hands back a fixed list, or raises."""

    def __init__(self, questions=None, error=None):
        self.questions = questions or []
        self.error = error
        self.calls = 0

    async def fetch_questions(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.questions)


def _question(difficulty, n=0, correct=0):
    return Question(
        text=f"{difficulty} question {n}",
        options=["A", "B", "C", "D"],
        correct_option_index=correct,
        difficulty=difficulty,
    )


@pytest.fixture
def make_question():
    return _question


@pytest.fixture
def make_pool():
    """Build a pool from a list of difficulties; every question's answer is index 0."""

    def _make(difficulties):
        counters = {}
        pool = []
        for d in difficulties:
            n = counters.get(d, 0)
            counters[d] = n + 1
            pool.append(_question(d, n))
        return pool

    return _make


@pytest.fixture
def stub_source():
    return StubSource


@pytest.fixture(autouse=True)
def clear_sessions():
    yield
    session_store.clear()

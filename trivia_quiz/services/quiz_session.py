import logging
from typing import Optional, Protocol, Sequence, Tuple
from ..errors import EmptyPoolError
from ..models import Difficulty, FinalScore, Question, TurnRecord, User
from .adaptive_engine import ScoringPolicy
from .sequencer import QuestionSequencer, SequencerState

logger = logging.getLogger("trivia_quiz")


class QuestionSource(Protocol):
    async def fetch_questions(self) -> Sequence[Question]:
        ...


class QuizSession:
    """One user's quiz run.

    Not thread-safe: callers must not call ``answer`` concurrently on the same
    session.
    """

    def __init__(self, username: str, scoring: Optional[ScoringPolicy] = None) -> None:
        self.scoring = scoring
        self.user = User(username=username)
        self.sequencer = QuestionSequencer(self.user, scoring=scoring)
        self.is_completed = False

    @property
    def username(self) -> str:
        return self.user.username

    @property
    def current_question(self) -> Optional[Question]:
        return self.sequencer.current_question

    @property
    def questions_answered(self) -> int:
        return self.sequencer.questions_answered

    @property
    def question_number(self) -> int:
        return self.sequencer.position + 1

    @property
    def difficulty(self) -> Difficulty:
        return self.sequencer.target_difficulty

    @property
    def last_turn(self) -> Optional[TurnRecord]:
        return self.sequencer.last_turn

    @property
    def is_started(self) -> bool:
        return self.sequencer.state is not SequencerState.NOT_STARTED

    def current_score(self) -> int:
        return self.user.score

    def start(self, questions: Sequence[Question]) -> Question:
        if not questions:
            raise EmptyPoolError("no questions available to start the quiz")
        first = self.sequencer.start(questions)
        logger.debug({"event": "session_quiz_started", "username": self.username, "pool_size": len(questions)})
        return first

    async def start_from(self, source: QuestionSource) -> Question:
        """Fetch the pool once from ``source`` and start on it."""
        try:
            questions = await source.fetch_questions()
        except Exception as e:
            logger.exception("question_source_failed")
            raise EmptyPoolError("question source failed") from e
        return self.start(list(questions or []))

    def answer(self, selected_index: int) -> Question | FinalScore:
        _turn, result = self.play_turn(selected_index)
        return result

    def play_turn(self, selected_index: int) -> Tuple[TurnRecord, Question | FinalScore]:
        """Answer the current question and return this turn's record with the result."""
        turn_index = self.sequencer.questions_answered
        result = self.sequencer.submit_answer(selected_index)
        if isinstance(result, FinalScore):
            self.is_completed = True
        return self.sequencer.history[turn_index], result

    def reset(self) -> None:
        self.user = User(username=self.username)
        self.sequencer = QuestionSequencer(self.user, scoring=self.scoring)
        self.is_completed = False
        logger.debug({"event": "session_reset", "username": self.username})

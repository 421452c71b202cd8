import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from ..errors import ConfigurationError, InvalidStateError
from ..models import (
    Difficulty,
    DifficultyChange,
    DifficultyState,
    FinalScore,
    Question,
    TurnRecord,
    User,
    is_known_difficulty,
)
from .adaptive_engine import DifficultyController, ScoringPolicy

logger = logging.getLogger("trivia_quiz")

SESSION_LENGTH = 10


class SequencerState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def promote_next_question(pool: List[Question], target: Difficulty, position: int) -> bool:
    """Move the first question after ``position`` matching ``target`` to ``position + 1``.

    The relative order of every other question is kept. Returns False when no
    question after ``position`` has the target difficulty.
    """
    for idx in range(position + 1, len(pool)):
        if pool[idx].difficulty == target.value:
            if idx != position + 1:
                pool.insert(position + 1, pool.pop(idx))
            return True
    return False


class QuestionSequencer:
    """Drives one fixed-length run over a question pool.

    ``start`` moves the sequencer from NOT_STARTED to IN_PROGRESS. Each
    ``submit_answer`` scores the current question, updates the difficulty
    target and pulls a matching question forward; the last turn returns a
    ``FinalScore`` and the sequencer is COMPLETED for good.
    """

    def __init__(self, user: User, scoring: Optional[ScoringPolicy] = None) -> None:
        self.user = user
        self.scoring = scoring or ScoringPolicy()
        self._state = SequencerState.NOT_STARTED
        self._pool: List[Question] = []
        self._position = 0
        self._controller = DifficultyController()
        self._questions_answered = 0
        self._history: List[TurnRecord] = []
        self._final_score: Optional[FinalScore] = None

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def position(self) -> int:
        return self._position

    @property
    def questions_answered(self) -> int:
        return self._questions_answered

    @property
    def target_difficulty(self) -> Difficulty:
        return self._controller.current_difficulty

    @property
    def difficulty_state(self) -> DifficultyState:
        return self._controller.state

    @property
    def pool(self) -> Tuple[Question, ...]:
        return tuple(self._pool)

    @property
    def history(self) -> Tuple[TurnRecord, ...]:
        return tuple(self._history)

    @property
    def last_turn(self) -> Optional[TurnRecord]:
        return self._history[-1] if self._history else None

    @property
    def final_score(self) -> Optional[FinalScore]:
        return self._final_score

    @property
    def current_question(self) -> Optional[Question]:
        if self._state is not SequencerState.IN_PROGRESS:
            return None
        return self._pool[self._position]

    def start(self, questions: Sequence[Question]) -> Question:
        if self._state is not SequencerState.NOT_STARTED:
            raise InvalidStateError(f"cannot start a sequencer that is {self._state.value}", state=self._state.value)
        if len(questions) < SESSION_LENGTH:
            raise ConfigurationError(f"question pool has {len(questions)} questions, need at least {SESSION_LENGTH}")
        unknown = sorted({q.difficulty for q in questions if not is_known_difficulty(q.difficulty)})
        if unknown:
            raise ConfigurationError(f"question pool contains unrecognized difficulties: {unknown}")

        pool = list(questions)
        medium_idx = next((i for i, q in enumerate(pool) if q.difficulty == Difficulty.MEDIUM.value), None)
        if medium_idx is None:
            logger.warning({"event": "no_medium_question", "pool_size": len(pool)})
        elif medium_idx != 0:
            pool.insert(0, pool.pop(medium_idx))

        self._pool = pool
        self._position = 0
        self._controller = DifficultyController()
        self._state = SequencerState.IN_PROGRESS
        logger.debug({"event": "sequencer_started", "pool_size": len(pool), "first_difficulty": pool[0].difficulty})
        return pool[0]

    def submit_answer(self, selected_index: int) -> Question | FinalScore:
        if self._state is not SequencerState.IN_PROGRESS:
            raise InvalidStateError(f"cannot submit an answer when sequencer is {self._state.value}", state=self._state.value)

        question = self._pool[self._position]
        correct = question.check_answer(selected_index)
        change = self._controller.record_answer(correct)
        points = self._apply_score(question, change)
        self._questions_answered += 1
        self._history.append(TurnRecord(
            question_number=self._position + 1,
            question_text=question.text,
            question_difficulty=question.difficulty,
            selected_index=selected_index,
            correct_option_index=question.correct_option_index,
            correct=correct,
            multiplier=change.multiplier,
            points=points,
            target_difficulty=change.current_difficulty,
        ))
        logger.debug({
            "event": "answer_recorded",
            "question_number": self._position + 1,
            "correct": correct,
            "multiplier": change.multiplier,
            "points": points,
            "score": self.user.score,
            "consecutive_correct": change.consecutive_correct,
            "consecutive_wrong": change.consecutive_wrong,
            "target": change.current_difficulty.value,
        })

        if promote_next_question(self._pool, change.current_difficulty, self._position):
            logger.debug({"event": "pool_reordered", "position": self._position + 1, "target": change.current_difficulty.value})
        else:
            logger.debug({"event": "no_target_question", "target": change.current_difficulty.value})

        if self._position == SESSION_LENGTH - 1:
            self._state = SequencerState.COMPLETED
            self._final_score = FinalScore(
                username=self.user.username,
                score=self.user.score,
                questions_answered=self._questions_answered,
            )
            logger.info({"event": "quiz_completed", "username": self.user.username, "score": self.user.score, "questions_answered": self._questions_answered})
            return self._final_score

        self._position += 1
        return self._pool[self._position]

    def _apply_score(self, question: Question, change: DifficultyChange) -> int:
        if change.multiplier <= 0:
            return 0
        points = self.scoring.points_for(question, change.multiplier)
        self.user.update_score(points)
        return points

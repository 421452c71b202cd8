import logging
from ..models import DIFFICULTY_ORDER, Difficulty, DifficultyChange, DifficultyState, Question

logger = logging.getLogger("trivia_quiz")

# consecutive answers needed before difficulty or scoring changes
ESCALATE_EVERY = 2
DEESCALATE_AFTER = 2
BONUS_STREAK = 3
BONUS_MULTIPLIER = 2

def increase_difficulty(current: Difficulty) -> Difficulty:
    idx = DIFFICULTY_ORDER.index(current)
    return DIFFICULTY_ORDER[min(idx + 1, len(DIFFICULTY_ORDER) - 1)]

def decrease_difficulty(current: Difficulty) -> Difficulty:
    idx = DIFFICULTY_ORDER.index(current)
    return DIFFICULTY_ORDER[max(idx - 1, 0)]

class DifficultyController:
    """Tracks answer streaks and moves the target difficulty up or down.

    Every second correct answer in a row escalates one step. Two wrong answers
    in a row de-escalate one step, after which the wrong streak starts over.
    """

    def __init__(self) -> None:
        self._state = DifficultyState()

    @property
    def state(self) -> DifficultyState:
        return self._state.model_copy()

    @property
    def current_difficulty(self) -> Difficulty:
        return self._state.current_difficulty

    def record_answer(self, correct: bool) -> DifficultyChange:
        state = self._state
        previous = state.current_difficulty
        if correct:
            state.consecutive_correct += 1
            state.consecutive_wrong = 0
            multiplier = BONUS_MULTIPLIER if state.consecutive_correct >= BONUS_STREAK else 1
            if state.consecutive_correct > 0 and state.consecutive_correct % ESCALATE_EVERY == 0:
                state.current_difficulty = increase_difficulty(state.current_difficulty)
        else:
            state.consecutive_wrong += 1
            state.consecutive_correct = 0
            multiplier = 0
            if state.consecutive_wrong >= DEESCALATE_AFTER:
                state.current_difficulty = decrease_difficulty(state.current_difficulty)
                state.consecutive_wrong = 0
        change = DifficultyChange(
            correct=correct,
            multiplier=multiplier,
            previous_difficulty=previous,
            current_difficulty=state.current_difficulty,
            consecutive_correct=state.consecutive_correct,
            consecutive_wrong=state.consecutive_wrong,
        )
        if change.changed:
            event = "difficulty_increased" if DIFFICULTY_ORDER.index(change.current_difficulty) > DIFFICULTY_ORDER.index(previous) else "difficulty_decreased"
            logger.debug({"event": event, "from": previous.value, "to": change.current_difficulty.value})
        return change

class ScoringPolicy:
    def points_for(self, question: Question, multiplier: int) -> int:
        if multiplier < 0:
            raise ValueError("multiplier must be non-negative")
        return question.difficulty_value() * multiplier

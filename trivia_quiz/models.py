from enum import Enum
from pydantic import BaseModel, ConfigDict, model_validator
from typing import List, Optional, Tuple
from .errors import ConfigurationError

class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

DIFFICULTY_ORDER = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD]

DIFFICULTY_POINTS = {
    Difficulty.EASY: 100,
    Difficulty.MEDIUM: 200,
    Difficulty.HARD: 300,
}

def is_known_difficulty(value: str) -> bool:
    return value in {d.value for d in Difficulty}

class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    options: Tuple[str, ...]
    correct_option_index: int
    difficulty: str = Difficulty.MEDIUM.value
    category: Optional[str] = None

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        if len(self.options) < 2:
            raise ValueError("question needs at least two options")
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(
                f"correct_option_index {self.correct_option_index} out of range for {len(self.options)} options"
            )
        return self

    @property
    def correct_option_text(self) -> str:
        return self.options[self.correct_option_index]

    def check_answer(self, selected_index: int) -> bool:
        return selected_index == self.correct_option_index

    def difficulty_value(self) -> int:
        """Base points for this question: easy=100, medium=200, hard=300."""
        if not is_known_difficulty(self.difficulty):
            raise ConfigurationError(f"unrecognized difficulty {self.difficulty!r} for question {self.text!r}")
        return DIFFICULTY_POINTS[Difficulty(self.difficulty)]

class User(BaseModel):
    username: str
    score: int = 0

    def update_score(self, points: int) -> None:
        # score only ever grows
        if points < 0:
            raise ValueError("points must be non-negative")
        self.score += points

class DifficultyState(BaseModel):
    current_difficulty: Difficulty = Difficulty.MEDIUM
    consecutive_correct: int = 0
    consecutive_wrong: int = 0

class DifficultyChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    correct: bool
    multiplier: int
    previous_difficulty: Difficulty
    current_difficulty: Difficulty
    consecutive_correct: int
    consecutive_wrong: int

    @property
    def changed(self) -> bool:
        return self.previous_difficulty != self.current_difficulty

class TurnRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_number: int
    question_text: str
    question_difficulty: str
    selected_index: int
    correct_option_index: int
    correct: bool
    multiplier: int
    points: int
    target_difficulty: Difficulty

class FinalScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    score: int
    questions_answered: int

class QuestionView(BaseModel):
    text: str
    options: List[str]
    difficulty: str
    category: Optional[str] = None

    @classmethod
    def from_question(cls, question: Question) -> "QuestionView":
        return cls(text=question.text, options=list(question.options), difficulty=question.difficulty, category=question.category)

class StartSessionResponse(BaseModel):
    session_id: str
    username: str
    question: QuestionView
    question_number: int
    total_questions: int
    score: int = 0

class CurrentQuestionResponse(BaseModel):
    question: QuestionView
    question_number: int
    total_questions: int
    score: int
    difficulty: Difficulty

class SubmitAnswerRequest(BaseModel):
    session_id: str
    selected_index: int

class SubmitAnswerResponse(BaseModel):
    correct: bool
    correct_answer_text: str
    points_awarded: int
    multiplier: int
    difficulty: Difficulty
    score: int
    completed: bool = False
    question: Optional[QuestionView] = None
    question_number: Optional[int] = None
    final_score: Optional[int] = None

class ScoreResponse(BaseModel):
    username: str
    score: int
    questions_answered: int
    completed: bool

import os
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from ..config import settings
from ..models import Question, TurnRecord

logger = logging.getLogger("trivia_quiz")

class AnswerLog:
    """Appends answered turns to ``session_<id>.jsonl`` under ``log_dir``.

    A ``None`` directory disables logging.
    """

    def __init__(self, log_dir: str | None = None) -> None:
        self.log_dir = os.path.abspath(log_dir) if log_dir else None
        if self.log_dir:
            os.makedirs(self.log_dir, exist_ok=True)

    @property
    def enabled(self) -> bool:
        return self.log_dir is not None

    def session_log_path(self, session_id: str) -> str:
        return os.path.join(self.log_dir or "", f"session_{session_id}.jsonl")

    def _append(self, session_id: str, record: Dict[str, Any]) -> None:
        if not self.enabled:
            return
        try:
            enriched = dict(record)
            enriched.setdefault("ts", datetime.now(timezone.utc).isoformat())
            with open(self.session_log_path(session_id), 'a', encoding='utf-8') as f:
                f.write(json.dumps(enriched, ensure_ascii=False) + "\n")
        except Exception:
            logger.exception("session_log_write_failed")

    def log_answer(self, session_id: str, question: Question, turn: TurnRecord) -> None:
        selected = question.options[turn.selected_index] if 0 <= turn.selected_index < len(question.options) else None
        self._append(session_id, {
            "event": "answer",
            "question_number": turn.question_number,
            "question": question.text,
            "selected": selected,
            "correct_text": question.correct_option_text,
            "is_correct": turn.correct,
            "points": turn.points,
            "difficulty": turn.target_difficulty.value,
        })

    def log_completed(self, session_id: str, username: str, score: int) -> None:
        self._append(session_id, {"event": "completed", "username": username, "score": score})

answer_log = AnswerLog(settings.answer_log_dir)

import html
import logging
import random
from time import perf_counter
from typing import Any, Dict, List, Optional
import httpx
from pydantic import ValidationError
from ..config import settings
from ..models import Question

logger = logging.getLogger("trivia_quiz")

class OpenTriviaClient:
    """Fetches multiple-choice questions from the Open Trivia DB API.

    Every failure mode (network, HTTP status, bad payload, non-zero
    ``response_code``) is logged and turned into an empty list.
    """

    def __init__(self, base_url: Optional[str] = None, amount: Optional[int] = None, question_type: Optional[str] = None, timeout: Optional[float] = None, transport: httpx.AsyncBaseTransport | None = None, rng: random.Random | None = None) -> None:
        self.base_url = base_url or settings.trivia_api_url
        self.amount = amount or settings.trivia_amount
        self.question_type = question_type or settings.trivia_question_type
        self.timeout = timeout or settings.trivia_timeout
        self.transport = transport
        self.rng = rng or random.Random()

    def _params(self) -> Dict[str, Any]:
        return {"amount": self.amount, "type": self.question_type}

    def _insert_correct(self, incorrect: List[str], correct: str) -> tuple[List[str], int]:
        """Place the correct answer at a random slot among the incorrect ones."""
        options = list(incorrect)
        correct_index = self.rng.randint(0, len(options))
        options.insert(correct_index, correct)
        return options, correct_index

    def _parse_item(self, item: Any) -> Question | None:
        if not isinstance(item, dict):
            return None
        incorrect = item.get("incorrect_answers")
        correct = item.get("correct_answer")
        if not isinstance(incorrect, list) or not isinstance(correct, str):
            return None
        options, correct_index = self._insert_correct([html.unescape(str(o)) for o in incorrect], html.unescape(correct))
        category = item.get("category")
        try:
            return Question(
                text=html.unescape(str(item.get("question", ""))),
                options=options,
                correct_option_index=correct_index,
                difficulty=str(item.get("difficulty", "medium")).lower(),
                category=html.unescape(category) if isinstance(category, str) else None,
            )
        except ValidationError:
            return None

    def parse_payload(self, payload: Any) -> List[Question]:
        if not isinstance(payload, dict):
            logger.warning({"event": "trivia_payload_invalid", "reason": "not_an_object"})
            return []
        code = payload.get("response_code", 0)
        if code != 0:
            logger.warning({"event": "trivia_response_code", "response_code": code})
            return []
        results = payload.get("results")
        if not isinstance(results, list):
            logger.warning({"event": "trivia_payload_invalid", "reason": "results_not_list"})
            return []
        questions: List[Question] = []
        for item in results:
            q = self._parse_item(item)
            if q is None:
                logger.warning({"event": "trivia_item_skipped", "item": item})
                continue
            questions.append(q)
        return questions

    async def fetch_questions(self) -> List[Question]:
        try:
            t0 = perf_counter()
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.base_url, params=self._params())
                response.raise_for_status()
                payload = response.json()
            latency_ms = int((perf_counter() - t0) * 1000)
        except (httpx.HTTPError, ValueError):
            logger.exception("trivia_fetch_failed")
            return []
        questions = self.parse_payload(payload)
        logger.debug({"event": "trivia_fetched", "count": len(questions), "latency_ms": latency_ms})
        return questions

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import ORJSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, field_validator
import logging
import uuid
from time import perf_counter
from datetime import datetime, timezone
from .state import session_store
from .errors import ConfigurationError, EmptyPoolError, InvalidStateError
from .models import CurrentQuestionResponse, FinalScore, QuestionView, ScoreResponse, StartSessionResponse, SubmitAnswerRequest, SubmitAnswerResponse
from .services.answer_log import AnswerLog, answer_log
from .services.quiz_session import QuestionSource, QuizSession
from .services.sequencer import SESSION_LENGTH
from .services.trivia_client import OpenTriviaClient
from .config import settings

logging.basicConfig(level=getattr(logging, settings.log_level, logging.DEBUG), format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("trivia_quiz")

@asynccontextmanager
async def lifespan(_app: FastAPI):
	logger.info({
		"event": "api_startup",
		"utc_time": datetime.now(timezone.utc).isoformat(),
		"trivia_api_url": settings.trivia_api_url,
		"trivia_amount": settings.trivia_amount,
		"session_length": SESSION_LENGTH,
		"answer_log": settings.answer_log_dir,
	})
	yield
	logger.info({"event": "api_shutdown", "open_sessions": len(session_store.session_ids())})

app = FastAPI(default_response_class=ORJSONResponse, lifespan=lifespan)

app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

trivia_client = OpenTriviaClient()

def get_question_source() -> QuestionSource:
	return trivia_client

def get_answer_log() -> AnswerLog:
	return answer_log

class StartSessionRequest(BaseModel):
	username: str

	@field_validator("username")
	@classmethod
	def _not_blank(cls, value: str) -> str:
		value = value.strip()
		if not value:
			raise ValueError("username must not be blank")
		return value

def _require_session(session_id: str) -> QuizSession:
	session = session_store.get_session(session_id)
	if session is None:
		raise HTTPException(status_code=404, detail="session_not_found")
	return session

@app.middleware("http")
async def timing_middleware(request: Request, call_next):
	start = perf_counter()
	response = await call_next(request)
	duration_ms = int((perf_counter() - start) * 1000)
	logger.debug({
		"event": "request_timing",
		"method": request.method,
		"path": request.url.path,
		"status_code": response.status_code,
		"duration_ms": duration_ms,
	})
	return response

@app.post("/api/session/start", response_model=StartSessionResponse)
async def start_session(payload: StartSessionRequest, source: QuestionSource = Depends(get_question_source)):
	session = QuizSession(payload.username)
	try:
		first = await session.start_from(source)
	except EmptyPoolError:
		logger.warning({"event": "start_failed", "reason": "empty_pool", "username": payload.username})
		raise HTTPException(status_code=503, detail="no_questions_available")
	except ConfigurationError:
		logger.exception("start_failed_invalid_pool")
		raise HTTPException(status_code=500, detail="invalid_question_pool")
	session_id = str(uuid.uuid4())
	session_store.create_session(session_id, session)
	logger.debug({"event": "session_started", "session_id": session_id, "username": session.username})
	return StartSessionResponse(
		session_id=session_id,
		username=session.username,
		question=QuestionView.from_question(first),
		question_number=session.question_number,
		total_questions=SESSION_LENGTH,
		score=session.current_score(),
	)

@app.get("/api/quiz/current", response_model=CurrentQuestionResponse)
async def get_current_question(session_id: str):
	session = _require_session(session_id)
	question = session.current_question
	if question is None:
		raise HTTPException(status_code=409, detail="session_completed")
	logger.debug({
		"event": "serve_question",
		"session_id": session_id,
		"question_number": session.question_number,
		"difficulty": question.difficulty,
		"text": question.text,
	})
	return CurrentQuestionResponse(
		question=QuestionView.from_question(question),
		question_number=session.question_number,
		total_questions=SESSION_LENGTH,
		score=session.current_score(),
		difficulty=session.difficulty,
	)

# async so each turn runs to completion on the event loop before the next submit starts
@app.post("/api/quiz/submit", response_model=SubmitAnswerResponse)
async def submit_answer(payload: SubmitAnswerRequest, log: AnswerLog = Depends(get_answer_log)):
	session = _require_session(payload.session_id)
	answered = session.current_question
	try:
		turn, result = session.play_turn(payload.selected_index)
	except InvalidStateError as e:
		logger.warning({"event": "submit_rejected", "session_id": payload.session_id, "state": e.state})
		raise HTTPException(status_code=409, detail="session_completed")
	logger.debug({
		"event": "submit_answer",
		"session_id": payload.session_id,
		"question_number": turn.question_number,
		"selected_index": payload.selected_index,
		"correct_index": turn.correct_option_index,
		"is_correct": turn.correct,
		"points": turn.points,
		"score": session.current_score(),
		"difficulty": turn.target_difficulty.value,
	})
	log.log_answer(payload.session_id, answered, turn)
	response = SubmitAnswerResponse(
		correct=turn.correct,
		correct_answer_text=answered.correct_option_text,
		points_awarded=turn.points,
		multiplier=turn.multiplier,
		difficulty=turn.target_difficulty,
		score=session.current_score(),
	)
	if isinstance(result, FinalScore):
		log.log_completed(payload.session_id, result.username, result.score)
		response.completed = True
		response.final_score = result.score
	else:
		response.question = QuestionView.from_question(result)
		response.question_number = session.question_number
	return response

@app.get("/api/session/score", response_model=ScoreResponse)
def get_score(session_id: str):
	session = _require_session(session_id)
	return ScoreResponse(
		username=session.username,
		score=session.current_score(),
		questions_answered=session.questions_answered,
		completed=session.is_completed,
	)

@app.delete("/api/session/{session_id}", status_code=204)
def end_session(session_id: str):
	if not session_store.drop_session(session_id):
		raise HTTPException(status_code=404, detail="session_not_found")
	logger.debug({"event": "session_dropped", "session_id": session_id})
	return Response(status_code=204)

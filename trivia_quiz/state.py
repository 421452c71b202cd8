from typing import Dict, List, Optional
from .services.quiz_session import QuizSession

class SessionStore:
	def __init__(self) -> None:
		self.sessions: Dict[str, QuizSession] = {}

	def create_session(self, session_id: str, session: QuizSession) -> None:
		self.sessions[session_id] = session

	def get_session(self, session_id: str) -> Optional[QuizSession]:
		return self.sessions.get(session_id)

	def drop_session(self, session_id: str) -> bool:
		return self.sessions.pop(session_id, None) is not None

	def session_ids(self) -> List[str]:
		return list(self.sessions)

	def clear(self) -> None:
		self.sessions.clear()

session_store = SessionStore()

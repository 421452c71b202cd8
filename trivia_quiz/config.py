import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseModel):
    trivia_api_url: str = os.getenv("TRIVIA_API_URL", "https://opentdb.com/api.php")
    trivia_amount: int = int(os.getenv("TRIVIA_AMOUNT", "50"))
    trivia_question_type: str = os.getenv("TRIVIA_QUESTION_TYPE", "multiple")
    trivia_timeout: float = float(os.getenv("TRIVIA_TIMEOUT", "10.0"))
    log_level: str = os.getenv("LOG_LEVEL", "DEBUG").upper()
    answer_log_dir: str | None = os.getenv("ANSWER_LOG_DIR") or None
    cors_origins: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

settings = Settings()

import os
import logging
import secrets
from pathlib import Path
from dotenv import load_dotenv

log = logging.getLogger("config")

BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = BASE_DIR / ".env"

load_dotenv(dotenv_path=ENV_PATH, override=False)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        log.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


# Provider
LLM_API_KEY = os.getenv("LLM_API_KEY", "")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "google/gemma-3-27b-it:free")
LLM_TEMPERATURE = _env_float("LLM_TEMPERATURE", 0.7)
EXPLAIN_TEMPERATURE = _env_float("EXPLAIN_TEMPERATURE", 0.3)
LLM_TIMEOUT = _env_float("LLM_TIMEOUT", 60.0)

# Quiz
QUIZ_MAX_QUESTIONS = _env_int("QUIZ_MAX_QUESTIONS", 30)
QUIZ_DEFAULT_QUESTIONS = _env_int("QUIZ_DEFAULT_QUESTIONS", 5)
QUIZ_DIFFICULTY = os.getenv("QUIZ_DIFFICULTY", "challenging")

# Web
ENV = os.getenv("ENV", "").lower()
IS_PROD = ENV == "prod"
WEB_HOST = os.getenv("WEB_HOST", "127.0.0.1")
WEB_PORT = _env_int("WEB_PORT", 8000)
WEB_SESSION_SECRET = os.getenv("WEB_SESSION_SECRET", "")
if not WEB_SESSION_SECRET:
    WEB_SESSION_SECRET = secrets.token_urlsafe(32)
    log.warning("WEB_SESSION_SECRET not set; using a random per-process secret")

# Logging
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

log.debug("BASE_DIR=%s", BASE_DIR)
log.debug("ENV_PATH=%s exists=%s", ENV_PATH, ENV_PATH.exists())
log.debug("KEY_LEN=%s", len(LLM_API_KEY or ""))
log.debug("LLM_BASE_URL=%s", LLM_BASE_URL)
log.debug("LLM_MODEL=%s", LLM_MODEL)

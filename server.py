import logging

import uvicorn

from config import LLM_API_KEY, LLM_BASE_URL, LLM_MODEL, LOG_DIR, LOG_LEVEL, WEB_HOST, WEB_PORT
from quizgen.constants import APP_NAME, APP_VERSION
from quizgen.utils.logger_setup import setup_logging

log = logging.getLogger("QuizGen")


def main() -> None:
    setup_logging(log_dir=LOG_DIR, console_level=LOG_LEVEL, file_level="DEBUG")

    if not LLM_API_KEY:
        log.warning("LLM_API_KEY missing in .env; quiz generation will be refused")

    log.info(
        "%s %s | provider=%s | model=%s | http://%s:%s",
        APP_NAME,
        APP_VERSION,
        LLM_BASE_URL.replace("http://", "").replace("https://", ""),
        LLM_MODEL,
        WEB_HOST,
        WEB_PORT,
    )

    uvicorn.run("quizgen.web.main:app", host=WEB_HOST, port=WEB_PORT, log_config=None)


if __name__ == "__main__":
    main()

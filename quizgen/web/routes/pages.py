from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

import config
from quizgen.constants import AI_FOOTER, APP_NAME

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
def quiz_page(request: Request):
    templates = request.app.state.templates

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "app_name": APP_NAME,
            "footer": AI_FOOTER,
            "default_count": config.QUIZ_DEFAULT_QUESTIONS,
            "max_count": config.QUIZ_MAX_QUESTIONS,
        },
    )

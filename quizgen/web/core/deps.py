from __future__ import annotations

import os
import secrets

from fastapi import Request
from fastapi.templating import Jinja2Templates

import config
from quizgen.services.explanations import ExplanationCache
from quizgen.services.llm import LLMClient
from quizgen.services.quiz_gen import QuizGenerator
from quizgen.services.workspace import QuizWorkspace, WorkspaceRegistry

SESSION_SECRET = config.WEB_SESSION_SECRET
IS_PROD = config.IS_PROD

# -----------------------------
# Paths
# -----------------------------
CORE_DIR = os.path.dirname(os.path.abspath(__file__))
WEB_DIR = os.path.abspath(os.path.join(CORE_DIR, ".."))  # quizgen/web

TEMPLATES_DIR = os.getenv("TEMPLATES_DIR", os.path.join(WEB_DIR, "templates"))
STATIC_DIR = os.getenv("STATIC_DIR", os.path.join(WEB_DIR, "static"))

# -----------------------------
# Singletons
# -----------------------------
templates = Jinja2Templates(directory=TEMPLATES_DIR)

llm = LLMClient(
    base_url=config.LLM_BASE_URL,
    default_model=config.LLM_MODEL,
    api_key=config.LLM_API_KEY,
    default_temperature=config.LLM_TEMPERATURE,
    timeout=config.LLM_TIMEOUT,
)


def build_registry(client=None) -> WorkspaceRegistry:
    client = client or llm

    def make_workspace() -> QuizWorkspace:
        # sampling and limits come from config via the service defaults
        return QuizWorkspace(QuizGenerator(client), lambda: ExplanationCache(client))

    return WorkspaceRegistry(make_workspace)


# -----------------------------
# Session helpers
# -----------------------------
def sid(request: Request) -> str:
    s = request.session.get("sid")
    if not s:
        s = secrets.token_urlsafe(16)
        request.session["sid"] = s
    return s


def workspace_for(request: Request) -> QuizWorkspace:
    return request.app.state.workspaces.get(sid(request))

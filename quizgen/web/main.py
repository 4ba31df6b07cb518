from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.staticfiles import StaticFiles

from quizgen.constants import APP_NAME, APP_VERSION
from quizgen.web.core.deps import IS_PROD, SESSION_SECRET, STATIC_DIR, build_registry, templates
from quizgen.web.core.ratelimit import limiter
from quizgen.web.routes.pages import router as pages_router
from quizgen.web.routes.quiz import router as quiz_router

log = logging.getLogger("QuizGen")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # teardown: cancel in-flight generations and stop session clocks
    await app.state.workspaces.aclose()
    log.info("Workspaces closed")


# -----------------------------
# App
# -----------------------------
app = FastAPI(title=f"{APP_NAME} Quiz", version=APP_VERSION, lifespan=lifespan)

# -----------------------------
# Rate limiting
# -----------------------------
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
async def ratelimit_handler(request: Request, exc: RateLimitExceeded):
    return PlainTextResponse("Too Many Requests", status_code=429)


# -----------------------------
# Sessions
# -----------------------------
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    same_site="lax",
    https_only=bool(IS_PROD),
    max_age=60 * 60 * 24,
)

# -----------------------------
# Static
# -----------------------------
os.makedirs(STATIC_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

# shared state
app.state.templates = templates
app.state.workspaces = build_registry()


# -----------------------------
# Security headers
# -----------------------------
@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"

    csp = (
        "default-src 'self'; "
        "base-uri 'self'; "
        "object-src 'none'; "
        "frame-ancestors 'none'; "
        "img-src 'self' data:; "
        "style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; "
        "connect-src 'self';"
    )
    response.headers["Content-Security-Policy"] = csp
    return response


# -----------------------------
# Routes
# -----------------------------
app.include_router(pages_router)
app.include_router(quiz_router)

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

import config
from quizgen.constants import PDF_MAX_BYTES, PDF_MIN_CHARS
from quizgen.errors import ConstraintError, GenerationError, SessionStateError
from quizgen.services.pdf_notes import pdf_to_text, sanitize_notes_text
from quizgen.services.workspace import QuizWorkspace
from quizgen.web.core.deps import workspace_for
from quizgen.web.core.ratelimit import limiter

log = logging.getLogger("QuizGen")

router = APIRouter(prefix="/api/quiz", tags=["quiz"])

_STATUS_BY_KIND = {
    ConstraintError.kind: 400,
}


def _state(ws: QuizWorkspace) -> JSONResponse:
    return JSONResponse({"ok": True, "state": ws.session.snapshot() if ws.session else None})


def _rejected(ws: QuizWorkspace, reason: str) -> JSONResponse:
    state = ws.session.snapshot() if ws.session else None
    return JSONResponse({"ok": False, "error": reason, "state": state}, status_code=409)


def _generation_failed(e: GenerationError) -> JSONResponse:
    status = _STATUS_BY_KIND.get(e.kind, 502)
    return JSONResponse({"ok": False, "kind": e.kind, "error": str(e)}, status_code=status)


@router.post("/generate")
@limiter.limit("10/minute")
async def generate(request: Request, text: str = Form(""), count: str = Form("")):
    ws = workspace_for(request)

    raw_count = (count or "").strip() or str(config.QUIZ_DEFAULT_QUESTIONS)
    try:
        n = int(raw_count)
    except ValueError:
        return _generation_failed(ConstraintError("Question count must be a whole number."))

    try:
        session = await ws.start(text, n)
    except GenerationError as e:
        return _generation_failed(e)

    if session is None:
        # superseded by a newer request from the same browser
        return JSONResponse({"ok": False, "cancelled": True})
    return _state(ws)


@router.post("/pdf")
@limiter.limit("5/minute")
async def upload_pdf(request: Request, file: UploadFile = File(...)):
    fname = (file.filename or "").strip()
    if not fname.lower().endswith(".pdf"):
        return JSONResponse({"ok": False, "error": "Please select a valid PDF file."}, status_code=400)

    pdf_bytes = await file.read()
    if len(pdf_bytes) > PDF_MAX_BYTES:
        return JSONResponse({"ok": False, "error": "PDF too large (max 8MB)."}, status_code=400)

    try:
        text, pages = pdf_to_text(pdf_bytes)
    except Exception as e:
        log.warning("PDF extraction failed for %s: %s", fname, e)
        return JSONResponse({"ok": False, "error": "Failed to extract text from PDF."}, status_code=400)

    text = sanitize_notes_text(text)
    if len(text) < PDF_MIN_CHARS:
        return JSONResponse(
            {"ok": False, "error": "PDF has too little selectable text (maybe scanned)."},
            status_code=400,
        )

    return JSONResponse({"ok": True, "text": text, "pages": pages, "chars": len(text), "filename": fname})


@router.get("/state")
@limiter.limit("120/minute")
async def state(request: Request):
    return _state(workspace_for(request))


@router.post("/select")
@limiter.limit("120/minute")
async def select(request: Request, payload: Dict[str, Any] = Body(...)):
    ws = workspace_for(request)
    if ws.session is None:
        return _rejected(ws, "No active quiz.")

    index = payload.get("index")
    option = payload.get("option")
    if isinstance(index, bool) or not isinstance(index, int) or not isinstance(option, str):
        return JSONResponse({"ok": False, "error": "index:int and option:string required"}, status_code=400)

    if not ws.session.select_option(index, option):
        return _rejected(ws, "Selection not allowed.")
    return _state(ws)


@router.post("/advance")
@limiter.limit("120/minute")
async def advance(request: Request):
    ws = workspace_for(request)
    if ws.session is None or not ws.session.advance():
        return _rejected(ws, "Answer this question before moving on.")
    return _state(ws)


@router.post("/retreat")
@limiter.limit("120/minute")
async def retreat(request: Request):
    ws = workspace_for(request)
    if ws.session is None or not ws.session.retreat():
        return _rejected(ws, "Already at the first question.")
    return _state(ws)


@router.post("/submit")
@limiter.limit("30/minute")
async def submit(request: Request):
    ws = workspace_for(request)
    if ws.session is None or not ws.session.submit():
        return _rejected(ws, "Answer every question before submitting.")
    return JSONResponse({"ok": True, "state": ws.session.snapshot(), "result": ws.result()})


@router.post("/reset")
@limiter.limit("60/minute")
async def reset(request: Request):
    ws = workspace_for(request)
    ws.generator.cancel()
    ws.reset()
    return _state(ws)


@router.get("/result")
@limiter.limit("60/minute")
async def result(request: Request):
    ws = workspace_for(request)
    try:
        return JSONResponse({"ok": True, "result": ws.result()})
    except SessionStateError as e:
        return _rejected(ws, str(e))


@router.post("/explain/{index}")
@limiter.limit("30/minute")
async def explain(request: Request, index: int):
    ws = workspace_for(request)
    try:
        text = await ws.explain(index)
    except SessionStateError as e:
        return _rejected(ws, str(e))
    except IndexError as e:
        return JSONResponse({"ok": False, "error": str(e)}, status_code=404)
    return JSONResponse({"ok": True, "index": index, "explanation": text})

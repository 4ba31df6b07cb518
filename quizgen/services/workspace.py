from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from quizgen.errors import SessionStateError
from quizgen.services.explanations import ExplanationCache
from quizgen.services.quiz_gen import QuizGenerator
from quizgen.services.quiz_session import QuizSession

log = logging.getLogger("QuizGen")

WORKSPACE_TTL_SEC = 6 * 3600
WORKSPACE_MAX_ENTRIES = 500


class QuizWorkspace:
    """Per-user controller: one generator, at most one live session."""

    def __init__(
        self,
        generator: QuizGenerator,
        explanations_factory: Callable[[], ExplanationCache],
    ):
        self.generator = generator
        self._explanations_factory = explanations_factory
        self.session: Optional[QuizSession] = None
        self.explanations: Optional[ExplanationCache] = None
        self.touched = time.time()

    def touch(self) -> None:
        self.touched = time.time()

    async def start(self, source_text: str, count: int) -> Optional[QuizSession]:
        questions = await self.generator.generate(source_text, count)
        if questions is None:
            return None

        self.reset()
        self.session = QuizSession(questions)
        self.explanations = self._explanations_factory()
        self.session.start_clock()
        return self.session

    def reset(self) -> None:
        if self.session is not None:
            self.session.stop_clock()
        if self.explanations is not None:
            self.explanations.clear()
        self.session = None
        self.explanations = None

    def require_session(self) -> QuizSession:
        if self.session is None:
            raise SessionStateError("No active quiz. Generate one first.")
        return self.session

    async def explain(self, index: int) -> str:
        session = self.require_session()
        if not session.submitted:
            raise SessionStateError("Explanations are available after the quiz is submitted")
        if not 0 <= index < len(session):
            raise IndexError(f"No question at index {index}")
        return await self.explanations.explain(session, index)

    def result(self) -> dict:
        session = self.require_session()
        return session.result(self.explanations.cached() if self.explanations else None)

    async def aclose(self) -> None:
        await self.generator.aclose()
        self.reset()


class WorkspaceRegistry:
    """In-memory map of browser session id -> QuizWorkspace."""

    def __init__(
        self,
        factory: Callable[[], QuizWorkspace],
        *,
        ttl_sec: int = WORKSPACE_TTL_SEC,
        max_entries: int = WORKSPACE_MAX_ENTRIES,
    ):
        self._factory = factory
        self.ttl_sec = ttl_sec
        self.max_entries = max_entries
        self._items: Dict[str, QuizWorkspace] = {}

    def __len__(self) -> int:
        return len(self._items)

    def get(self, key: str) -> QuizWorkspace:
        ws = self._items.get(key)
        if ws is None:
            self._prune()
            ws = self._factory()
            self._items[key] = ws
        ws.touch()
        return ws

    def _drop(self, key: str) -> None:
        ws = self._items.pop(key, None)
        if ws is not None:
            ws.generator.cancel()
            ws.reset()

    def _prune(self) -> None:
        now = time.time()
        dead = [k for k, ws in self._items.items() if now - ws.touched > self.ttl_sec]
        for k in dead:
            self._drop(k)

        if len(self._items) >= self.max_entries:
            oldest = sorted(self._items.items(), key=lambda kv: kv[1].touched)
            for k, _ in oldest[: len(self._items) - self.max_entries + 1]:
                self._drop(k)

        if dead:
            log.debug("Pruned %d idle workspace(s)", len(dead))

    async def aclose(self) -> None:
        for ws in list(self._items.values()):
            await ws.aclose()
        self._items.clear()

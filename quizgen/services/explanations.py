from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import httpx

from config import EXPLAIN_TEMPERATURE
from quizgen.constants import EXPLAIN_PLACEHOLDER
from quizgen.errors import GenerationError
from quizgen.prompts.quiz_prompts import EXPLAIN_SYSTEM, build_explain_prompt
from quizgen.utils.text import normalize_newlines

log = logging.getLogger("QuizGen")


class ExplanationCache:
    """
    Lazily fetched per-question explanations, keyed by question index.

    Lives exactly as long as one quiz session. Concurrent requests for the
    same index share one provider call; failures return the placeholder and
    are not cached.
    """

    def __init__(
        self,
        llm,
        *,
        model: Optional[str] = None,
        temperature: float = EXPLAIN_TEMPERATURE,
        placeholder: str = EXPLAIN_PLACEHOLDER,
    ):
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.placeholder = placeholder
        self._cache: Dict[int, str] = {}
        self._pending: Dict[int, asyncio.Task] = {}
        self._epoch = 0

    def cached(self) -> Dict[int, str]:
        return dict(self._cache)

    def clear(self) -> None:
        # in-flight requests finish on their own but no longer write to the cache
        self._epoch += 1
        self._pending.clear()
        self._cache.clear()

    async def explain(self, session, index: int) -> str:
        if index in self._cache:
            return self._cache[index]

        task = self._pending.get(index)
        if task is None:
            q = session.questions[index]
            prompt = build_explain_prompt(q.question, q.options, q.correct_answer, session.answers[index])
            task = asyncio.ensure_future(self._fetch(index, prompt, self._epoch))
            self._pending[index] = task

        try:
            # a cancelled waiter must not cancel the shared request
            return await asyncio.shield(task)
        finally:
            if task.done() and self._pending.get(index) is task:
                del self._pending[index]

    async def _fetch(self, index: int, prompt: str, epoch: int) -> str:
        try:
            text = await self.llm.ask(
                prompt,
                system=EXPLAIN_SYSTEM,
                model=self.model,
                temperature=self.temperature,
            )
        except (GenerationError, httpx.HTTPError) as e:
            log.warning("Explanation failed for Q%d: %s", index + 1, e)
            return self.placeholder

        text = normalize_newlines(text)
        if not text:
            log.warning("Explanation for Q%d came back empty", index + 1)
            return self.placeholder

        if epoch == self._epoch:
            self._cache[index] = text
        return text

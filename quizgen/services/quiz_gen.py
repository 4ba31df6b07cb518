from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from config import LLM_TEMPERATURE, QUIZ_DIFFICULTY, QUIZ_MAX_QUESTIONS
from quizgen.constants import OPTIONS_PER_QUESTION, RAW_SNIPPET_MAX
from quizgen.errors import ConstraintError, GenerationError, MalformedOutputError, SchemaError
from quizgen.models.quiz import Question, QuestionSet
from quizgen.prompts.quiz_prompts import build_quiz_prompt
from quizgen.utils.text import unwrap_code_fence

log = logging.getLogger("QuizGen")


# -----------------------------
# Parsing / validation
# -----------------------------
def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _build_question(index: int, item: Any) -> Question:
    if not isinstance(item, dict):
        raise SchemaError("item is not an object", index=index, item=item)

    q = item.get("question")
    options = item.get("options")
    answer = item.get("correctAnswer")
    if not isinstance(q, str) or not _is_str_list(options) or not isinstance(answer, str):
        raise SchemaError(
            "each item must have question:string, options:string[], correctAnswer:string",
            index=index,
            item=item,
        )

    explanation = item.get("explanation")
    try:
        return Question(
            question=q.strip(),
            options=tuple(options),
            correct_answer=answer,
            explanation=explanation.strip() if isinstance(explanation, str) and explanation.strip() else None,
        )
    except ValueError as e:
        raise SchemaError(str(e), index=index, item=item) from e


def parse_questions(text: str) -> QuestionSet:
    """
    Turn raw model text into a validated QuestionSet.

    Raises MalformedOutputError when the text is not JSON and SchemaError
    when it is JSON of the wrong shape (first failing index is reported).
    """
    body = unwrap_code_fence(text)
    try:
        parsed = json.loads(body)
    except ValueError as e:
        raise MalformedOutputError(text) from e

    if not isinstance(parsed, list):
        raise SchemaError(
            "AI output is not a JSON array. Output: " + json.dumps(parsed, ensure_ascii=False)[:RAW_SNIPPET_MAX]
        )
    if not parsed:
        raise SchemaError("AI output is an empty JSON array")

    return tuple(_build_question(i, item) for i, item in enumerate(parsed))


# -----------------------------
# Generator
# -----------------------------
class QuizGenerator:
    """
    Owns at most one in-flight generation request.

    Starting a new generation cancels the previous one; a superseded call
    returns None instead of a question set, whatever its request produced.
    """

    def __init__(
        self,
        llm,
        *,
        model: Optional[str] = None,
        temperature: float = LLM_TEMPERATURE,
        difficulty: str = QUIZ_DIFFICULTY,
        max_questions: int = QUIZ_MAX_QUESTIONS,
        options_per_question: int = OPTIONS_PER_QUESTION,
    ):
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.difficulty = difficulty
        self.max_questions = max_questions
        self.options_per_question = options_per_question
        self._inflight: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def _check_input(self, source_text: str, count: int) -> str:
        text = (source_text or "").strip()
        if not text:
            raise ConstraintError("Please provide some text to generate questions from.")
        if isinstance(count, bool) or not isinstance(count, int):
            raise ConstraintError(f"Question count must be a whole number, got {type(count).__name__}.")
        if count < 1:
            raise ConstraintError("Question count must be at least 1.")
        if count > self.max_questions:
            raise ConstraintError(f"Question count cannot exceed {self.max_questions}.")
        return text

    async def _request(self, prompt: str, count: int) -> QuestionSet:
        raw = await self.llm.ask(prompt, model=self.model, temperature=self.temperature)
        questions = parse_questions(raw)
        if len(questions) != count:
            log.warning("Asked for %d question(s), provider returned %d", count, len(questions))
        return questions

    async def generate(self, source_text: str, count: int) -> Optional[QuestionSet]:
        text = self._check_input(source_text, count)
        prompt = build_quiz_prompt(
            text,
            count,
            difficulty=self.difficulty,
            options_per_question=self.options_per_question,
        )

        if self.cancel():
            log.info("Previous generation superseded")
        ticket = self._generation

        task = asyncio.ensure_future(self._request(prompt, count))
        self._inflight = task
        log.info("Generation started | count=%d | chars=%d", count, len(text))

        try:
            questions = await task
        except asyncio.CancelledError:
            if ticket == self._generation:
                # the caller itself was cancelled
                raise
            log.info("Generation cancelled; result discarded")
            return None
        except GenerationError as e:
            if ticket != self._generation:
                log.info("Superseded generation failed (%s); discarded", e.kind)
                return None
            log.warning("Generation failed (%s): %s", e.kind, e)
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        if ticket != self._generation:
            log.info("Generation finished after being superseded; result discarded")
            return None

        log.info("Generation accepted | questions=%d", len(questions))
        return questions

    def cancel(self) -> bool:
        """Cancel the in-flight request, if any. Pending callers get None."""
        self._generation += 1
        task, self._inflight = self._inflight, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def aclose(self) -> None:
        self.cancel()

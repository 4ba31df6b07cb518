import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from quizgen.constants import FEEDBACK_TIERS
from quizgen.errors import SessionStateError
from quizgen.models.quiz import Question, QuestionSet
from quizgen.utils.text import format_elapsed

log = logging.getLogger("QuizGen")

CLOCK_TICK_SEC = 1.0


def percentage_of(score: int, total: int) -> int:
    """round(100 * score / total), halves rounded up."""
    if total <= 0:
        return 0
    return (200 * score + total) // (2 * total)


def feedback_for(percentage: int) -> str:
    for floor, message in FEEDBACK_TIERS:
        if percentage >= floor:
            return message
    return FEEDBACK_TIERS[-1][1]


class QuizSession:
    """
    One attempt at a fixed question set.

    Flow:
    - Active: select an option for the visible question, move with
      advance/retreat, submit once every question has an answer
    - Submitted: answers are frozen; only reads are allowed

    Transitions return True when applied and False when rejected. A rejected
    transition never changes state.
    """

    def __init__(self, questions: Sequence[Question]):
        if not questions:
            raise ValueError("A quiz session needs at least one question")

        self.questions: QuestionSet = tuple(questions)
        self.current = 0
        self.answers: List[Optional[str]] = [None] * len(self.questions)
        self.submitted = False
        self.elapsed_seconds = 0

        self._clock_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current]

    # -----------------------------
    # transitions
    # -----------------------------
    def select_option(self, index: int, option: str) -> bool:
        if self.submitted or index != self.current:
            log.debug("select rejected: index=%s current=%s submitted=%s", index, self.current, self.submitted)
            return False
        if option not in self.questions[index].options:
            log.debug("select rejected: %r is not an option of Q%d", option, index + 1)
            return False
        self.answers[index] = option
        return True

    def advance(self) -> bool:
        if self.submitted or self.current >= len(self.questions) - 1:
            return False
        if self.answers[self.current] is None:
            return False
        self.current += 1
        return True

    def retreat(self) -> bool:
        if self.submitted or self.current <= 0:
            return False
        self.current -= 1
        return True

    def submit(self) -> bool:
        if self.submitted or None in self.answers:
            return False
        self.submitted = True
        self.stop_clock()
        log.info(
            "Quiz submitted | score=%d/%d | elapsed=%s",
            self.score(),
            len(self.questions),
            format_elapsed(self.elapsed_seconds),
        )
        return True

    # -----------------------------
    # scoring
    # -----------------------------
    def score(self) -> int:
        return sum(
            1 for q, a in zip(self.questions, self.answers) if a is not None and a == q.correct_answer
        )

    def percentage(self) -> int:
        return percentage_of(self.score(), len(self.questions))

    def questions_attempted(self) -> int:
        return sum(1 for a in self.answers if a is not None)

    def feedback(self) -> str:
        return feedback_for(self.percentage())

    def review(self, explanations: Optional[Dict[int, str]] = None) -> List[Dict[str, Any]]:
        if not self.submitted:
            raise SessionStateError("Review is only available after the quiz is submitted")

        explanations = explanations or {}
        out: List[Dict[str, Any]] = []
        for i, (q, picked) in enumerate(zip(self.questions, self.answers)):
            out.append(
                {
                    "index": i,
                    "question": q.question,
                    "options": [
                        {
                            "text": opt,
                            "correct": opt == q.correct_answer,
                            "selected": opt == picked,
                        }
                        for opt in q.options
                    ],
                    "selected": picked,
                    "correct_answer": q.correct_answer,
                    "is_correct": picked == q.correct_answer,
                    "explanation": explanations.get(i) or q.explanation,
                }
            )
        return out

    def result(self, explanations: Optional[Dict[int, str]] = None) -> Dict[str, Any]:
        return {
            "score": self.score(),
            "total": len(self.questions),
            "percentage": self.percentage(),
            "attempted": self.questions_attempted(),
            "feedback": self.feedback(),
            "elapsed_seconds": self.elapsed_seconds,
            "elapsed": format_elapsed(self.elapsed_seconds),
            "review": self.review(explanations),
        }

    def snapshot(self) -> Dict[str, Any]:
        q = self.current_question
        return {
            "current_index": self.current,
            "total": len(self.questions),
            "answers": list(self.answers),
            "submitted": self.submitted,
            "elapsed_seconds": self.elapsed_seconds,
            "elapsed": format_elapsed(self.elapsed_seconds),
            "attempted": self.questions_attempted(),
            "can_advance": not self.submitted
            and self.current < len(self.questions) - 1
            and self.answers[self.current] is not None,
            "can_retreat": not self.submitted and self.current > 0,
            "can_submit": not self.submitted and None not in self.answers,
            "question": {
                "question": q.question,
                "options": list(q.options),
            },
        }

    # -----------------------------
    # clock
    # -----------------------------
    def tick(self, seconds: int = 1) -> None:
        if not self.submitted:
            self.elapsed_seconds += seconds

    def start_clock(self) -> None:
        self.stop_clock()
        if self.submitted:
            return
        self._clock_task = asyncio.create_task(self._clock_worker())

    def stop_clock(self) -> None:
        if self._clock_task and not self._clock_task.done():
            self._clock_task.cancel()
        self._clock_task = None

    async def _clock_worker(self) -> None:
        try:
            while not self.submitted:
                await asyncio.sleep(CLOCK_TICK_SEC)
                self.tick()
        except asyncio.CancelledError:
            return

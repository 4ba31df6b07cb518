"""
Shared fakes and sample data for the QuizGen test suite.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

from quizgen.models.quiz import Question


SAMPLE_ITEMS: List[Dict[str, Any]] = [
    {
        "question": "What gas do plants absorb during photosynthesis?",
        "options": ["Oxygen", "Carbon dioxide", "Nitrogen", "Helium"],
        "correctAnswer": "Carbon dioxide",
    },
    {
        "question": "Where in the cell does photosynthesis take place?",
        "options": ["Nucleus", "Mitochondria", "Chloroplast", "Ribosome"],
        "correctAnswer": "Chloroplast",
    },
    {
        "question": "Which pigment captures light energy?",
        "options": ["Chlorophyll", "Keratin", "Melanin", "Hemoglobin"],
        "correctAnswer": "Chlorophyll",
    },
    {
        "question": "What sugar is produced by photosynthesis?",
        "options": ["Sucrose", "Glucose", "Lactose", "Maltose"],
        "correctAnswer": "Glucose",
    },
]

SOURCE_TEXT = (
    "Photosynthesis is the process by which green plants use sunlight, water and "
    "carbon dioxide to produce glucose and oxygen. It takes place in chloroplasts, "
    "where the pigment chlorophyll captures light energy."
)


def sample_questions(n: int = 4) -> List[Question]:
    return [
        Question(
            question=item["question"],
            options=tuple(item["options"]),
            correct_answer=item["correctAnswer"],
        )
        for item in SAMPLE_ITEMS[:n]
    ]


def sample_json(n: int = 4) -> str:
    return json.dumps(SAMPLE_ITEMS[:n])


def chat_envelope(content: str) -> Dict[str, Any]:
    return {"id": "gen-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def fake_llm(reply: Optional[str] = None, *, side_effect=None) -> AsyncMock:
    """An object with an async ask() returning `reply` (or following `side_effect`)."""
    llm = AsyncMock()
    if side_effect is not None:
        llm.ask.side_effect = side_effect
    else:
        llm.ask.return_value = sample_json() if reply is None else reply
    return llm


class GatedLLM:
    """ask() blocks until release() is called for that call number."""

    def __init__(self, replies: List[str]):
        self.replies = list(replies)
        self.calls: List[str] = []
        self.gates: List[asyncio.Event] = []

    async def ask(self, prompt: str, **kwargs) -> str:
        call_no = len(self.calls)
        self.calls.append(prompt)
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()
        return self.replies[call_no]

    def release(self, call_no: int) -> None:
        self.gates[call_no].set()


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run a few loop iterations."""
    for _ in range(rounds):
        await asyncio.sleep(0)

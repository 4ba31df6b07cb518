from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Question:
    question: str
    options: Tuple[str, ...]
    correct_answer: str
    explanation: Optional[str] = None

    def __post_init__(self):
        if not self.question.strip():
            raise ValueError("question text must not be empty")
        if len(self.options) < 2:
            raise ValueError("question must have at least 2 options")
        if len(set(self.options)) != len(self.options):
            raise ValueError("options must be distinct")
        if self.correct_answer not in self.options:
            raise ValueError("correctAnswer must be one of the options")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }
        if self.explanation:
            out["explanation"] = self.explanation
        return out


QuestionSet = Tuple[Question, ...]

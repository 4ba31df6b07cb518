from __future__ import annotations

from typing import Optional, Sequence

from quizgen.constants import OPTIONS_PER_QUESTION


def build_quiz_prompt(
    text: str,
    count: int,
    *,
    difficulty: str = "challenging",
    options_per_question: int = OPTIONS_PER_QUESTION,
) -> str:
    example = ", ".join(['"..."'] * options_per_question)
    return (
        f"Generate EXACTLY {count} {difficulty} multiple-choice quiz question(s) "
        "based on the text below.\n"
        "Rules:\n"
        "- Output ONLY a valid JSON array. No prose, no remarks, no reasoning.\n"
        "- Do NOT use markdown, code fences or backticks.\n"
        f"- Each item has exactly {options_per_question} distinct options.\n"
        "- correctAnswer must be copied verbatim from options.\n"
        "- Cover the main topics of the text; skip exercises and activities.\n"
        "Each item must follow this structure:\n"
        f'{{"question": "...", "options": [{example}], "correctAnswer": "..."}}\n\n'
        f"Text:\n{text}"
    )


EXPLAIN_SYSTEM = (
    "You are a patient tutor. Explain quiz answers in plain English, "
    "in 2-4 short sentences. No markdown headings."
)


def build_explain_prompt(
    question: str,
    options: Sequence[str],
    correct_answer: str,
    user_answer: Optional[str],
) -> str:
    opts = "\n".join(f"- {o}" for o in options)
    picked = user_answer if user_answer else "(no answer)"
    verdict = "correct" if user_answer == correct_answer else "incorrect"
    return (
        f"Question: {question}\n"
        f"Options:\n{opts}\n"
        f"Correct answer: {correct_answer}\n"
        f"The student answered: {picked} ({verdict}).\n\n"
        "Explain why the correct answer is right"
        + (" and why the student's choice is wrong." if verdict == "incorrect" else ".")
    )

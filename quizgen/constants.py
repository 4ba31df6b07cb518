from typing import List, Tuple

APP_NAME = "QuizGen"
APP_VERSION = "1.0.0"
AI_FOOTER = "AI generated - Verify with official sources"

OPTIONS_PER_QUESTION = 4

# Diagnostics caps
RAW_SNIPPET_MAX = 2000
ERROR_BODY_MAX = 500

EXPLAIN_PLACEHOLDER = "Explanation unavailable right now. Please try again later."

# (min percentage, message), checked top-down
FEEDBACK_TIERS: List[Tuple[int, str]] = [
    (80, "Excellent work! 🎉"),
    (60, "Good job! 👍"),
    (0, "Keep practicing! 💪"),
]

# PDF upload
PDF_MAX_BYTES = 8_000_000
PDF_MIN_CHARS = 20

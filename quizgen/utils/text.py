# quizgen/utils/text.py
import re

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.S)


def unwrap_code_fence(text: str) -> str:
    """Return the body of a single fenced block, or the text unchanged."""
    t = (text or "").strip()
    m = _FENCE_RE.match(t)
    return m.group(1).strip() if m else t


def normalize_newlines(text: str) -> str:
    return re.sub(r"\n{3,}", "\n\n", (text or "").strip()).strip()


def format_elapsed(seconds: int) -> str:
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"

from __future__ import annotations

import re

import fitz  # PyMuPDF

_CONTROL_RE = re.compile(r"(<\|.*?\|>)|(\b(role|system|developer|assistant|user)\s*:)", re.I | re.S)


def pdf_to_text(pdf_bytes: bytes) -> tuple[str, int]:
    """
    Extract selectable text from a PDF (no OCR), one "Page N:" block per page.

    Returns (text, page_count).
    """
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        chunks: list[str] = []
        for i, page in enumerate(doc, start=1):
            page_text = page.get_text("text")
            page_text = re.sub(r"[ \t]+\n", "\n", page_text).strip()
            chunks.append(f"Page {i}:\n{page_text}")
        pages = doc.page_count
    finally:
        doc.close()

    text = "\n\n".join(chunks)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip(), pages


def sanitize_notes_text(text: str, max_chars: int = 20000) -> str:
    """
    Remove control-token patterns that can hijack some Llama-style models.
    """
    t = (text or "").strip()
    t = _CONTROL_RE.sub("", t)
    return t[:max_chars].strip()

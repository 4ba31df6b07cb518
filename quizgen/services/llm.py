import json
import logging
from typing import Any, Callable, List, Optional

import httpx

from quizgen.constants import ERROR_BODY_MAX
from quizgen.errors import ConstraintError, MalformedOutputError, ProviderError

log = logging.getLogger("QuizGen")

# -----------------------------
# Response unwrapping
# -----------------------------
Extractor = Callable[[Any], Optional[str]]


def _first_choice(data: Any) -> dict:
    if isinstance(data, dict) and isinstance(data.get("choices"), list) and data["choices"]:
        choice0 = data["choices"][0]
        if isinstance(choice0, dict):
            return choice0
    return {}


def _chat_message_content(data: Any) -> Optional[str]:
    msg = _first_choice(data).get("message") or {}
    content = msg.get("content") if isinstance(msg, dict) else None
    return content if isinstance(content, str) else None


def _completion_text(data: Any) -> Optional[str]:
    text = _first_choice(data).get("text")
    return text if isinstance(text, str) else None


def _generic_output(data: Any) -> Optional[str]:
    if isinstance(data, dict) and isinstance(data.get("output"), str):
        return data["output"]
    return None


def _raw_string(data: Any) -> Optional[str]:
    return data if isinstance(data, str) else None


def _json_array_body(data: Any) -> Optional[str]:
    # Some gateways return the model's JSON array itself as the body.
    # A dict is always an envelope, never model text.
    if isinstance(data, list):
        return json.dumps(data, ensure_ascii=False)
    return None


# Tried in order; first non-empty match wins.
EXTRACTORS: List[Extractor] = [
    _chat_message_content,
    _completion_text,
    _generic_output,
    _raw_string,
    _json_array_body,
]


def extract_model_text(data: Any, extractors: Optional[List[Extractor]] = None) -> Optional[str]:
    for extractor in extractors or EXTRACTORS:
        out = extractor(data)
        if out and out.strip():
            return out.strip()
    return None


def provider_error_message(body: str) -> str:
    """Best-effort message from an error body: structured first, raw text otherwise."""
    try:
        parsed = json.loads(body)
    except ValueError:
        return (body or "").strip()[:ERROR_BODY_MAX] or "empty response body"

    if isinstance(parsed, dict):
        err = parsed.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if parsed.get("message"):
            return str(parsed["message"])
    return json.dumps(parsed)[:ERROR_BODY_MAX]


class LLMClient:
    """
    OpenAI-compatible chat completions client (OpenRouter, Groq, Ollama...).

    One call to ask() is exactly one POST to {base_url}/chat/completions.
    The credential is passed in by the caller; nothing is read from code.
    """

    def __init__(
        self,
        base_url: str,
        default_model: str,
        *,
        api_key: str = "",
        default_temperature: float = 0.7,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.default_model = default_model
        self.api_key = (api_key or "").strip()
        self.default_temperature = default_temperature
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def ask(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        if not self.api_key:
            raise ConstraintError("No API key configured. Set LLM_API_KEY in the environment.")
        if not self.base_url:
            raise ConstraintError("LLM misconfigured: missing base_url.")

        used_model = model or self.default_model
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": used_model,
            "messages": messages,
            "temperature": self.default_temperature if temperature is None else temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        url = f"{self.base_url}/chat/completions"

        try:
            async with self._client() as client:
                r = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            log.warning("LLM transport failure model=%s: %s", used_model, e)
            raise ProviderError(None, str(e) or type(e).__name__) from e

        body = r.text or ""
        if r.status_code == 401:
            raise ProviderError(401, f"Invalid API key. {provider_error_message(body)}")
        if not r.is_success:
            msg = provider_error_message(body)
            log.warning("LLM error (%s) model=%s: %s", r.status_code, used_model, msg)
            raise ProviderError(r.status_code, msg)

        try:
            data: Any = json.loads(body)
        except ValueError:
            data = body

        text = extract_model_text(data)
        if text is None:
            log.warning("LLM reply had no usable text: %r", body[:ERROR_BODY_MAX])
            raise MalformedOutputError(body, reason="Provider response carried no model text")

        log.debug("LLM reply model=%s chars=%d", used_model, len(text))
        return text

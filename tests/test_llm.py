"""
Unit tests for LLMClient and provider response unwrapping.
"""
import json
import unittest

import httpx

from quizgen.errors import ConstraintError, MalformedOutputError, ProviderError
from quizgen.services.llm import LLMClient, extract_model_text, provider_error_message
from tests.fixtures import chat_envelope


def make_client(handler, api_key="sk-test"):
    return LLMClient(
        "https://llm.example/api/v1/",
        "test-model",
        api_key=api_key,
        default_temperature=0.5,
        transport=httpx.MockTransport(handler),
    )


class TestExtractModelText(unittest.TestCase):
    """Extraction strategies are tried in priority order."""

    def test_chat_message_content_wins(self):
        data = {"choices": [{"message": {"content": " hello "}, "text": "other"}], "output": "x"}
        self.assertEqual(extract_model_text(data), "hello")

    def test_completion_text_when_no_message(self):
        data = {"choices": [{"text": "from text"}], "output": "from output"}
        self.assertEqual(extract_model_text(data), "from text")

    def test_empty_message_falls_through(self):
        data = {"choices": [{"message": {"content": "   "}, "text": "fallback"}]}
        self.assertEqual(extract_model_text(data), "fallback")

    def test_generic_output_field(self):
        self.assertEqual(extract_model_text({"output": "[1]"}), "[1]")

    def test_raw_string_body(self):
        self.assertEqual(extract_model_text("plain body"), "plain body")

    def test_json_array_body_is_serialized(self):
        self.assertEqual(json.loads(extract_model_text([{"a": 1}])), [{"a": 1}])

    def test_envelope_without_text_is_not_model_text(self):
        self.assertIsNone(extract_model_text({"error": {"message": "Rate limit exceeded", "code": 429}}))
        self.assertIsNone(extract_model_text({"choices": [{"message": {"content": ""}, "finish_reason": "length"}]}))
        self.assertIsNone(extract_model_text({}))

    def test_nothing_usable(self):
        self.assertIsNone(extract_model_text(""))
        self.assertIsNone(extract_model_text(None))


class TestProviderErrorMessage(unittest.TestCase):

    def test_structured_error_message(self):
        body = json.dumps({"error": {"message": "Rate limit exceeded", "code": 429}})
        self.assertEqual(provider_error_message(body), "Rate limit exceeded")

    def test_top_level_message(self):
        self.assertEqual(provider_error_message('{"message": "bad model"}'), "bad model")

    def test_raw_body_fallback(self):
        self.assertEqual(provider_error_message("Gateway Timeout"), "Gateway Timeout")

    def test_unknown_json_shape_is_dumped(self):
        self.assertEqual(provider_error_message('{"detail": "nope"}'), '{"detail": "nope"}')


class TestLLMClientAsk(unittest.IsolatedAsyncioTestCase):

    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=chat_envelope("[]"))

        client = make_client(handler)
        out = await client.ask("make questions")

        self.assertEqual(out, "[]")
        self.assertEqual(seen["url"], "https://llm.example/api/v1/chat/completions")
        self.assertEqual(seen["auth"], "Bearer sk-test")
        self.assertEqual(seen["body"]["model"], "test-model")
        self.assertEqual(seen["body"]["temperature"], 0.5)
        self.assertEqual(seen["body"]["messages"], [{"role": "user", "content": "make questions"}])

    async def test_system_model_and_temperature_overrides(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=chat_envelope("ok"))

        client = make_client(handler)
        await client.ask("hi", system="be brief", model="other", temperature=0.1)

        self.assertEqual(seen["body"]["model"], "other")
        self.assertEqual(seen["body"]["temperature"], 0.1)
        self.assertEqual(seen["body"]["messages"][0], {"role": "system", "content": "be brief"})

    async def test_missing_key_refused_without_network(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=chat_envelope("x"))

        client = make_client(handler, api_key="")
        with self.assertRaises(ConstraintError):
            await client.ask("hi")
        self.assertEqual(calls, [])

    async def test_http_error_becomes_provider_error(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "slow down"}})

        with self.assertRaises(ProviderError) as ctx:
            await make_client(handler).ask("hi")

        self.assertEqual(ctx.exception.status, 429)
        self.assertIn("slow down", str(ctx.exception))
        self.assertIn("429", str(ctx.exception))

    async def test_unauthorized(self):
        def handler(request):
            return httpx.Response(401, text="nope")

        with self.assertRaises(ProviderError) as ctx:
            await make_client(handler).ask("hi")
        self.assertEqual(ctx.exception.status, 401)
        self.assertIn("Invalid API key", ctx.exception.message)

    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(ProviderError) as ctx:
            await make_client(handler).ask("hi")
        self.assertIsNone(ctx.exception.status)

    async def test_plain_text_body(self):
        def handler(request):
            return httpx.Response(200, text="not json")

        self.assertEqual(await make_client(handler).ask("hi"), "not json")

    async def test_empty_body_is_malformed(self):
        def handler(request):
            return httpx.Response(200, text="")

        with self.assertRaises(MalformedOutputError):
            await make_client(handler).ask("hi")

    async def test_empty_chat_content_is_malformed(self):
        def handler(request):
            return httpx.Response(
                200, json={"choices": [{"message": {"content": ""}, "finish_reason": "length"}]}
            )

        with self.assertRaises(MalformedOutputError) as ctx:
            await make_client(handler).ask("hi")
        self.assertIn("finish_reason", ctx.exception.snippet)

    async def test_error_envelope_with_200_is_malformed(self):
        def handler(request):
            return httpx.Response(200, json={"error": {"message": "Rate limit exceeded", "code": 429}})

        with self.assertRaises(MalformedOutputError):
            await make_client(handler).ask("hi")

    async def test_redirect_is_not_success(self):
        def handler(request):
            return httpx.Response(302, headers={"location": "https://elsewhere.example/"}, text="")

        with self.assertRaises(ProviderError) as ctx:
            await make_client(handler).ask("hi")
        self.assertEqual(ctx.exception.status, 302)


if __name__ == "__main__":
    unittest.main()

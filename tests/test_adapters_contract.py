import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
import asyncio
import json

import httpx
import openai
import pytest

from quiz_diagnosis.adapters.base import ChatProvider
from quiz_diagnosis.adapters.google_adapter import GoogleAdapter
from quiz_diagnosis.adapters.mock_adapter import MockAdapter
from quiz_diagnosis.adapters.openai_adapter import OpenAIAdapter
from quiz_diagnosis.adapters.openrouter_adapter import OpenRouterAdapter, extract_message_content
from quiz_diagnosis.core.errors import DiagnosisError, ErrorKind
from quiz_diagnosis.core.prompt import build_prompt
from quiz_diagnosis.core.types import Segment

PROMPT = build_prompt(Segment.EMPRESA, ["forte"], ["fraco"])
NARRATIVE = '{"urgencyLevel":"Alta","urgencyDescription":"x","conclusion":"y"}'


def _chat_envelope(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _send(adapter: ChatProvider, model="some/model", credential="secret"):
    return asyncio.run(adapter.send(PROMPT, model, credential))


def _error_kind(adapter: ChatProvider, **kwargs) -> ErrorKind:
    with pytest.raises(DiagnosisError) as info:
        _send(adapter, **kwargs)
    return info.value.kind


def test_openrouter_request_shape_and_extraction():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_chat_envelope(NARRATIVE))

    text = _send(OpenRouterAdapter(transport=httpx.MockTransport(handler)))
    assert text == NARRATIVE
    assert seen["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    body = seen["body"]
    assert body["model"] == "some/model"
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert body["response_format"]["type"] == "json_schema"


def test_openrouter_content_parts_are_joined():
    payload = _chat_envelope([{"type": "text", "text": "{\"a\":"}, "1}"])
    assert extract_message_content(payload) == '{"a":\n1}'
    assert extract_message_content(_chat_envelope({"text": " hi "})) == "hi"
    assert extract_message_content({"choices": []}) == ""


def test_openrouter_non_2xx_is_request_error():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(429, json={"error": {"message": "rate limited"}})
    )
    with pytest.raises(DiagnosisError) as info:
        _send(OpenRouterAdapter(transport=transport))
    assert info.value.kind is ErrorKind.REQUEST
    assert "rate limited" in info.value.message


def test_openrouter_timeout_is_timeout_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    assert _error_kind(OpenRouterAdapter(transport=httpx.MockTransport(handler))) is ErrorKind.TIMEOUT


def test_openrouter_connection_failure_is_request_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert _error_kind(OpenRouterAdapter(transport=httpx.MockTransport(handler))) is ErrorKind.REQUEST


def test_openrouter_missing_choices_is_parsing_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"id": "x"}))
    assert _error_kind(OpenRouterAdapter(transport=transport)) is ErrorKind.PARSING


def test_openrouter_non_json_body_is_parsing_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    assert _error_kind(OpenRouterAdapter(transport=transport)) is ErrorKind.PARSING


def test_blank_credential_is_configuration_error_without_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_chat_envelope(NARRATIVE))

    adapter = OpenRouterAdapter(transport=httpx.MockTransport(handler))
    assert _error_kind(adapter, credential=" ") is ErrorKind.CONFIGURATION
    assert _error_kind(adapter, model="") is ErrorKind.CONFIGURATION
    assert calls == []


def test_google_request_shape_and_extraction():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": NARRATIVE}]}}]}
        )

    text = _send(GoogleAdapter(transport=httpx.MockTransport(handler)), model="gemini-2.5-flash")
    assert text == NARRATIVE
    assert seen["path"] == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert seen["key"] == "secret"
    config = seen["body"]["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"]["type"] == "OBJECT"
    assert seen["body"]["systemInstruction"]["parts"][0]["text"] == PROMPT.instructions


def test_google_empty_candidates_is_parsing_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []}))
    assert _error_kind(GoogleAdapter(transport=transport)) is ErrorKind.PARSING


def test_google_server_error_is_request_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable"))
    assert _error_kind(GoogleAdapter(transport=transport)) is ErrorKind.REQUEST


def _openai_adapter(handler) -> OpenAIAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAIAdapter(base_url="https://api.test/v1", http_client=client)


def test_openai_sdk_backend_returns_content():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["response_format"] == {"type": "json_object"}
        assert request.headers["Authorization"] == "Bearer secret"
        return httpx.Response(
            200,
            json={
                "id": "chatcmpl-1",
                "object": "chat.completion",
                "created": 0,
                "model": body["model"],
                "choices": [
                    {
                        "index": 0,
                        "finish_reason": "stop",
                        "message": {"role": "assistant", "content": NARRATIVE},
                    }
                ],
            },
        )

    assert _send(_openai_adapter(handler), model="gpt-4o-mini") == NARRATIVE


def test_openai_status_error_is_request_error():
    adapter = _openai_adapter(
        lambda request: httpx.Response(401, json={"error": {"message": "bad key"}})
    )
    assert _error_kind(adapter) is ErrorKind.REQUEST


def test_mock_adapter_returns_valid_json():
    adapter = MockAdapter()
    text = _send(adapter)
    assert json.loads(text)["urgencyLevel"] == "Moderada"
    assert adapter.calls[0][1] == "some/model"


def test_openrouter_default_headers_are_ascii():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["title"] = request.headers["X-Title"]
        seen["referer"] = request.headers["HTTP-Referer"]
        return httpx.Response(200, json=_chat_envelope(NARRATIVE))

    assert _send(OpenRouterAdapter(transport=httpx.MockTransport(handler))) == NARRATIVE
    assert seen["title"] == "Ubuntu Diagnostico IA"
    assert seen["referer"].startswith("https://")


def test_openrouter_non_ascii_title_is_percent_encoded():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["title"] = request.headers["X-Title"]
        return httpx.Response(200, json=_chat_envelope(NARRATIVE))

    adapter = OpenRouterAdapter(title="Diagnóstico", transport=httpx.MockTransport(handler))
    assert _send(adapter) == NARRATIVE
    assert seen["title"] == "Diagn%C3%B3stico"


def test_slow_response_hits_wall_clock_deadline():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json=_chat_envelope(NARRATIVE))

    adapter = OpenRouterAdapter(timeout=0.05, transport=httpx.MockTransport(handler))
    assert _error_kind(adapter) is ErrorKind.TIMEOUT


def test_slow_gemini_response_hits_wall_clock_deadline():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json={"candidates": []})

    adapter = GoogleAdapter(timeout=0.05, transport=httpx.MockTransport(handler))
    assert _error_kind(adapter) is ErrorKind.TIMEOUT


def test_openai_sdk_timeout_is_timeout_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    assert _error_kind(_openai_adapter(handler)) is ErrorKind.TIMEOUT


def _completion(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(
        200,
        json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": body["model"],
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": NARRATIVE},
                }
            ],
        },
    )


def test_openai_injected_http_client_stays_open():
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_completion))
    adapter = OpenAIAdapter(base_url="https://api.test/v1", http_client=http_client)
    assert _send(adapter) == NARRATIVE
    assert _send(adapter) == NARRATIVE
    assert not http_client.is_closed


def test_openai_owned_client_is_closed_after_send():
    built = []

    class RecordingAdapter(OpenAIAdapter):
        def _client(self, credential):
            client = openai.AsyncOpenAI(
                api_key=credential,
                base_url="https://api.test/v1",
                max_retries=0,
                http_client=httpx.AsyncClient(transport=httpx.MockTransport(_completion)),
            )
            built.append(client)
            return client

    adapter = RecordingAdapter()
    assert _send(adapter) == NARRATIVE
    assert built[0].is_closed()

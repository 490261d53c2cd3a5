"""Unit tests for the LLM gateway."""

import json

import httpx
import pytest
from pydantic import SecretStr

from codr.core.exceptions import LLMError, ProviderNotConfiguredError
from codr.llm import HTTPLLMGateway
from codr.models.generation import FallbackChoice, LLMChoice, Provider

GEMINI = LLMChoice(provider=Provider.GOOGLEAI, model="gemini-2.0-pro-exp", reason="test")


def gemini_response(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class RecordingTransport:
    """Serves scripted responses and records every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        status, body = self.responses.pop(0)
        return httpx.Response(status, json=body)


@pytest.fixture
def keyed_config(config):
    return config.model_copy(update={
        "google_ai_studio_api_key": SecretStr("studio-key"),
        "replicate_api_token": SecretStr("r8-token"),
        "openai_api_key": SecretStr("sk-test"),
    })


def make_gateway(config, transport):
    return HTTPLLMGateway(config, http_client=httpx.AsyncClient(transport=httpx.MockTransport(transport)))


@pytest.mark.asyncio
class TestHTTPLLMGateway:
    """Tests for provider dispatch over HTTP."""

    async def test_missing_credential_fails_before_io(self, config):
        transport = RecordingTransport()
        async with make_gateway(config, transport) as gateway:
            with pytest.raises(ProviderNotConfiguredError) as exc_info:
                await gateway.call("system", "hello", GEMINI)

        assert exc_info.value.credential == "GOOGLE_AI_STUDIO_API_KEY"
        assert not exc_info.value.retryable
        assert transport.requests == []

    @pytest.mark.parametrize(
        "provider, credential",
        [
            (Provider.OPENAI, "OPENAI_API_KEY"),
            (Provider.ANTHROPIC, "ANTHROPIC_API_KEY"),
            (Provider.GOOGLE, "GOOGLE_API_KEY"),
            (Provider.OPENROUTER, "OPENROUTER_API_KEY"),
            (Provider.REPLICATE, "REPLICATE_API_TOKEN"),
        ],
    )
    async def test_each_provider_requires_its_credential(self, config, provider, credential):
        transport = RecordingTransport()
        choice = LLMChoice(provider=provider, model="some-model", reason="test")
        async with make_gateway(config, transport) as gateway:
            with pytest.raises(ProviderNotConfiguredError) as exc_info:
                await gateway.call("system", "hello", choice)

        assert exc_info.value.credential == credential
        assert transport.requests == []

    async def test_gemini_call(self, keyed_config):
        transport = RecordingTransport((200, gemini_response("generated text")))
        async with make_gateway(keyed_config, transport) as gateway:
            text = await gateway.call("Be brief.", "Say hi", GEMINI)

        assert text == "generated text"
        request = transport.requests[0]
        assert request.url.path == "/v1beta/models/gemini-2.0-pro-exp:generateContent"
        assert request.url.params["key"] == "studio-key"
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][0]["text"] == "Be brief.\n\nUser: Say hi"

    async def test_google_through_ai_gateway(self, keyed_config):
        config = keyed_config.model_copy(update={
            "llm": keyed_config.llm.model_copy(update={"ai_gateway": "https://gw.example.com/v1/acct/"}),
        })
        transport = RecordingTransport((200, gemini_response("ok")))
        choice = LLMChoice(provider=Provider.GOOGLE, model="gemini-2.5-pro", reason="test")
        async with make_gateway(config, transport) as gateway:
            assert await gateway.call("s", "u", choice) == "ok"

        url = str(transport.requests[0].url)
        assert url == "https://gw.example.com/v1/acct/google/v1beta/models/gemini-2.5-pro:generateContent"

    async def test_replicate_call(self, keyed_config):
        transport = RecordingTransport((200, {"choices": [{"message": {"content": "from replicate"}}]}))
        choice = LLMChoice(provider=Provider.REPLICATE, model="meta/llama-3", reason="test")
        async with make_gateway(keyed_config, transport) as gateway:
            text = await gateway.call("system", "user", choice)

        assert text == "from replicate"
        request = transport.requests[0]
        assert request.headers["Authorization"] == "Bearer r8-token"
        assert json.loads(request.content)["messages"][1] == {"role": "user", "content": "user"}

    async def test_openai_call(self, keyed_config):
        transport = RecordingTransport((200, {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-5",
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": "from openai"},
                "finish_reason": "stop",
            }],
        }))
        choice = LLMChoice(provider=Provider.OPENAI, model="gpt-5", reason="test")
        async with make_gateway(keyed_config, transport) as gateway:
            assert await gateway.call("system", "user", choice) == "from openai"

        request = transport.requests[0]
        assert request.url.path.endswith("/chat/completions")
        assert json.loads(request.content)["model"] == "gpt-5"

    async def test_server_error_is_retryable(self, keyed_config):
        transport = RecordingTransport((500, {"error": "boom"}))
        async with make_gateway(keyed_config, transport) as gateway:
            with pytest.raises(LLMError) as exc_info:
                await gateway.call("s", "u", GEMINI)

        assert exc_info.value.retryable
        assert exc_info.value.context["status"] == 500
        assert len(transport.requests) == 1

    async def test_client_error_is_not_retried(self, keyed_config):
        config = keyed_config.model_copy(update={
            "llm": keyed_config.llm.model_copy(update={"max_retries": 3}),
        })
        transport = RecordingTransport((400, {"error": "bad request"}))
        async with make_gateway(config, transport) as gateway:
            with pytest.raises(LLMError) as exc_info:
                await gateway.call("s", "u", GEMINI)

        assert not exc_info.value.retryable
        assert len(transport.requests) == 1

    async def test_transient_error_is_retried(self, keyed_config):
        config = keyed_config.model_copy(update={
            "llm": keyed_config.llm.model_copy(update={"max_retries": 2}),
        })
        transport = RecordingTransport((503, {"error": "busy"}), (200, gemini_response("second time")))
        async with make_gateway(config, transport) as gateway:
            assert await gateway.call("s", "u", GEMINI) == "second time"

        assert len(transport.requests) == 2

    async def test_non_json_body_is_llm_error(self, keyed_config):
        def html_page(request):
            return httpx.Response(200, text="<html>gateway error page</html>")

        async with make_gateway(keyed_config, html_page) as gateway:
            with pytest.raises(LLMError) as exc_info:
                await gateway.call("s", "u", GEMINI)

        assert not exc_info.value.retryable
        assert exc_info.value.context["status"] == 200
        assert "not JSON" in exc_info.value.message

    async def test_generate_ui(self, keyed_config):
        files = {"files": [{"path": "src/App.tsx", "content": "export default () => null;"}]}
        transport = RecordingTransport((200, gemini_response(json.dumps(files))))
        async with make_gateway(keyed_config, transport) as gateway:
            result = await gateway.generate_ui("gemini-2.0-pro-exp", "make a ui")

        assert [f.path for f in result.files] == ["src/App.tsx"]
        assert json.loads(transport.requests[0].content)["contents"][0]["parts"][0]["text"] == "make a ui"

    @pytest.mark.parametrize("answer", ["Sure! Here is your UI.", '{"unexpected": true}', '{"files": "nope"}'])
    async def test_generate_ui_soft_fails(self, keyed_config, answer):
        transport = RecordingTransport((200, gemini_response(answer)))
        async with make_gateway(keyed_config, transport) as gateway:
            result = await gateway.generate_ui("gemini-2.0-pro-exp", "make a ui")

        assert result.files == []

    async def test_empty_candidates(self, keyed_config):
        transport = RecordingTransport((200, {"candidates": []}))
        async with make_gateway(keyed_config, transport) as gateway:
            assert await gateway.call("s", "u", GEMINI) == ""


@pytest.mark.asyncio
class TestCallWithFallback:
    """Tests for the single fallback retry."""

    async def test_fallback_used_when_primary_fails(self, make_gateway):
        gateway = make_gateway(fail_models={"claude-3.7-sonnet"}, text_response=lambda prompt, choice: choice.model)
        choice = LLMChoice(
            provider=Provider.ANTHROPIC,
            model="claude-3.7-sonnet",
            reason="test",
            fallback=FallbackChoice(provider=Provider.OPENAI, model="gpt-5-mini", reason="budget"),
        )

        text, used = await gateway.call_with_fallback("s", "u", choice)

        assert text == "gpt-5-mini"
        assert used.model == "gpt-5-mini"
        assert [c.model for _, _, c in gateway.calls] == ["claude-3.7-sonnet", "gpt-5-mini"]

    async def test_primary_success_skips_fallback(self, make_gateway):
        gateway = make_gateway(text_response=lambda prompt, choice: "primary")
        choice = LLMChoice(
            provider=Provider.ANTHROPIC,
            model="claude-3.7-sonnet",
            reason="test",
            fallback=FallbackChoice(provider=Provider.OPENAI, model="gpt-5-mini", reason="budget"),
        )

        text, used = await gateway.call_with_fallback("s", "u", choice)
        assert (text, used) == ("primary", choice)
        assert len(gateway.calls) == 1

    async def test_no_fallback_reraises(self, make_gateway):
        gateway = make_gateway(fail_models={"gemini-2.0-pro-exp"})
        with pytest.raises(LLMError):
            await gateway.call_with_fallback("s", "u", GEMINI)
        assert len(gateway.calls) == 1

    async def test_fallback_disabled(self, make_gateway, config):
        config.llm.use_fallback = False
        gateway = make_gateway(fail_models={"claude-3.7-sonnet"})
        choice = LLMChoice(
            provider=Provider.ANTHROPIC,
            model="claude-3.7-sonnet",
            reason="test",
            fallback=FallbackChoice(provider=Provider.OPENAI, model="gpt-5-mini", reason="budget"),
        )

        with pytest.raises(LLMError):
            await gateway.call_with_fallback("s", "u", choice)
        assert len(gateway.calls) == 1

    async def test_complete_uses_default_system_prompt(self, make_gateway, config):
        gateway = make_gateway(text_response=lambda prompt, choice: "done")
        assert await gateway.complete("hello", GEMINI) == "done"
        assert gateway.calls[0][0] == config.llm.system_prompt

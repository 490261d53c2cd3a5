"""
LLM gateway adapter.

A single entry point for every provider the pipeline talks to. General text
calls go through ``call``; UI code generation goes through ``generate_ui``,
which expects the model to answer with a JSON file list and soft-fails to an
empty list when it does not.

Missing credentials raise ProviderNotConfiguredError before any network I/O.
Non-success responses raise LLMError; 429 and 5xx responses and transport
errors are retried by tenacity up to ``LLMConfig.max_retries`` attempts.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import anthropic
import httpx
import openai
from pydantic import BaseModel, Field, SecretStr
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..core.config import Config, get_config
from ..core.exceptions import LLMError, ProviderNotConfiguredError
from ..core.logging import get_logger
from ..models.generation import LLMChoice, Provider

logger = get_logger(__name__)

GOOGLE_API_BASE = "https://generativelanguage.googleapis.com"
OPENROUTER_BASE = "https://openrouter.ai/api/v1"
REPLICATE_CHAT_URL = "https://api.replicate.com/v1/chat/completions"


class UIFile(BaseModel):
    path: str
    content: str


class UIGenerationResult(BaseModel):
    """File list returned by the UI generation entry point."""

    files: list[UIFile] = Field(default_factory=list)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, LLMError) and exc.retryable


class LLMGateway(ABC):
    """Interface the generation pipeline uses to reach LLM providers."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()

    @abstractmethod
    async def call(self, system_prompt: str, user_prompt: str, choice: LLMChoice) -> str:
        """Send a prompt to the chosen provider and return the generated text.

        Raises:
            ProviderNotConfiguredError: If the provider's credential is missing.
            LLMError: If the provider call fails.
        """
        ...

    @abstractmethod
    async def generate_ui(self, model: str, prompt: str) -> UIGenerationResult:
        """Generate UI source files.

        Returns an empty file list when the model's answer is not a JSON file list.

        Raises:
            ProviderNotConfiguredError: If the UI provider's credential is missing.
            LLMError: If the provider call fails.
        """
        ...

    async def complete(self, prompt: str, choice: LLMChoice) -> str:
        """Call with the configured default system prompt."""
        return await self.call(self.config.llm.system_prompt, prompt, choice)

    async def call_with_fallback(
        self,
        system_prompt: str,
        user_prompt: str,
        choice: LLMChoice,
    ) -> tuple[str, LLMChoice]:
        """Call the primary choice, then its declared fallback once on failure.

        Returns:
            The generated text and the choice that produced it.

        Raises:
            LLMError: If the primary fails and there is no fallback, fallback is
                disabled, or the fallback fails too.
        """
        try:
            return await self.call(system_prompt, user_prompt, choice), choice
        except LLMError as e:
            fallback = choice.fallback_choice()
            if fallback is None or not self.config.llm.use_fallback:
                raise
            logger.warning(
                "Primary model failed, using fallback",
                provider=choice.provider.value,
                model=choice.model,
                fallback_model=fallback.model,
                error=str(e),
            )
            return await self.call(system_prompt, user_prompt, fallback), fallback


class HTTPLLMGateway(LLMGateway):
    """Gateway backed by the provider SDKs and plain HTTP.

    openai and openrouter use the openai SDK, anthropic uses the anthropic SDK,
    and the Google and Replicate endpoints are called with httpx. When an AI
    gateway URL is configured, openai/anthropic/google traffic is routed through
    its per-provider mount points.
    """

    def __init__(
        self,
        config: Config | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.config.llm.timeout_seconds)

    async def __aenter__(self) -> HTTPLLMGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _mount(self, provider: Provider) -> str | None:
        base = self.config.llm.ai_gateway
        if not base:
            return None
        return f"{base.rstrip('/')}/{provider.value}"

    @staticmethod
    def _require(secret: SecretStr | None, credential: str, choice: LLMChoice) -> str:
        if secret is None or not secret.get_secret_value():
            raise ProviderNotConfiguredError(
                message=f"Missing {credential}",
                provider=choice.provider.value,
                model=choice.model,
                credential=credential,
            )
        return secret.get_secret_value()

    async def call(self, system_prompt: str, user_prompt: str, choice: LLMChoice) -> str:
        logger.info(
            "LLM request starting",
            provider=choice.provider.value,
            model=choice.model,
            reason=choice.reason,
            system_prompt_chars=len(system_prompt),
            user_prompt_chars=len(user_prompt),
        )

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.llm.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                text = await self._dispatch(system_prompt, user_prompt, choice)

        logger.info(
            "LLM response received",
            provider=choice.provider.value,
            model=choice.model,
            response_chars=len(text),
        )
        return text

    async def _dispatch(self, system_prompt: str, user_prompt: str, choice: LLMChoice) -> str:
        provider = choice.provider
        if provider in (Provider.OPENAI, Provider.OPENROUTER):
            return await self._call_openai_compatible(system_prompt, user_prompt, choice)
        if provider == Provider.ANTHROPIC:
            return await self._call_anthropic(system_prompt, user_prompt, choice)
        if provider in (Provider.GOOGLE, Provider.GOOGLEAI):
            return await self._call_gemini(f"{system_prompt}\n\nUser: {user_prompt}", choice)
        if provider == Provider.REPLICATE:
            return await self._call_replicate(system_prompt, user_prompt, choice)
        raise LLMError(
            message=f"Unknown provider: {provider}",
            operation="call",
            provider=str(provider),
            model=choice.model,
        )

    async def _call_openai_compatible(
        self, system_prompt: str, user_prompt: str, choice: LLMChoice
    ) -> str:
        if choice.provider == Provider.OPENROUTER:
            api_key = self._require(self.config.openrouter_api_key, "OPENROUTER_API_KEY", choice)
            base_url: str | None = OPENROUTER_BASE
        else:
            mount = self._mount(Provider.OPENAI)
            if mount:
                # The gateway holds the provider key
                key = self.config.openai_api_key
                api_key = key.get_secret_value() if key else "gateway-managed"
                base_url = f"{mount}/v1"
            else:
                api_key = self._require(self.config.openai_api_key, "OPENAI_API_KEY", choice)
                base_url = None

        client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url, http_client=self._http, max_retries=0)
        try:
            response = await client.chat.completions.create(
                model=choice.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except openai.APIStatusError as e:
            raise self._status_error(choice, e.status_code, e.message, e)
        except openai.APIError as e:
            raise self._transport_error(choice, e)

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def _call_anthropic(self, system_prompt: str, user_prompt: str, choice: LLMChoice) -> str:
        mount = self._mount(Provider.ANTHROPIC)
        if mount:
            key = self.config.anthropic_api_key
            api_key = key.get_secret_value() if key else "gateway-managed"
        else:
            api_key = self._require(self.config.anthropic_api_key, "ANTHROPIC_API_KEY", choice)

        client = anthropic.AsyncAnthropic(api_key=api_key, base_url=mount, http_client=self._http, max_retries=0)
        try:
            response = await client.messages.create(
                model=choice.model,
                max_tokens=self.config.llm.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except anthropic.APIStatusError as e:
            raise self._status_error(choice, e.status_code, e.message, e)
        except anthropic.APIError as e:
            raise self._transport_error(choice, e)

        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""

    def _gemini_url(self, choice: LLMChoice) -> tuple[str, dict[str, str]]:
        path = f"/v1beta/models/{quote(choice.model, safe='')}:generateContent"
        if choice.provider == Provider.GOOGLE:
            mount = self._mount(Provider.GOOGLE)
            if mount:
                return f"{mount}{path}", {}
            key = self._require(self.config.google_api_key, "GOOGLE_API_KEY", choice)
        else:
            key = self._require(
                self.config.google_ai_studio_api_key, "GOOGLE_AI_STUDIO_API_KEY", choice
            )
        return f"{GOOGLE_API_BASE}{path}", {"key": key}

    async def _call_gemini(self, text: str, choice: LLMChoice) -> str:
        url, params = self._gemini_url(choice)
        data = await self._post_json(
            choice, url, {"contents": [{"parts": [{"text": text}]}]}, params=params
        )
        return _gemini_text(data)

    async def _call_replicate(self, system_prompt: str, user_prompt: str, choice: LLMChoice) -> str:
        token = self._require(self.config.replicate_api_token, "REPLICATE_API_TOKEN", choice)
        data = await self._post_json(
            choice,
            REPLICATE_CHAT_URL,
            {
                "model": choice.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            },
            headers={"Authorization": f"Bearer {token}"},
        )
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            return ""

    async def _post_json(
        self,
        choice: LLMChoice,
        url: str,
        body: dict[str, Any],
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._http.post(url, json=body, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise self._transport_error(choice, e)
        if response.is_error:
            raise self._status_error(choice, response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise self._decode_error(choice, response.status_code, response.text, e)

    async def generate_ui(self, model: str, prompt: str) -> UIGenerationResult:
        choice = LLMChoice(provider=Provider.GOOGLEAI, model=model, reason="ui generation")
        url, params = self._gemini_url(choice)

        logger.info("UI generation starting", model=model, prompt_chars=len(prompt))
        data = await self._post_json(
            choice, url, {"contents": [{"parts": [{"text": prompt}]}]}, params=params
        )

        text = _gemini_text(data)
        try:
            result = UIGenerationResult.model_validate(json.loads(text))
        except ValueError:
            logger.warning("UI generation returned no file list", model=model, response_chars=len(text))
            return UIGenerationResult()

        logger.info("UI generation completed", model=model, files=len(result.files))
        return result

    @staticmethod
    def _status_error(
        choice: LLMChoice, status: int, detail: str, cause: Exception | None = None
    ) -> LLMError:
        return LLMError(
            message=f"LLM call failed: {status} {detail}",
            operation="call",
            retryable=status == 429 or status >= 500,
            provider=choice.provider.value,
            model=choice.model,
            context={"status": status},
            cause=cause,
        )

    @staticmethod
    def _decode_error(choice: LLMChoice, status: int, body: str, cause: Exception) -> LLMError:
        return LLMError(
            message=f"LLM response was not JSON: {body[:200]}",
            operation="call",
            retryable=False,
            provider=choice.provider.value,
            model=choice.model,
            context={"status": status},
            cause=cause,
        )

    @staticmethod
    def _transport_error(choice: LLMChoice, cause: Exception) -> LLMError:
        return LLMError(
            message=f"LLM transport error: {cause}",
            operation="call",
            retryable=True,
            provider=choice.provider.value,
            model=choice.model,
            cause=cause,
        )


def _gemini_text(data: Any) -> str:
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"] or ""
    except (KeyError, IndexError, TypeError):
        return ""

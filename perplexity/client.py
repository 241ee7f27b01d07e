"""Perplexity AI API client library."""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Sequence
from datetime import timedelta
from typing import Any

import httpx

from .config import API_CONFIG
from .result import Err, Ok, Result
from .types import (
    AVAILABLE_MODELS,
    DEFAULT_MODEL,
    Choice,
    CompletionRequest,
    CompletionResponse,
    ErrorCode,
    Message,
    Model,
    PerplexityError,
    Usage,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = API_CONFIG.completions_url
DEFAULT_TIMEOUT = API_CONFIG.DEFAULT_TIMEOUT_SECONDS

MessageLike = Message | dict[str, str]


def _get_api_key(api_key: str | None = None) -> str | None:
    """Get API key from parameter or environment."""
    return api_key or os.environ.get(API_CONFIG.API_KEY_ENV)


def _model_name(model: str | Model) -> str:
    return model.value if isinstance(model, Model) else model


def _normalize_messages(messages: Sequence[MessageLike]) -> list[Message]:
    return [
        m if isinstance(m, Message) else Message(role=m.get("role", ""), content=m.get("content", ""))
        for m in messages
    ]


def _get(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    """Read a typed field; missing or null keys give the default."""
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass but never a valid count
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"field {key!r}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _parse_message(data: dict[str, Any]) -> Message:
    return Message(
        role=_get(data, "role", str, ""),
        content=_get(data, "content", str, ""),
    )


def _parse_choice(data: Any) -> Choice:
    if not isinstance(data, dict):
        raise ValueError(f"choice: expected object, got {type(data).__name__}")
    return Choice(
        index=_get(data, "index", int, 0),
        finish_reason=_get(data, "finish_reason", str, ""),
        message=_parse_message(_get(data, "message", dict, {})),
        delta=_parse_message(_get(data, "delta", dict, {})),
    )


def _parse_response(data: Any) -> CompletionResponse:
    """Parse chat completion response."""
    if not isinstance(data, dict):
        raise ValueError(f"expected JSON object, got {type(data).__name__}")

    u = _get(data, "usage", dict, {})
    usage = Usage(
        prompt_tokens=_get(u, "prompt_tokens", int, 0),
        completion_tokens=_get(u, "completion_tokens", int, 0),
        total_tokens=_get(u, "total_tokens", int, 0),
    )

    return CompletionResponse(
        id=_get(data, "id", str, ""),
        model=_get(data, "model", str, ""),
        created=_get(data, "created", int, 0),
        usage=usage,
        object=_get(data, "object", str, ""),
        choices=[_parse_choice(c) for c in _get(data, "choices", list, [])],
    )


def _check_deadline(request: httpx.Request, deadline: float) -> None:
    """Raise a read timeout once the overall request deadline has passed."""
    if time.monotonic() > deadline:
        raise httpx.ReadTimeout("Request deadline exceeded", request=request)


class PerplexityClient:
    """Client for the Perplexity chat completions API.

    Usage:
        client = PerplexityClient(api_key="your-key")  # or set PERPLEXITY_API_KEY
        client.set_model_sonar_large()

        result = client.create_completion([
            Message(role="system", content="Be precise and concise."),
            Message(role="user", content="What's the capital of France?"),
        ])
        if result.is_ok():
            print(result.value.get_last_content())
        else:
            print(f"Error: {result.error}")

    Configuration changes apply to the next call. The client keeps no
    per-call state, so one instance can serve concurrent callers as long as
    the injected httpx.Client allows it and setters are not called meanwhile.
    """

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the client.

        Args:
            api_key: API key for Perplexity. If not provided, reads from
                PERPLEXITY_API_KEY env var.
        """
        self._api_key = _get_api_key(api_key)
        self._endpoint = DEFAULT_ENDPOINT
        self._model = DEFAULT_MODEL.value
        self._timeout = DEFAULT_TIMEOUT
        self._http_client: httpx.Client | None = None

    def set_endpoint(self, url: str) -> None:
        """Set the full URL requests are posted to."""
        self._endpoint = url

    def get_endpoint(self) -> str:
        return self._endpoint

    def set_http_client(self, client: httpx.Client | None) -> None:
        """Use a caller-owned httpx.Client; None restores a fresh client per call."""
        self._http_client = client

    def set_http_timeout(self, timeout: float | timedelta) -> None:
        """Set the request deadline, in seconds or as a timedelta."""
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        self._timeout = float(timeout)

    def get_http_timeout(self) -> float:
        return self._timeout

    def set_model(self, model: str | Model) -> None:
        self._model = _model_name(model)

    def get_model(self) -> str:
        return self._model

    def set_model_sonar_small(self) -> None:
        self.set_model(Model.SONAR_SMALL)

    def set_model_sonar_large(self) -> None:
        self.set_model(Model.SONAR_LARGE)

    def set_model_sonar_huge(self) -> None:
        self.set_model(Model.SONAR_HUGE)

    @staticmethod
    def available_models() -> list[str]:
        """Get list of available models."""
        return list(AVAILABLE_MODELS)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _post(self, client: httpx.Client, body: bytes, deadline: float) -> tuple[int, bytes]:
        """POST the body and read the reply, giving up once the deadline passes.

        httpx timeouts apply per phase, so the overall deadline is checked
        after the headers and after every body chunk.
        """
        with client.stream(
            "POST",
            self._endpoint,
            content=body,
            headers=self._headers(),
            timeout=self._timeout,
        ) as response:
            _check_deadline(response.request, deadline)
            if not response.is_success:
                return response.status_code, b""
            chunks = []
            for chunk in response.iter_bytes():
                chunks.append(chunk)
                _check_deadline(response.request, deadline)
        return response.status_code, b"".join(chunks)

    def _fail(self, error: PerplexityError) -> Err[PerplexityError]:
        logger.warning(f"Completion request failed: {error}")
        return Err(error)

    def create_completion(
        self,
        messages: Sequence[MessageLike],
    ) -> Result[CompletionResponse, PerplexityError]:
        """Send a chat completion request.

        Exactly one POST is issued per call and failures are never retried.

        Args:
            messages: Conversation history in chronological order, as Message
                objects or dicts with 'role' and 'content'.

        Returns:
            Result containing CompletionResponse on success or PerplexityError on failure
        """
        if not messages:
            return self._fail(
                PerplexityError(ErrorCode.VALIDATION_ERROR, "At least one message is required")
            )
        if not self._api_key:
            return self._fail(
                PerplexityError(
                    ErrorCode.CONFIG_ERROR,
                    f"Missing {API_CONFIG.API_KEY_ENV} (set env var or pass api_key parameter)",
                )
            )

        request = CompletionRequest(messages=_normalize_messages(messages), model=self._model)
        logger.debug(
            f"POST {self._endpoint} model={request.model} messages={len(request.messages)}"
        )

        body = request.to_json().encode("utf-8")
        deadline = time.monotonic() + self._timeout
        try:
            if self._http_client is not None:
                status_code, content = self._post(self._http_client, body, deadline)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    status_code, content = self._post(client, body, deadline)
        except httpx.TimeoutException:
            return self._fail(
                PerplexityError(ErrorCode.TIMEOUT_ERROR, f"Request timed out after {self._timeout}s")
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            return self._fail(PerplexityError(ErrorCode.TRANSPORT_ERROR, f"Request failed: {e}"))

        if not 200 <= status_code < 300:
            return self._fail(
                PerplexityError(ErrorCode.HTTP_ERROR, f"HTTP error: {status_code}", status_code)
            )

        try:
            parsed = _parse_response(json.loads(content))
        except (ValueError, RecursionError) as e:
            # JSONDecodeError and UnicodeDecodeError are ValueErrors; deep nesting recurses
            return self._fail(PerplexityError(ErrorCode.DECODE_ERROR, f"Invalid JSON response: {e}"))

        return Ok(parsed)

    def ask(
        self,
        question: str,
        system_prompt: str | None = None,
    ) -> Result[str, PerplexityError]:
        """Ask a single question and get the latest answer text."""
        messages: list[Message] = []
        if system_prompt:
            messages.append(Message(role="system", content=system_prompt))
        messages.append(Message(role="user", content=question))

        return self.create_completion(messages).map(CompletionResponse.get_last_content)


# Convenience functions for one-off usage
def create_completion(
    messages: Sequence[MessageLike],
    api_key: str | None = None,
    model: str | Model = DEFAULT_MODEL,
    endpoint: str = DEFAULT_ENDPOINT,
    timeout: float = DEFAULT_TIMEOUT,
) -> Result[CompletionResponse, PerplexityError]:
    """Send a chat completion request.

    Convenience function that creates a client for single use.
    For multiple requests, prefer creating a PerplexityClient instance.
    """
    client = PerplexityClient(api_key=api_key)
    client.set_model(model)
    client.set_endpoint(endpoint)
    client.set_http_timeout(timeout)
    return client.create_completion(messages)


def ask(
    question: str,
    system_prompt: str | None = None,
    api_key: str | None = None,
    model: str | Model = DEFAULT_MODEL,
    endpoint: str = DEFAULT_ENDPOINT,
    timeout: float = DEFAULT_TIMEOUT,
) -> Result[str, PerplexityError]:
    """Ask a single question and get the response text.

    Convenience function for simple Q&A usage.
    """
    client = PerplexityClient(api_key=api_key)
    client.set_model(model)
    client.set_endpoint(endpoint)
    client.set_http_timeout(timeout)
    return client.ask(question, system_prompt)

"""Type definitions for Perplexity API client."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum, IntEnum
from typing import Any


class Model(str, Enum):
    """Available Perplexity models."""

    SONAR_SMALL = "llama-3.1-sonar-small-128k-online"
    SONAR_LARGE = "llama-3.1-sonar-large-128k-online"
    SONAR_HUGE = "llama-3.1-sonar-huge-128k-online"


DEFAULT_MODEL = Model.SONAR_SMALL

AVAILABLE_MODELS = [m.value for m in Model]


class ErrorCode(IntEnum):
    """Failure categories for a completion call."""

    VALIDATION_ERROR = 1  # Rejected before any I/O
    CONFIG_ERROR = 2  # Missing API key
    TRANSPORT_ERROR = 3  # Connection or protocol failure
    TIMEOUT_ERROR = 4  # Deadline elapsed before a response arrived
    HTTP_ERROR = 5  # Non-2xx status from the API
    DECODE_ERROR = 6  # Body is not JSON of the expected shape


@dataclass(frozen=True, slots=True)
class PerplexityError:
    """API error details."""

    code: ErrorCode
    message: str
    status_code: int | None = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.code.name} ({self.status_code}): {self.message}"
        return f"{self.code.name}: {self.message}"


@dataclass(frozen=True, slots=True)
class Message:
    """Chat message. Role is one of "system", "user" or "assistant"."""

    role: str = ""
    content: str = ""


@dataclass(frozen=True, slots=True)
class CompletionRequest:
    """Chat completion request payload."""

    messages: list[Message]
    model: str = DEFAULT_MODEL.value

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        """Compact JSON body, messages first and model last."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class Usage:
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True, slots=True)
class Choice:
    """Chat completion choice.

    ``delta`` only carries data for streamed responses; it is an empty
    Message for regular completions.
    """

    index: int = 0
    finish_reason: str = ""
    message: Message = field(default_factory=Message)
    delta: Message = field(default_factory=Message)


@dataclass(frozen=True, slots=True)
class CompletionResponse:
    """Chat completion response.

    Field order matches the wire format, so ``to_dict()`` and ``str()``
    emit keys in the same order the API documents them.
    """

    id: str = ""
    model: str = ""
    created: int = 0
    usage: Usage = field(default_factory=Usage)
    object: str = ""
    choices: list[Choice] = field(default_factory=list)

    def get_last_content(self) -> str:
        """Get the message content of the last choice, or "" if there is none."""
        if self.choices:
            return self.choices[-1].message.content
        return ""

    def is_empty(self) -> bool:
        """Check whether every field still holds its default value."""
        return self == CompletionResponse()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        if self.is_empty():
            return ""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def render(response: CompletionResponse | None) -> str:
    """Pretty-print a response; absent or empty responses render as ""."""
    if response is None:
        return ""
    return str(response)

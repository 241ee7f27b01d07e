"""
perplexity - Python client library for the Perplexity AI chat completions API

Usage:
    from perplexity import Message, PerplexityClient

    client = PerplexityClient(api_key="your-key")  # or set PERPLEXITY_API_KEY

    # Full chat with messages
    result = client.create_completion([
        Message(role="system", content="You are a helpful assistant."),
        Message(role="user", content="What are the latest developments in AI?"),
    ])
    if result.is_ok():
        print(result.value.get_last_content())
        print(result.value)  # pretty-printed JSON
    else:
        print(f"Error: {result.error}")

    # Quick question
    result = client.ask("What is the capital of France?")
    print(result.unwrap_or("no answer"))
"""

from .client import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT, PerplexityClient, ask, create_completion
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
    render,
)
from .result import Result, Ok, Err

__all__ = [
    "PerplexityClient",
    "create_completion",
    "ask",
    "CompletionRequest",
    "CompletionResponse",
    "Choice",
    "Message",
    "Model",
    "Usage",
    "ErrorCode",
    "PerplexityError",
    "render",
    "AVAILABLE_MODELS",
    "DEFAULT_MODEL",
    "DEFAULT_ENDPOINT",
    "DEFAULT_TIMEOUT",
    "Result",
    "Ok",
    "Err",
]

__version__ = "1.0.0"

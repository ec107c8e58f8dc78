"""
Completion service client.

DeepSeek exposes an OpenAI-compatible chat completions API, so the OpenAI
SDK is used with a different base_url. The pipeline only depends on the
CompletionService protocol; tests substitute stubs.

No retries happen here: a failed call is terminal for its unit of work
(classification chunk or thread) and the caller decides how far the
failure reaches.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from openai import AsyncOpenAI

from .config import DEFAULT_MODEL, DEFAULT_REQUEST_TIMEOUT, get_api_key, get_base_url
from .errors import CompletionError, ConfigurationError
from .prompts.base import PromptSpec

logger = logging.getLogger(__name__)


@dataclass
class ChatRequest:
    """A single chat completion request."""

    model: str
    messages: List[Dict[str, str]] = field(default_factory=list)
    temperature: float = 0.7

    @classmethod
    def from_prompt(cls, model: str, prompt: PromptSpec) -> "ChatRequest":
        return cls(model=model, messages=prompt.to_messages(), temperature=prompt.temperature)


class CompletionService(Protocol):
    """Anything that can answer a ChatRequest with an OpenAI-shaped response."""

    async def chat(self, request: ChatRequest) -> Any:
        ...


def response_text(response: Any) -> str:
    """
    Pull `choices[0].message.content` out of a completion response.

    Raises:
        CompletionError: if the response has no choices or no content
    """
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise CompletionError(f"Malformed completion response: {e}") from e
    if content is None:
        raise CompletionError("Completion response has no content")
    return content


class DeepSeekClient:
    """Async chat client for the DeepSeek API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Args:
            api_key: API key (defaults to DEEPSEEK_API_KEY)
            base_url: Endpoint (defaults to DEEPSEEK_BASE_URL or the public API)
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key or get_api_key()
        if not self.api_key:
            raise ConfigurationError("DEEPSEEK_API_KEY is not set")
        self.base_url = base_url or get_base_url()
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-initialize the SDK client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                max_retries=0,
            )
        return self._client

    async def chat(self, request: ChatRequest) -> Any:
        """
        Send one chat completion request.

        Raises:
            CompletionError: on timeout or any SDK/transport error
        """
        try:
            return await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=request.model,
                    messages=request.messages,
                    temperature=request.temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise CompletionError(f"Completion request timed out (>{self.timeout:.0f}s)") from e
        except Exception as e:
            raise CompletionError(f"Completion request failed: {e}") from e


async def complete(client: CompletionService, prompt: PromptSpec, model: str = DEFAULT_MODEL) -> str:
    """Send a prompt and return the response text."""
    response = await client.chat(ChatRequest.from_prompt(model, prompt))
    return response_text(response)

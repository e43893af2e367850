"""Anthropic Claude API client wrapper."""

import logging
from typing import Optional, Sequence

from anthropic import Anthropic, APIError, APITimeoutError

from ..config import Config
from ..errors import GenerationError, GenerationTimeout

logger = logging.getLogger(__name__)

Message = dict[str, str]


class AnthropicClient:
    """Text-generation client for Claude.

    Accepts role-tagged messages, returns the reply text. Each call is issued
    once; SDK-level retries are switched off so pacing stays with the caller.
    """

    def __init__(
        self,
        config: Config,
        model: Optional[str] = None,
        client: Optional[Anthropic] = None,
    ) -> None:
        """Initialize the Anthropic client.

        Args:
            config: Application configuration (key, endpoint, default model).
            model: Model to use. Defaults to config.default_model.
            client: Pre-built SDK client, mainly for tests.
        """
        if client is None:
            api_key = config.text_api_key
            if not api_key:
                raise ValueError(
                    "Anthropic API key not provided. Set ANTHROPIC_API_KEY env var."
                )
            client = Anthropic(api_key=api_key, base_url=config.text_base_url, max_retries=0)

        self._client = client
        self._model = model or config.default_model

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def generate(
        self,
        messages: Sequence[Message],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: Optional[float] = None,
    ) -> str:
        """Generate a reply for an ordered list of role-tagged messages.

        Args:
            messages: Dicts with ``role`` (system/user/assistant) and ``content``.
                System messages are lifted into Claude's system prompt.
            temperature: Sampling temperature (0.0-1.0).
            max_tokens: Maximum tokens in the response.
            timeout: Optional wall-clock budget in seconds.

        Returns:
            The text content of Claude's response.

        Raises:
            GenerationTimeout: If the call exceeded ``timeout``.
            GenerationError: If the API reports an error or replies with no text.
        """
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        chat = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] != "system"
        ]

        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": chat,
            "temperature": temperature,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug(f"Sending request to Claude ({len(chat)} message(s))")
        try:
            response = self._client.messages.create(**kwargs)
        except APITimeoutError as e:
            logger.error(f"Request timed out after {timeout}s")
            raise GenerationTimeout(f"text generation timed out after {timeout}s") from e
        except APIError as e:
            logger.error(f"API error: {e}")
            raise GenerationError(f"text generation failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )
        if not text.strip():
            raise GenerationError("text generation returned empty content")
        return text
